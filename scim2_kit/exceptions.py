"""SCIM exceptions raised while authoring schemas.

Data validity problems are never raised: they are collected in the
``errors`` mapping of :class:`~scim2_kit.Attribute` and
:class:`~scim2_kit.Resource`. The exceptions below signal programming
errors, such as an unknown attribute datatype or an unknown enumeration
keyword, and are raised at the call site that introduced them.
"""

from typing import Any


class SCIMException(Exception):
    """Base exception for SCIM errors.

    Each subclass carries the scimType and HTTP status that a server would
    use if the error had to be reported to a client, as defined in
    :rfc:`RFC 7644 Table 9 <7644#section-3.12>`.
    """

    status: int = 400
    scim_type: str = ""
    _default_detail: str = "A SCIM error occurred"

    def __init__(self, *, detail: str | None = None, **context: Any):
        self.context = context
        self._detail = detail
        super().__init__(detail or self._default_detail)

    @property
    def detail(self) -> str:
        """The error detail message."""
        return self._detail or self._default_detail


class InvalidDatatype(SCIMException):
    """An attribute type was declared with a datatype outside of :rfc:`RFC7643 §2.3 <7643#section-2.3>`.

    Corresponds to scimType ``invalidValue`` with HTTP status 400.
    """

    status = 400
    scim_type = "invalidValue"
    _default_detail = "The attribute datatype is not a valid SCIM datatype"

    def __init__(self, *, datatype: Any = None, **kw: Any):
        self.datatype = datatype
        super().__init__(**kw)

    def __str__(self) -> str:
        if self._detail:
            return self._detail
        if self.datatype is not None:
            return f"Invalid attribute datatype: {self.datatype!r}"
        return self._default_detail


class InvalidEnumValue(SCIMException):
    """A mutability, returned or uniqueness keyword was not recognized.

    Corresponds to scimType ``invalidValue`` with HTTP status 400.
    """

    status = 400
    scim_type = "invalidValue"
    _default_detail = "The keyword is not a valid value for this characteristic"

    def __init__(
        self, *, enum: str | None = None, value: Any | None = None, **kw: Any
    ):
        self.enum = enum
        self.value = value
        super().__init__(**kw)

    def __str__(self) -> str:
        if self._detail:
            return self._detail
        if self.enum:
            return f"Invalid {self.enum} value: {self.value!r}"
        return self._default_detail
