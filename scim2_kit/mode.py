from enum import Enum
from typing import Any

from .annotations import Mutability
from .annotations import Returned


class Mode(str, Enum):
    """Represent the side of the SCIM protocol a resource is built on.

    The mode decides which attributes are rendered, following the mutability
    and returned characteristics of :rfc:`RFC7643 §7 <7643#section-7>`.
    A client building a creation payload must not send ``readOnly``
    attributes, and a server must never return ``writeOnly`` ones.
    """

    client = "client"
    """The resource is a payload built by a SCIM client.

    - Attributes annotated with :attr:`~scim2_kit.Mutability.read_only` are not rendered.
    - Attributes annotated with :attr:`~scim2_kit.Mutability.write_only` are only rendered when they hold a value.
    """

    server = "server"
    """The resource is a payload built by a SCIM service provider.

    Attributes annotated with :attr:`~scim2_kit.Mutability.write_only` are not rendered.
    """

    _default = server

    def is_renderable(
        self, mutability: Mutability, returned: Returned, value: Any = None
    ) -> bool:
        """Indicate whether a value with such characteristics can be rendered in this mode.

        >>> Mode.client.is_renderable(Mutability.read_only, Returned.default)
        False
        >>> Mode.server.is_renderable(Mutability.read_only, Returned.default)
        True
        """
        if returned == Returned.never:
            return False

        if self == Mode.server:
            return mutability != Mutability.write_only

        if mutability == Mutability.read_only:
            return False

        if mutability == Mutability.write_only:
            return value is not None

        return True
