import base64
import logging
import math
from collections.abc import Callable
from collections.abc import Mapping
from datetime import date
from datetime import datetime
from datetime import timezone
from typing import TYPE_CHECKING
from typing import Any
from typing import Optional
from typing import Union

from pydantic import FiniteFloat
from pydantic import TypeAdapter
from pydantic import ValidationError

from .mode import Mode
from .resources.schema import AttributeType
from .utils import Errors
from .utils import _add_error
from .utils import _is_base64
from .utils import _merge_errors
from .utils import _normalize_attribute_name
from .utils import _to_accessor_name

if TYPE_CHECKING:
    from .resources.resource import Resource

logger = logging.getLogger(__name__)

Type = AttributeType.Type

_DATETIME_ADAPTER = TypeAdapter(datetime)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _is_blank(value: Any) -> bool:
    return value is None or (_is_sequence(value) and not value)


def _coerce_string(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _coerce_boolean(value: Any) -> Any:
    return value


def _coerce_decimal(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            logger.debug("Keeping non numeric decimal value %r", value)
            return value
        if math.isfinite(number):
            return number
        logger.debug("Keeping non finite decimal value %r", value)
    return value


def _coerce_integer(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        try:
            return int(value)
        except (OverflowError, ValueError):
            logger.debug("Keeping non finite integer value %r", value)
            return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            logger.debug("Keeping non numeric integer value %r", value)
    return value


def _as_utc_if_naive(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def _coerce_datetime(value: Any) -> Any:
    """Parse datetimes. Naive values are considered UTC."""
    if isinstance(value, datetime):
        return _as_utc_if_naive(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        try:
            return _as_utc_if_naive(_DATETIME_ADAPTER.validate_python(value))
        except ValidationError:
            logger.debug("Keeping unparsable datetime value %r", value)
    return value


def _coerce_binary(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    return value


def _coerce_reference(value: Any) -> Any:
    return value


_COERCERS: dict[AttributeType.Type, Callable[[Any], Any]] = {
    Type.string: _coerce_string,
    Type.boolean: _coerce_boolean,
    Type.decimal: _coerce_decimal,
    Type.integer: _coerce_integer,
    Type.date_time: _coerce_datetime,
    Type.binary: _coerce_binary,
    Type.reference: _coerce_reference,
}


def _strict_validator(python_type: Any) -> Callable[[Any], bool]:
    adapter = TypeAdapter(python_type)

    def validate(value: Any) -> bool:
        try:
            adapter.validate_python(value, strict=True)
        except ValidationError:
            return False
        return True

    return validate


def _validate_binary(value: Any) -> bool:
    return isinstance(value, str) and _is_base64(value)


_VALIDATORS: dict[AttributeType.Type, Callable[[Any], bool]] = {
    Type.string: _strict_validator(str),
    Type.boolean: _strict_validator(bool),
    Type.decimal: _strict_validator(FiniteFloat),
    Type.integer: _strict_validator(int),
    Type.date_time: _strict_validator(datetime),
    Type.binary: _validate_binary,
    Type.reference: _strict_validator(str),
}


def _render_datetime(value: Any) -> Any:
    return value.isoformat() if isinstance(value, datetime) else value


def _render_as_is(value: Any) -> Any:
    return value


_RENDERERS: dict[AttributeType.Type, Callable[[Any], Any]] = {
    Type.string: _render_as_is,
    Type.boolean: _render_as_is,
    Type.decimal: _render_as_is,
    Type.integer: _render_as_is,
    Type.date_time: _render_datetime,
    Type.binary: _render_as_is,
    Type.reference: _render_as_is,
}


class Attribute:
    """A SCIM attribute value, bound to an :class:`~scim2_kit.AttributeType`.

    Assigned values are coerced according to the attribute datatype, and
    never rejected: invalid values are kept so they can be inspected, and are
    reported by :meth:`is_valid`.

    >>> from scim2_kit import AttributeType
    >>> age = Attribute(AttributeType("age", "integer"))
    >>> age.value = 34.9
    >>> age.value
    34
    >>> age.as_json()
    {'age': 34}

    Sub-attributes of single-valued complex attributes are bound at creation,
    and can be accessed with accessors named after them, or with item access
    when an accessor would be shadowed by a member of this class:

    >>> name = AttributeType("name", "complex")
    >>> name.add_attribute("familyName")
    >>> attribute = Attribute(name)
    >>> attribute.family_name = "Garrett"
    >>> attribute["familyName"]
    'Garrett'
    """

    def __init__(
        self,
        type: AttributeType,
        resource: Optional["Resource"] = None,
        *,
        element: bool = False,
    ):
        self._type = type
        self._resource = resource
        # elements are the items of a multi-valued complex attribute
        self._element = element
        self._errors: Errors = {}
        self._unknown: dict[str, Any] = {}
        self._children: dict[str, Attribute] = {}
        self._raw: Any = [] if self.multiple else None

        if type.is_complex and not self.multiple:
            for sub_attribute in type.sub_attributes:
                self._children[_normalize_attribute_name(sub_attribute.name)] = (
                    Attribute(sub_attribute, resource)
                )

    @property
    def type(self) -> AttributeType:
        return self._type

    @property
    def name(self) -> str:
        return self._type.name

    @property
    def resource(self) -> Optional["Resource"]:
        return self._resource

    @property
    def multiple(self) -> bool:
        """Whether this attribute holds a list of values."""
        return self._type.multi_valued and not self._element

    @property
    def errors(self) -> Errors:
        """The errors found by the last call to :meth:`is_valid`, by attribute name."""
        return self._errors

    @property
    def mode(self) -> Mode:
        return self._resource.mode if self._resource is not None else Mode.server

    @property
    def value(self) -> Any:
        """The coerced value.

        Complex attributes give a dict of their sub-attribute values, by
        declared name. Multi-valued attributes give a list.
        """
        if self._type.is_complex:
            if self.multiple:
                if not _is_sequence(self._raw):
                    return self._raw
                return [
                    item.value if isinstance(item, Attribute) else item
                    for item in self._raw
                ]

            if self._raw is not None:
                return self._raw

            values = {
                child.name: child.value
                for child in self._children.values()
                if not _is_blank(child.value)
            }
            values.update(self._unknown)
            return values or None

        return self._raw

    @value.setter
    def value(self, value: Any) -> None:
        self.assign(value)

    def assign(self, value: Any, coerce: bool = True) -> None:
        """Assign a value to the attribute.

        :param coerce: If :data:`False`, the value is stored verbatim.
        """
        self._unknown = {}
        if self._type.is_complex:
            if self.multiple:
                self._assign_elements(value, coerce)
            else:
                self._assign_sub_attributes(value, coerce)

        elif self.multiple:
            if value is None:
                self._raw = []
            elif _is_sequence(value):
                self._raw = [self._coerce(item) if coerce else item for item in value]
            else:
                logger.debug("Keeping single value %r of '%s'", value, self.name)
                self._raw = value

        else:
            self._raw = self._coerce(value) if coerce else value

    def _coerce(self, value: Any) -> Any:
        if value is None:
            return None
        return _COERCERS[self._type.type](value)

    def _assign_elements(self, value: Any, coerce: bool) -> None:
        if value is None:
            self._raw = []
            return

        if not _is_sequence(value):
            self._raw = value
            return

        items: list[Any] = []
        for item in value:
            if isinstance(item, Mapping):
                element = Attribute(self._type, self._resource, element=True)
                element.assign(item, coerce)
                items.append(element)
            else:
                items.append(item)
        self._raw = items

    def _assign_sub_attributes(self, value: Any, coerce: bool) -> None:
        for child in self._children.values():
            child.assign(None, coerce)
        self._raw = None

        if value is None:
            return

        if not isinstance(value, Mapping):
            self._raw = value
            return

        for key, item in value.items():
            child = self._children.get(_normalize_attribute_name(str(key)))
            if child is None:
                logger.debug("'%s' has no '%s' sub-attribute", self.name, key)
                self._unknown[str(key)] = item
            else:
                child.assign(item, coerce)

    def get_attribute(self, name: str) -> Optional["Attribute"]:
        """Find a sub-attribute by its name, case-insensitively."""
        return self._children.get(_normalize_attribute_name(name))

    def __getitem__(self, name: str) -> Any:
        if child := self.get_attribute(name):
            return child.value
        raise KeyError(f"'{self.name}' has no '{name}' sub-attribute")

    def __setitem__(self, name: str, value: Any) -> None:
        if child := self.get_attribute(name):
            self._raw = None
            child.value = value
            return
        raise KeyError(f"'{self.name}' has no '{name}' sub-attribute")

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)

        if child := self._children.get(_normalize_attribute_name(name)):
            return child.value
        raise AttributeError(f"'{self.name}' has no '{name}' sub-attribute")

    def __setattr__(self, name: str, value: Any) -> None:
        member = getattr(self.__class__, name, None)
        if (
            isinstance(member, property)
            and member.fset is None
            and _normalize_attribute_name(name) in self.__dict__.get("_children", {})
        ):
            raise AttributeError(
                f"'{self.name}.{name}' is shadowed by Attribute.{name}, "
                f"use item access instead: attribute[{name!r}] = ..."
            )

        if name.startswith("_") or hasattr(self.__class__, name):
            super().__setattr__(name, value)
            return

        if child := self._children.get(_normalize_attribute_name(name)):
            self._raw = None
            child.value = value
            return
        raise AttributeError(f"'{self.name}' has no '{name}' sub-attribute")

    def __dir__(self) -> list[str]:
        accessors = {_to_accessor_name(child.name) for child in self._children.values()}
        return sorted(set(super().__dir__()) | accessors)

    def is_valid(self) -> bool:
        """Validate the current value.

        :attr:`errors` is recomputed from scratch at each call.
        """
        self._errors = {}
        if self._type.is_complex:
            self._validate_complex()
        else:
            self._validate_simple()

        if self._errors:
            logger.debug("'%s' validation failed: %s", self.name, self._errors)
        return not self._errors

    def _error(self, message: str, key: str | None = None) -> None:
        _add_error(self._errors, key or self.name, message)

    def _validate_multiplicity(self) -> bool:
        if self.multiple and not _is_sequence(self._raw):
            self._error("must be an array")
            return False

        if not self.multiple and _is_sequence(self._raw):
            self._error("must not be an array")
            return False

        return True

    def _validate_simple(self) -> None:
        if not self._validate_multiplicity():
            return

        if self._type.required and _is_blank(self._raw):
            self._error("is required")
            return

        items = self._raw if self.multiple else [self._raw]
        for item in items:
            if item is not None or self.multiple:
                self._validate_scalar(item)

    def _validate_scalar(self, value: Any) -> None:
        datatype = self._type.type
        if not _VALIDATORS[datatype](value):
            self._error(f"is not a valid {datatype.value}")
            return

        canonical_values = self._type.canonical_values
        if canonical_values and value not in canonical_values:
            self._error(
                f"must be one of the canonical values: {', '.join(canonical_values)}"
            )

    def _validate_complex(self) -> None:
        if self.multiple:
            if not self._validate_multiplicity():
                return

            if self._type.required and not self._raw:
                self._error("is required")

            for item in self._raw:
                if not isinstance(item, Attribute):
                    self._error("is not a valid complex")
                elif not item.is_valid():
                    _merge_errors(self._errors, item.errors)
            return

        if self._raw is not None:
            if not self._validate_multiplicity():
                return
            self._error("is not a valid complex")
            return

        if self._type.required and not self._element and self.value is None:
            self._error("is required")

        for key in self._unknown:
            self._error("is not a valid sub-attribute", key=key)

        for child in self._children.values():
            if not child.is_valid():
                _merge_errors(self._errors, child.errors)

    def is_renderable(self, mode: Union[Mode, str, None] = None) -> bool:
        """Indicate whether the attribute can be rendered.

        :param mode: The mode to render in. Defaults to the mode of the
            owning resource, or :attr:`~scim2_kit.Mode.server`.
        """
        mode = Mode(mode) if mode is not None else self.mode
        value = None if _is_blank(self._raw) else self._raw
        if self._type.is_complex and not self.multiple and self._raw is None:
            value = self.value
        return mode.is_renderable(self._type.mutability, self._type.returned, value)

    def render(self, mode: Union[Mode, str, None] = None) -> Any:
        """Render the value as a JSON-compatible object.

        Sub-attributes that cannot be rendered in 'mode' are left out.
        Rendering never fails: invalid values are rendered as they are.
        """
        mode = Mode(mode) if mode is not None else self.mode
        if self._type.is_complex:
            return self._render_complex(mode)

        render = _RENDERERS[self._type.type]
        if self.multiple and _is_sequence(self._raw):
            return [render(item) for item in self._raw]
        return render(self._raw)

    def _render_complex(self, mode: Mode) -> Any:
        if self.multiple:
            if not _is_sequence(self._raw):
                return self._raw
            return [
                item.render(mode) if isinstance(item, Attribute) else item
                for item in self._raw
            ]

        if self._raw is not None:
            return self._raw

        rendered = {}
        for child in self._children.values():
            if not child.is_renderable(mode):
                continue
            child_value = child.render(mode)
            if child_value is not None:
                rendered[child.name] = child_value
        return rendered or None

    def as_json(self, mode: Union[Mode, str, None] = None) -> dict[str, Any]:
        """Render the attribute as a JSON object keyed by its declared name.

        The object is empty when the attribute cannot be rendered.
        """
        if not self.is_renderable(mode):
            return {}
        return {self.name: self.render(mode)}

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}={self.value!r}>"
