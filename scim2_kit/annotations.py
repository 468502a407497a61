from enum import Enum
from typing import Any
from typing import TypeVar

from .exceptions import InvalidEnumValue

E = TypeVar("E", bound=Enum)


def _find_member(enum_class: type[E], value: Any) -> E:
    """Find an enumeration member by itself, its SCIM keyword or its identifier.

    >>> _find_member(Mutability, "readOnly")
    <Mutability.read_only: 'readOnly'>
    >>> _find_member(Mutability, "read_only")
    <Mutability.read_only: 'readOnly'>
    """
    if isinstance(value, enum_class):
        return value

    if isinstance(value, str):
        for member in enum_class:
            if value in (member.value, member.name, member.name.rstrip("_")):
                return member

    raise InvalidEnumValue(enum=enum_class.__name__.lower(), value=value)


class Mutability(str, Enum):
    """A single keyword indicating the circumstances under which the value of the attribute can be (re)defined."""

    read_only = "readOnly"
    """The attribute SHALL NOT be modified."""

    read_write = "readWrite"
    """The attribute MAY be updated and read at any time."""

    immutable = "immutable"
    """The attribute MAY be defined at resource creation or at record
    replacement, and SHALL NOT be updated afterwards."""

    write_only = "writeOnly"
    """The attribute MAY be updated at any time, but its values SHALL NOT be
    returned."""

    _default = read_write

    @classmethod
    def find(cls, value: Any) -> "Mutability":
        return _find_member(cls, value)


class Returned(str, Enum):
    """A single keyword that indicates when an attribute and associated values are returned."""

    always = "always"  # cannot be excluded
    never = "never"  # always excluded
    default = "default"  # included by default but can be excluded
    request = "request"  # excluded by default but can be included

    _default = default

    @classmethod
    def find(cls, value: Any) -> "Returned":
        return _find_member(cls, value)


class Uniqueness(str, Enum):
    """A single keyword value that specifies how the service provider enforces uniqueness of attribute values."""

    none = "none"
    """The values are not intended to be unique in any way."""

    server = "server"
    """The value SHOULD be unique within the context of the current SCIM
    endpoint (or tenancy)."""

    global_ = "global"
    """The value SHOULD be globally unique."""

    _default = none

    @classmethod
    def find(cls, value: Any) -> "Uniqueness":
        return _find_member(cls, value)
