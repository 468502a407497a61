from collections.abc import Callable
from enum import Enum
from typing import Any
from typing import ClassVar
from typing import Optional

from pydantic import Field
from pydantic import SerializerFunctionWrapHandler
from pydantic import field_serializer
from pydantic import field_validator
from pydantic_core import Url

from ..annotations import Mutability
from ..annotations import Returned
from ..annotations import Uniqueness
from ..base import BaseModel
from ..exceptions import InvalidDatatype
from ..utils import _normalize_attribute_name
from .resource import Meta


class AttributeType(BaseModel):
    """The definition of a SCIM attribute, as detailed in :rfc:`RFC7643 §7 <7643#section-7>`.

    An attribute type never holds a value: values are held by
    :class:`~scim2_kit.Attribute` objects bound to it. Attribute types are
    shared between every resource built from the same schema, and must not
    be modified once the schema is built.

    >>> name = AttributeType("name", "complex")
    >>> name.add_attribute("familyName")
    >>> name.add_attribute("givenName")
    >>> [sub_attribute.name for sub_attribute in name.sub_attributes]
    ['familyName', 'givenName']
    """

    class Type(str, Enum):
        string = "string"
        complex = "complex"
        boolean = "boolean"
        decimal = "decimal"
        integer = "integer"
        date_time = "dateTime"
        reference = "reference"
        binary = "binary"

        @classmethod
        def find(cls, value: Any) -> "AttributeType.Type":
            """Find a datatype by itself, its SCIM keyword or its identifier.

            :raises InvalidDatatype: if the datatype is unknown.
            """
            if isinstance(value, cls):
                return value

            if isinstance(value, str):
                normalized = _normalize_attribute_name(value)
                for member in cls:
                    if normalized == _normalize_attribute_name(member.value):
                        return member

            raise InvalidDatatype(datatype=value)

    name: str
    """The attribute's name."""

    type: Type = Field(Type.string, examples=[item.value for item in Type])
    """The attribute's data type."""

    multi_valued: bool = False
    """A Boolean value indicating the attribute's plurality."""

    description: str = ""
    """The attribute's human-readable description."""

    required: bool = False
    """A Boolean value that specifies whether or not the attribute is
    required."""

    canonical_values: list[str] | None = None
    """A collection of suggested canonical values that MAY be used (e.g.,
    "work" and "home")."""

    case_exact: bool = False
    """A Boolean value that specifies whether or not a string attribute is case
    sensitive."""

    mutability: Mutability = Field(
        Mutability.read_write, examples=[item.value for item in Mutability]
    )
    """A single keyword indicating the circumstances under which the value of
    the attribute can be (re)defined."""

    returned: Returned = Field(
        Returned.default, examples=[item.value for item in Returned]
    )
    """A single keyword that indicates when an attribute and associated values
    are returned."""

    uniqueness: Uniqueness = Field(
        Uniqueness.none, examples=[item.value for item in Uniqueness]
    )
    """A single keyword value that specifies how the service provider enforces
    uniqueness of attribute values."""

    reference_types: list[str] | None = None
    """A multi-valued array of JSON strings that indicate the SCIM resource
    types that may be referenced."""

    sub_attributes: list["AttributeType"] = Field(default_factory=list)
    """When an attribute is of type "complex", "subAttributes" defines a set of
    sub-attributes."""

    def __init__(self, name: str | None = None, type: Any = "string", **data: Any):
        if name is not None:
            data["name"] = name
        super().__init__(type=type, **data)

    @field_validator("type", mode="before")
    @classmethod
    def find_datatype(cls, value: Any) -> "AttributeType.Type":
        return cls.Type.find(value)

    @field_validator("mutability", mode="before")
    @classmethod
    def find_mutability(cls, value: Any) -> Mutability:
        return Mutability.find(value)

    @field_validator("returned", mode="before")
    @classmethod
    def find_returned(cls, value: Any) -> Returned:
        return Returned.find(value)

    @field_validator("uniqueness", mode="before")
    @classmethod
    def find_uniqueness(cls, value: Any) -> Uniqueness:
        return Uniqueness.find(value)

    @field_serializer("sub_attributes", mode="wrap")
    def omit_empty_sub_attributes(
        self, value: list["AttributeType"], handler: SerializerFunctionWrapHandler
    ) -> Optional[list[dict[str, Any]]]:
        return handler(value) or None

    def add_attribute(
        self,
        name: str,
        type: Any = "string",
        configure: Callable[["AttributeType"], Any] | None = None,
    ) -> None:
        """Append a sub-attribute, and turn this attribute into a complex one.

        :param configure: A callable receiving the new sub-attribute, so its
            characteristics can be set before it is appended.
        """
        self.type = AttributeType.Type.complex
        attribute = AttributeType(name, type)
        if configure is not None:
            configure(attribute)
        self.sub_attributes.append(attribute)

    def set_reference_types(self, values: list[str]) -> None:
        """Turn this attribute into a reference to the given resource types."""
        self.type = AttributeType.Type.reference
        self.reference_types = list(values)

    @property
    def is_complex(self) -> bool:
        return self._type_is(AttributeType.Type.complex)

    @property
    def is_string(self) -> bool:
        return self._type_is(AttributeType.Type.string)

    @property
    def is_reference(self) -> bool:
        return self._type_is(AttributeType.Type.reference)

    def _type_is(self, expected_type: "AttributeType.Type") -> bool:
        return self.type == expected_type

    def get_attribute(self, attribute_name: str) -> Optional["AttributeType"]:
        """Find a sub-attribute by its name, case-insensitively."""
        normalized = _normalize_attribute_name(attribute_name)
        for sub_attribute in self.sub_attributes:
            if _normalize_attribute_name(sub_attribute.name) == normalized:
                return sub_attribute
        return None

    def __getitem__(self, name: str) -> "AttributeType":
        """Find a sub-attribute by its name."""
        if attribute := self.get_attribute(name):
            return attribute
        raise KeyError(f"This attribute has no '{name}' sub-attribute")


class Schema(BaseModel):
    """A SCIM schema, as defined in :rfc:`RFC7643 §7 <7643#section-7>`.

    Schemas gather the attribute types that :class:`~scim2_kit.Resource`
    objects bind to.
    """

    SCHEMA: ClassVar[str] = "urn:ietf:params:scim:schemas:core:2.0:Schema"
    USER: ClassVar[str] = "urn:ietf:params:scim:schemas:core:2.0:User"
    GROUP: ClassVar[str] = "urn:ietf:params:scim:schemas:core:2.0:Group"
    ENTERPRISE_USER: ClassVar[str] = (
        "urn:ietf:params:scim:schemas:extension:enterprise:2.0:User"
    )
    RESOURCE_TYPE: ClassVar[str] = "urn:ietf:params:scim:schemas:core:2.0:ResourceType"
    SERVICE_PROVIDER_CONFIGURATION: ClassVar[str] = (
        "urn:ietf:params:scim:schemas:core:2.0:ServiceProviderConfig"
    )
    ERROR: ClassVar[str] = "urn:ietf:params:scim:api:messages:2.0:Error"

    schemas: list[str] = Field(default_factory=lambda: [Schema.SCHEMA])

    id: str
    """The unique URI of the schema."""

    name: str | None = None
    """The schema's human-readable name."""

    description: str | None = None
    """The schema's human-readable description."""

    attributes: list[AttributeType] = Field(default_factory=list)
    """The attribute types defined by the schema."""

    meta: Meta | None = None

    def __init__(self, location: str | None = None, **data: Any):
        if location is not None:
            data.setdefault("meta", Meta(resource_type="Schema", location=location))
        super().__init__(**data)

    @field_validator("id")
    @classmethod
    def urn_id(cls, value: str) -> str:
        """Ensure that schema ids are URI, as defined in RFC7643 §7."""
        Url(value)
        return value

    @classmethod
    def build(
        cls, configure: Callable[["Schema"], Any] | None = None, **kwargs: Any
    ) -> "Schema":
        """Create a schema and let 'configure' declare its attributes.

        >>> schema = Schema.build(
        ...     lambda s: s.add_attribute("userName"),
        ...     id=Schema.USER,
        ...     name="User",
        ... )
        >>> schema["userName"].type
        <Type.string: 'string'>
        """
        schema = cls(**kwargs)
        if configure is not None:
            configure(schema)
        return schema

    @property
    def location(self) -> str | None:
        return self.meta.location if self.meta else None

    def add_attribute(
        self,
        name: str,
        type: Any = "string",
        configure: Callable[[AttributeType], Any] | None = None,
    ) -> None:
        """Append a top-level attribute type to the schema."""
        attribute = AttributeType(name, type)
        if configure is not None:
            configure(attribute)
        self.attributes.append(attribute)

    def get_attribute(self, attribute_name: str) -> AttributeType | None:
        """Find an attribute by its name, case-insensitively."""
        normalized = _normalize_attribute_name(attribute_name)
        for attribute in self.attributes:
            if _normalize_attribute_name(attribute.name) == normalized:
                return attribute
        return None

    def __getitem__(self, name: str) -> AttributeType:
        """Find an attribute by its name."""
        if attribute := self.get_attribute(name):
            return attribute
        raise KeyError(f"This schema has no '{name}' attribute")
