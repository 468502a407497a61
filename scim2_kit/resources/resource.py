import json
import logging
from collections.abc import Mapping
from datetime import datetime
from typing import TYPE_CHECKING
from typing import Any
from typing import Optional
from typing import Union

from pydantic import ValidationError
from pydantic import field_serializer

from ..annotations import Mutability
from ..annotations import Returned
from ..base import BaseModel
from ..mode import Mode
from ..utils import Errors
from ..utils import _add_error
from ..utils import _merge_errors
from ..utils import _normalize_attribute_name
from ..utils import _to_accessor_name

if TYPE_CHECKING:
    from ..attributes import Attribute
    from .schema import Schema

logger = logging.getLogger(__name__)


class Meta(BaseModel):
    """All "meta" sub-attributes are assigned by the service provider (have a "mutability" of "readOnly"), and all of these sub-attributes have a "returned" characteristic of "default"."""

    resource_type: Optional[str] = None
    """The name of the resource type of the resource."""

    created: Optional[datetime] = None
    """The "DateTime" that the resource was added to the service provider."""

    last_modified: Optional[datetime] = None
    """The most recent DateTime that the details of this resource were updated
    at the service provider."""

    location: Optional[str] = None
    """The URI of the resource being returned."""

    version: Optional[str] = None
    """The version of the resource being returned."""

    @field_serializer("created", "last_modified")
    def serialize_datetime(self, value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value is not None else None


# Common attributes as defined by
# https://www.rfc-editor.org/rfc/rfc7643#section-3.1
_COMMON_ATTRIBUTES: dict[str, tuple[Mutability, Returned]] = {
    "id": (Mutability.read_only, Returned.always),
    "externalId": (Mutability.read_write, Returned.default),
    "meta": (Mutability.read_only, Returned.default),
}

_RESERVED_NAMES = frozenset(("id", "external_id", "meta"))


class Resource:
    """A SCIM resource bound to one or several schemas.

    One :class:`~scim2_kit.Attribute` is bound for each top-level attribute
    type of the schemas. Attribute values are read and written through
    accessors named after the attributes, or through item access with the
    declared names:

    >>> from scim2_kit import Schema
    >>> schema = Schema(id=Schema.USER, name="User")
    >>> schema.add_attribute("userName")
    >>> user = Resource(schema, location="https://example.test/Users/1")
    >>> user.user_name = "bjensen"
    >>> user["userName"]
    'bjensen'

    Sub-attributes of complex attributes are reachable with composed names,
    for instance ``user.name_family_name`` for ``name.familyName``.
    """

    def __init__(
        self,
        schemas: Union["Schema", list["Schema"]],
        location: Optional[str] = None,
        mode: Union[Mode, str] = Mode.server,
    ):
        from ..attributes import Attribute

        if not isinstance(schemas, (list, tuple)):
            schemas = [schemas]

        self._schemas: list[Schema] = list(schemas)
        self._mode = Mode(mode)
        self._errors: Errors = {}
        self._unknown: dict[str, Any] = {}
        self._invalid_meta: Any = None
        self._attributes: dict[str, Attribute] = {}
        self.id: Optional[str] = None
        self.external_id: Optional[str] = None
        self.meta = Meta(
            resource_type=self._schemas[0].name if self._schemas else None,
            location=location,
        )

        for schema in self._schemas:
            for attribute_type in schema.attributes:
                self._attributes[_normalize_attribute_name(attribute_type.name)] = (
                    Attribute(attribute_type, self)
                )

    @property
    def schemas(self) -> list["Schema"]:
        return self._schemas

    @property
    def mode(self) -> Mode:
        """The side of the protocol this resource is built on."""
        return self._mode

    @mode.setter
    def mode(self, value: Union[Mode, str]) -> None:
        self._mode = Mode(value)

    def is_mode(self, mode: Union[Mode, str]) -> bool:
        return self._mode == Mode(mode)

    @property
    def errors(self) -> Errors:
        """The errors found by the last call to :meth:`is_valid`, by attribute name."""
        return self._errors

    @property
    def attributes(self) -> list["Attribute"]:
        return list(self._attributes.values())

    def attribute_for(self, name: str) -> "Attribute":
        """Find a bound attribute by its name.

        Names are case-insensitive, may designate sub-attributes with a
        dotted path such as ``name.familyName``, and may be prefixed by the
        URN of one of the resource schemas.

        :raises KeyError: if no such attribute is bound to the resource.
        """
        path = name
        if ":" in name:
            schema_id, _, path = name.rpartition(":")
            if not any(schema.id.lower() == schema_id.lower() for schema in self._schemas):
                raise KeyError(f"This resource has no '{schema_id}' schema")

        head, *sub_attribute_names = path.split(".")
        attribute = self._attributes.get(_normalize_attribute_name(head))
        for sub_attribute_name in sub_attribute_names:
            if attribute is None:
                break
            attribute = attribute.get_attribute(sub_attribute_name)

        if attribute is None:
            raise KeyError(f"This resource has no '{name}' attribute")
        return attribute

    def _find_accessor(self, name: str) -> Optional["Attribute"]:
        key = _normalize_attribute_name(name)
        if key in self._attributes:
            return self._attributes[key]

        for prefix, attribute in self._attributes.items():
            if attribute.type.is_complex and key.startswith(prefix):
                if child := attribute.get_attribute(key[len(prefix) :]):
                    return child
        return None

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)

        attribute = self._find_accessor(name)
        if attribute is None:
            raise AttributeError(
                f"'{self.__class__.__name__}' object has no attribute '{name}'"
            )
        return attribute.value

    def __setattr__(self, name: str, value: Any) -> None:
        if (
            name.startswith("_")
            or name in _RESERVED_NAMES
            or hasattr(self.__class__, name)
        ):
            super().__setattr__(name, value)
            return

        attribute = self._find_accessor(name)
        if attribute is None:
            raise AttributeError(
                f"'{self.__class__.__name__}' object has no attribute '{name}'"
            )
        attribute.value = value

    def __getitem__(self, name: str) -> Any:
        return self.attribute_for(name).value

    def __setitem__(self, name: str, value: Any) -> None:
        self.attribute_for(name).value = value

    def __dir__(self) -> list[str]:
        accessors = []
        for attribute in self._attributes.values():
            accessor = _to_accessor_name(attribute.name)
            accessors.append(accessor)
            if attribute.type.is_complex and not attribute.type.multi_valued:
                accessors.extend(
                    f"{accessor}_{_to_accessor_name(sub_attribute.name)}"
                    for sub_attribute in attribute.type.sub_attributes
                )
        return sorted(set(super().__dir__()) | set(accessors))

    def assign(self, payload: Mapping[str, Any]) -> None:
        """Assign every value of a SCIM JSON payload.

        Common attributes are assigned to :attr:`id`, :attr:`external_id` and
        :attr:`meta`. Objects keyed by one of the resource schema URNs have
        their members assigned. Keys matching no attribute, and meta values
        that are not valid, are reported by the next call to :meth:`is_valid`.
        """
        self._unknown = {}
        self._invalid_meta = None
        for key, value in payload.items():
            normalized = _normalize_attribute_name(key)
            if normalized == "schemas":
                continue

            if normalized == "id":
                self.id = value
            elif normalized == "externalid":
                self.external_id = value
            elif normalized == "meta":
                self._assign_meta(value)
            elif self._is_schema_id(key) and isinstance(value, Mapping):
                for sub_key, sub_value in value.items():
                    self._assign_attribute(f"{key}:{sub_key}", sub_value)
            else:
                self._assign_attribute(key, value)

    def _assign_meta(self, value: Any) -> None:
        if not isinstance(value, Mapping):
            logger.debug("Keeping invalid meta %r", value)
            self._invalid_meta = value
            return

        try:
            self.meta = Meta.model_validate({**self.meta.model_dump(), **value})
        except ValidationError as exc:
            logger.debug("Keeping invalid meta %r: %s", value, exc)
            self._invalid_meta = value

    def _assign_attribute(self, name: str, value: Any) -> None:
        try:
            attribute = self.attribute_for(name)
        except KeyError:
            logger.debug("Ignoring unknown attribute '%s' on assignment", name)
            self._unknown[name] = value
            return
        attribute.value = value

    def _is_schema_id(self, value: str) -> bool:
        return any(schema.id.lower() == value.lower() for schema in self._schemas)

    def is_valid(self) -> bool:
        """Validate the resource and every bound attribute.

        :attr:`errors` is recomputed from scratch. In server mode, the
        resource must have an :attr:`id`.
        """
        self._errors = {}
        if self._mode == Mode.server and not self.id:
            _add_error(self._errors, "id", "is required")

        if self._invalid_meta is not None:
            _add_error(self._errors, "meta", "is not a valid meta")

        for key in self._unknown:
            _add_error(self._errors, key, "is not a valid attribute")

        for attribute in self._attributes.values():
            if not attribute.is_valid():
                _merge_errors(self._errors, attribute.errors)

        if self._errors:
            logger.debug("Resource validation failed: %s", self._errors)
        return not self._errors

    def as_json(self) -> dict[str, Any]:
        """Render the resource as a JSON-compatible dict.

        Attributes that cannot be rendered in the resource :attr:`mode` are
        left out, and so are attributes with no value.
        """
        result: dict[str, Any] = {"schemas": [schema.id for schema in self._schemas]}

        common_values = {
            "id": self.id,
            "externalId": self.external_id,
            "meta": self.meta.model_dump() or None,
        }
        for key, value in common_values.items():
            mutability, returned = _COMMON_ATTRIBUTES[key]
            if value is not None and self._mode.is_renderable(
                mutability, returned, value
            ):
                result[key] = value

        for attribute in self._attributes.values():
            if not attribute.is_renderable():
                continue
            rendered = attribute.render()
            if rendered is not None:
                result[attribute.name] = rendered

        return result

    def to_json(self, **kwargs: Any) -> str:
        """Render the resource as a JSON string. Keyword arguments are passed to :func:`json.dumps`."""
        return json.dumps(self.as_json(), **kwargs)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} id={self.id!r} schemas={[schema.id for schema in self._schemas]!r}>"
