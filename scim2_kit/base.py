from typing import Any

from pydantic import AliasGenerator
from pydantic import BaseModel as PydanticBaseModel
from pydantic import ConfigDict
from pydantic import SerializationInfo
from pydantic import SerializerFunctionWrapHandler
from pydantic import ValidatorFunctionWrapHandler
from pydantic import model_serializer
from pydantic import model_validator
from typing_extensions import Self

from scim2_kit.utils import _normalize_attribute_name
from scim2_kit.utils import _to_camel


class BaseModel(PydanticBaseModel):
    """Base Model for schema definitions and resource metadata."""

    model_config = ConfigDict(
        alias_generator=AliasGenerator(
            validation_alias=_normalize_attribute_name,
            serialization_alias=_to_camel,
        ),
        validate_assignment=True,
        populate_by_name=True,
        use_attribute_docstrings=True,
        extra="forbid",
    )

    @model_validator(mode="wrap")
    @classmethod
    def normalize_attribute_names(
        cls, value: Any, handler: ValidatorFunctionWrapHandler
    ) -> Self:
        """Normalize payload attribute names.

        :rfc:`RFC7643 §2.1 <7643#section-2.1>` indicate that attribute
        names should be case-insensitive. Any attribute name is
        transformed in lowercase so any case is handled the same way.
        Nested models normalize their own payloads, and keys that already
        are field names are kept untouched.
        """
        if isinstance(value, dict):
            value = {
                key if key in cls.model_fields else _normalize_attribute_name(key): val
                for key, val in value.items()
            }
        return handler(value)

    @model_serializer(mode="wrap")
    def model_serializer_exclude_none(
        self, handler: SerializerFunctionWrapHandler, info: SerializationInfo
    ) -> dict[str, Any]:
        """Remove `None` values, so optional characteristics are omitted from dumps."""
        result = handler(self)
        return {key: value for key, value in result.items() if value is not None}

    def model_dump(self, *args: Any, **kwargs: Any) -> dict[str, Any]:
        """Create a SCIM representation of the model by using Pydantic :code:`BaseModel.model_dump`.

        Unlike the Pydantic default, the dump uses camelCase aliases and the
        JSON mode, so it can be sent as is in a SCIM message.
        """
        kwargs.setdefault("by_alias", True)
        kwargs.setdefault("mode", "json")
        return super().model_dump(*args, **kwargs)

    def model_dump_json(self, *args: Any, **kwargs: Any) -> str:
        kwargs.setdefault("by_alias", True)
        return super().model_dump_json(*args, **kwargs)
