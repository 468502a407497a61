from .annotations import Mutability
from .annotations import Returned
from .annotations import Uniqueness
from .attributes import Attribute
from .base import BaseModel
from .exceptions import InvalidDatatype
from .exceptions import InvalidEnumValue
from .exceptions import SCIMException
from .mode import Mode
from .resources.resource import Meta
from .resources.resource import Resource
from .resources.schema import AttributeType
from .resources.schema import Schema

__all__ = [
    "Attribute",
    "AttributeType",
    "BaseModel",
    "InvalidDatatype",
    "InvalidEnumValue",
    "Meta",
    "Mode",
    "Mutability",
    "Resource",
    "Returned",
    "SCIMException",
    "Schema",
    "Uniqueness",
]
