import base64
import binascii
import re
from collections.abc import Mapping
from collections.abc import Sequence

from pydantic.alias_generators import to_snake

_UNDERSCORE_ALPHANUMERIC = re.compile(r"_+([0-9A-Za-z]+)")
_NON_WORD_UNDERSCORE = re.compile(r"[\W_]+")

Errors = dict[str, list[str]]


def _to_camel(string: str) -> str:
    """Transform strings to camelCase.

    This method is used for attribute name serialization. This is more
    or less the pydantic implementation, but it does not add uppercase
    on alphanumerical characters after specials characters. For instance
    '$ref' stays '$ref'.
    """
    snake = to_snake(string)
    camel = _UNDERSCORE_ALPHANUMERIC.sub(lambda m: m.group(1).title(), snake)
    return camel


def _to_accessor_name(attribute_name: str) -> str:
    """Build the Python accessor name of a SCIM attribute.

    >>> _to_accessor_name("familyName")
    'family_name'
    >>> _to_accessor_name("$ref")
    'ref'
    """
    return to_snake(_NON_WORD_UNDERSCORE.sub("_", attribute_name).strip("_"))


def _normalize_attribute_name(attribute_name: str) -> str:
    """Remove all non-alphabetical characters and lowerise a string.

    This method is used for attribute name lookups, as :rfc:`RFC7643 §2.1
    <7643#section-2.1>` states that attribute names are case-insensitive.
    Accessor names and declared names normalize the same way, so
    'family_name' and 'familyName' designate the same attribute.
    """
    is_extension_attribute = ":" in attribute_name
    if not is_extension_attribute:
        attribute_name = _NON_WORD_UNDERSCORE.sub("", attribute_name)

    return attribute_name.lower()


def _merge_errors(target: Errors, source: Mapping[str, Sequence[str]]) -> Errors:
    """Copy the messages of 'source' into 'target', keeping keys and avoiding duplicates."""
    for key, messages in source.items():
        bucket = target.setdefault(key, [])
        for message in messages:
            if message not in bucket:
                bucket.append(message)
    return target


def _add_error(errors: Errors, key: str, message: str) -> None:
    _merge_errors(errors, {key: [message]})


def _is_base64(value: str) -> bool:
    try:
        base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        return False
    return True
