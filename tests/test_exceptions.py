"""Tests for SCIM exceptions."""

import pytest

from scim2_kit import AttributeType
from scim2_kit import InvalidDatatype
from scim2_kit import InvalidEnumValue
from scim2_kit import SCIMException


def test_base_exception_default_message():
    """SCIMException uses default message when no detail is provided."""
    exc = SCIMException()
    assert str(exc) == "A SCIM error occurred"
    assert exc.status == 400
    assert exc.scim_type == ""


def test_base_exception_custom_message():
    """SCIMException uses custom detail when provided."""
    exc = SCIMException(detail="Custom error message")
    assert str(exc) == "Custom error message"
    assert exc.detail == "Custom error message"


def test_context_attributes():
    """Extra keyword arguments are stored in context dict."""
    exc = InvalidDatatype(datatype="float", extra="data")
    assert exc.datatype == "float"
    assert exc.context["extra"] == "data"


def test_invalid_datatype():
    exc = InvalidDatatype(datatype="blah")
    assert exc.status == 400
    assert exc.scim_type == "invalidValue"
    assert str(exc) == "Invalid attribute datatype: 'blah'"
    assert InvalidDatatype().detail == (
        "The attribute datatype is not a valid SCIM datatype"
    )


def test_invalid_enum_value():
    exc = InvalidEnumValue(enum="returned", value="sometimes")
    assert exc.status == 400
    assert exc.scim_type == "invalidValue"
    assert str(exc) == "Invalid returned value: 'sometimes'"
    assert str(InvalidEnumValue(detail="Custom")) == "Custom"


def test_exceptions_are_not_wrapped():
    """Authoring errors are raised as is, even through pydantic validation."""
    with pytest.raises(SCIMException):
        AttributeType.model_validate({"name": "foo", "type": "blah"})

    attribute = AttributeType("foo")
    with pytest.raises(SCIMException):
        attribute.returned = "sometimes"
