import json
import os

import pytest

from scim2_kit import Schema


@pytest.fixture
def load_sample():
    def wrapped(filename):
        path = os.path.join(os.path.dirname(__file__), "..", "samples", filename)
        with open(path) as fd:
            return json.load(fd)

    return wrapped


@pytest.fixture
def user_schema():
    """A reduced User schema, with simple, complex and multi-valued attributes."""

    def configure(schema):
        schema.add_attribute("userName", configure=_required)
        schema.add_attribute("name", configure=_name)
        schema.add_attribute("emails", configure=_emails)
        schema.add_attribute("password", configure=_password)
        schema.add_attribute("active", "boolean")

    return Schema.build(configure, id=Schema.USER, name="User")


def _required(attribute):
    attribute.required = True


def _name(attribute):
    attribute.add_attribute("familyName")
    attribute.add_attribute("givenName")


def _emails(attribute):
    attribute.multi_valued = True
    attribute.add_attribute("value", configure=_required)
    attribute.add_attribute("primary", "boolean")


def _password(attribute):
    attribute.mutability = "writeOnly"
    attribute.returned = "never"
