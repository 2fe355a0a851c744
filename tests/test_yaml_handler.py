#!/usr/bin/env python3
"""
Tests for the YAML format handler.
Tests registration, parsing, array handling, and reconstruction.

Tests:
1. Handler is registered for .yml and .yaml
2. Rails-style nesting flattens to dotted keys
3. Arrays use indexed keys
4. Dates, numbers and booleans survive a round trip untouched
5. Unicode is written as-is and key order is kept
6. Comment-only input is an empty document
7. Malformed YAML raises ParseError with a line number
8. A scalar root is rejected
"""

import datetime

import pytest
import yaml

from locsync.errors import ParseError
from locsync.format_handlers import FormatRegistry, YamlHandler

RAILS_YAML = """en:
  welcome: Welcome
  user:
    greeting: "Hello %{name}"
    messages:
      one: You have one message
      other: "You have %{count} messages"
"""


@pytest.fixture
def handler():
    """Fixture to create YamlHandler instance."""
    return YamlHandler()


def test_registration():
    """Test 1: Handler is registered for .yml and .yaml."""
    assert FormatRegistry.detect_format("config/locales/en.yml") == "yaml"
    assert FormatRegistry.detect_format("en.yaml") == "yaml"
    assert isinstance(FormatRegistry.get_handler("yaml"), YamlHandler)


def test_simple_parse(handler):
    """Test 2: Rails-style nesting flattens to dotted keys."""
    doc = handler.parse(RAILS_YAML)

    assert doc.entries == {
        "en.welcome": "Welcome",
        "en.user.greeting": "Hello %{name}",
        "en.user.messages.one": "You have one message",
        "en.user.messages.other": "You have %{count} messages",
    }


def test_array_keys(handler):
    """Test 3: Arrays use indexed keys."""
    doc = handler.parse("en:\n  days:\n    - Monday\n    - Tuesday\n")

    assert doc.entries == {"en.days[0]": "Monday", "en.days[1]": "Tuesday"}

    doc.entries["en.days[1]"] = "Mardi"
    assert yaml.safe_load(handler.serialize(doc)) == {"en": {"days": ["Monday", "Mardi"]}}


def test_non_string_leaves(handler):
    """Test 4: Dates, numbers and booleans survive a round trip untouched."""
    content = "en:\n  released: 2024-01-15\n  limit: 10\n  enabled: true\n  title: Hi\n"
    doc = handler.parse(content)

    assert doc.entries["en.released"] == datetime.date(2024, 1, 15)

    doc.entries["en.title"] = "Salut"
    data = yaml.safe_load(handler.serialize(doc))
    assert data == {
        "en": {
            "released": datetime.date(2024, 1, 15),
            "limit": 10,
            "enabled": True,
            "title": "Salut",
        }
    }


def test_unicode_and_order(handler):
    """Test 5: Unicode is written as-is and key order is kept."""
    doc = handler.parse("b: one\na: two\n")
    doc.entries["b"] = "один"

    output = handler.serialize(doc)

    assert output == "b: один\na: two\n"


def test_comment_only(handler):
    """Test 6: Comment-only input is an empty document."""
    assert handler.parse("# nothing yet\n").is_empty()
    assert handler.parse("").is_empty()


def test_malformed_yaml(handler):
    """Test 7: Malformed YAML raises ParseError with a line number."""
    with pytest.raises(ParseError) as exc_info:
        handler.parse('en:\n  key: "unterminated\n')

    assert exc_info.value.line is not None
    assert "Invalid YAML" in str(exc_info.value)


def test_scalar_root(handler):
    """Test 8: A scalar root is rejected."""
    with pytest.raises(ParseError):
        handler.parse("just a string\n")
