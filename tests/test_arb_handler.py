#!/usr/bin/env python3
"""
Tests for the ARB format handler.

Tests:
1. Parse keeps @@ metadata apart from resources
2. @key descriptors become annotations with ICU info
3. Serialize writes @@locale for the target locale
4. Without a target locale the original @@locale is kept
5. Each resource is followed by its @key descriptor
6. Plural messages without 'other' are invalid
7. Placeholder descriptors are checked against the message
8. Orphaned @key metadata is reported and preserved
"""

import json

import pytest

from locsync.format_handlers import ArbHandler, FormatOptions

ARB_CONTENT = json.dumps({
    "@@locale": "en",
    "@@context": "My App",
    "welcomeMessage": "Welcome, {name}!",
    "@welcomeMessage": {
        "description": "Welcome message",
        "placeholders": {"name": {"type": "String"}},
    },
    "itemCount": "{count, plural, =0{No items} =1{One item} other{{count} items}}",
}, indent=2)


@pytest.fixture
def handler():
    """Fixture to create ArbHandler instance."""
    return ArbHandler()


def test_parse_captures_file_metadata(handler):
    """Test 1: Parse keeps @@ metadata apart from resources."""
    doc = handler.parse(ARB_CONTENT)

    assert list(doc.entries) == ["welcomeMessage", "itemCount"]
    assert doc.metadata.extra["arb_metadata"] == {"@@locale": "en", "@@context": "My App"}


def test_resource_annotations(handler):
    """Test 2: @key descriptors become annotations with ICU info."""
    doc = handler.parse(ARB_CONTENT)

    welcome = doc.metadata.annotation("welcomeMessage")
    assert welcome["resource_metadata"]["description"] == "Welcome message"
    assert welcome["icu"]["placeholders"] == ["name"]

    count = doc.metadata.annotation("itemCount")
    assert "resource_metadata" not in count
    assert count["icu"]["message_type"] == "plural"
    assert count["icu"]["plural_forms"] == ["=0", "=1", "other"]


def test_serialize_target_locale(handler):
    """Test 3: Serialize writes @@locale for the target locale."""
    doc = handler.parse(ARB_CONTENT)

    data = json.loads(handler.serialize(doc, FormatOptions(locale="tr")))

    assert data["@@locale"] == "tr"
    assert data["@@context"] == "My App"


def test_serialize_keeps_locale(handler):
    """Test 4: Without a target locale the original @@locale is kept."""
    doc = handler.parse(ARB_CONTENT)

    data = json.loads(handler.serialize(doc))

    assert data["@@locale"] == "en"


def test_serialize_order(handler):
    """Test 5: Each resource is followed by its @key descriptor."""
    doc = handler.parse(ARB_CONTENT)
    doc.entries["welcomeMessage"] = "Hoş geldin, {name}!"

    output = handler.serialize(doc, FormatOptions(locale="tr"))
    data = json.loads(output)

    assert list(data) == [
        "@@locale", "@@context", "welcomeMessage", "@welcomeMessage", "itemCount",
    ]
    assert "Hoş geldin" in output


def test_plural_without_other(handler):
    """Test 6: Plural messages without 'other' are invalid."""
    doc = handler.parse(json.dumps({
        "@@locale": "en",
        "items": "{count, plural, one {# item}}",
        "@items": {"placeholders": {"count": {"type": "int"}}},
    }))

    result = handler.validate_structure(doc)

    assert not result.is_valid
    assert [e.code for e in result.errors] == ["ICU_MISSING_OTHER_PLURAL"]


def test_placeholder_metadata(handler):
    """Test 7: Placeholder descriptors are checked against the message."""
    doc = handler.parse(json.dumps({
        "@@locale": "en",
        "greet": "Hi {first}",
        "@greet": {"placeholders": {"last": {}}, "note": "x"},
        "bye": "Bye {name}",
    }))

    result = handler.validate_structure(doc)
    codes = [w.code for w in result.warnings]

    assert result.is_valid
    assert codes.count("MISSING_PLACEHOLDER_METADATA") == 2
    assert "EXTRA_PLACEHOLDER_METADATA" in codes
    assert "UNKNOWN_METADATA_PROPERTY" in codes


def test_orphaned_metadata(handler):
    """Test 8: Orphaned @key metadata is reported and preserved."""
    doc = handler.parse(json.dumps({
        "@@locale": "en",
        "title": "Title",
        "@removed": {"description": "gone"},
    }))

    result = handler.validate_structure(doc)
    assert [w.code for w in result.warnings] == ["ORPHANED_METADATA"]

    data = json.loads(handler.serialize(doc))
    assert data["@removed"] == {"description": "gone"}
