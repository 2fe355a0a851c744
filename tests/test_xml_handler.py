#!/usr/bin/env python3
"""
Tests for the XML format handler (Android, iOS plist and generic XML).

Tests:
1. Dialect detection from the root element
2. Android strings, plurals and arrays are indexed; translatable="false" is skipped
3. Android apostrophes are unescaped on parse and escaped on serialize
4. Comments, untranslatable strings and the declaration survive a round trip
5. Removed keys drop elements and emptied containers
6. New Android keys are appended with the file's indentation
7. Unchanged values keep their inline markup
8. iOS plist pairs keep the doctype and non-string values
9. Generic XML flattens element paths and repeats
10. Malformed XML raises ParseError with a line number
11. Android validation reports duplicates and missing 'other'
"""

import pytest

from locsync.document import DocumentMetadata, TranslationDocument
from locsync.errors import ParseError
from locsync.format_handlers import FormatOptions, FormatRegistry, XmlHandler

ANDROID_XML = """<?xml version="1.0" encoding="utf-8"?>
<resources>
    <!-- Main screen -->
    <string name="app_name">My App</string>
    <string name="welcome">Don\\'t stop</string>
    <string name="version" translatable="false">1.0</string>
    <plurals name="items">
        <item quantity="one">%d item</item>
        <item quantity="other">%d items</item>
    </plurals>
    <string-array name="days">
        <item>Monday</item>
        <item>Tuesday</item>
    </string-array>
</resources>
"""

IOS_PLIST = """<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" "http://www.apple.com/DTDs/PropertyList-1.0.dtd">
<plist version="1.0">
<dict>
    <key>greeting</key>
    <string>Hello</string>
    <key>count</key>
    <integer>3</integer>
</dict>
</plist>
"""

GENERIC_XML = """<messages>
  <title>Hi</title>
  <items>
    <item>A</item>
    <item>B</item>
  </items>
</messages>
"""


@pytest.fixture
def handler():
    """Fixture to create XmlHandler instance."""
    return XmlHandler()


def test_dialect_detection():
    """Test 1: Dialect detection from the root element."""
    assert FormatRegistry.detect_format("res/values/strings.xml", ANDROID_XML) == "android-xml"
    assert FormatRegistry.detect_format("Info.xml", IOS_PLIST) == "ios-xml"
    assert FormatRegistry.detect_format("messages.xml", GENERIC_XML) == "generic-xml"
    assert FormatRegistry.get_handler("android-xml").dialect == "android-xml"


def test_android_entries(handler):
    """Test 2: Android strings, plurals and arrays are indexed; translatable="false" is skipped."""
    doc = handler.parse(ANDROID_XML)

    assert doc.entries == {
        "app_name": "My App",
        "welcome": "Don't stop",
        "items.one": "%d item",
        "items.other": "%d items",
        "days[0]": "Monday",
        "days[1]": "Tuesday",
    }
    assert doc.format == "android-xml"
    assert not handler.nested_keys


def test_android_escaping(handler):
    """Test 3: Android apostrophes are unescaped on parse and escaped on serialize."""
    doc = handler.parse(ANDROID_XML)
    doc.entries["welcome"] = "N'arrête pas"

    output = handler.serialize(doc)

    assert "<string name=\"welcome\">N\\'arrête pas</string>" in output
    assert handler.parse(output).entries["welcome"] == "N'arrête pas"


def test_round_trip_preserves_layout(handler):
    """Test 4: Comments, untranslatable strings and the declaration survive a round trip."""
    output = handler.serialize(handler.parse(ANDROID_XML))

    assert output == ANDROID_XML


def test_removed_keys(handler):
    """Test 5: Removed keys drop elements and emptied containers."""
    doc = handler.parse(ANDROID_XML)
    del doc.entries["days[0]"]
    del doc.entries["days[1]"]
    del doc.entries["app_name"]

    output = handler.serialize(doc)

    assert "string-array" not in output
    assert "app_name" not in output
    assert '<string name="version" translatable="false">1.0</string>' in output


def test_append_android(handler):
    """Test 6: New Android keys are appended with the file's indentation."""
    doc = TranslationDocument(
        {"title": "Titre", "files.one": "un fichier"},
        DocumentMetadata(format="android-xml"),
    )

    output = handler.serialize(doc, FormatOptions(xml_declaration=False))

    assert output == (
        "<resources>\n"
        "    <string name=\"title\">Titre</string>\n"
        "    <plurals name=\"files\">\n"
        "        <item quantity=\"one\">un fichier</item>\n"
        "    </plurals>\n"
        "</resources>\n"
    )


def test_inline_markup(handler):
    """Test 7: Unchanged values keep their inline markup."""
    content = '<resources>\n    <string name="link">Tap <b>here</b> now</string>\n</resources>\n'
    doc = handler.parse(content)

    assert doc.entries == {"link": "Tap here now"}
    assert "<b>here</b>" in handler.serialize(doc)


def test_ios_plist(handler):
    """Test 8: iOS plist pairs keep the doctype and non-string values."""
    doc = handler.parse(IOS_PLIST)
    assert doc.entries == {"greeting": "Hello"}

    doc.entries["greeting"] = "Bonjour"
    output = handler.serialize(doc)

    assert "<!DOCTYPE plist" in output
    assert "<string>Bonjour</string>" in output
    assert "<integer>3</integer>" in output
    assert handler.validate_structure(doc).is_valid


def test_generic_xml(handler):
    """Test 9: Generic XML flattens element paths and repeats."""
    doc = handler.parse(GENERIC_XML)

    assert doc.entries == {"title": "Hi", "items.item[0]": "A", "items.item[1]": "B"}
    assert handler.nested_keys

    doc.entries["items.item[1]"] = "Bee"
    assert "<item>Bee</item>" in handler.serialize(doc)


def test_malformed_xml(handler):
    """Test 10: Malformed XML raises ParseError with a line number."""
    with pytest.raises(ParseError) as exc_info:
        handler.parse('<resources>\n  <string name="a">x</resources>\n')

    assert exc_info.value.line == 2


def test_android_validation(handler):
    """Test 11: Android validation reports duplicates and missing 'other'."""
    doc = handler.parse(
        '<resources>\n'
        '    <string name="a">x</string>\n'
        '    <string name="a">y</string>\n'
        '    <plurals name="p"><item quantity="one">1</item></plurals>\n'
        '</resources>\n'
    )

    result = handler.validate_structure(doc)

    assert [e.code for e in result.errors] == ["DUPLICATE_NAME"]
    assert [w.code for w in result.warnings] == ["MISSING_OTHER_PLURAL"]
