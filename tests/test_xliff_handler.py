#!/usr/bin/env python3
"""
Tests for the XLIFF format handler.

Tests:
1. XLIFF 1.2 units parse to id-keyed entries with approval state
2. Units without a target carry their source and are untranslated
3. Approved targets are never overwritten
4. Writing a target marks the unit as not approved
5. Removed keys drop their units; new keys are appended
6. XLIFF 2.0 multi-segment units use "id.N" keys
7. The target language follows the target locale
8. Duplicate unit ids are validation errors
9. .xml files are only claimed when they hold an xliff root
"""

import pytest

from locsync.document import UNTRANSLATED
from locsync.format_handlers import FormatOptions, FormatRegistry, XliffHandler

XLIFF_12 = """<?xml version="1.0" encoding="UTF-8"?>
<xliff version="1.2" xmlns="urn:oasis:names:tc:xliff:document:1.2">
  <file source-language="en" target-language="fr" datatype="plaintext" original="app">
    <body>
      <trans-unit id="greeting" approved="yes">
        <source>Hello</source>
        <target>Bonjour</target>
      </trans-unit>
      <trans-unit id="farewell">
        <source>Goodbye</source>
        <target>Au revoir</target>
      </trans-unit>
      <trans-unit id="new">
        <source>New</source>
      </trans-unit>
    </body>
  </file>
</xliff>
"""

XLIFF_20 = """<xliff xmlns="urn:oasis:names:tc:xliff:document:2.0" version="2.0" srcLang="en" trgLang="de">
  <file id="f1">
    <unit id="u1">
      <segment state="final"><source>One</source><target>Eins</target></segment>
    </unit>
    <unit id="u2">
      <segment><source>A</source></segment>
      <segment><source>B</source><target>Bb</target></segment>
    </unit>
  </file>
</xliff>
"""


@pytest.fixture
def handler():
    """Fixture to create XliffHandler instance."""
    return XliffHandler()


def test_parse_12(handler):
    """Test 1: XLIFF 1.2 units parse to id-keyed entries with approval state."""
    doc = handler.parse(XLIFF_12)

    assert doc.entries == {"greeting": "Bonjour", "farewell": "Au revoir", "new": "New"}
    assert doc.metadata.extra["version"] == "1.2"
    assert doc.metadata.extra["source_language"] == "en"
    assert doc.metadata.annotation("greeting")["approved"] is True
    assert doc.metadata.annotation("farewell")["approved"] is False


def test_untranslated_unit(handler):
    """Test 2: Units without a target carry their source and are untranslated."""
    doc = handler.parse(XLIFF_12)

    assert doc.is_untranslated("new")
    assert not doc.is_untranslated("greeting")
    assert doc.translated_entries() == {"greeting": "Bonjour", "farewell": "Au revoir"}


def test_approved_target_kept(handler):
    """Test 3: Approved targets are never overwritten."""
    doc = handler.parse(XLIFF_12)
    doc.entries["greeting"] = "Salut"

    reparsed = handler.parse(handler.serialize(doc))

    assert reparsed.entries["greeting"] == "Bonjour"
    assert reparsed.metadata.annotation("greeting")["approved"] is True


def test_write_target(handler):
    """Test 4: Writing a target marks the unit as not approved."""
    doc = handler.parse(XLIFF_12)
    doc.entries["farewell"] = "Adieu"
    doc.entries["new"] = "Nouveau"
    doc.metadata.annotations["new"].pop(UNTRANSLATED)

    output = handler.serialize(doc)
    reparsed = handler.parse(output)

    assert output.startswith('<?xml version="1.0" encoding="UTF-8"?>\n<xliff')
    assert reparsed.entries == {"greeting": "Bonjour", "farewell": "Adieu", "new": "Nouveau"}
    assert not reparsed.is_untranslated("new")
    assert '<trans-unit id="farewell" approved="no">' in output


def test_remove_and_append(handler):
    """Test 5: Removed keys drop their units; new keys are appended."""
    doc = handler.parse(XLIFF_12)
    del doc.entries["farewell"]
    doc.entries["extra"] = "Extra"

    reparsed = handler.parse(handler.serialize(doc))

    assert list(reparsed.entries) == ["greeting", "new", "extra"]
    assert reparsed.metadata.annotation("extra")["source"] == "Extra"


def test_parse_20(handler):
    """Test 6: XLIFF 2.0 multi-segment units use "id.N" keys."""
    doc = handler.parse(XLIFF_20)

    assert doc.entries == {"u1": "Eins", "u2.0": "A", "u2.1": "Bb"}
    assert doc.metadata.extra["version"] == "2.0"
    assert doc.metadata.extra["target_language"] == "de"
    assert doc.metadata.annotation("u1")["approved"] is True
    assert doc.is_untranslated("u2.0")


def test_target_language(handler):
    """Test 7: The target language follows the target locale."""
    output_12 = handler.serialize(handler.parse(XLIFF_12), FormatOptions(locale="es"))
    output_20 = handler.serialize(handler.parse(XLIFF_20), FormatOptions(locale="fr"))

    assert 'target-language="es"' in output_12
    assert 'trgLang="fr"' in output_20


def test_duplicate_ids(handler):
    """Test 8: Duplicate unit ids are validation errors."""
    doc = handler.parse(
        '<xliff version="1.2"><file source-language="en"><body>'
        '<trans-unit id="a"><source>x</source></trans-unit>'
        '<trans-unit id="a"><source>y</source></trans-unit>'
        '</body></file></xliff>'
    )

    result = handler.validate_structure(doc)

    assert [e.code for e in result.errors] == ["DUPLICATE_UNIT_ID"]


def test_xml_extension_detection():
    """Test 9: .xml files are only claimed when they hold an xliff root."""
    assert FormatRegistry.detect_format("messages.xml", XLIFF_12) == "xliff"
    assert FormatRegistry.detect_format("messages.xlf") == "xliff"
    assert FormatRegistry.detect_format("messages.xml", "<resources/>") == "android-xml"
