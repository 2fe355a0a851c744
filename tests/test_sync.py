#!/usr/bin/env python3
"""
Tests for the synchronization engine.

Tests:
1. Missing keys are translated, existing ones kept, orphans carried over
2. A second run with nothing new translates nothing
3. retranslate redoes existing translations
4. remove drops keys the source no longer has
5. Non-string leaves are copied and never translated
6. Keys matching the ignore prefix are left out
7. List merging keeps target items and pads from the source
8. Failed translations get a marker, or the source text with fallback
9. Unsupported locales are skipped and left untouched
10. A malformed target is treated as empty
11. A malformed source ends the run
12. The source file must match the configured source locale
13. An invalid merged document fails only its locale
14. PO catalogs in folder layout keep their header and translations
15. XLIFF approved targets survive retranslation
16. Keys containing dots stay flat in JSON and YAML
17. An unreadable target fails only its locale
"""

import json

import pytest
import yaml

from locsync.config import Configuration
from locsync.errors import ConfigurationError, ParseError
from locsync.format_handlers import XliffHandler
from locsync.sync import ERROR_MARKER, MergePolicy, SyncEngine, synchronize

from conftest import StubProvider


def read_json(path):
    return json.loads(path.read_text(encoding='utf-8'))


def test_translate_missing_keys(i18n_dir, stub_provider):
    """Test 1: Missing keys are translated, existing ones kept, orphans carried over."""
    report = synchronize(i18n_dir / 'en.json', Configuration(), provider=stub_provider)

    assert stub_provider.initialized
    assert read_json(i18n_dir / 'fr.json') == {
        'greet': 'Bonjour {name}',
        'menu': {'home': 'fr:Home', 'count': 3},
        'legacy': 'Ancien',
    }
    assert read_json(i18n_dir / 'de.json') == {
        'greet': 'de:Hello {name}',
        'menu': {'home': 'de:Home', 'count': 3},
    }

    data = report.to_dict()
    assert data['status'] == 'success'
    assert data['summary'] == {'translated': 2, 'skipped': 0, 'failed': 0}
    assert [r['locale'] for r in data['locales']] == ['de', 'fr']
    assert report.get('fr').translated == 1
    assert report.get('de').translated == 2


def test_idempotent(i18n_dir, stub_provider):
    """Test 2: A second run with nothing new translates nothing."""
    synchronize(i18n_dir / 'en.json', Configuration(), provider=stub_provider)
    before = (i18n_dir / 'fr.json').read_text(encoding='utf-8')
    stub_provider.calls.clear()

    report = synchronize(i18n_dir / 'en.json', Configuration(), provider=stub_provider)

    assert stub_provider.calls == []
    assert report.get('fr').translated == 0
    assert (i18n_dir / 'fr.json').read_text(encoding='utf-8') == before


def test_retranslate(i18n_dir, stub_provider):
    """Test 3: retranslate redoes existing translations."""
    config = Configuration(keep_translations='retranslate')

    synchronize(i18n_dir / 'en.json', config, provider=stub_provider)

    assert read_json(i18n_dir / 'fr.json')['greet'] == 'fr:Hello {name}'


def test_remove_orphans(i18n_dir, stub_provider):
    """Test 4: remove drops keys the source no longer has."""
    config = Configuration(keep_extra_translations='remove')

    synchronize(i18n_dir / 'en.json', config, provider=stub_provider)

    assert 'legacy' not in read_json(i18n_dir / 'fr.json')


def test_non_string_leaves(stub_provider):
    """Test 5: Non-string leaves are copied and never translated."""
    engine = SyncEngine(stub_provider)
    source = {'n': 1.5, 'flag': False, 'nothing': None, 'empty': '', 'nested': {'ids': [1, 2]}}

    merged = engine.merge(source, {}, 'en', 'fr')

    assert merged == source
    assert stub_provider.calls == []


def test_ignore_prefix(stub_provider):
    """Test 6: Keys matching the ignore prefix are left out."""
    engine = SyncEngine(stub_provider, MergePolicy(ignore_prefix='_'))

    merged = engine.merge({'_note': 'internal', 'a': {'_hidden': 'x', 'b': 'y'}}, {}, 'en', 'fr')

    assert merged == {'a': {'b': 'fr:y'}}


def test_list_merge(stub_provider):
    """Test 7: List merging keeps target items and pads from the source."""
    engine = SyncEngine(stub_provider)
    assert engine.merge(['one', 'two'], ['un'], 'en', 'fr') == ['un', 'fr:two']
    assert engine.merge(['one'], ['un', 'deux'], 'en', 'fr') == ['un', 'deux']

    pruning = SyncEngine(stub_provider, MergePolicy(keep_orphaned_keys=False))
    assert pruning.merge(['one'], ['un', 'deux'], 'en', 'fr') == ['un']


def test_translation_failure(i18n_dir):
    """Test 8: Failed translations get a marker, or the source text with fallback."""
    with StubProvider(fail={'Home'}) as provider:
        report = synchronize(i18n_dir / 'en.json', Configuration(), provider=provider)

    home = read_json(i18n_dir / 'de.json')['menu']['home']
    assert home == ERROR_MARKER.format(error="cannot translate 'Home'")
    assert report.get('de').errors == 1
    assert report.get('de').status == 'translated'

    (i18n_dir / 'de.json').write_text('', encoding='utf-8')
    with StubProvider(fail={'Home'}) as provider:
        synchronize(i18n_dir / 'en.json', Configuration(), provider=provider, fallback_to_source=True)

    assert read_json(i18n_dir / 'de.json')['menu']['home'] == 'Home'


def test_unsupported_locale(i18n_dir):
    """Test 9: Unsupported locales are skipped and left untouched."""
    with StubProvider(supported={'fr'}) as provider:
        report = synchronize(i18n_dir / 'en.json', Configuration(), provider=provider)

    assert report.get('de').status == 'skipped'
    assert report.to_dict()['summary']['skipped'] == 1
    assert (i18n_dir / 'de.json').read_text(encoding='utf-8') == ''


def test_malformed_target(i18n_dir, stub_provider):
    """Test 10: A malformed target is treated as empty."""
    (i18n_dir / 'fr.json').write_text('{"greet": ', encoding='utf-8')

    report = synchronize(i18n_dir / 'en.json', Configuration(), provider=stub_provider)

    assert report.get('fr').status == 'translated'
    assert read_json(i18n_dir / 'fr.json')['greet'] == 'fr:Hello {name}'


def test_malformed_source(i18n_dir, stub_provider):
    """Test 11: A malformed source ends the run."""
    (i18n_dir / 'en.json').write_text('{"greet": "Hello",}', encoding='utf-8')

    with pytest.raises(ParseError) as exc_info:
        synchronize(i18n_dir / 'en.json', Configuration(), provider=stub_provider)

    assert exc_info.value.message.startswith('Source file malformed')
    assert (i18n_dir / 'de.json').read_text(encoding='utf-8') == ''


def test_source_locale_mismatch(i18n_dir, stub_provider):
    """Test 12: The source file must match the configured source locale."""
    with pytest.raises(ConfigurationError) as exc_info:
        synchronize(i18n_dir / 'fr.json', Configuration(), provider=stub_provider)

    assert exc_info.value.code == 'SOURCE_LOCALE_MISMATCH'


def test_invalid_merged_document(tmp_path, stub_provider):
    """Test 13: An invalid merged document fails only its locale."""
    (tmp_path / 'en.arb').write_text(json.dumps({
        '@@locale': 'en',
        'items': '{count, plural, one {# item}}',
    }), encoding='utf-8')
    (tmp_path / 'fr.arb').write_text('', encoding='utf-8')

    report = synchronize(tmp_path / 'en.arb', Configuration(), provider=stub_provider)

    result = report.get('fr')
    assert result.status == 'failed'
    assert 'ICU_MISSING_OTHER_PLURAL' in result.message
    assert report.to_dict()['status'] == 'partial'
    assert (tmp_path / 'fr.arb').read_text(encoding='utf-8') == ''


def test_po_folder_layout(tmp_path, stub_provider):
    """Test 14: PO catalogs in folder layout keep their header and translations."""
    for locale in ('en', 'fr', 'de'):
        (tmp_path / locale).mkdir()
    (tmp_path / 'en' / 'messages.po').write_text(
        'msgid ""\nmsgstr ""\n"Language: en\\n"\n\n'
        'msgid "Hello"\nmsgstr ""\n\n'
        'msgid "Bye"\nmsgstr ""\n',
        encoding='utf-8',
    )
    (tmp_path / 'fr' / 'messages.po').write_text(
        '# Traduction française\n'
        'msgid ""\nmsgstr ""\n"Language: fr\\n"\n\n'
        'msgid "Hello"\nmsgstr "Bonjour"\n\n'
        'msgid "Bye"\nmsgstr ""\n',
        encoding='utf-8',
    )

    report = synchronize(
        tmp_path / 'en' / 'messages.po', Configuration(mode='folder'), provider=stub_provider
    )

    fr = (tmp_path / 'fr' / 'messages.po').read_text(encoding='utf-8')
    assert '# Traduction française' in fr
    assert 'msgid "Hello"\nmsgstr "Bonjour"' in fr
    assert 'msgid "Bye"\nmsgstr "fr:Bye"' in fr

    de = (tmp_path / 'de' / 'messages.po').read_text(encoding='utf-8')
    assert '"Language: de\\n"' in de
    assert 'msgid "Hello"\nmsgstr "de:Hello"' in de
    assert report.ok


def test_xliff_approved_targets(tmp_path, stub_provider):
    """Test 15: XLIFF approved targets survive retranslation."""
    (tmp_path / 'en.xlf').write_text(
        '<xliff version="1.2"><file source-language="en" datatype="plaintext" original="app"><body>'
        '<trans-unit id="greeting"><source>Hello</source></trans-unit>'
        '<trans-unit id="farewell"><source>Goodbye</source></trans-unit>'
        '</body></file></xliff>',
        encoding='utf-8',
    )
    (tmp_path / 'fr.xlf').write_text(
        '<xliff version="1.2"><file source-language="en" target-language="fr" '
        'datatype="plaintext" original="app"><body>'
        '<trans-unit id="greeting" approved="yes"><source>Hello</source><target>Salut</target></trans-unit>'
        '</body></file></xliff>',
        encoding='utf-8',
    )

    synchronize(tmp_path / 'en.xlf', Configuration(keep_translations='retranslate'), provider=stub_provider)

    doc = XliffHandler().parse((tmp_path / 'fr.xlf').read_text(encoding='utf-8'))
    assert doc.entries == {'greeting': 'Salut', 'farewell': 'fr:Goodbye'}
    assert doc.metadata.annotation('farewell')['source'] == 'Goodbye'


def test_dotted_keys_stay_flat(tmp_path, stub_provider):
    """Test 16: Keys containing dots stay flat in JSON and YAML."""
    (tmp_path / 'en.json').write_text(json.dumps({'app.title': 'Hello', 'menu': {'a.b': 'Open'}}))
    (tmp_path / 'fr.json').write_text('{}')

    synchronize(tmp_path / 'en.json', Configuration(), provider=stub_provider)

    assert read_json(tmp_path / 'fr.json') == {'app.title': 'fr:Hello', 'menu': {'a.b': 'fr:Open'}}

    yaml_dir = tmp_path / 'yaml'
    yaml_dir.mkdir()
    (yaml_dir / 'en.yml').write_text('errors.required: Required\nlist[0]: First\n', encoding='utf-8')
    (yaml_dir / 'fr.yml').write_text('errors.required: Obligatoire\n', encoding='utf-8')

    synchronize(yaml_dir / 'en.yml', Configuration(), provider=stub_provider)

    fr = yaml.safe_load((yaml_dir / 'fr.yml').read_text(encoding='utf-8'))
    assert fr == {'errors.required': 'Obligatoire', 'list[0]': 'fr:First'}


def test_unreadable_target(i18n_dir, stub_provider):
    """Test 17: An unreadable target fails only its locale."""
    latin1 = '{"greet": "Gr\xfc\xdf Gott"}'.encode('latin-1')
    (i18n_dir / 'de.json').write_bytes(latin1)

    report = synchronize(i18n_dir / 'en.json', Configuration(), provider=stub_provider)

    assert report.get('de').status == 'failed'
    assert 'UTF-8' in report.get('de').message
    assert (i18n_dir / 'de.json').read_bytes() == latin1
    assert report.get('fr').status == 'translated'
    assert read_json(i18n_dir / 'fr.json')['menu']['home'] == 'fr:Home'
    assert report.to_dict()['status'] == 'partial'
