#!/usr/bin/env python3
"""
Tests for locale discovery in file and folder layouts.

Tests:
1. File mode finds sibling files with the same extension
2. Missing target files read as empty; saving creates them
3. Folder mode finds sibling locale directories
4. A missing source file is a configuration error
5. An unknown mode is a configuration error
6. Undecodable files raise ParseError
"""

import pytest

from locsync.errors import ConfigurationError, ParseError
from locsync.sources import FileDocumentSource, FolderDocumentSource, open_source


def test_file_mode(tmp_path):
    """Test 1: File mode finds sibling files with the same extension."""
    for name in ('en.json', 'fr.json', 'de.json', 'notes.txt', 'es.yml'):
        (tmp_path / name).write_text('{}')

    source = open_source(tmp_path / 'en.json', 'file')

    assert isinstance(source, FileDocumentSource)
    assert source.source_locale == 'en'
    assert source.target_locales == ['de', 'fr']
    assert source.path_for('it') == tmp_path / 'it.json'
    assert source.source_path == tmp_path / 'en.json'


def test_load_and_save(tmp_path):
    """Test 2: Missing target files read as empty; saving creates them."""
    (tmp_path / 'en').mkdir()
    (tmp_path / 'en' / 'messages.po').write_text('msgid "a"\nmsgstr ""\n')
    source = FolderDocumentSource(tmp_path / 'en' / 'messages.po')

    assert source.load('pt') == ''

    source.save('pt', 'msgid "a"\nmsgstr "á"\n')
    assert (tmp_path / 'pt' / 'messages.po').read_text(encoding='utf-8') == 'msgid "a"\nmsgstr "á"\n'


def test_folder_mode(tmp_path):
    """Test 3: Folder mode finds sibling locale directories."""
    for name in ('en', 'fr', 'ja', '.git'):
        (tmp_path / name).mkdir()
    (tmp_path / 'en' / 'messages.po').write_text('')
    (tmp_path / 'README.md').write_text('')

    source = open_source(tmp_path / 'en' / 'messages.po', 'folder')

    assert source.source_locale == 'en'
    assert source.target_locales == ['fr', 'ja']
    assert source.path_for('ja') == tmp_path / 'ja' / 'messages.po'


def test_missing_source(tmp_path):
    """Test 4: A missing source file is a configuration error."""
    with pytest.raises(ConfigurationError) as exc_info:
        open_source(tmp_path / 'en.json')

    assert exc_info.value.code == 'FILE_NOT_FOUND'


def test_invalid_mode(tmp_path):
    """Test 5: An unknown mode is a configuration error."""
    (tmp_path / 'en.json').write_text('{}')

    with pytest.raises(ConfigurationError) as exc_info:
        open_source(tmp_path / 'en.json', 'tree')

    assert exc_info.value.code == 'INVALID_MODE'


def test_undecodable_file(tmp_path):
    """Test 6: Undecodable files raise ParseError."""
    (tmp_path / 'en.properties').write_text('title=Title\n')
    (tmp_path / 'fr.properties').write_bytes('title=Caf\xe9\n'.encode('latin-1'))
    source = open_source(tmp_path / 'en.properties')

    with pytest.raises(ParseError) as exc_info:
        source.load('fr')

    assert exc_info.value.code == 'ENCODING_ERROR'
    assert exc_info.value.hint
