#!/usr/bin/env python3
"""
Tests for the canonical document model and flattened keys.

Tests:
1. parse_key splits dotted keys and array indices
2. join_key is the inverse of parse_key
3. flatten keeps non-string leaves and empty containers
4. unflatten(flatten(x)) == x for nested documents
5. unflatten fills array gaps with None or empty containers
6. patch_tree overwrites, adds and drops translatable leaves
7. translated_entries skips untranslated fallbacks
"""

import pytest

from locsync.document import (
    UNTRANSLATED,
    DocumentMetadata,
    TranslationDocument,
    flatten,
    join_key,
    parse_key,
    patch_tree,
    unflatten,
)


def test_parse_key():
    """Test 1: parse_key splits dotted keys and array indices."""
    assert parse_key('menu.items[1][0].label') == ['menu', 'items', 1, 0, 'label']
    assert parse_key('title') == ['title']
    assert parse_key('[2]') == [2]
    assert parse_key('') == []
    assert parse_key(r'app\.title') == ['app.title']
    assert parse_key(r'list\[0\].name') == ['list[0]', 'name']


def test_join_key_inverse():
    """Test 2: join_key is the inverse of parse_key."""
    for key in ('a', 'a.b', 'a[0]', 'a[0][1].b', 'x.y[3].z', r'app\.title', r'a\\b[0]'):
        assert join_key(parse_key(key)) == key


def test_flatten_leaves():
    """Test 3: flatten keeps non-string leaves and empty containers."""
    tree = {
        'title': 'Hello',
        'meta': {'count': 3, 'flags': [True, None]},
        'empty': {},
        'none': [],
    }
    assert flatten(tree) == {
        'title': 'Hello',
        'meta.count': 3,
        'meta.flags[0]': True,
        'meta.flags[1]': None,
        'empty': {},
        'none': [],
    }


@pytest.mark.parametrize('tree', [
    {'a': 'x'},
    {'a': {'b': {'c': 'deep'}}, 'd': 1.5, 'e': False, 'f': None},
    {'items': ['one', 'two', {'label': 'three', 'tags': ['x', 'y']}]},
    {'matrix': [[1, 2], [3], []]},
    {'empty': {}, 'list': [], 'nested': {'inner': {}}},
    ['root', 'is', 'a', 'list'],
    {'app.title': 'Hello', 'menu[0]': 'x', 'back\\slash': {'a.b': ['c']}},
])
def test_bijection(tree):
    """Test 4: unflatten(flatten(x)) == x for nested documents."""
    assert unflatten(flatten(tree)) == tree


def test_unflatten_fills_gaps():
    """Test 5: unflatten fills array gaps with None or empty containers."""
    assert unflatten({'a[2]': 'z'}) == {'a': [None, None, 'z']}
    assert unflatten({'a[1].b': 'x'}) == {'a': [{}, {'b': 'x'}]}
    assert unflatten({}) == {}


def test_patch_tree():
    """Test 6: patch_tree overwrites, adds and drops translatable leaves."""
    structure = {'a': 'A', 'b': 1, 'c': {'d': 'D'}, 'e': ['x', 'y']}

    patched = patch_tree(structure, {'a': 'AA', 'e[0]': 'xx', 'e[1]': 'yy', 'new.key': 'N'})

    assert patched == {'a': 'AA', 'b': 1, 'e': ['xx', 'yy'], 'new': {'key': 'N'}}
    # The structure itself is never modified
    assert structure == {'a': 'A', 'b': 1, 'c': {'d': 'D'}, 'e': ['x', 'y']}
    assert patch_tree(None, {'a.b': 'x'}) == {'a': {'b': 'x'}}


def test_translated_entries():
    """Test 7: translated_entries skips untranslated fallbacks."""
    doc = TranslationDocument(
        {'done': 'Fait', 'todo': 'To do'},
        DocumentMetadata(format='po', annotations={'todo': {UNTRANSLATED: True}}),
    )
    assert doc.translated_entries() == {'done': 'Fait'}
    assert doc.is_untranslated('todo')
    assert not doc.is_untranslated('done')
    assert len(doc) == 2 and 'done' in doc
    assert not doc.is_empty()
