#!/usr/bin/env python3
"""
Canonical translation document shared by the format handlers and the
synchronization engine.

A document is an ordered mapping of flattened keys to leaf values plus an
optional metadata sidecar that lets a handler rebuild the native file
exactly. Flattened keys look like ``user.messages[0].title``.
"""

import copy
import re
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional, Union

# Annotation flag for values that are a fallback, not a translation
UNTRANSLATED = 'untranslated'

KeyPart = Union[str, int]

_INDEX_RE = re.compile(r'\[(\d+)\]')
_SPECIAL_RE = re.compile(r'([\\.\[\]])')


@dataclass
class DocumentMetadata:
    """
    Round-trip sidecar attached by a handler's parse().

    Attributes:
        format: Format tag that produced the document (json, arb, android-xml...)
        original_structure: Pre-flatten native tree, cloned and patched on serialize
        annotations: Per-key sidecar (ARB descriptors, XLIFF approval, PO comments)
        extra: Document-level sidecar (ARB @@ metadata, XLIFF version, PO header)
    """
    format: str
    original_structure: Any = None
    annotations: dict[str, dict[str, Any]] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    def copy(self) -> "DocumentMetadata":
        return copy.deepcopy(self)

    def annotation(self, key: str) -> dict[str, Any]:
        """Annotation for key (empty dict when there is none)."""
        return self.annotations.get(key, {})


@dataclass
class TranslationDocument:
    """Flattened key -> leaf mapping with its metadata sidecar."""
    entries: dict[str, Any] = field(default_factory=dict)
    metadata: Optional[DocumentMetadata] = None

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, key: str) -> bool:
        return key in self.entries

    def __getitem__(self, key: str) -> Any:
        return self.entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def get(self, key: str, default: Any = None) -> Any:
        return self.entries.get(key, default)

    def items(self):
        return self.entries.items()

    @property
    def format(self) -> Optional[str]:
        return self.metadata.format if self.metadata else None

    def copy(self) -> "TranslationDocument":
        return copy.deepcopy(self)

    def is_empty(self) -> bool:
        return not self.entries

    def is_untranslated(self, key: str) -> bool:
        if self.metadata is None:
            return False
        return bool(self.metadata.annotation(key).get(UNTRANSLATED))

    def translated_entries(self) -> dict[str, Any]:
        """Entries whose value is an actual translation, not a fallback."""
        return {
            key: value
            for key, value in self.entries.items()
            if not self.is_untranslated(key)
        }


def parse_key(key: str) -> list[KeyPart]:
    """
    Split a flattened key into path parts.

    A backslash escapes the next character, so names containing ``.``,
    ``[`` or ``]`` stay one segment.

    >>> parse_key('menu.items[1][0].label')
    ['menu', 'items', 1, 0, 'label']
    >>> parse_key(r'app\\.title')
    ['app.title']
    """
    parts: list[KeyPart] = []
    if key == '':
        return parts

    name = ''
    in_name = True
    i = 0
    while i < len(key):
        ch = key[i]
        if ch == '\\' and i + 1 < len(key):
            name += key[i + 1]
            in_name = True
            i += 2
            continue
        if ch == '.':
            if in_name:
                parts.append(name)
            name = ''
            in_name = True
            i += 1
            continue
        if ch == '[':
            match = _INDEX_RE.match(key, i)
            if match:
                if name:
                    parts.append(name)
                parts.append(int(match.group(1)))
                name = ''
                in_name = False
                i = match.end()
                continue
        name += ch
        in_name = True
        i += 1

    if in_name:
        parts.append(name)
    return parts


def escape_segment(name: str) -> str:
    """Escape the key grammar's special characters in one name."""
    return _SPECIAL_RE.sub(r'\\\1', name)


def join_key(path: list[KeyPart]) -> str:
    """Inverse of parse_key."""
    key = ''
    for part in path:
        key = child_key(key, part)
    return key


def child_key(prefix: str, part: KeyPart) -> str:
    if isinstance(part, int):
        return f'{prefix}[{part}]'
    name = escape_segment(str(part))
    return f'{prefix}.{name}' if prefix else name


def flatten(tree: Any, prefix: str = '') -> dict[str, Any]:
    """
    Flatten a nested dict/list tree to flattened-key leaves.

    Strings, numbers, booleans, None and dates become leaves. Empty
    containers are kept as leaves so unflatten() can restore them.
    """
    result: dict[str, Any] = {}
    _flatten_into(tree, prefix, result)
    return result


def _flatten_into(node: Any, prefix: str, result: dict[str, Any]) -> None:
    if isinstance(node, dict):
        if not node:
            if prefix:
                result[prefix] = {}
            return
        for key, value in node.items():
            _flatten_into(value, child_key(prefix, str(key)), result)
    elif isinstance(node, list):
        if not node:
            if prefix:
                result[prefix] = []
            return
        for i, item in enumerate(node):
            _flatten_into(item, child_key(prefix, i), result)
    else:
        result[prefix] = node


class _Missing:
    """Placeholder for array slots nobody assigned."""


_MISSING = _Missing()


def unflatten(mapping: dict[str, Any]) -> Any:
    """
    Rebuild a nested tree from flattened keys.

    Arrays never have holes: when the highest index seen is k, positions
    0..k all exist. A missing slot becomes None when its siblings are
    scalars and an empty container when they are containers.
    """
    root: Any = None
    for key, value in mapping.items():
        root = _assign(root, parse_key(key), copy.deepcopy(value))
    if root is None:
        return {}
    return _fill_gaps(root)


def _assign(node: Any, path: list[KeyPart], value: Any) -> Any:
    if not path:
        return value
    head, rest = path[0], path[1:]

    if isinstance(head, int):
        if not isinstance(node, list):
            node = []
        while len(node) <= head:
            node.append(_MISSING)
        existing = node[head]
        node[head] = _assign(None if existing is _MISSING else existing, rest, value)
        return node

    if not isinstance(node, dict):
        node = {}
    node[head] = _assign(node.get(head), rest, value)
    return node


def _fill_gaps(node: Any) -> Any:
    if isinstance(node, dict):
        for key, value in node.items():
            node[key] = _fill_gaps(value)
        return node
    if isinstance(node, list):
        present = [item for item in node if item is not _MISSING]
        filler: Any = None
        if present and all(isinstance(item, list) for item in present):
            filler = []
        elif present and any(isinstance(item, (dict, list)) for item in present):
            filler = {}
        return [
            copy.deepcopy(filler) if item is _MISSING else _fill_gaps(item)
            for item in node
        ]
    return node


class _Removed:
    """Marks a leaf dropped from a cloned structure."""


_REMOVED = _Removed()


def _is_string(value: Any) -> bool:
    return isinstance(value, str)


def patch_tree(structure: Any, entries: dict[str, Any], translatable=None) -> Any:
    """
    Clone a native tree and apply a flattened mapping to it.

    Leaves addressed by entries are overwritten, keys the tree lacks are
    added, and translatable leaves missing from entries are dropped.
    Containers emptied by those removals are dropped as well. Everything
    else in the tree is left as it was.
    """
    if translatable is None:
        translatable = _is_string

    if structure is None:
        return unflatten(entries)

    tree = copy.deepcopy(structure)
    for key, value in flatten(tree).items():
        if key and key not in entries and translatable(value):
            tree = _assign(tree, parse_key(key), _REMOVED)
    for key, value in entries.items():
        if key:
            tree = _assign(tree, parse_key(key), copy.deepcopy(value))
    tree = _prune(tree)
    if tree is _REMOVED:
        return {}
    return _fill_gaps(tree)


def _prune(node: Any) -> Any:
    if isinstance(node, dict):
        pruned = {}
        for key, value in node.items():
            if value is _REMOVED:
                continue
            child = _prune(value)
            if child is not _REMOVED:
                pruned[key] = child
        if node and not pruned:
            return _REMOVED
        return pruned
    if isinstance(node, list):
        pruned = []
        for item in node:
            if item is _REMOVED:
                continue
            child = _prune(item)
            if child is not _REMOVED:
                pruned.append(child)
        if node and not pruned:
            return _REMOVED
        return pruned
    return node
