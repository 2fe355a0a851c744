#!/usr/bin/env python3
"""
Java .properties format handler.

Line-oriented: comments, blank lines, separators and continuation lines are
kept as records so untouched entries are written back byte-for-byte.
"""

import copy
import re
from typing import Any, Optional

from ..document import DocumentMetadata, TranslationDocument
from .base import FormatHandler, FormatOptions, ValidationResult

_UNICODE_ESCAPE_RE = re.compile(r'\\u[0-9a-fA-F]{4}')
_VALUE_ESCAPES = {'t': '\t', 'n': '\n', 'r': '\r', 'f': '\f'}


def _ends_with_continuation(line: str) -> bool:
    """An odd number of trailing backslashes continues the logical line."""
    count = len(line) - len(line.rstrip('\\'))
    return count % 2 == 1


class PropertiesHandler(FormatHandler):
    """
    Handler for Java .properties resource bundles.

    ```
    # Greeting shown on the home page
    app.title = My App
    welcome.message: Welcome, {0}!
    long.text = first part \\
        second part
    ```

    Keys are taken verbatim; the format has no nesting.
    """

    parse_hint = "Check for malformed \\uXXXX escapes"

    @property
    def name(self) -> str:
        return "properties"

    @property
    def file_extensions(self) -> list[str]:
        return ["properties"]

    def parse(self, content: str) -> TranslationDocument:
        """
        Parse .properties content into a document.

        Args:
            content: Raw file content

        Returns:
            TranslationDocument with line records as structure
        """
        if not content.strip():
            return self.empty_document(unicode_escape=False)

        records = []
        entries: dict[str, Any] = {}
        lines = content.split('\n')
        i = 0

        while i < len(lines):
            start = i
            line = lines[i]
            stripped = line.lstrip()

            if not stripped:
                records.append({'type': 'blank', 'raw': [line]})
                i += 1
                continue
            if stripped[0] in '#!':
                records.append({'type': 'comment', 'raw': [line]})
                i += 1
                continue

            raw = [line]
            logical = stripped
            while _ends_with_continuation(logical) and i + 1 < len(lines):
                i += 1
                raw.append(lines[i])
                logical = logical[:-1] + lines[i].lstrip()
            i += 1

            key_raw, separator, value_raw = self._split_entry(logical)
            key = self._unescape(key_raw, content, start + 1)
            value = self._unescape(value_raw, content, start + 1)
            records.append({
                'type': 'entry',
                'raw': raw,
                'key': key,
                'key_raw': key_raw,
                'separator': separator,
                'value': value,
            })
            entries[key] = value

        # A trailing newline produces one empty final line
        if records and records[-1]['type'] == 'blank' and records[-1]['raw'] == ['']:
            records.pop()

        return TranslationDocument(
            entries=entries,
            metadata=DocumentMetadata(
                format=self.name,
                original_structure=records,
                extra={'unicode_escape': bool(_UNICODE_ESCAPE_RE.search(content))},
            ),
        )

    def _split_entry(self, logical: str) -> tuple[str, str, str]:
        """Split a logical line into (key, separator, value), all still escaped."""
        i = 0
        while i < len(logical):
            char = logical[i]
            if char == '\\':
                i += 2
                continue
            if char in '=:' or char.isspace():
                break
            i += 1

        key = logical[:i]
        j = i
        while j < len(logical) and logical[j] in ' \t\f':
            j += 1
        if j < len(logical) and logical[j] in '=:':
            j += 1
            while j < len(logical) and logical[j] in ' \t\f':
                j += 1
        return key, logical[i:j], logical[j:]

    def _unescape(self, text: str, content: str, line: int) -> str:
        result = []
        i = 0
        while i < len(text):
            char = text[i]
            if char != '\\' or i + 1 >= len(text):
                result.append(char)
                i += 1
                continue
            nxt = text[i + 1]
            if nxt == 'u':
                digits = text[i + 2:i + 6]
                if len(digits) != 4 or not re.fullmatch(r'[0-9a-fA-F]{4}', digits):
                    raise self.parse_error("malformed \\uxxxx encoding", content, line)
                result.append(chr(int(digits, 16)))
                i += 6
                continue
            result.append(_VALUE_ESCAPES.get(nxt, nxt))
            i += 2
        return ''.join(result)

    def _escape(self, text: str, is_key: bool, ascii_only: bool) -> str:
        out = []
        for index, char in enumerate(text):
            if char == '\\':
                out.append('\\\\')
            elif char == '\n':
                out.append('\\n')
            elif char == '\t':
                out.append('\\t')
            elif char == '\r':
                out.append('\\r')
            elif char == '\f':
                out.append('\\f')
            elif char == ' ' and (is_key or index == 0):
                out.append('\\ ')
            elif is_key and char in '=:#!':
                out.append('\\' + char)
            elif ascii_only and ord(char) > 0x7e:
                if ord(char) > 0xffff:
                    encoded = char.encode('utf-16-be')
                    out.append('\\u%04x\\u%04x' % (
                        int.from_bytes(encoded[:2], 'big'), int.from_bytes(encoded[2:], 'big')
                    ))
                else:
                    out.append('\\u%04x' % ord(char))
            else:
                out.append(char)
        return ''.join(out)

    def serialize(
        self,
        doc: TranslationDocument,
        options: Optional[FormatOptions] = None,
    ) -> str:
        """
        Reconstruct a .properties file.

        Unchanged entries keep their original lines; changed values are
        rewritten on one line with the original separator.
        """
        metadata = doc.metadata or DocumentMetadata(format=self.name)
        records = copy.deepcopy(metadata.original_structure) or []
        ascii_only = metadata.extra.get('unicode_escape', False)

        lines: list[str] = []
        seen = set()
        for record in records:
            if record['type'] != 'entry':
                lines.extend(record['raw'])
                continue
            key = record['key']
            seen.add(key)
            if key not in doc.entries:
                continue
            value = doc.entries[key]
            value = '' if value is None else str(value)
            if value == record['value']:
                lines.extend(record['raw'])
            else:
                lines.append(
                    record['key_raw'] + (record['separator'] or '=')
                    + self._escape(value, False, ascii_only)
                )

        for key, value in doc.items():
            if key in seen:
                continue
            value = '' if value is None else str(value)
            lines.append(
                f"{self._escape(key, True, ascii_only)}={self._escape(value, False, ascii_only)}"
            )

        return '\n'.join(lines) + '\n'

    def validate_structure(self, doc: TranslationDocument) -> ValidationResult:
        """Empty keys are errors; duplicate keys are warnings."""
        result = ValidationResult()
        metadata = doc.metadata or DocumentMetadata(format=self.name)
        records = metadata.original_structure or []

        seen = set()
        for record in records:
            if record['type'] != 'entry':
                continue
            key = record['key']
            if not key:
                result.error('EMPTY_KEY', "Property with an empty key")
            elif key in seen:
                result.warning('DUPLICATE_KEY', f"Duplicate property key: {key}")
            seen.add(key)
        return result
