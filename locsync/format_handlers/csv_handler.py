#!/usr/bin/env python3
"""
CSV and TSV format handlers.

One row per string, with a header row naming the columns. The key and value
columns are detected from the header; every other column is carried through
unchanged.
"""

import csv
import io
from typing import Any, Optional

from ..document import DocumentMetadata, TranslationDocument
from .base import FormatHandler, FormatOptions, ValidationResult

KEY_COLUMNS = ('key', 'id', 'identifier', 'name', 'string_id', 'message_id')
VALUE_COLUMNS = ('value', 'text', 'translation', 'source')
DELIMITERS = ',;\t|'


def _find_column(header: list[str], candidates: tuple[str, ...], exclude: Optional[int] = None) -> Optional[int]:
    normalized = [h.strip().lower() for h in header]
    for candidate in candidates:
        if candidate in normalized:
            index = normalized.index(candidate)
            if index != exclude:
                return index
    return None


class CsvHandler(FormatHandler):
    """
    Handler for CSV string tables.

    ```
    key,value,description
    app.title,My App,Window title
    welcome,"Hello, {name}",Shown after login
    ```
    """

    parse_hint = "Check that quoted fields are closed and every row has a key"

    @property
    def name(self) -> str:
        return "csv"

    @property
    def file_extensions(self) -> list[str]:
        return ["csv"]

    def _delimiter(self, content: str) -> str:
        sample = '\n'.join(content.splitlines()[:20])
        try:
            return csv.Sniffer().sniff(sample, delimiters=DELIMITERS).delimiter
        except csv.Error:
            return ','

    def sniff(self, content: str) -> bool:
        rows = list(csv.reader(io.StringIO(content), delimiter=self._delimiter(content)))
        return bool(rows) and len(rows[0]) >= 1

    def parse(self, content: str) -> TranslationDocument:
        """
        Parse CSV content into a document keyed by the key column.

        Args:
            content: Raw file content

        Returns:
            TranslationDocument with header and rows as structure
        """
        delimiter = self._delimiter(content) if content.strip() else self._default_delimiter()
        if not content.strip():
            return self.empty_document(delimiter=delimiter, key_column=0, value_column=1)

        try:
            rows = list(csv.reader(io.StringIO(content), delimiter=delimiter, strict=True))
        except csv.Error as e:
            raise self.parse_error(str(e), content)

        rows = [row for row in rows if any(cell.strip() for cell in row)]
        header = rows[0]
        key_column = _find_column(header, KEY_COLUMNS)
        detected_key = key_column is not None
        if key_column is None:
            key_column = 0
        value_column = _find_column(header, VALUE_COLUMNS, exclude=key_column)
        if value_column is None:
            value_column = next((i for i in range(len(header)) if i != key_column), None)

        entries: dict[str, Any] = {}
        duplicates = []
        for row in rows[1:]:
            key = row[key_column] if key_column < len(row) else ''
            if not key:
                continue
            if key in entries:
                duplicates.append(key)
            value = ''
            if value_column is not None and value_column < len(row):
                value = row[value_column]
            entries[key] = value

        return TranslationDocument(
            entries=entries,
            metadata=DocumentMetadata(
                format=self.name,
                original_structure={'header': header, 'rows': rows[1:]},
                extra={
                    'delimiter': delimiter,
                    'key_column': key_column,
                    'value_column': value_column,
                    'detected_key_column': detected_key,
                    'line_terminator': '\r\n' if '\r\n' in content else '\n',
                    'duplicates': duplicates,
                },
            ),
        )

    def _default_delimiter(self) -> str:
        return ','

    def serialize(
        self,
        doc: TranslationDocument,
        options: Optional[FormatOptions] = None,
    ) -> str:
        """
        Reconstruct the table, rewriting only the value column.
        """
        metadata = doc.metadata or DocumentMetadata(format=self.name)
        structure = metadata.original_structure or {'header': ['key', 'value'], 'rows': []}
        extra = metadata.extra
        delimiter = extra.get('delimiter', self._default_delimiter())
        key_column = extra.get('key_column', 0)
        value_column = extra.get('value_column', 1)
        if value_column is None:
            value_column = len(structure['header'])
        width = max(len(structure['header']), key_column + 1, value_column + 1)

        output = io.StringIO()
        writer = csv.writer(
            output,
            delimiter=delimiter,
            lineterminator=extra.get('line_terminator', '\n'),
        )
        header = list(structure['header'])
        if value_column >= len(header):
            header.extend([''] * (value_column + 1 - len(header)))
            header[value_column] = 'value'
        writer.writerow(header)

        seen = set()
        for row in structure['rows']:
            key = row[key_column] if key_column < len(row) else ''
            if not key or key not in doc.entries or key in seen:
                continue
            seen.add(key)
            row = list(row) + [''] * (width - len(row))
            value = doc.entries[key]
            row[value_column] = '' if value is None else str(value)
            writer.writerow(row)

        for key, value in doc.items():
            if key in seen:
                continue
            row = [''] * width
            row[key_column] = key
            row[value_column] = '' if value is None else str(value)
            writer.writerow(row)

        return output.getvalue()

    def validate_structure(self, doc: TranslationDocument) -> ValidationResult:
        """Missing key/value columns are warnings; duplicate keys are errors."""
        result = ValidationResult()
        metadata = doc.metadata or DocumentMetadata(format=self.name)
        if metadata.original_structure is None:
            return result

        extra = metadata.extra
        if not extra.get('detected_key_column', True):
            result.warning(
                'MISSING_KEY_COLUMN',
                f"No key column found (expected one of {', '.join(KEY_COLUMNS)}); using the first column",
            )
        if extra.get('value_column') is None:
            result.warning('MISSING_VALUE_COLUMN', "No value column found")
        for key in extra.get('duplicates', []):
            result.error('DUPLICATE_KEY', f"Duplicate key: {key}")
        return result


class TsvHandler(CsvHandler):
    """Tab-separated variant of the CSV handler."""

    @property
    def name(self) -> str:
        return "tsv"

    @property
    def file_extensions(self) -> list[str]:
        return ["tsv"]

    def _delimiter(self, content: str) -> str:
        return '\t'

    def _default_delimiter(self) -> str:
        return '\t'
