#!/usr/bin/env python3
"""
GNU gettext PO/POT format handler.

Handles parsing and reconstruction of .po and .pot files used by
WordPress, Django, Rails (via gettext), and many Linux applications.
"""

import copy
import re
from typing import Any, Optional

from ..document import UNTRANSLATED, DocumentMetadata, TranslationDocument
from .base import FormatHandler, FormatOptions, ValidationResult

# gettext separates msgctxt from msgid with EOT in its hash keys
CONTEXT_SEPARATOR = '\x04'

PLACEHOLDER_RE = re.compile(r'%(?:\(\w+\))?[-+ #0]*\d*(?:\.\d+)?[sdifuxXeEgGcr]|%\d+\$[sd]|\{\w*\}')
_KEYWORD_RE = re.compile(r'^(msgctxt|msgid_plural|msgid|msgstr\[\d+\]|msgstr)\s+(".*)$')


def entry_key(msgctxt: Optional[str], msgid: str) -> str:
    if msgctxt is not None:
        return f"{msgctxt}{CONTEXT_SEPARATOR}{msgid}"
    return msgid


def plural_key(key: str, index: int) -> str:
    return key if index == 0 else f"{key}[{index}]"


class PoHandler(FormatHandler):
    """
    Handler for GNU gettext PO files.

    PO format structure:
    ```
    # Translator comment
    #. Extracted comment
    #: file.py:42
    #, fuzzy
    msgctxt "context"
    msgid "Source text"
    msgstr "Translated text"

    # Plural form
    msgid "One item"
    msgid_plural "%d items"
    msgstr[0] "Un élément"
    msgstr[1] "%d éléments"
    ```

    Keys are the msgid (prefixed by msgctxt and EOT when there is a context);
    plural forms after the first are keyed "key[n]". Entries with an empty
    msgstr carry their msgid as value, annotated as untranslated.
    """

    parse_hint = "Check for unterminated quotes and stray lines between entries"

    @property
    def name(self) -> str:
        return "po"

    @property
    def file_extensions(self) -> list[str]:
        return ["po"]

    def sniff(self, content: str) -> bool:
        return 'msgid' in content

    def parse(self, content: str) -> TranslationDocument:
        """
        Parse PO content into a document.

        Args:
            content: Raw PO file content

        Returns:
            TranslationDocument with the header and entry records as structure
        """
        if not content.strip():
            return self.empty_document()

        records, trailing = self._parse_records(content)

        header = None
        if records and records[0]['msgid'] == '' and records[0]['msgctxt'] is None:
            header = records.pop(0)

        entries: dict[str, Any] = {}
        annotations: dict[str, dict[str, Any]] = {}
        duplicates = []

        for record in records:
            key = entry_key(record['msgctxt'], record['msgid'])
            if key in entries:
                duplicates.append(key)
            for index, (value, source, translated) in enumerate(self._forms(record)):
                form_key = plural_key(key, index)
                annotation = {'msgid': source, 'flags': list(record['flags'])}
                if translated:
                    entries[form_key] = value
                else:
                    entries[form_key] = source
                    annotation[UNTRANSLATED] = True
                annotations[form_key] = annotation

        return TranslationDocument(
            entries=entries,
            metadata=DocumentMetadata(
                format=self.name,
                original_structure={
                    'header': header,
                    'entries': records,
                    'trailing': trailing,
                },
                annotations=annotations,
                extra={'duplicates': duplicates},
            ),
        )

    def _forms(self, record: dict) -> list[tuple[str, str, bool]]:
        """(msgstr, source text, has translation) per plural form."""
        if record['msgid_plural'] is None:
            msgstr = record['msgstr'] or ''
            return [(msgstr, record['msgid'], bool(msgstr))]

        forms = []
        count = max(len(record['msgstr_plural']), 2)
        for index in range(count):
            msgstr = record['msgstr_plural'].get(index, '')
            source = record['msgid'] if index == 0 else record['msgid_plural']
            forms.append((msgstr, source, bool(msgstr)))
        return forms

    def _new_entry_dict(self) -> dict:
        """Create empty entry dictionary."""
        return {
            'translator_comment': [],
            'extracted_comment': [],
            'reference': [],
            'flags': [],
            'other_comment': [],
            'msgctxt': None,
            'msgid': None,
            'msgid_plural': None,
            'msgstr': None,
            'msgstr_plural': {},
            'line': None,
        }

    def _parse_records(self, content: str) -> tuple[list[dict], list[str]]:
        records = []
        current = self._new_entry_dict()
        lines = content.split('\n')
        i = 0

        while i < len(lines):
            line = lines[i].rstrip()
            number = i + 1

            if not line.strip():
                if current['msgid'] is not None:
                    records.append(current)
                    current = self._new_entry_dict()
                i += 1
                continue

            if line.startswith('#'):
                if current['msgid'] is not None:
                    # Comment after msgstr starts the next entry
                    records.append(current)
                    current = self._new_entry_dict()
                self._add_comment(current, line)
                i += 1
                continue

            match = _KEYWORD_RE.match(line.strip())
            if not match:
                raise self.parse_error(f"unexpected line: {line.strip()[:40]!r}", content, number)

            keyword, quoted = match.groups()
            value = self._extract_string(quoted, content, number)
            i, value = self._read_multiline(lines, i, value, content)

            if keyword in ('msgctxt', 'msgid') and current['msgstr'] is not None \
                    or keyword == 'msgctxt' and current['msgid'] is not None \
                    or keyword == 'msgid' and current['msgstr_plural']:
                records.append(current)
                current = self._new_entry_dict()

            if keyword == 'msgctxt':
                current['msgctxt'] = value
            elif keyword == 'msgid':
                current['msgid'] = value
                current['line'] = number
            elif keyword == 'msgid_plural':
                current['msgid_plural'] = value
            elif keyword == 'msgstr':
                current['msgstr'] = value
            else:
                index = int(keyword[len('msgstr['):-1])
                current['msgstr_plural'][index] = value

            if keyword.startswith('msgstr') and current['msgid'] is None:
                raise self.parse_error("msgstr without msgid", content, number)
            i += 1

        if current['msgid'] is not None:
            records.append(current)
            trailing = []
        else:
            trailing = self._comment_lines(current)

        return records, trailing

    def _add_comment(self, entry: dict, line: str) -> None:
        if line.startswith('#.'):
            entry['extracted_comment'].append(line[2:].strip())
        elif line.startswith('#:'):
            entry['reference'].append(line[2:].strip())
        elif line.startswith('#,'):
            flags = line[2:].strip().split(',')
            entry['flags'].extend([f.strip() for f in flags if f.strip()])
        elif line.startswith('#|') or line.startswith('#~'):
            entry['other_comment'].append(line)
        else:
            entry['translator_comment'].append(line[1:].strip())

    def _extract_string(self, quoted: str, content: str, number: int) -> str:
        """Extract string value from a quoted PO token."""
        quoted = quoted.strip()
        if len(quoted) < 2 or not quoted.endswith('"') or quoted.endswith('\\"') and not quoted.endswith('\\\\"'):
            raise self.parse_error("unterminated string", content, number)
        return self._unescape_po_string(quoted[1:-1])

    def _read_multiline(
        self, lines: list[str], start: int, initial: str, content: str
    ) -> tuple[int, str]:
        """Read continuation lines for multi-line strings."""
        result = initial
        i = start + 1

        while i < len(lines):
            line = lines[i].strip()
            if line.startswith('"'):
                result += self._extract_string(line, content, i + 1)
                i += 1
            else:
                break

        return i - 1, result

    def _unescape_po_string(self, s: str) -> str:
        """Unescape PO string escapes."""
        escapes = {'n': '\n', 't': '\t', 'r': '\r', '"': '"', '\\': '\\'}
        return re.sub(r'\\(.)', lambda m: escapes.get(m.group(1), m.group(0)), s)

    def _escape_po_string(self, s: str) -> str:
        """Escape string for PO format."""
        return (
            s.replace('\\', '\\\\')
            .replace('"', '\\"')
            .replace('\n', '\\n')
            .replace('\t', '\\t')
            .replace('\r', '\\r')
        )

    def _format_po_string(self, prefix: str, s: str, wrap_width: int = 76) -> list[str]:
        """
        Format a string for PO output, wrapping long strings at ~76 characters.

        Args:
            prefix: The PO prefix (e.g., 'msgid', 'msgstr', 'msgstr[0]')
            s: The string to format
            wrap_width: Maximum line width for wrapping (default: 76)

        Returns:
            List of formatted lines
        """
        if s is None:
            s = ""
        escaped = self._escape_po_string(s)

        single_line = f'{prefix} "{escaped}"'
        if len(single_line) <= wrap_width:
            return [single_line]

        # msgid ""
        # "first part "
        # "second part"
        lines = [f'{prefix} ""']
        segments = escaped.split('\\n')

        for i, segment in enumerate(segments):
            if i < len(segments) - 1:
                segment += '\\n'

            while segment:
                max_chunk = wrap_width - 2
                if len(segment) <= max_chunk:
                    lines.append(f'"{segment}"')
                    break
                # Prefer breaking after a space within the last 20 chars
                break_at = max_chunk
                space_pos = segment.rfind(' ', max_chunk - 20, max_chunk)
                if space_pos > 0:
                    break_at = space_pos + 1
                # Never split an escape sequence
                if segment[break_at - 1] == '\\':
                    break_at -= 1
                lines.append(f'"{segment[:break_at]}"')
                segment = segment[break_at:]

        return lines

    def prepare_target(
        self,
        source_doc: TranslationDocument,
        target_doc: Optional[TranslationDocument],
    ) -> DocumentMetadata:
        """
        Source records plus the target's own header and target-only records.

        The target header carries its Plural-Forms and translator details.
        """
        metadata = super().prepare_target(source_doc, target_doc)
        if target_doc is None or target_doc.metadata is None \
                or not target_doc.metadata.original_structure:
            return metadata

        structure = metadata.original_structure or {'header': None, 'entries': [], 'trailing': []}
        target_structure = target_doc.metadata.original_structure
        if target_structure.get('header'):
            structure['header'] = copy.deepcopy(target_structure['header'])

        known = {entry_key(r['msgctxt'], r['msgid']) for r in structure['entries']}
        for record in target_structure['entries']:
            key = entry_key(record['msgctxt'], record['msgid'])
            if key in known:
                continue
            structure['entries'].append(copy.deepcopy(record))
            for index in range(len(self._forms(record))):
                form_key = plural_key(key, index)
                metadata.annotations[form_key] = copy.deepcopy(
                    target_doc.metadata.annotation(form_key)
                )

        metadata.original_structure = structure
        return metadata

    def serialize(
        self,
        doc: TranslationDocument,
        options: Optional[FormatOptions] = None,
    ) -> str:
        """
        Reconstruct a PO file from the document.

        Records present in the structure keep their comments, flags and
        order. Records whose keys are all gone are dropped; keys the
        structure lacks are appended as new entries.

        Args:
            doc: Document to render
            options: locale updates the header's Language field

        Returns:
            Complete PO file content
        """
        options = options or FormatOptions()
        metadata = doc.metadata or DocumentMetadata(format=self.name)
        structure = copy.deepcopy(metadata.original_structure) or {}

        header = structure.get('header')
        records = structure.get('entries', [])
        lines: list[str] = []

        header = self._update_header(header, options.locale)
        lines.extend(self._format_record(header, header_entry=True))

        seen = set()
        for record in records:
            key = entry_key(record['msgctxt'], record['msgid'])
            forms = self._forms(record)
            form_keys = [plural_key(key, index) for index in range(len(forms))]
            seen.update(form_keys)
            if not any(form_key in doc.entries for form_key in form_keys):
                continue

            changed = False
            for index, form_key in enumerate(form_keys):
                if form_key not in doc.entries or metadata.annotation(form_key).get(UNTRANSLATED):
                    continue
                value = doc.entries[form_key]
                value = '' if value is None else str(value)
                if record['msgid_plural'] is None:
                    changed = changed or record['msgstr'] != value
                    record['msgstr'] = value
                else:
                    changed = changed or record['msgstr_plural'].get(index) != value
                    record['msgstr_plural'][index] = value

            if changed and 'fuzzy' in record['flags']:
                record['flags'] = [f for f in record['flags'] if f != 'fuzzy']
            lines.extend(self._format_record(record))

        for key, value in doc.items():
            if key in seen:
                continue
            msgctxt, _, msgid = key.rpartition(CONTEXT_SEPARATOR)
            record = self._new_entry_dict()
            record['msgctxt'] = msgctxt if CONTEXT_SEPARATOR in key else None
            record['msgid'] = msgid
            if not metadata.annotation(key).get(UNTRANSLATED):
                record['msgstr'] = '' if value is None else str(value)
            lines.extend(self._format_record(record))

        for comment in structure.get('trailing', []):
            lines.append(comment)

        return '\n'.join(lines).rstrip('\n') + '\n'

    def _update_header(self, header: Optional[dict], locale: Optional[str]) -> dict:
        if header is None:
            header = self._new_entry_dict()
            header['msgid'] = ''
            header['msgstr'] = 'Content-Type: text/plain; charset=UTF-8\n'
        if locale:
            msgstr = header['msgstr'] or ''
            if re.search(r'^Language:.*$', msgstr, flags=re.MULTILINE):
                msgstr = re.sub(r'^Language:.*$', f'Language: {locale}', msgstr, flags=re.MULTILINE)
            else:
                msgstr += f'Language: {locale}\n'
            header['msgstr'] = msgstr
        return header

    def _comment_lines(self, record: dict) -> list[str]:
        lines = []
        for comment in record['translator_comment']:
            lines.append(f'# {comment}' if comment else '#')
        for comment in record['extracted_comment']:
            lines.append(f'#. {comment}')
        for ref in record['reference']:
            lines.append(f'#: {ref}')
        if record['flags']:
            lines.append(f'#, {", ".join(record["flags"])}')
        lines.extend(record['other_comment'])
        return lines

    def _format_record(self, record: dict, header_entry: bool = False) -> list[str]:
        lines = self._comment_lines(record)

        if record['msgctxt'] is not None:
            lines.extend(self._format_po_string('msgctxt', record['msgctxt']))

        if header_entry:
            lines.append('msgid ""')
            lines.append('msgstr ""')
            for header_line in (record['msgstr'] or '').split('\n'):
                if header_line:
                    lines.append(f'"{self._escape_po_string(header_line)}\\n"')
            lines.append('')
            return lines

        lines.extend(self._format_po_string('msgid', record['msgid']))
        if record['msgid_plural'] is not None:
            lines.extend(self._format_po_string('msgid_plural', record['msgid_plural']))
            count = max(len(record['msgstr_plural']), 2)
            for index in range(count):
                lines.extend(self._format_po_string(
                    f'msgstr[{index}]', record['msgstr_plural'].get(index, '')
                ))
        else:
            lines.extend(self._format_po_string('msgstr', record['msgstr'] or ''))
        lines.append('')
        return lines

    def validate_structure(self, doc: TranslationDocument) -> ValidationResult:
        """Duplicate entries are errors; placeholder mismatches are warnings."""
        result = ValidationResult()
        metadata = doc.metadata or DocumentMetadata(format=self.name)

        for key in metadata.extra.get('duplicates', []):
            result.error('DUPLICATE_ENTRY', f"Duplicate msgid: {key.replace(CONTEXT_SEPARATOR, '|')}")

        for key, value in doc.items():
            annotation = metadata.annotation(key)
            source = annotation.get('msgid')
            if source is None or annotation.get(UNTRANSLATED) or not isinstance(value, str):
                continue
            expected = sorted(PLACEHOLDER_RE.findall(source))
            found = sorted(PLACEHOLDER_RE.findall(value))
            if expected != found:
                result.warning(
                    'PLACEHOLDER_MISMATCH',
                    f"Placeholders differ for {key.replace(CONTEXT_SEPARATOR, '|')!r}: "
                    f"expected {expected}, found {found}",
                )
        return result


class PotHandler(PoHandler):
    """
    Handler for gettext POT templates.

    Same syntax as PO; every entry is an untranslated template.
    """

    @property
    def name(self) -> str:
        return "pot"

    @property
    def file_extensions(self) -> list[str]:
        return ["pot"]
