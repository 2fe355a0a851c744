#!/usr/bin/env python3
"""
XMB/XTB format handlers.

Google message bundles as used by Closure and Angular i18n:

- XMB (.xmb): the source bundle, ``<messagebundle>`` holding ``<msg id>``
  elements with optional ``desc`` and ``meaning`` attributes
- XTB (.xtb): a translated bundle, ``<translationbundle lang>`` holding
  ``<translation id>`` elements

Placeholder elements (``<ph name="COUNT"/>``) become ``{COUNT}`` tokens in the
message text, so the placeholder protector keeps them away from the provider.
The elements themselves are kept in annotations and put back on serialize.
"""

import copy
import re
from typing import Any, Optional
from xml.etree import ElementTree as ET

from ..document import DocumentMetadata, TranslationDocument
from .base import FormatHandler, FormatOptions, ValidationResult
from .xml_handler import (
    append_child,
    detach_child,
    element_children,
    local_name,
    parse_xml,
    render_prolog,
    split_prolog,
)

_TOKEN_RE = re.compile(r'\{([^{}]+)\}')
_PH_NAME_RE = re.compile(r'^[A-Z][A-Z0-9_]*$')


def _is_placeholder(elem: Any) -> bool:
    return isinstance(elem.tag, str) and local_name(elem.tag) == 'ph'


class MessageBundleHandler(FormatHandler):
    """Shared parse/serialize for XMB and XTB; subclasses name the elements."""

    root_tag = ''
    message_tag = ''
    locale_attribute = ''

    parse_hint = "Check for unclosed tags and unescaped '&' or '<' characters"

    def sniff(self, content: str) -> bool:
        return local_name(parse_xml(content).tag) == self.root_tag

    def parse(self, content: str) -> TranslationDocument:
        """
        Parse a bundle into id -> text entries.

        Args:
            content: Raw bundle content

        Returns:
            TranslationDocument keyed by message id
        """
        if not content.strip():
            return self.empty_document()

        try:
            root = parse_xml(content)
        except ET.ParseError as e:
            line, column = getattr(e, 'position', (None, None))
            raise self.parse_error(
                str(e).split(':')[0], content, line, column + 1 if column is not None else None
            )

        if local_name(root.tag) != self.root_tag:
            raise self.parse_error(f"missing {self.root_tag} root element", content, 1)

        entries: dict[str, Any] = {}
        annotations: dict[str, dict[str, Any]] = {}
        for message in self._messages(root):
            message_id = message.get('id')
            if not message_id:
                continue
            text, placeholders = self._message_text(message)
            entries[message_id] = text
            annotation = self._annotation(message)
            if placeholders:
                annotation['placeholders'] = placeholders
            if annotation:
                annotations[message_id] = annotation

        return TranslationDocument(
            entries=entries,
            metadata=DocumentMetadata(
                format=self.name,
                original_structure=root,
                annotations=annotations,
                extra={
                    'prolog': split_prolog(content),
                    'locale': root.get(self.locale_attribute),
                },
            ),
        )

    def _messages(self, root: ET.Element) -> list[ET.Element]:
        return [child for child in element_children(root) if local_name(child.tag) == self.message_tag]

    def _annotation(self, message: ET.Element) -> dict[str, Any]:
        return {}

    def _message_text(self, message: ET.Element) -> tuple[str, dict[str, ET.Element]]:
        """Message text with <ph> elements as {NAME} tokens, plus the elements by name."""
        text = message.text or ''
        placeholders: dict[str, ET.Element] = {}
        for child in message:
            if _is_placeholder(child):
                name = child.get('name', '')
                text += f'{{{name}}}'
                stored = copy.deepcopy(child)
                stored.tail = None
                placeholders[name] = stored
            if child.tail:
                text += child.tail
        return text, placeholders

    def _set_message_text(
        self,
        message: ET.Element,
        value: Any,
        placeholders: dict[str, ET.Element],
    ) -> None:
        text = '' if value is None else str(value)
        if self._message_text(message)[0] == text:
            return

        # Non-placeholder children (<source> references, comments) stay in front
        fixed = [child for child in message if not _is_placeholder(child)]
        for child in list(message):
            message.remove(child)
        message.text = None
        for child in fixed:
            child.tail = None
            message.append(child)

        last: Optional[ET.Element] = fixed[-1] if fixed else None
        position = 0
        for match in _TOKEN_RE.finditer(text):
            name = match.group(1)
            if name in placeholders:
                element = copy.deepcopy(placeholders[name])
            elif _PH_NAME_RE.match(name):
                # Bundles written without a source keep ph names as elements
                element = ET.Element('ph', {'name': name})
            else:
                continue
            chunk = text[position:match.start()]
            if last is None:
                message.text = (message.text or '') + chunk
            else:
                last.tail = (last.tail or '') + chunk
            last = element
            message.append(last)
            position = match.end()

        rest = text[position:]
        if last is None:
            message.text = rest
        else:
            last.tail = rest

    def serialize(
        self,
        doc: TranslationDocument,
        options: Optional[FormatOptions] = None,
    ) -> str:
        """
        Reconstruct the bundle from the document.

        Args:
            doc: Document to render
            options: indentation for appended messages, xml_declaration, locale

        Returns:
            Complete bundle content
        """
        options = options or FormatOptions()
        indent = options.indent_string(2)
        metadata = doc.metadata or DocumentMetadata(format=self.name)

        root = self.clone_structure(doc)
        if root is None:
            root = ET.Element(self.root_tag)
        if options.locale:
            root.set(self.locale_attribute, options.locale)

        existing: dict[str, ET.Element] = {}
        for message in self._messages(root):
            message_id = message.get('id')
            if message_id in doc.entries and message_id not in existing:
                existing[message_id] = message
            else:
                detach_child(root, message)

        for key, value in doc.items():
            placeholders = metadata.annotation(key).get('placeholders', {})
            message = existing.get(key)
            if message is None:
                message = ET.Element(self.message_tag, {'id': key})
                self._describe(message, metadata.annotation(key))
                append_child(root, message, 0, indent)
            self._set_message_text(message, value, placeholders)

        body = ET.tostring(root, encoding='unicode')
        return render_prolog(metadata.extra.get('prolog', ''), options.xml_declaration) + body + '\n'

    def _describe(self, message: ET.Element, annotation: dict[str, Any]) -> None:
        """Attributes for a newly appended message."""

    def validate_structure(self, doc: TranslationDocument) -> ValidationResult:
        """Root element, ids, locale attribute and placeholder integrity."""
        result = ValidationResult()
        metadata = doc.metadata or DocumentMetadata(format=self.name)
        root = metadata.original_structure

        if root is not None:
            if local_name(root.tag) != self.root_tag:
                result.error('INVALID_ROOT', f"Root element must be '{self.root_tag}'")
                return result
            if not root.get(self.locale_attribute):
                result.warning(
                    'MISSING_LOCALE',
                    f"<{self.root_tag}> should have a {self.locale_attribute} attribute",
                )
            ids = set()
            for message in self._messages(root):
                message_id = message.get('id')
                if not message_id:
                    result.error('MISSING_MESSAGE_ID', f"<{self.message_tag}> element without an id")
                elif message_id in ids:
                    result.error('DUPLICATE_MESSAGE_ID', f"Duplicate message id: {message_id}")
                ids.add(message_id)

        if not doc.entries:
            result.warning('NO_MESSAGES', f"No messages found in {self.name.upper()} file")

        for key, value in doc.items():
            text = '' if value is None else str(value)
            if text.count('{') != text.count('}'):
                result.error('UNMATCHED_PLACEHOLDER_BRACES', f"Unmatched placeholder braces in '{key}'")
            for name in metadata.annotation(key).get('placeholders', {}):
                if f'{{{name}}}' not in text:
                    result.warning(
                        'MISSING_PH_PLACEHOLDER',
                        f"Placeholder {name} missing from '{key}'",
                    )
        return result


class XmbHandler(MessageBundleHandler):
    """
    Handler for XMB source bundles.

    ```xml
    <messagebundle locale="en">
      <msg id="4217" desc="Greeting">Hello <ph name="NAME"><ex>Ann</ex>{$name}</ph></msg>
    </messagebundle>
    ```

    Key "4217" holds "Hello {NAME}"; desc and meaning are annotations.
    """

    root_tag = 'messagebundle'
    message_tag = 'msg'
    locale_attribute = 'locale'

    @property
    def name(self) -> str:
        return "xmb"

    @property
    def file_extensions(self) -> list[str]:
        return ["xmb"]

    def _annotation(self, message: ET.Element) -> dict[str, Any]:
        return {
            attr: message.get(attr)
            for attr in ('desc', 'meaning')
            if message.get(attr)
        }

    def _describe(self, message: ET.Element, annotation: dict[str, Any]) -> None:
        for attr in ('desc', 'meaning'):
            if annotation.get(attr):
                message.set(attr, annotation[attr])


class XtbHandler(MessageBundleHandler):
    """
    Handler for XTB translation bundles.

    ```xml
    <translationbundle lang="fr">
      <translation id="4217">Bonjour <ph name="NAME"/></translation>
    </translationbundle>
    ```
    """

    root_tag = 'translationbundle'
    message_tag = 'translation'
    locale_attribute = 'lang'

    @property
    def name(self) -> str:
        return "xtb"

    @property
    def file_extensions(self) -> list[str]:
        return ["xtb"]


def check_bundle(source: TranslationDocument, translations: TranslationDocument) -> ValidationResult:
    """
    Check an XTB bundle against its XMB source.

    Translations without a source message and source messages without a
    translation are warnings; a ``{...}`` token of the source missing from
    its translation is an error.
    """
    result = ValidationResult()

    source_locale = source.metadata.extra.get('locale') if source.metadata else None
    target_locale = translations.metadata.extra.get('locale') if translations.metadata else None
    if source_locale and source_locale == target_locale:
        result.warning('SAME_LANGUAGE', f"Translation bundle language is the source language '{source_locale}'")

    for message_id, text in translations.items():
        if message_id not in source.entries:
            result.warning(
                'ORPHANED_TRANSLATION',
                f"Translation for message id '{message_id}' has no source message",
            )
            continue
        expected = set(_TOKEN_RE.findall(str(source[message_id])))
        missing = sorted(expected - set(_TOKEN_RE.findall(str(text))))
        for token in missing:
            result.error(
                'MISSING_VARIABLE_PLACEHOLDER',
                f"Placeholder {{{token}}} missing from translation of '{message_id}'",
            )

    for message_id in source.entries:
        if not translations.get(message_id):
            result.warning('MISSING_TRANSLATION', f"No translation for message id '{message_id}'")
    return result
