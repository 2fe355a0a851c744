#!/usr/bin/env python3
"""
XML format handler.

One handler serves three dialects, chosen from the root element:

- android-xml: Android strings.xml (<resources>)
- ios-xml: Apple property lists (<plist><dict>)
- generic-xml: any other document, element paths flattened to keys

The parsed ElementTree (comments included) is kept as the original
structure. Serialization clones it and only touches translatable text.
"""

import re
from typing import Any, Optional
from xml.etree import ElementTree as ET

from ..document import DocumentMetadata, TranslationDocument, child_key, parse_key
from .base import FormatHandler, FormatOptions, ValidationResult

ANDROID = 'android-xml'
IOS = 'ios-xml'
GENERIC = 'generic-xml'

XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>'
PLURAL_QUANTITIES = ('zero', 'one', 'two', 'few', 'many', 'other')

ET.register_namespace('xliff', 'urn:oasis:names:tc:xliff:document:1.2')
ET.register_namespace('tools', 'http://schemas.android.com/tools')
ET.register_namespace('xsi', 'http://www.w3.org/2001/XMLSchema-instance')

_ROOT_START_RE = re.compile(r'<(?![?!])')
_DECLARATION_RE = re.compile(r'^\s*<\?xml[^>]*\?>\s*')
_ARRAY_KEY_RE = re.compile(r'^(.+)\[(\d+)\]$')
_PLURAL_KEY_RE = re.compile(r'^(.+)\.(%s)$' % '|'.join(PLURAL_QUANTITIES))


def parse_xml(content: str) -> ET.Element:
    """Parse XML keeping comments in the tree."""
    parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
    return ET.fromstring(content, parser=parser)


def local_name(tag: str) -> str:
    return tag.split('}', 1)[-1]


def element_children(elem: ET.Element) -> list[ET.Element]:
    """Child elements, skipping comments and processing instructions."""
    return [child for child in elem if isinstance(child.tag, str)]


def append_child(parent: ET.Element, child: ET.Element, level: int, indent: str) -> None:
    """Append child, reusing the surrounding whitespace convention."""
    siblings = list(parent)
    if siblings:
        inner = parent.text if parent.text is not None and not parent.text.strip() else None
        inner = inner or '\n' + indent * (level + 1)
        child.tail = siblings[-1].tail
        siblings[-1].tail = inner
    else:
        parent.text = '\n' + indent * (level + 1)
        child.tail = '\n' + indent * level
    parent.append(child)


def render_prolog(prolog: str, xml_declaration: bool = True) -> str:
    """Original prolog, with the XML declaration added or removed."""
    if not xml_declaration:
        return _DECLARATION_RE.sub('', prolog, count=1)
    if _DECLARATION_RE.match(prolog):
        return prolog
    return XML_DECLARATION + '\n' + prolog.lstrip()


def detach_child(parent: ET.Element, elem: ET.Element) -> None:
    """Remove elem, keeping the closing-tag indentation of parent."""
    children = list(parent)
    position = children.index(elem)
    # The last child's tail holds the closing-tag indentation
    if position == len(children) - 1 and position > 0:
        children[position - 1].tail = elem.tail
    parent.remove(elem)


def split_prolog(content: str) -> str:
    """Everything before the root start tag (declaration, doctype, comments)."""
    match = _ROOT_START_RE.search(content)
    return content[:match.start()] if match else ''


class XmlHandler(FormatHandler):
    """
    Handler for XML resource files.

    Android structure:
    ```xml
    <resources>
        <string name="app_name">My App</string>
        <plurals name="items">
            <item quantity="one">%d item</item>
            <item quantity="other">%d items</item>
        </plurals>
        <string-array name="days">
            <item>Monday</item>
        </string-array>
    </resources>
    ```

    Keys: "app_name", "items.one", "items.other", "days[0]". Strings marked
    translatable="false" are not entries and stay untouched.
    """

    parse_hint = "Check for unclosed tags and unescaped '&' or '<' characters"

    def __init__(self, dialect: Optional[str] = None):
        self.dialect = dialect

    @property
    def name(self) -> str:
        return "xml"

    @property
    def file_extensions(self) -> list[str]:
        return ["xml"]

    @property
    def aliases(self) -> list[str]:
        return [ANDROID, IOS, GENERIC]

    @property
    def nested_keys(self) -> bool:
        return self.dialect == GENERIC

    def variant(self, tag: str) -> "XmlHandler":
        return XmlHandler(dialect=tag)

    def sniff(self, content: str) -> bool:
        return local_name(parse_xml(content).tag) != 'xliff'

    def refine_tag(self, content: Optional[str]) -> str:
        if not content or not content.strip():
            return self.dialect or self.name
        try:
            return self._detect_dialect(parse_xml(content))
        except ET.ParseError:
            return self.name

    def _detect_dialect(self, root: ET.Element) -> str:
        tag = local_name(root.tag)
        if tag == 'resources':
            return ANDROID
        if tag == 'plist':
            return IOS
        return GENERIC

    def parse(self, content: str) -> TranslationDocument:
        """
        Parse XML content into a document.

        Args:
            content: Raw XML file content

        Returns:
            TranslationDocument for the detected dialect
        """
        if not content.strip():
            return self.empty_document(dialect=self.dialect or GENERIC)

        try:
            root = parse_xml(content)
        except ET.ParseError as e:
            line, column = getattr(e, 'position', (None, None))
            message = str(e).split(':')[0]
            raise self.parse_error(message, content, line, column + 1 if column is not None else None)

        dialect = self._detect_dialect(root)
        if self.dialect is None or self.dialect == self.name:
            self.dialect = dialect

        index = self._index(root, dialect)
        entries = {key: self._element_text(elem, dialect) for key, (elem, _) in index.items()}

        return TranslationDocument(
            entries=entries,
            metadata=DocumentMetadata(
                format=dialect,
                original_structure=root,
                extra={'dialect': dialect, 'prolog': split_prolog(content)},
            ),
        )

    def _index(self, root: ET.Element, dialect: str) -> dict[str, tuple[ET.Element, ET.Element]]:
        """Map keys to (element holding the text, its parent)."""
        if dialect == ANDROID:
            return self._android_index(root)
        if dialect == IOS:
            return self._ios_index(root)
        index: dict[str, tuple[ET.Element, ET.Element]] = {}
        self._generic_index(root, '', index)
        return index

    def _android_index(self, root: ET.Element) -> dict[str, tuple[ET.Element, ET.Element]]:
        index = {}
        for child in element_children(root):
            name = child.get('name')
            if not name or child.get('translatable') == 'false':
                continue
            tag = local_name(child.tag)
            if tag == 'string':
                index[name] = (child, root)
            elif tag == 'plurals':
                for item in child.findall('item'):
                    quantity = item.get('quantity')
                    if quantity:
                        index[f'{name}.{quantity}'] = (item, child)
            elif tag == 'string-array':
                for i, item in enumerate(child.findall('item')):
                    index[f'{name}[{i}]'] = (item, child)
        return index

    def _ios_index(self, root: ET.Element) -> dict[str, tuple[ET.Element, ET.Element]]:
        index = {}
        plist_dict = root.find('dict')
        if plist_dict is None:
            return index
        children = element_children(plist_dict)
        for key_elem, value_elem in zip(children, children[1:]):
            if key_elem.tag == 'key' and value_elem.tag == 'string' and key_elem.text:
                index[key_elem.text] = (value_elem, plist_dict)
        return index

    def _generic_index(
        self,
        elem: ET.Element,
        prefix: str,
        index: dict[str, tuple[ET.Element, ET.Element]],
    ) -> None:
        children = element_children(elem)
        counts: dict[str, int] = {}
        for child in children:
            tag = local_name(child.tag)
            counts[tag] = counts.get(tag, 0) + 1

        seen: dict[str, int] = {}
        for child in children:
            tag = local_name(child.tag)
            key = child_key(prefix, tag)
            if counts[tag] > 1:
                key = child_key(key, seen.get(tag, 0))
                seen[tag] = seen.get(tag, 0) + 1
            if element_children(child):
                self._generic_index(child, key, index)
            else:
                index[key] = (child, elem)

    def _element_text(self, elem: ET.Element, dialect: str) -> str:
        """Text content, with inline elements (like <xliff:g>) flattened."""
        text = elem.text or ''
        for child in elem:
            if isinstance(child.tag, str) and child.text:
                text += child.text
            if child.tail:
                text += child.tail
        if dialect == ANDROID:
            text = self._unescape_android(text)
        return text

    def _unescape_android(self, text: str) -> str:
        """Unescape Android string escapes."""
        return text.replace("\\'", "'").replace('\\"', '"')

    def _escape_android(self, text: str) -> str:
        """Escape string for Android XML (ElementTree handles &, < and >)."""
        text = re.sub(r"(?<!\\)'", "\\'", text)
        return re.sub(r'(?<!\\)"', '\\"', text)

    def _set_text(self, elem: ET.Element, value: Any, dialect: str) -> None:
        text = '' if value is None else str(value)
        if self._element_text(elem, dialect) == text:
            return
        for child in list(elem):
            elem.remove(child)
        elem.text = self._escape_android(text) if dialect == ANDROID else text

    def serialize(
        self,
        doc: TranslationDocument,
        options: Optional[FormatOptions] = None,
    ) -> str:
        """
        Reconstruct XML from the document.

        Args:
            doc: Document to render
            options: indentation for appended elements, xml_declaration

        Returns:
            Complete XML file content
        """
        options = options or FormatOptions()
        indent = options.indent_string(4)
        metadata = doc.metadata or DocumentMetadata(format=self.name)
        dialect = metadata.extra.get('dialect') or self._dialect_for_tag(metadata.format)

        root = self.clone_structure(doc)
        if root is None:
            root = self._new_root(dialect)

        index = self._index(root, dialect)
        emptied = set()
        for key, (elem, parent) in index.items():
            if key in doc.entries:
                self._set_text(elem, doc.entries[key], dialect)
                continue
            self._remove(elem, parent, dialect)
            if parent is not root and dialect == ANDROID:
                emptied.add(parent)

        for container in emptied:
            if not element_children(container):
                root.remove(container)

        for key, value in doc.items():
            if key not in index:
                self._append(root, key, value, dialect, indent)

        body = ET.tostring(root, encoding='unicode')
        return self._prolog(metadata, options) + body + '\n'

    def _dialect_for_tag(self, tag: Optional[str]) -> str:
        if tag in (ANDROID, IOS, GENERIC):
            return tag
        if self.dialect in (ANDROID, IOS, GENERIC):
            return self.dialect
        return GENERIC

    def _new_root(self, dialect: str) -> ET.Element:
        if dialect == ANDROID:
            return ET.Element('resources')
        if dialect == IOS:
            root = ET.Element('plist', {'version': '1.0'})
            plist_dict = ET.SubElement(root, 'dict')
            root.text = '\n'
            plist_dict.tail = '\n'
            return root
        return ET.Element('root')

    def _prolog(self, metadata: DocumentMetadata, options: FormatOptions) -> str:
        return render_prolog(metadata.extra.get('prolog', ''), options.xml_declaration)

    def _remove(self, elem: ET.Element, parent: ET.Element, dialect: str) -> None:
        if dialect == IOS:
            children = list(parent)
            position = children.index(elem)
            for candidate in reversed(children[:position]):
                if candidate.tag == 'key':
                    self._detach(candidate, parent)
                    break
        self._detach(elem, parent)

    def _detach(self, elem: ET.Element, parent: ET.Element) -> None:
        detach_child(parent, elem)

    def _append(self, root: ET.Element, key: str, value: Any, dialect: str, indent: str) -> None:
        text = '' if value is None else str(value)
        if dialect == ANDROID:
            self._append_android(root, key, text, indent)
        elif dialect == IOS:
            plist_dict = root.find('dict')
            if plist_dict is None:
                plist_dict = ET.SubElement(root, 'dict')
            key_elem = ET.Element('key')
            key_elem.text = key
            value_elem = ET.Element('string')
            value_elem.text = text
            append_child(plist_dict, key_elem, 1, indent)
            append_child(plist_dict, value_elem, 1, indent)
        else:
            self._append_generic(root, key, text)

    def _append_android(self, root: ET.Element, key: str, text: str, indent: str) -> None:
        array_match = _ARRAY_KEY_RE.match(key)
        plural_match = _PLURAL_KEY_RE.match(key)

        if array_match or plural_match:
            name = (array_match or plural_match).group(1)
            tag = 'string-array' if array_match else 'plurals'
            container = None
            for child in element_children(root):
                if local_name(child.tag) == tag and child.get('name') == name:
                    container = child
                    break
            if container is None:
                container = ET.Element(tag, {'name': name})
                append_child(root, container, 0, indent)

            item = ET.Element('item')
            if plural_match:
                item.set('quantity', plural_match.group(2))
            item.text = self._escape_android(text)
            append_child(container, item, 1, indent)
            return

        elem = ET.Element('string', {'name': key})
        elem.text = self._escape_android(text)
        append_child(root, elem, 0, indent)

    def _append_generic(self, root: ET.Element, key: str, text: str) -> None:
        path = parse_key(key)
        current = root
        i = 0
        while i < len(path):
            part = path[i]
            position = 0
            if i + 1 < len(path) and isinstance(path[i + 1], int):
                position = path[i + 1]
                i += 1
            if isinstance(part, int):
                i += 1
                continue
            matches = [c for c in element_children(current) if local_name(c.tag) == part]
            while len(matches) <= position:
                matches.append(ET.SubElement(current, part))
            current = matches[position]
            i += 1
        current.text = text

    def validate_structure(self, doc: TranslationDocument) -> ValidationResult:
        """Dialect rules: Android root/names/plurals, plist root/dict."""
        result = ValidationResult()
        metadata = doc.metadata or DocumentMetadata(format=self.name)
        dialect = metadata.extra.get('dialect') or self._dialect_for_tag(metadata.format)
        root = metadata.original_structure

        if root is None:
            return result

        if dialect == ANDROID:
            self._validate_android(root, result)
        elif dialect == IOS:
            if local_name(root.tag) != 'plist':
                result.error('INVALID_ROOT', "iOS XML must have a 'plist' root element")
            elif root.find('dict') is None:
                result.error('MISSING_DICT', "iOS plist must contain a 'dict' element")
        elif not doc.entries:
            result.warning('EMPTY_DOCUMENT', "XML document contains no text elements")
        return result

    def _validate_android(self, root: ET.Element, result: ValidationResult) -> None:
        if local_name(root.tag) != 'resources':
            result.error(
                'INVALID_ROOT',
                f"Root element must be 'resources', found '{local_name(root.tag)}'",
            )
            return

        names = set()
        for child in element_children(root):
            tag = local_name(child.tag)
            if tag not in ('string', 'plurals', 'string-array'):
                continue
            name = child.get('name')
            if not name:
                result.error('MISSING_NAME', f"<{tag}> element without a name attribute")
                continue
            if name in names:
                result.error('DUPLICATE_NAME', f"Duplicate resource name: {name}")
            names.add(name)
            if tag == 'plurals':
                quantities = {item.get('quantity') for item in child.findall('item')}
                if 'other' not in quantities:
                    result.warning(
                        'MISSING_OTHER_PLURAL',
                        f"Plurals '{name}' should include an 'other' item",
                    )
