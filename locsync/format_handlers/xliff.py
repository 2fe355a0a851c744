#!/usr/bin/env python3
"""
XLIFF 1.2 and 2.x format handler.

XLIFF 1.2:
```xml
<xliff version="1.2" xmlns="urn:oasis:names:tc:xliff:document:1.2">
  <file source-language="en" target-language="fr" datatype="plaintext" original="app">
    <body>
      <trans-unit id="greeting" approved="yes">
        <source>Hello</source>
        <target>Bonjour</target>
      </trans-unit>
    </body>
  </file>
</xliff>
```

XLIFF 2.0 uses <unit id><segment><source/><target/></segment></unit>; a unit
with several segments yields the keys "id.0", "id.1"...

Approved units (1.2 approved="yes", 2.x state="final" or approved="yes")
keep their existing target. Writing a new target marks the unit as not
approved.
"""

from typing import Any, Optional
from xml.etree import ElementTree as ET

from ..document import UNTRANSLATED, DocumentMetadata, TranslationDocument
from .base import FormatHandler, FormatOptions, ValidationResult
from .xml_handler import (
    XML_DECLARATION,
    append_child,
    element_children,
    local_name,
    parse_xml,
    split_prolog,
)

XLIFF_12_NS = 'urn:oasis:names:tc:xliff:document:1.2'
XLIFF_20_NS = 'urn:oasis:names:tc:xliff:document:2.0'


def _text(elem: Optional[ET.Element]) -> str:
    if elem is None:
        return ''
    return ''.join(elem.itertext())


def _child(elem: ET.Element, name: str) -> Optional[ET.Element]:
    for child in element_children(elem):
        if child.tag == name:
            return child
    return None


def _strip_namespace(root: ET.Element) -> str:
    """Drop the root's default namespace from every tag; return the URI."""
    if not root.tag.startswith('{'):
        return ''
    uri = root.tag[1:].split('}', 1)[0]
    prefix = '{%s}' % uri
    for elem in root.iter():
        if isinstance(elem.tag, str) and elem.tag.startswith(prefix):
            elem.tag = elem.tag[len(prefix):]
    return uri


class XliffHandler(FormatHandler):
    """Handler for XLIFF translation interchange files."""

    parse_hint = "Check that the file is well-formed XML with an <xliff> root"

    @property
    def name(self) -> str:
        return "xliff"

    @property
    def file_extensions(self) -> list[str]:
        return ["xlf", "xliff"]

    def can_handle(self, path: str, content: Optional[str] = None) -> bool:
        if path.lower().endswith('.xml'):
            if not content or '<xliff' not in content:
                return False
            try:
                return self.sniff(content)
            except Exception:
                return False
        return super().can_handle(path, content)

    def sniff(self, content: str) -> bool:
        return local_name(parse_xml(content).tag) == 'xliff'

    @staticmethod
    def detect_version(root: ET.Element) -> str:
        """Version attribute first, then unit/segment vs trans-unit cues."""
        version = root.get('version')
        if version:
            return version
        tags = {local_name(e.tag) for e in root.iter() if isinstance(e.tag, str)}
        if 'unit' in tags and 'segment' in tags:
            return '2.0'
        return '1.2'

    def parse(self, content: str) -> TranslationDocument:
        """
        Parse XLIFF content into a document keyed by unit id.

        Units without a <target> carry their source text, annotated as
        untranslated.
        """
        if not content.strip():
            return self.empty_document(version='1.2', namespace=XLIFF_12_NS)

        try:
            root = parse_xml(content)
        except ET.ParseError as e:
            line, column = getattr(e, 'position', (None, None))
            raise self.parse_error(
                str(e).split(':')[0], content, line, column + 1 if column is not None else None
            )

        namespace = _strip_namespace(root)
        if root.tag != 'xliff':
            raise self.parse_error("missing xliff root element", content, 1)

        version = self.detect_version(root)
        entries: dict[str, Any] = {}
        annotations: dict[str, dict[str, Any]] = {}

        for key, unit, segment in self._units(root, version):
            source = _text(_child(segment, 'source'))
            target = _child(segment, 'target')
            annotation = {
                'source': source,
                'approved': self._is_approved(unit, segment, version),
                'has_target': target is not None,
            }
            if target is not None:
                entries[key] = _text(target)
            else:
                entries[key] = source
                annotation[UNTRANSLATED] = True
            annotations[key] = annotation

        file_elem = _child(root, 'file')
        if version.startswith('2.'):
            source_language = root.get('srcLang')
            target_language = root.get('trgLang')
        else:
            source_language = file_elem.get('source-language') if file_elem is not None else None
            target_language = file_elem.get('target-language') if file_elem is not None else None

        return TranslationDocument(
            entries=entries,
            metadata=DocumentMetadata(
                format=self.name,
                original_structure=root,
                annotations=annotations,
                extra={
                    'version': version,
                    'namespace': namespace,
                    'source_language': source_language,
                    'target_language': target_language,
                    'prolog': split_prolog(content),
                },
            ),
        )

    def _units(self, root: ET.Element, version: str):
        """Yield (key, unit, segment) in document order."""
        if version.startswith('2.'):
            for unit in root.iter('unit'):
                unit_id = unit.get('id')
                if not unit_id:
                    continue
                segments = [c for c in element_children(unit) if c.tag == 'segment']
                for i, segment in enumerate(segments):
                    key = f"{unit_id}.{i}" if len(segments) > 1 else unit_id
                    yield key, unit, segment
        else:
            for unit in root.iter('trans-unit'):
                unit_id = unit.get('id')
                if unit_id:
                    yield unit_id, unit, unit

    def _is_approved(self, unit: ET.Element, segment: ET.Element, version: str) -> bool:
        if version.startswith('2.'):
            return unit.get('approved') == 'yes' or segment.get('state') == 'final'
        return unit.get('approved') == 'yes'

    def prepare_target(
        self,
        source_doc: TranslationDocument,
        target_doc: Optional[TranslationDocument],
    ) -> DocumentMetadata:
        """
        Keep the target file's own units (and their approval state).

        Units only the source has borrow its source text so they can be
        appended.
        """
        if target_doc is None or target_doc.metadata is None \
                or target_doc.metadata.original_structure is None:
            return super().prepare_target(source_doc, target_doc)

        metadata = target_doc.metadata.copy()
        source_meta = source_doc.metadata
        for key, value in source_doc.items():
            if key in metadata.annotations:
                continue
            source_text = value
            if source_meta is not None:
                source_text = source_meta.annotation(key).get('source', value)
            metadata.annotations[key] = {'source': source_text}
        return metadata

    def serialize(
        self,
        doc: TranslationDocument,
        options: Optional[FormatOptions] = None,
    ) -> str:
        """
        Reconstruct XLIFF, patching <target> elements of the cloned tree.

        Args:
            doc: Document to render
            options: locale sets the target language

        Returns:
            Complete XLIFF file content
        """
        options = options or FormatOptions()
        indent = options.indent_string(2)
        metadata = doc.metadata or DocumentMetadata(format=self.name)
        version = metadata.extra.get('version', '1.2')
        default_namespace = XLIFF_20_NS if version.startswith('2.') else XLIFF_12_NS
        namespace = metadata.extra.get('namespace', default_namespace)

        root = self.clone_structure(doc)
        if root is None:
            root = self._new_root(version)
        is_v2 = version.startswith('2.')

        if options.locale:
            if is_v2:
                root.set('trgLang', options.locale)
            else:
                for file_elem in root.iter('file'):
                    file_elem.set('target-language', options.locale)

        seen = set()
        for key, unit, segment in list(self._units(root, version)):
            seen.add(key)
            if key not in doc.entries:
                self._remove_unit(root, unit, segment, is_v2)
                continue
            annotation = metadata.annotation(key)
            if annotation.get(UNTRANSLATED):
                continue
            self._write_target(unit, segment, doc.entries[key], is_v2, indent)

        for key, value in doc.items():
            if key not in seen:
                source = metadata.annotation(key).get('source', value)
                self._append_unit(root, key, source, value, is_v2, indent)

        if namespace and 'xmlns' not in root.attrib:
            root.attrib = {'xmlns': namespace, **root.attrib}

        body = ET.tostring(root, encoding='unicode')
        prolog = metadata.extra.get('prolog', '')
        if options.xml_declaration and '<?xml' not in prolog:
            prolog = XML_DECLARATION + '\n' + prolog.lstrip()
        elif not options.xml_declaration and '<?xml' in prolog:
            prolog = prolog[prolog.index('?>') + 2:].lstrip()
        return prolog + body + '\n'

    def _new_root(self, version: str) -> ET.Element:
        if version.startswith('2.'):
            root = ET.Element('xliff', {'version': version})
            file_elem = ET.Element('file', {'id': 'f1'})
        else:
            root = ET.Element('xliff', {'version': version})
            file_elem = ET.Element('file', {
                'datatype': 'plaintext',
                'original': 'messages',
            })
            append_child(file_elem, ET.Element('body'), 1, '  ')
        append_child(root, file_elem, 0, '  ')
        return root

    def _write_target(
        self,
        unit: ET.Element,
        segment: ET.Element,
        value: Any,
        is_v2: bool,
        indent: str,
    ) -> None:
        text = '' if value is None else str(value)
        target = _child(segment, 'target')
        approved = self._is_approved(unit, segment, '2.0' if is_v2 else '1.2')

        if target is not None:
            if approved or _text(target) == text:
                return
            for child in list(target):
                target.remove(child)
            target.text = text
        else:
            target = ET.Element('target')
            target.text = text
            source = _child(segment, 'source')
            if source is not None:
                position = list(segment).index(source) + 1
                target.tail = source.tail
                segment.insert(position, target)
            else:
                append_child(segment, target, 3, indent)

        if is_v2:
            segment.set('state', 'translated')
            if unit.get('approved') == 'yes':
                unit.set('approved', 'no')
        else:
            unit.set('approved', 'no')

    def _remove_unit(self, root: ET.Element, unit: ET.Element, segment: ET.Element, is_v2: bool) -> None:
        parents = {child: parent for parent in root.iter() for child in parent}
        if is_v2 and segment is not unit:
            segments = [c for c in element_children(unit) if c.tag == 'segment']
            if len(segments) > 1:
                unit.remove(segment)
                return
        parent = parents.get(unit)
        if parent is not None:
            children = list(parent)
            position = children.index(unit)
            if position == len(children) - 1 and position > 0:
                children[position - 1].tail = unit.tail
            parent.remove(unit)

    def _append_unit(
        self,
        root: ET.Element,
        key: str,
        source: Any,
        value: Any,
        is_v2: bool,
        indent: str,
    ) -> None:
        file_elem = _child(root, 'file')
        if file_elem is None:
            file_elem = ET.Element('file')
            append_child(root, file_elem, 0, indent)

        source_elem = ET.Element('source')
        source_elem.text = '' if source is None else str(source)
        target_elem = ET.Element('target')
        target_elem.text = '' if value is None else str(value)

        if is_v2:
            unit = ET.Element('unit', {'id': key})
            segment = ET.Element('segment', {'state': 'translated'})
            append_child(file_elem, unit, 1, indent)
            append_child(unit, segment, 2, indent)
            append_child(segment, source_elem, 3, indent)
            append_child(segment, target_elem, 3, indent)
            return

        body = _child(file_elem, 'body')
        if body is None:
            body = ET.Element('body')
            append_child(file_elem, body, 1, indent)
        unit = ET.Element('trans-unit', {'id': key, 'approved': 'no'})
        append_child(body, unit, 2, indent)
        append_child(unit, source_elem, 3, indent)
        append_child(unit, target_elem, 3, indent)

    def validate_structure(self, doc: TranslationDocument) -> ValidationResult:
        """Required elements are errors; missing languages or units are warnings."""
        result = ValidationResult()
        metadata = doc.metadata or DocumentMetadata(format=self.name)
        root = metadata.original_structure

        if root is None:
            if doc.is_empty():
                result.warning(
                    'EMPTY_XLIFF',
                    "XLIFF file appears to be empty or contains no translatable content",
                )
            return result

        if root.tag != 'xliff':
            result.error('MISSING_XLIFF_ROOT', "XLIFF file must have an 'xliff' root element")
            return result

        version = metadata.extra.get('version') or self.detect_version(root)
        file_elem = _child(root, 'file')
        if file_elem is None:
            result.error('MISSING_FILE_ELEMENT', "XLIFF must contain a 'file' element")
            return result

        if version.startswith('2.'):
            if not root.get('srcLang'):
                result.warning('MISSING_SOURCE_LANGUAGE', "XLIFF 2.x should specify srcLang")
            unit_tag = 'unit'
        else:
            if _child(file_elem, 'body') is None:
                result.error('MISSING_BODY_ELEMENT', "XLIFF 1.2 file must contain a 'body' element")
            if not file_elem.get('source-language'):
                result.warning('MISSING_SOURCE_LANGUAGE', "XLIFF file should specify source-language")
            unit_tag = 'trans-unit'

        ids = set()
        units = list(root.iter(unit_tag))
        if not units:
            result.warning('NO_TRANSLATION_UNITS', "XLIFF file contains no translation units")
        for unit in units:
            unit_id = unit.get('id')
            if not unit_id:
                result.error('MISSING_UNIT_ID', f"<{unit_tag}> element without an id attribute")
            elif unit_id in ids:
                result.error('DUPLICATE_UNIT_ID', f"Duplicate unit id: {unit_id}")
            ids.add(unit_id)
        return result
