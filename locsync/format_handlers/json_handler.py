#!/usr/bin/env python3
"""
JSON format handler for i18next/react-intl style localization files.

Supports nested JSON structures flattened to ``a.b[0]`` keys. Numbers,
booleans and nulls are carried as leaves and written back unchanged.
"""

import json
from typing import Optional

from ..document import DocumentMetadata, TranslationDocument, flatten, patch_tree, unflatten
from .base import FormatHandler, FormatOptions, ValidationResult


class JsonHandler(FormatHandler):
    """
    Handler for JSON localization files (i18next, react-intl, vue-i18n).

    Supports structures like:
    ```json
    {
      "welcome": "Welcome",
      "user": {
        "greeting": "Hello {name}",
        "tabs": ["Home", "Profile"]
      }
    }
    ```

    Keys are flattened to "user.greeting", "user.tabs[0]", "user.tabs[1]".
    The parsed tree is kept as the original structure for serialization.
    """

    parse_hint = "Check for trailing commas, unquoted keys or single-quoted strings"

    @property
    def name(self) -> str:
        return "json"

    @property
    def file_extensions(self) -> list[str]:
        return ["json"]

    @property
    def nested_keys(self) -> bool:
        return True

    def sniff(self, content: str) -> bool:
        return isinstance(json.loads(content), (dict, list))

    def parse(self, content: str) -> TranslationDocument:
        """
        Parse JSON content into a document with flattened keys.

        Args:
            content: Raw JSON file content

        Returns:
            TranslationDocument (empty for blank input)
        """
        if not content.strip():
            return self.empty_document()

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise self.parse_error(e.msg, content, e.lineno, e.colno)

        if not isinstance(data, (dict, list)):
            raise self.parse_error("root must be an object or an array", content, 1)

        return TranslationDocument(
            entries=flatten(data),
            metadata=DocumentMetadata(
                format=self.name,
                original_structure=data,
                extra={'root_type': 'array' if isinstance(data, list) else 'object'},
            ),
        )

    def serialize(
        self,
        doc: TranslationDocument,
        options: Optional[FormatOptions] = None,
    ) -> str:
        """
        Rebuild nested JSON from the document.

        Args:
            doc: Document to render
            options: indentation defaults to 2 spaces

        Returns:
            JSON text
        """
        options = options or FormatOptions()
        structure = doc.metadata.original_structure if doc.metadata else None

        if structure is not None:
            result = patch_tree(structure, doc.entries)
        elif doc.entries:
            result = unflatten(doc.entries)
        elif doc.metadata and doc.metadata.extra.get('root_type') == 'array':
            result = []
        else:
            result = {}

        return json.dumps(result, indent=options.indent(2), ensure_ascii=False, default=str)

    def validate_structure(self, doc: TranslationDocument) -> ValidationResult:
        """Root must be an object; non-string values and emptiness are warnings."""
        result = ValidationResult()

        structure = doc.metadata.original_structure if doc.metadata else None
        if structure is not None and not isinstance(structure, dict):
            result.error('INVALID_ROOT', "Root element must be an object")

        if doc.is_empty():
            result.warning('EMPTY_DOCUMENT', "Document contains no translatable strings")
            return result

        non_strings = [
            key for key, value in doc.items()
            if not isinstance(value, str)
        ]
        if non_strings:
            result.warning(
                'NON_TRANSLATABLE_VALUES',
                f"{len(non_strings)} value(s) are not strings and will not be translated: "
                f"{', '.join(non_strings[:5])}",
            )
        return result
