#!/usr/bin/env python3
"""
YAML format handler for Rails/Symfony i18n files.

Handles parsing and reconstruction of YAML localization files commonly
used in Ruby on Rails, Symfony, and other backend frameworks.
"""

from typing import Optional

import yaml

from ..document import DocumentMetadata, TranslationDocument, flatten, patch_tree, unflatten
from .base import FormatHandler, FormatOptions, ValidationResult


class YamlHandler(FormatHandler):
    """
    Handler for YAML i18n files (Rails/Symfony style).

    YAML i18n structure:
    ```yaml
    en:
      welcome: Welcome
      user:
        greeting: "Hello %{name}"
        messages:
          one: You have one message
          other: "You have %{count} messages"
    ```

    Dates, numbers and booleans are preserved as non-translatable leaves.
    """

    parse_hint = "Check indentation and quote values containing ':' or '#'"

    @property
    def name(self) -> str:
        return "yaml"

    @property
    def file_extensions(self) -> list[str]:
        return ["yml", "yaml"]

    @property
    def nested_keys(self) -> bool:
        return True

    def sniff(self, content: str) -> bool:
        data = yaml.safe_load(content)
        return data is None or isinstance(data, (dict, list))

    def parse(self, content: str) -> TranslationDocument:
        """
        Parse YAML content into a document with flattened keys.

        Args:
            content: Raw YAML file content

        Returns:
            TranslationDocument (empty for blank or comment-only input)
        """
        if not content.strip():
            return self.empty_document()

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            mark = getattr(e, 'problem_mark', None)
            line = mark.line + 1 if mark is not None else None
            column = mark.column + 1 if mark is not None else None
            problem = getattr(e, 'problem', None) or str(e)
            raise self.parse_error(problem, content, line, column)

        if data is None:
            return self.empty_document()
        if not isinstance(data, (dict, list)):
            raise self.parse_error("root must be a mapping", content, 1)

        return TranslationDocument(
            entries=flatten(data),
            metadata=DocumentMetadata(format=self.name, original_structure=data),
        )

    def serialize(
        self,
        doc: TranslationDocument,
        options: Optional[FormatOptions] = None,
    ) -> str:
        """
        Reconstruct YAML from the document.

        Args:
            doc: Document to render
            options: indentation defaults to 2 spaces

        Returns:
            Complete YAML file content
        """
        options = options or FormatOptions()
        structure = doc.metadata.original_structure if doc.metadata else None

        if structure is not None:
            result = patch_tree(structure, doc.entries)
        else:
            result = unflatten(doc.entries)

        indent = options.indent(2)
        if isinstance(indent, str):
            indent = max(len(indent), 2)

        return yaml.dump(
            result,
            allow_unicode=True,
            default_flow_style=False,
            sort_keys=False,
            indent=indent,
        )

    def validate_structure(self, doc: TranslationDocument) -> ValidationResult:
        """YAML root must be a mapping."""
        result = ValidationResult()
        structure = doc.metadata.original_structure if doc.metadata else None
        if structure is not None and not isinstance(structure, dict):
            result.error('INVALID_ROOT', "YAML root must be a mapping (dictionary)")
        return result
