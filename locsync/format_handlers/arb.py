#!/usr/bin/env python3
"""
Flutter ARB (Application Resource Bundle) format handler.

Handles parsing and reconstruction of .arb files used in Flutter/Dart
applications for internationalization.
"""

import json
from typing import Any, Optional

from ..document import DocumentMetadata, TranslationDocument
from ..icu import analyze_message, validate_message
from .base import FormatHandler, FormatOptions, ValidationResult

RESOURCE_METADATA_PROPERTIES = {'type', 'description', 'placeholders', 'context'}


class ArbHandler(FormatHandler):
    """
    Handler for Flutter ARB (Application Resource Bundle) files.

    ARB format structure:
    ```json
    {
      "@@locale": "en",
      "welcomeMessage": "Welcome, {name}!",
      "@welcomeMessage": {
        "description": "Welcome message shown on home screen",
        "placeholders": {
          "name": {"type": "String"}
        }
      },
      "itemCount": "{count, plural, =0{No items} =1{One item} other{{count} items}}",
      "@itemCount": {
        "description": "Number of items in cart"
      }
    }
    ```

    @@ file metadata goes to metadata.extra['arb_metadata'], @key descriptors
    to the key's annotation. Only resources are translation entries.
    """

    parse_hint = "ARB files are JSON: check for trailing commas and quoting"

    @property
    def name(self) -> str:
        return "arb"

    @property
    def file_extensions(self) -> list[str]:
        return ["arb"]

    def sniff(self, content: str) -> bool:
        return isinstance(json.loads(content), dict)

    def parse(self, content: str) -> TranslationDocument:
        """
        Parse ARB content into a document.

        Args:
            content: Raw ARB file content

        Returns:
            TranslationDocument keyed by resource name
        """
        if not content.strip():
            return self.empty_document(arb_metadata={}, orphan_metadata={})

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise self.parse_error(e.msg, content, e.lineno, e.colno)

        if not isinstance(data, dict):
            raise self.parse_error("ARB root must be a JSON object", content, 1)

        # Extract @@ prefixed file-level metadata (@@locale, @@context, @@author, etc.)
        arb_metadata = {k: v for k, v in data.items() if k.startswith('@@')}

        entries = {}
        annotations = {}
        for key, value in data.items():
            if key.startswith('@'):
                continue
            entries[key] = value

            annotation: dict[str, Any] = {}
            metadata_value = data.get(f"@{key}")
            if metadata_value is not None:
                annotation['resource_metadata'] = metadata_value
            if isinstance(value, str):
                annotation['icu'] = analyze_message(value).to_dict()
            annotations[key] = annotation

        orphan_metadata = {
            k: v for k, v in data.items()
            if k.startswith('@') and not k.startswith('@@') and k[1:] not in data
        }

        return TranslationDocument(
            entries=entries,
            metadata=DocumentMetadata(
                format=self.name,
                original_structure=data,
                annotations=annotations,
                extra={'arb_metadata': arb_metadata, 'orphan_metadata': orphan_metadata},
            ),
        )

    def serialize(
        self,
        doc: TranslationDocument,
        options: Optional[FormatOptions] = None,
    ) -> str:
        """
        Reconstruct an ARB file.

        Order: @@locale, remaining @@ entries, then each resource followed by
        its @key descriptor.

        Args:
            doc: Document to render
            options: options.locale replaces @@locale

        Returns:
            Complete ARB file content
        """
        options = options or FormatOptions()
        metadata = doc.metadata or DocumentMetadata(format=self.name)
        arb_metadata = metadata.extra.get('arb_metadata', {})

        result: dict[str, Any] = {}

        # Update @@locale to target language if provided
        locale = options.locale or arb_metadata.get('@@locale')
        if locale:
            result['@@locale'] = locale
        for key, value in arb_metadata.items():
            if key != '@@locale':
                result[key] = value

        for key, value in doc.items():
            result[key] = value
            resource_metadata = metadata.annotation(key).get('resource_metadata')
            if resource_metadata is not None:
                result[f"@{key}"] = resource_metadata

        for key, value in metadata.extra.get('orphan_metadata', {}).items():
            result.setdefault(key, value)

        return json.dumps(result, indent=options.indent(2), ensure_ascii=False)

    def validate_structure(self, doc: TranslationDocument) -> ValidationResult:
        """
        Check ARB metadata types, ICU syntax and placeholder descriptors.
        """
        result = ValidationResult()
        metadata = doc.metadata or DocumentMetadata(format=self.name)
        arb_metadata = metadata.extra.get('arb_metadata', {})

        if '@@locale' not in arb_metadata:
            result.warning('MISSING_LOCALE_METADATA', "Missing @@locale metadata")
        for key, value in arb_metadata.items():
            if not isinstance(value, str):
                result.error('INVALID_ARB_METADATA', f"{key} must be a string")

        for key in metadata.extra.get('orphan_metadata', {}):
            result.warning(
                'ORPHANED_METADATA',
                f"Metadata key {key} has no corresponding entry {key[1:]}",
            )

        for key, value in doc.items():
            if not isinstance(value, str):
                result.error('INVALID_RESOURCE_VALUE', f'Resource "{key}" must be a string')
                continue

            for problem in validate_message(value, key):
                if problem.severity == 'error':
                    result.error(problem.code, problem.message)
                else:
                    result.warning(problem.code, problem.message)

            resource_metadata = metadata.annotation(key).get('resource_metadata')
            self._validate_resource_metadata(key, value, resource_metadata, result)

        return result

    def _validate_resource_metadata(
        self,
        key: str,
        message: str,
        resource_metadata: Any,
        result: ValidationResult,
    ) -> None:
        info = analyze_message(message)

        if resource_metadata is None:
            if info.placeholders:
                result.warning(
                    'MISSING_PLACEHOLDER_METADATA',
                    f'Resource "{key}" uses ICU placeholders but has no placeholder metadata',
                )
            return

        if not isinstance(resource_metadata, dict):
            result.error('INVALID_RESOURCE_METADATA', f"Resource metadata @{key} must be an object")
            return

        for prop in resource_metadata:
            if prop not in RESOURCE_METADATA_PROPERTIES:
                result.warning(
                    'UNKNOWN_METADATA_PROPERTY',
                    f'Unknown metadata property "{prop}" in @{key}',
                )

        placeholders = resource_metadata.get('placeholders')
        if placeholders is None:
            if info.placeholders:
                result.warning(
                    'MISSING_PLACEHOLDER_METADATA',
                    f'Resource "{key}" uses ICU placeholders but has no placeholder metadata',
                )
            return
        if not isinstance(placeholders, dict):
            result.error('INVALID_PLACEHOLDERS', f"Placeholders in @{key} must be an object")
            return

        for name in info.placeholders:
            if name not in placeholders:
                result.warning(
                    'MISSING_PLACEHOLDER_METADATA',
                    f'Resource "{key}" uses placeholder "{{{name}}}" but has no metadata for it',
                )
        for name in placeholders:
            if name not in info.placeholders:
                result.warning(
                    'EXTRA_PLACEHOLDER_METADATA',
                    f'Resource "{key}" has metadata for placeholder "{{{name}}}" but doesn\'t use it',
                )
