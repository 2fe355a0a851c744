#!/usr/bin/env python3
"""
Base classes for format handlers.

FormatHandler is the abstract base class that all format-specific handlers
must implement. Each handler converts between a native file and the
canonical TranslationDocument, and back again without losing comments,
attributes or ordering.
"""

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from ..document import DocumentMetadata, TranslationDocument
from ..errors import ConfigurationError, ParseError, line_context


@dataclass
class FormatOptions:
    """
    Serialization options shared by all handlers.

    Attributes:
        indentation: Number of spaces or a literal indent string
        preserve_formatting: Keep the native layout where the format allows
        xml_declaration: Emit <?xml ...?> (XML family only)
        locale: Target locale, written to in-file locale markers
    """
    indentation: Union[int, str, None] = None
    preserve_formatting: bool = True
    xml_declaration: bool = True
    locale: Optional[str] = None

    def indent(self, default: Union[int, str] = 2) -> Union[int, str]:
        if self.indentation is None:
            return default
        return self.indentation

    def indent_string(self, default: Union[int, str] = 2) -> str:
        indent = self.indent(default)
        return ' ' * indent if isinstance(indent, int) else indent


@dataclass
class ValidationIssue:
    """Single validation finding."""
    code: str
    message: str
    line: Optional[int] = None
    column: Optional[int] = None

    def __str__(self) -> str:
        if self.line is not None:
            return f"[{self.code}] {self.message} (line {self.line})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        data = {'code': self.code, 'message': self.message}
        if self.line is not None:
            data['line'] = self.line
        if self.column is not None:
            data['column'] = self.column
        return data


@dataclass
class ValidationResult:
    """Errors block persistence; warnings are advisory."""
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def error(self, code: str, message: str, **kwargs) -> None:
        self.errors.append(ValidationIssue(code, message, **kwargs))

    def warning(self, code: str, message: str, **kwargs) -> None:
        self.warnings.append(ValidationIssue(code, message, **kwargs))

    def to_dict(self) -> dict[str, Any]:
        return {
            'is_valid': self.is_valid,
            'errors': [issue.to_dict() for issue in self.errors],
            'warnings': [issue.to_dict() for issue in self.warnings],
        }


class FormatHandler(ABC):
    """
    Abstract base class for format-specific handlers.

    Parsing flattens the native tree into a TranslationDocument and keeps the
    tree itself in ``metadata.original_structure``. Serialization clones that
    tree and patches the leaves addressed by the document's keys.
    """

    # Remediation hint attached to ParseErrors for this format
    parse_hint: Optional[str] = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Format tag (json, arb, xliff...)."""
        pass

    @property
    @abstractmethod
    def file_extensions(self) -> list[str]:
        """List of file extensions this handler supports (without dot)."""
        pass

    @property
    def aliases(self) -> list[str]:
        """Additional tags resolved to this handler."""
        return []

    @property
    def nested_keys(self) -> bool:
        """
        Whether keys follow the flattened key grammar.

        Nested handlers (JSON, YAML, generic XML) produce ``a.b[0]`` keys that
        the sync engine may unflatten. Other handlers use opaque identifiers.
        """
        return False

    def can_handle(self, path: str, content: Optional[str] = None) -> bool:
        """
        Extension check plus a cheap content sniff. Never raises.
        """
        ext = Path(path).suffix.lower().lstrip('.')
        if ext not in self.file_extensions:
            return False
        if content is None or not content.strip():
            return True
        try:
            return self.sniff(content)
        except Exception:
            return False

    def sniff(self, content: str) -> bool:
        """Structural check used by can_handle(); may raise."""
        return True

    def refine_tag(self, content: Optional[str]) -> str:
        """Tag to report for this content (XML dialects override this)."""
        return self.name

    def variant(self, tag: str) -> "FormatHandler":
        """Configure the handler for one of its aliases."""
        return self

    @abstractmethod
    def parse(self, content: str) -> TranslationDocument:
        """
        Parse native content into a TranslationDocument.

        Args:
            content: Raw file content as string

        Returns:
            TranslationDocument (empty for blank input)

        Raises:
            ParseError: Content is malformed
        """
        pass

    @abstractmethod
    def serialize(
        self,
        doc: TranslationDocument,
        options: Optional[FormatOptions] = None,
    ) -> str:
        """
        Render a TranslationDocument in the native format.

        Args:
            doc: Document to render (never mutated)
            options: Formatting options

        Returns:
            Complete file content
        """
        pass

    def validate_structure(self, doc: TranslationDocument) -> ValidationResult:
        """Format-specific structural checks. Default: always valid."""
        return ValidationResult()

    def validate_content(self, content: str) -> ValidationResult:
        """Parse raw content and validate it, reporting parse failures as errors."""
        try:
            doc = self.parse(content)
        except ParseError as e:
            result = ValidationResult()
            result.error('PARSE_ERROR', e.message, line=e.line, column=e.column)
            return result
        return self.validate_structure(doc)

    def get_file_extension(self) -> str:
        return f".{self.file_extensions[0]}"

    def prepare_target(
        self,
        source_doc: TranslationDocument,
        target_doc: Optional[TranslationDocument],
    ) -> DocumentMetadata:
        """
        Metadata used to serialize a merged target document.

        The target mirrors the source layout by default.
        """
        if source_doc.metadata is not None:
            return source_doc.metadata.copy()
        return DocumentMetadata(format=self.name)

    def empty_document(self, **extra) -> TranslationDocument:
        return TranslationDocument({}, DocumentMetadata(format=self.name, extra=extra))

    def parse_error(
        self,
        message: str,
        content: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> ParseError:
        """Build a ParseError with a context excerpt and this format's hint."""
        return ParseError(
            f"Invalid {self.name.upper()}: {message}",
            line=line,
            column=column,
            context=line_context(content, line),
            code='PARSE_ERROR',
            hint=self.parse_hint,
        )

    @staticmethod
    def clone_structure(doc: TranslationDocument) -> Any:
        if doc.metadata is None or doc.metadata.original_structure is None:
            return None
        return copy.deepcopy(doc.metadata.original_structure)


class FormatRegistry:
    """Registry of available format handlers, in registration order."""

    _handlers: dict[str, type[FormatHandler]] = {}
    _aliases: dict[str, str] = {}  # alias -> handler name
    _extension_map: dict[str, str] = {}  # extension -> handler name

    @classmethod
    def register(cls, handler_class: type[FormatHandler], replace: bool = False) -> None:
        """
        Register a format handler class.

        The first registration of a tag wins unless replace=True.
        """
        # Create instance to get properties
        handler = handler_class()
        name = handler.name.lower()
        if name in cls._handlers and not replace:
            return
        cls._handlers[name] = handler_class
        for alias in handler.aliases:
            if replace or alias.lower() not in cls._aliases:
                cls._aliases[alias.lower()] = name
        for ext in handler.file_extensions:
            if replace or ext.lower() not in cls._extension_map:
                cls._extension_map[ext.lower()] = name

    @classmethod
    def resolve(cls, name: str) -> Optional[str]:
        name_lower = name.lower()
        if name_lower in cls._handlers:
            return name_lower
        return cls._aliases.get(name_lower)

    @classmethod
    def get_handler(cls, name: str) -> FormatHandler:
        """Get handler instance by tag or alias."""
        resolved = cls.resolve(name)
        if resolved is None:
            available = ', '.join(list(cls._handlers) + list(cls._aliases))
            raise ConfigurationError(
                f"Unknown format: {name}. Available: {available}",
                code='UNKNOWN_FORMAT',
            )
        handler = cls._handlers[resolved]()
        if name.lower() != resolved:
            handler = handler.variant(name.lower())
        return handler

    @classmethod
    def detect_format(
        cls,
        filepath: str,
        content: Optional[str] = None,
        override: Optional[str] = None,
    ) -> str:
        """
        Auto-detect the format tag for a file.

        An override is returned as-is. Otherwise the first handler whose
        can_handle() accepts the file wins; with no match, ``.xml`` files are
        generic XML and everything else is JSON. Never raises.
        """
        if override:
            return override

        for handler_class in cls._handlers.values():
            try:
                handler = handler_class()
                if handler.can_handle(filepath, content):
                    return handler.refine_tag(content)
            except Exception:
                continue

        if Path(filepath).suffix.lower() == '.xml':
            return 'xml'
        return 'json'

    @classmethod
    def handler_for(
        cls,
        filepath: str,
        content: Optional[str] = None,
        override: Optional[str] = None,
    ) -> FormatHandler:
        return cls.get_handler(cls.detect_format(filepath, content, override))

    @classmethod
    def list_formats(cls) -> list[dict[str, Any]]:
        """List all registered formats with their extensions."""
        result = []
        for name, handler_class in cls._handlers.items():
            handler = handler_class()
            result.append({
                'name': name,
                'extensions': handler.file_extensions,
                'aliases': handler.aliases,
            })
        return result
