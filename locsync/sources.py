#!/usr/bin/env python3
"""
Locale discovery and file access.

File mode keeps every locale as a sibling file (``i18n/en.json``,
``i18n/fr.json``). Folder mode keeps one directory per locale, each holding a
file of the same name (``locales/en/messages.po``, ``locales/fr/messages.po``).
"""

from abc import ABC, abstractmethod
from pathlib import Path

from .errors import ConfigurationError, ParseError, SerializeError
from .logger import get_logger

logger = get_logger(__name__)


class DocumentSource(ABC):
    """Where locale documents live and how they are read and written."""

    source_locale: str
    target_locales: list[str]

    @abstractmethod
    def path_for(self, locale: str) -> Path:
        pass

    def load(self, locale: str) -> str:
        """
        Content for locale; a missing file reads as empty.

        Raises:
            ParseError: File is not valid UTF-8 or cannot be read
        """
        path = self.path_for(locale)
        if not path.exists():
            return ''
        try:
            return path.read_text(encoding='utf-8')
        except UnicodeDecodeError as e:
            raise ParseError(
                f"Cannot decode {path} as UTF-8: {e.reason}",
                code='ENCODING_ERROR',
                hint="Convert the file to UTF-8",
            ) from e
        except OSError as e:
            raise ParseError(f"Cannot read {path}: {e.strerror or e}", code='READ_ERROR') from e

    def save(self, locale: str, content: str) -> None:
        path = self.path_for(locale)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding='utf-8')
        except OSError as e:
            raise SerializeError(f"Cannot write {path}: {e.strerror or e}", code='WRITE_ERROR') from e

    @property
    def source_path(self) -> Path:
        return self.path_for(self.source_locale)


class FileDocumentSource(DocumentSource):
    """Locales are sibling files sharing the source file's extension."""

    def __init__(self, path):
        self.path = Path(path)
        if not self.path.is_file():
            raise ConfigurationError(f"Source file not found: {self.path}", code='FILE_NOT_FOUND')
        self.folder = self.path.parent
        self.suffix = self.path.suffix
        self.source_locale = self.path.stem
        self.target_locales = sorted(
            sibling.stem
            for sibling in self.folder.iterdir()
            if sibling.is_file()
            and sibling.suffix == self.suffix
            and sibling.stem != self.source_locale
        )

    def path_for(self, locale: str) -> Path:
        return self.folder / f"{locale}{self.suffix}"


class FolderDocumentSource(DocumentSource):
    """Locales are sibling directories of the source file's directory."""

    def __init__(self, path):
        self.path = Path(path)
        if not self.path.is_file():
            raise ConfigurationError(f"Source file not found: {self.path}", code='FILE_NOT_FOUND')
        locale_dir = self.path.parent
        self.folder = locale_dir.parent
        self.file_name = self.path.name
        self.source_locale = locale_dir.name
        self.target_locales = sorted(
            entry.name
            for entry in self.folder.iterdir()
            if entry.is_dir()
            and entry.name != self.source_locale
            and not entry.name.startswith('.')
        )

    def path_for(self, locale: str) -> Path:
        return self.folder / locale / self.file_name


def open_source(path, mode: str = 'file') -> DocumentSource:
    """
    Create the document source for a run.

    Raises:
        ConfigurationError: Unknown mode or missing source file
    """
    if mode == 'file':
        source: DocumentSource = FileDocumentSource(path)
    elif mode == 'folder':
        source = FolderDocumentSource(path)
    else:
        raise ConfigurationError(f"Invalid mode: {mode}. Use 'file' or 'folder'", code='INVALID_MODE')

    logger.info(f"Source locale = {source.source_locale}")
    logger.info(f"Target locales = {', '.join(source.target_locales) or '(none)'}")
    return source
