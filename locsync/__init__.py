"""
locsync - keep localization files in sync with their source locale

Parses a source locale document, merges every sibling locale against it and
fills in missing translations with a machine translation provider. Comments,
attributes, ICU structure, placeholders and ordering survive the round trip.
Supports JSON, ARB, XLIFF, Android/iOS/generic XML, PO/POT, YAML, Java
properties and CSV/TSV.

Quick start:
    export ATJ_GOOGLE_API_KEY=...
    locsync sync i18n/en.json
    locsync sync locales/en/messages.po --mode folder
"""

__version__ = "1.0.0"

from .config import Configuration, load_configuration
from .document import TranslationDocument, DocumentMetadata, flatten, unflatten
from .errors import (
    LocSyncError,
    ConfigurationError,
    ParseError,
    ProviderError,
    SerializeError,
    ValidationError,
)
from .format_handlers import FormatRegistry
from .placeholders import PlaceholderProtector
from .sync import MergePolicy, SyncEngine, SyncReport, synchronize

__all__ = [
    "Configuration",
    "load_configuration",
    "TranslationDocument",
    "DocumentMetadata",
    "flatten",
    "unflatten",
    "LocSyncError",
    "ConfigurationError",
    "ParseError",
    "ProviderError",
    "SerializeError",
    "ValidationError",
    "FormatRegistry",
    "PlaceholderProtector",
    "MergePolicy",
    "SyncEngine",
    "SyncReport",
    "synchronize",
]
