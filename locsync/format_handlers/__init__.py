#!/usr/bin/env python3
"""
Format handlers for localization file formats.

Supported formats:
- JSON: i18next/react-intl style nested JSON
- ARB: Flutter Application Resource Bundle
- XLIFF: XML Localization Interchange File Format 1.2 and 2.x
- XML: Android strings.xml, iOS plist and generic XML
- PO/POT: GNU gettext catalogs and templates
- YAML: Rails/Symfony i18n YAML
- Properties: Java resource bundles
- CSV/TSV: string tables with a header row
- XMB/XTB: Google message bundles (Closure, Angular)
"""

from .base import (
    FormatHandler,
    FormatOptions,
    FormatRegistry,
    ValidationIssue,
    ValidationResult,
)
from .json_handler import JsonHandler
from .arb import ArbHandler
from .xliff import XliffHandler
from .xml_handler import XmlHandler
from .po import PoHandler, PotHandler
from .yaml_handler import YamlHandler
from .properties import PropertiesHandler
from .csv_handler import CsvHandler, TsvHandler
from .xmb import XmbHandler, XtbHandler

# Register handlers (order matters for detection and extension conflicts)
FormatRegistry.register(JsonHandler)
FormatRegistry.register(ArbHandler)
FormatRegistry.register(XliffHandler)
FormatRegistry.register(XmlHandler)
FormatRegistry.register(PoHandler)
FormatRegistry.register(PotHandler)
FormatRegistry.register(YamlHandler)
FormatRegistry.register(PropertiesHandler)
FormatRegistry.register(CsvHandler)
FormatRegistry.register(TsvHandler)
FormatRegistry.register(XmbHandler)
FormatRegistry.register(XtbHandler)

__all__ = [
    'FormatHandler',
    'FormatOptions',
    'FormatRegistry',
    'ValidationIssue',
    'ValidationResult',
    'JsonHandler',
    'ArbHandler',
    'XliffHandler',
    'XmlHandler',
    'PoHandler',
    'PotHandler',
    'YamlHandler',
    'PropertiesHandler',
    'CsvHandler',
    'TsvHandler',
    'XmbHandler',
    'XtbHandler',
]
