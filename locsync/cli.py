#!/usr/bin/env python3
"""
locsync - keep localization files in sync with their source locale

Fills in missing translations of every target locale next to a source
document using a machine translation provider, without touching comments,
attributes or anything else that is not a translatable string.

Commands:
    sync      - Translate missing keys of every target locale
    detect    - Print the detected format of a file
    validate  - Validate one file against its format's rules
    formats   - List supported formats

Provider credentials are read from the environment (or a .env file):
    ATJ_GOOGLE_API_KEY, ATJ_AWS_ACCESS_KEY_ID + ATJ_AWS_SECRET_ACCESS_KEY + ATJ_AWS_REGION,
    ATJ_AZURE_SECRET_KEY + ATJ_AZURE_REGION,
    ATJ_DEEPL_FREE_SECRET_KEY, ATJ_DEEPL_PRO_SECRET_KEY, ATJ_OPEN_AI_SECRET_KEY
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional, Union

from .config import KEEP_EXTRA_TRANSLATIONS, KEEP_TRANSLATIONS, MODES, load_configuration
from .errors import ConfigurationError, LocSyncError
from .format_handlers import FormatRegistry
from .logger import set_log_level
from .sync import synchronize


def _indentation(value: Optional[str]) -> Union[int, str, None]:
    if value is None:
        return None
    if value.isdigit():
        return int(value)
    return value.replace('\\t', '\t')


def _read(path: str) -> str:
    file_path = Path(path)
    if not file_path.is_file():
        raise ConfigurationError(f"File not found: {path}", code='FILE_NOT_FOUND')
    return file_path.read_text(encoding='utf-8')


def cmd_sync(args) -> dict:
    """Synchronize all target locales."""
    config = load_configuration(
        mode=args.mode,
        format=args.format,
        source_locale=args.source_locale,
        keep_translations=args.keep_translations,
        keep_extra_translations=args.keep_extra_translations,
        ignore_prefix=args.ignore_prefix,
        start_delimiter=args.start_delimiter,
        end_delimiter=args.end_delimiter,
        indentation=_indentation(args.indent),
    )
    set_log_level(config.log_level)
    report = synchronize(args.path, config, fallback_to_source=args.fallback_to_source)
    return report.to_dict()


def cmd_detect(args) -> dict:
    """Detect the format of a file."""
    content = _read(args.path)
    return {
        "status": "ok",
        "path": args.path,
        "format": FormatRegistry.detect_format(args.path, content, args.format),
    }


def cmd_validate(args) -> dict:
    """Validate a file."""
    content = _read(args.path)
    tag = FormatRegistry.detect_format(args.path, content, args.format)
    handler = FormatRegistry.get_handler(tag)
    result = handler.validate_content(content)
    return {
        "status": "ok" if result.is_valid else "invalid",
        "path": args.path,
        "format": tag,
        **result.to_dict(),
    }


def cmd_formats(args) -> dict:
    """List supported formats."""
    formats = FormatRegistry.list_formats()
    return {
        "status": "ok",
        "formats": formats,
        "summary": f"{len(formats)} formats supported: {', '.join(f['name'] for f in formats)}",
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="locsync",
        description="locsync - keep localization files in sync with their source locale",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Translate every sibling of i18n/en.json (fr.json, de.json...)
  locsync sync i18n/en.json

  # Folder layout: locales/en/messages.po, locales/fr/messages.po...
  locsync sync locales/en/messages.po --mode folder

  # Retranslate everything and drop keys the source no longer has
  locsync sync i18n/en.json --keep-translations retranslate --keep-extra-translations remove

  # Inspect a file
  locsync detect res/values/strings.xml
  locsync validate lib/l10n/app_en.arb
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # sync command
    sync_parser = subparsers.add_parser("sync", help="Translate missing keys of every target locale")
    sync_parser.add_argument("path", help="Source locale file")
    sync_parser.add_argument("--mode", "-m", choices=MODES, help="Locale layout (default: file)")
    sync_parser.add_argument("--format", "-f", help="Format tag (default: auto-detect)")
    sync_parser.add_argument("--source-locale", "-s", help="Expected source locale (default: en)")
    sync_parser.add_argument("--keep-translations", choices=KEEP_TRANSLATIONS,
                             help="Keep existing translations or retranslate them")
    sync_parser.add_argument("--keep-extra-translations", choices=KEEP_EXTRA_TRANSLATIONS,
                             help="Keep or remove keys missing from the source")
    sync_parser.add_argument("--ignore-prefix", help="Leave out keys starting with this prefix")
    sync_parser.add_argument("--start-delimiter", help="Placeholder start delimiter (default: {)")
    sync_parser.add_argument("--end-delimiter", help="Placeholder end delimiter (default: })")
    sync_parser.add_argument("--indent", help="Output indentation: number of spaces or a literal string")
    sync_parser.add_argument("--fallback-to-source", action="store_true",
                             help="Use the source text where translation fails")

    # detect command
    detect_parser = subparsers.add_parser("detect", help="Detect the format of a file")
    detect_parser.add_argument("path", help="File to inspect")
    detect_parser.add_argument("--format", "-f", help="Format override")

    # validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a file")
    validate_parser.add_argument("path", help="File to validate")
    validate_parser.add_argument("--format", "-f", help="Format override")

    # formats command
    subparsers.add_parser("formats", help="List supported formats")

    return parser


COMMANDS = {
    "sync": cmd_sync,
    "detect": cmd_detect,
    "validate": cmd_validate,
    "formats": cmd_formats,
}


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        result = COMMANDS[args.command](args)
    except LocSyncError as e:
        print(json.dumps({"status": "error", **e.to_dict()}, ensure_ascii=False), file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(json.dumps({
            "status": "error",
            "error": str(e),
            "error_type": type(e).__name__,
        }), file=sys.stderr)
        sys.exit(1)

    print(json.dumps(result, indent=2, ensure_ascii=False))
    if result.get("status") not in ("ok", "success"):
        sys.exit(1)


if __name__ == "__main__":
    main()
