#!/usr/bin/env python3
"""
Synchronization engine.

Merges every target locale against the source document: keys the target
lacks are machine translated, existing translations are kept or redone per
the merge policy, and keys the source no longer has are kept or pruned.
Locales are processed one after another; each locale is fully merged and
saved before the next one starts.
"""

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Optional

from .document import (
    UNTRANSLATED,
    TranslationDocument,
    child_key,
    flatten,
    unflatten,
)
from .errors import (
    ConfigurationError,
    LocSyncError,
    ParseError,
    SerializeError,
    ValidationError,
)
from .format_handlers import FormatHandler, FormatOptions, FormatRegistry
from .logger import get_logger
from .placeholders import PlaceholderProtector
from .providers import TranslationProvider, create_provider
from .sources import DocumentSource, open_source

logger = get_logger(__name__)

ERROR_MARKER = "[translation failed: {error}]"

TRANSLATED = 'translated'
SKIPPED = 'skipped'
FAILED = 'failed'


@dataclass(frozen=True)
class MergePolicy:
    """
    Rules applied to every leaf of one run.

    Attributes:
        keep_existing_translations: Reuse a non-empty target value instead of retranslating
        keep_orphaned_keys: Carry over target keys the source no longer has
        ignore_prefix: Source keys starting with this are left out of the target
    """
    keep_existing_translations: bool = True
    keep_orphaned_keys: bool = True
    ignore_prefix: str = ''


@dataclass
class LocaleResult:
    """Outcome of one target locale."""
    locale: str
    status: str
    translated: int = 0
    kept: int = 0
    errors: int = 0
    message: Optional[str] = None
    path: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data = {
            'locale': self.locale,
            'status': self.status,
            'translated': self.translated,
            'kept': self.kept,
            'errors': self.errors,
        }
        if self.message:
            data['message'] = self.message
        if self.path:
            data['path'] = self.path
        return data


@dataclass
class SyncReport:
    """Per-locale results of a run."""
    source_locale: str
    format: str
    results: list[LocaleResult] = field(default_factory=list)

    def add(self, result: LocaleResult) -> None:
        self.results.append(result)

    def get(self, locale: str) -> Optional[LocaleResult]:
        return next((r for r in self.results if r.locale == locale), None)

    def count(self, status: str) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def ok(self) -> bool:
        return self.count(FAILED) == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            'status': 'success' if self.ok else 'partial',
            'source_locale': self.source_locale,
            'format': self.format,
            'locales': [r.to_dict() for r in self.results],
            'summary': {
                'translated': self.count(TRANSLATED),
                'skipped': self.count(SKIPPED),
                'failed': self.count(FAILED),
            },
        }


@dataclass
class _LeafStats:
    translated: int = 0
    kept: int = 0
    errors: int = 0


def _is_container(value: Any) -> bool:
    return isinstance(value, (dict, list))


def _has_value(value: Any) -> bool:
    return value is not None and value != '' and not _is_container(value)


class SyncEngine:
    """
    Merges target locales against a source document.

    Args:
        provider: Translation backend
        policy: Merge policy for the run
        format_override: Format tag to use instead of detection
        options: Serialization options (locale is filled in per target)
        fallback_to_source: Put the source text in place of failed translations
    """

    def __init__(
        self,
        provider: TranslationProvider,
        policy: Optional[MergePolicy] = None,
        format_override: Optional[str] = None,
        options: Optional[FormatOptions] = None,
        fallback_to_source: bool = False,
    ):
        self.provider = provider
        self.policy = policy or MergePolicy()
        self.format_override = format_override
        self.options = options or FormatOptions()
        self.fallback_to_source = fallback_to_source

    # Merge

    def merge(
        self,
        source_node: Any,
        target_node: Any,
        source_locale: str,
        target_locale: str,
        path: str = '',
        stats: Optional[_LeafStats] = None,
    ) -> Any:
        """
        Recursively merge a source tree with the existing target tree.

        The result container mirrors the source container at every path and
        keys follow source order.
        """
        stats = stats if stats is not None else _LeafStats()
        is_list = isinstance(source_node, list)
        if is_list:
            target = target_node if isinstance(target_node, list) else []
            items = list(enumerate(source_node))
        else:
            target = target_node if isinstance(target_node, dict) else {}
            items = list(source_node.items())

        result: Any = [] if is_list else {}
        for term, value in items:
            existing = self._lookup(target, term)
            key = child_key(path, term)

            if _is_container(value):
                merged = self.merge(
                    value, existing, source_locale, target_locale, key, stats
                )
            else:
                merged = self._merge_leaf(
                    str(term), key, value, existing, False, source_locale, target_locale, stats
                )
                if merged is _OMIT:
                    continue

            if is_list:
                result.append(merged)
            else:
                result[term] = merged

        if self.policy.keep_orphaned_keys:
            if is_list:
                result.extend(target[len(source_node):])
            else:
                for term, value in target.items():
                    if term not in source_node:
                        result[term] = value
        return result

    @staticmethod
    def _lookup(target: Any, term: Any) -> Any:
        if isinstance(target, list):
            return target[term] if term < len(target) else None
        return target.get(term)

    def merge_flat(
        self,
        source_doc: TranslationDocument,
        target_doc: Optional[TranslationDocument],
        source_locale: str,
        target_locale: str,
        stats: Optional[_LeafStats] = None,
    ) -> dict[str, Any]:
        """Merge over opaque keys: the same rules applied to the flat mapping."""
        stats = stats if stats is not None else _LeafStats()
        target_entries = target_doc.entries if target_doc is not None else {}

        result: dict[str, Any] = {}
        for key, value in source_doc.items():
            untranslated = target_doc is not None and target_doc.is_untranslated(key)
            merged = self._merge_leaf(
                key, key, value, target_entries.get(key), untranslated,
                source_locale, target_locale, stats,
            )
            if merged is not _OMIT:
                result[key] = merged

        if self.policy.keep_orphaned_keys:
            for key, value in target_entries.items():
                if key not in source_doc.entries:
                    result[key] = value
        return result

    def _merge_leaf(
        self,
        term: str,
        key: str,
        value: Any,
        existing: Any,
        existing_untranslated: bool,
        source_locale: str,
        target_locale: str,
        stats: _LeafStats,
    ) -> Any:
        # a. keep an existing translation
        if self.policy.keep_existing_translations and _has_value(existing) \
                and not existing_untranslated:
            stats.kept += 1
            return existing
        # b. non-string leaves are copied
        if not isinstance(value, str):
            return value
        # c. explicit exclusion
        if self.policy.ignore_prefix and term.startswith(self.policy.ignore_prefix):
            return _OMIT
        if value == '':
            return value
        # d. translate
        return self._translate_leaf(key, value, source_locale, target_locale, stats)

    def _translate_leaf(
        self,
        key: str,
        text: str,
        source_locale: str,
        target_locale: str,
        stats: _LeafStats,
    ) -> str:
        try:
            translated = self.provider.translate_text(text, source_locale, target_locale)
        except Exception as e:
            stats.errors += 1
            logger.warning(f"Translation failed for '{key}' ({target_locale}): {e}")
            if self.fallback_to_source:
                return text
            return ERROR_MARKER.format(error=e)
        stats.translated += 1
        return translated

    def merge_documents(
        self,
        source_doc: TranslationDocument,
        target_doc: Optional[TranslationDocument],
        nested: bool,
        source_locale: str,
        target_locale: str,
        stats: Optional[_LeafStats] = None,
    ) -> dict[str, Any]:
        """Merge two parsed documents and return the merged flat entries."""
        if not nested:
            return self.merge_flat(source_doc, target_doc, source_locale, target_locale, stats)

        source_tree = unflatten(source_doc.entries)
        target_tree = unflatten(target_doc.entries) if target_doc is not None else {}
        merged = self.merge(source_tree, target_tree, source_locale, target_locale, stats=stats)
        return flatten(merged)

    # Locales

    def sync_locale(
        self,
        source: DocumentSource,
        target_locale: str,
        source_doc: TranslationDocument,
        handler: FormatHandler,
    ) -> LocaleResult:
        """
        Merge and save one target locale.

        Raises:
            ParseError: Target file cannot be read
            ValidationError: Merged document breaks a structural rule
            SerializeError: Merged document cannot be written
        """
        content = source.load(target_locale)
        target_doc: Optional[TranslationDocument] = None
        if content.strip():
            try:
                target_doc = handler.parse(content)
            except ParseError as e:
                logger.warning(f"Target '{target_locale}' is malformed, starting from empty: {e}")

        stats = _LeafStats()
        entries = self.merge_documents(
            source_doc, target_doc, handler.nested_keys,
            source.source_locale, target_locale, stats,
        )

        metadata = handler.prepare_target(source_doc, target_doc)
        for key in entries:
            if key in source_doc.entries and key in metadata.annotations:
                metadata.annotations[key].pop(UNTRANSLATED, None)
        merged_doc = TranslationDocument(entries, metadata)

        validation = handler.validate_structure(merged_doc)
        for warning in validation.warnings:
            logger.warning(f"{target_locale}: {warning}")
        if not validation.is_valid:
            raise ValidationError(
                f"Merged '{target_locale}' document is invalid: "
                + '; '.join(str(issue) for issue in validation.errors),
                result=validation,
                code='VALIDATION_FAILED',
            )

        options = dataclasses.replace(self.options, locale=target_locale)
        try:
            output = handler.serialize(merged_doc, options)
        except LocSyncError:
            raise
        except Exception as e:
            raise SerializeError(
                f"Cannot write '{target_locale}' as {handler.name}: {e}",
                code='SERIALIZE_FAILED',
            ) from e

        source.save(target_locale, output)
        logger.info(f"Translated locale '{target_locale}'")
        return LocaleResult(
            locale=target_locale,
            status=TRANSLATED,
            translated=stats.translated,
            kept=stats.kept,
            errors=stats.errors,
            path=str(source.path_for(target_locale)),
        )

    def run(self, source: DocumentSource) -> SyncReport:
        """
        Synchronize every target locale of a document source.

        Raises:
            ParseError: Source document is malformed
        """
        try:
            content = source.load(source.source_locale)
            tag = FormatRegistry.detect_format(str(source.source_path), content, self.format_override)
            handler = FormatRegistry.get_handler(tag)
            source_doc = handler.parse(content)
        except ParseError as e:
            e.message = f"Source file malformed: {e.message}"
            raise
        logger.info(f"Source '{source.source_locale}' parsed as {source_doc.format or tag} "
                    f"({len(source_doc)} keys)")

        self.provider.initialize()
        report = SyncReport(source_locale=source.source_locale, format=source_doc.format or tag)

        for locale in source.target_locales:
            if not self.provider.is_valid_locale(locale):
                logger.warning(f"{locale} is not supported. Skipping.")
                report.add(LocaleResult(locale, SKIPPED, message=f"{locale} is not supported"))
                continue
            try:
                report.add(self.sync_locale(source, locale, source_doc, handler))
            except LocSyncError as e:
                logger.error(f"Locale '{locale}' failed: {e}")
                report.add(LocaleResult(locale, FAILED, message=str(e)))

        return report


class _Omit:
    """Leaf left out of the merged output."""


_OMIT = _Omit()


def synchronize(
    source_path,
    config,
    provider: Optional[TranslationProvider] = None,
    fallback_to_source: bool = False,
) -> SyncReport:
    """
    Synchronize all locales next to source_path.

    Args:
        source_path: Source locale document
        config: Validated or unvalidated Configuration
        provider: Provider to use instead of the configured one
        fallback_to_source: Keep source text where translation fails

    Raises:
        ConfigurationError: Bad configuration or source locale mismatch
        ParseError: Source document is malformed
    """
    config.validate(require_provider=provider is None)
    source = open_source(source_path, config.mode)
    if source.source_locale != config.source_locale:
        raise ConfigurationError(
            f"You must use the {config.source_locale} file due to your source locale setting "
            f"(got '{source.source_locale}')",
            code='SOURCE_LOCALE_MISMATCH',
        )

    owns_provider = provider is None
    if owns_provider:
        protector = PlaceholderProtector(config.start_delimiter, config.end_delimiter)
        provider = create_provider(config.provider, protector=protector)

    engine = SyncEngine(
        provider,
        policy=config.merge_policy(),
        format_override=config.format,
        options=FormatOptions(indentation=config.indentation),
        fallback_to_source=fallback_to_source,
    )
    try:
        return engine.run(source)
    finally:
        if owns_provider:
            provider.close()
