#!/usr/bin/env python3
"""
Run configuration.

Settings come from defaults, then a ``.env`` file and the process
environment (``ATJ_*`` variables), then explicit overrides such as CLI flags.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

from dotenv import find_dotenv, load_dotenv

from .errors import ConfigurationError
from .logger import get_logger

logger = get_logger(__name__)

MODES = ('file', 'folder')
KEEP_TRANSLATIONS = ('keep', 'retranslate')
KEEP_EXTRA_TRANSLATIONS = ('keep', 'remove')


@dataclass
class GoogleConfig:
    api_key: str
    kind: str = 'google'


@dataclass
class AwsConfig:
    access_key_id: str
    secret_access_key: str
    region: str
    kind: str = 'aws'


@dataclass
class AzureConfig:
    secret_key: str
    region: str
    kind: str = 'azure'


@dataclass
class DeepLConfig:
    secret_key: str
    plan: str = 'free'
    kind: str = 'deepl'


@dataclass
class OpenAIConfig:
    api_key: str
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4o-mini"
    max_tokens: Optional[int] = None
    temperature: float = 0.3
    top_p: float = 1.0
    n: int = 1
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0
    kind: str = 'openai'


ProviderConfig = Union[GoogleConfig, AwsConfig, AzureConfig, DeepLConfig, OpenAIConfig]


@dataclass
class Configuration:
    """
    Everything one synchronization run needs.

    Attributes:
        provider: Translation backend credentials (None until configured)
        start_delimiter: Opening placeholder delimiter
        end_delimiter: Closing placeholder delimiter
        mode: 'file' (sibling files) or 'folder' (sibling locale directories)
        source_locale: Locale the source document must be named after
        keep_translations: 'keep' existing translations or 'retranslate'
        keep_extra_translations: 'keep' or 'remove' keys absent from the source
        ignore_prefix: Source keys starting with this are left out of targets
        format: Format tag override (None to auto-detect)
        indentation: Output indentation override
        log_level: debug, info, warning, error or off
    """
    provider: Optional[ProviderConfig] = None
    start_delimiter: str = '{'
    end_delimiter: str = '}'
    mode: str = 'file'
    source_locale: str = 'en'
    keep_translations: str = 'keep'
    keep_extra_translations: str = 'keep'
    ignore_prefix: str = ''
    format: Optional[str] = None
    indentation: Union[int, str, None] = None
    log_level: str = 'info'
    extras: dict[str, Any] = field(default_factory=dict)

    def validate(self, require_provider: bool = True) -> None:
        """
        Raise ConfigurationError for anything that would fail mid-run.
        """
        if self.provider is None and require_provider:
            raise ConfigurationError(
                "No translation provider configured",
                code='MISSING_PROVIDER',
                hint="Set ATJ_GOOGLE_API_KEY, ATJ_AWS_ACCESS_KEY_ID with ATJ_AWS_SECRET_ACCESS_KEY and ATJ_AWS_REGION, "
                     "ATJ_AZURE_SECRET_KEY and ATJ_AZURE_REGION, "
                     "ATJ_DEEPL_FREE_SECRET_KEY, ATJ_DEEPL_PRO_SECRET_KEY or ATJ_OPEN_AI_SECRET_KEY",
            )
        for name in ("api_key", "secret_key", "access_key_id", "secret_access_key", "region"):
            if self.provider is not None and hasattr(self.provider, name) and not getattr(self.provider, name):
                raise ConfigurationError(
                    f"{self.provider.kind} provider requires a non-empty {name}",
                    code='MISSING_CREDENTIAL',
                )
        if isinstance(self.provider, DeepLConfig) and self.provider.plan not in ('free', 'pro'):
            raise ConfigurationError(
                f"Invalid DeepL plan: {self.provider.plan}", code='INVALID_PROVIDER'
            )
        if self.mode not in MODES:
            raise ConfigurationError(
                f"Invalid mode: {self.mode}. Use 'file' or 'folder'", code='INVALID_MODE'
            )
        if self.keep_translations not in KEEP_TRANSLATIONS:
            raise ConfigurationError(
                f"Invalid keep_translations: {self.keep_translations}. Use 'keep' or 'retranslate'",
                code='INVALID_OPTION',
            )
        if self.keep_extra_translations not in KEEP_EXTRA_TRANSLATIONS:
            raise ConfigurationError(
                f"Invalid keep_extra_translations: {self.keep_extra_translations}. "
                "Use 'keep' or 'remove'",
                code='INVALID_OPTION',
            )
        if not self.start_delimiter or not self.end_delimiter:
            raise ConfigurationError("Placeholder delimiters must be non-empty", code='INVALID_OPTION')
        if not self.source_locale:
            raise ConfigurationError("Source locale must be non-empty", code='INVALID_LOCALE')

    def merge_policy(self):
        from .sync import MergePolicy

        return MergePolicy(
            keep_existing_translations=self.keep_translations == 'keep',
            keep_orphaned_keys=self.keep_extra_translations == 'keep',
            ignore_prefix=self.ignore_prefix or '',
        )


def _number(value: Optional[str], cast, name: str):
    if value is None or value == '':
        return None
    try:
        return cast(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {value!r}", code='INVALID_OPTION') from e


def _openai_config(env: Mapping[str, str]) -> OpenAIConfig:
    config = OpenAIConfig(api_key=env['ATJ_OPEN_AI_SECRET_KEY'])
    if env.get('ATJ_OPEN_AI_BASE_URL'):
        config.base_url = env['ATJ_OPEN_AI_BASE_URL']
    if env.get('ATJ_OPEN_AI_MODEL'):
        config.model = env['ATJ_OPEN_AI_MODEL']
    numeric = {
        'max_tokens': ('ATJ_OPEN_AI_MAX_TOKENS', int),
        'temperature': ('ATJ_OPEN_AI_TEMPERATURE', float),
        'top_p': ('ATJ_OPEN_AI_TOP_P', float),
        'n': ('ATJ_OPEN_AI_N', int),
        'frequency_penalty': ('ATJ_OPEN_AI_FREQUENCY_PENALTY', float),
        'presence_penalty': ('ATJ_OPEN_AI_PRESENCE_PENALTY', float),
    }
    for attr, (name, cast) in numeric.items():
        value = _number(env.get(name), cast, name)
        if value is not None:
            setattr(config, attr, value)
    return config


def provider_from_environment(env: Mapping[str, str]) -> Optional[ProviderConfig]:
    """Later providers in the list win when several are configured."""
    provider: Optional[ProviderConfig] = None
    if env.get('ATJ_GOOGLE_API_KEY'):
        provider = GoogleConfig(api_key=env['ATJ_GOOGLE_API_KEY'])
    if env.get('ATJ_AWS_ACCESS_KEY_ID') and env.get('ATJ_AWS_SECRET_ACCESS_KEY') and env.get('ATJ_AWS_REGION'):
        provider = AwsConfig(
            access_key_id=env['ATJ_AWS_ACCESS_KEY_ID'],
            secret_access_key=env['ATJ_AWS_SECRET_ACCESS_KEY'],
            region=env['ATJ_AWS_REGION'],
        )
    if env.get('ATJ_AZURE_SECRET_KEY') and env.get('ATJ_AZURE_REGION'):
        provider = AzureConfig(secret_key=env['ATJ_AZURE_SECRET_KEY'], region=env['ATJ_AZURE_REGION'])
    if env.get('ATJ_DEEPL_PRO_SECRET_KEY'):
        provider = DeepLConfig(secret_key=env['ATJ_DEEPL_PRO_SECRET_KEY'], plan='pro')
    if env.get('ATJ_DEEPL_FREE_SECRET_KEY'):
        provider = DeepLConfig(secret_key=env['ATJ_DEEPL_FREE_SECRET_KEY'], plan='free')
    if env.get('ATJ_OPEN_AI_SECRET_KEY'):
        provider = _openai_config(env)
    return provider


def load_configuration(environ: Optional[Mapping[str, str]] = None, **overrides) -> Configuration:
    """
    Build a Configuration from the environment plus explicit overrides.

    Args:
        environ: Variables to read (default: os.environ after loading .env)
        **overrides: Configuration fields that win over the environment;
            None values are ignored

    Returns:
        Configuration (not yet validated)
    """
    if environ is None:
        if load_dotenv(find_dotenv(usecwd=True)):
            logger.debug("Loaded environment variables from .env")
        environ = os.environ

    config = Configuration(provider=provider_from_environment(environ))

    if environ.get('ATJ_START_DELIMITER'):
        config.start_delimiter = environ['ATJ_START_DELIMITER']
    if environ.get('ATJ_END_DELIMITER'):
        config.end_delimiter = environ['ATJ_END_DELIMITER']
    if environ.get('ATJ_MODE'):
        config.mode = environ['ATJ_MODE']
    if environ.get('ATJ_SOURCE_LOCALE'):
        config.source_locale = environ['ATJ_SOURCE_LOCALE']
    if environ.get('ATJ_KEEP_TRANSLATIONS'):
        config.keep_translations = environ['ATJ_KEEP_TRANSLATIONS']
    if environ.get('ATJ_KEEP_EXTRA_TRANSLATIONS'):
        config.keep_extra_translations = environ['ATJ_KEEP_EXTRA_TRANSLATIONS']
    if environ.get('ATJ_IGNORE_PREFIX'):
        config.ignore_prefix = environ['ATJ_IGNORE_PREFIX']
    if environ.get('ATJ_FORMAT'):
        config.format = environ['ATJ_FORMAT']
    if environ.get('ATJ_LOG_LEVEL'):
        config.log_level = environ['ATJ_LOG_LEVEL'].strip().lower()

    for name, value in overrides.items():
        if not hasattr(config, name):
            raise ConfigurationError(f"Unknown configuration option: {name}", code='INVALID_OPTION')
        if value is not None:
            setattr(config, name, value)

    return config
