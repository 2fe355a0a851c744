#!/usr/bin/env python3
"""
Translation providers.

Supported vendors:
- Google Translate v2
- Amazon Translate (boto3)
- Azure Translator v3
- DeepL (free and pro)
- OpenAI-compatible chat completions
"""

from typing import Optional

from ..errors import ConfigurationError
from ..placeholders import PlaceholderProtector
from .aws import AwsTranslate
from .azure import AzureTranslate
from .base import TranslationProvider
from .deepl import DeepLTranslate
from .google import GoogleTranslate
from .openai import OpenAITranslate


def create_provider(provider_config, protector: Optional[PlaceholderProtector] = None, **kwargs) -> TranslationProvider:
    """
    Build the provider described by a configuration record.

    Args:
        provider_config: GoogleConfig, AwsConfig, AzureConfig, DeepLConfig or OpenAIConfig
        protector: Placeholder protector to use around every call
        **kwargs: Passed to the provider (client, max_retries, retry_delay...)

    Raises:
        ConfigurationError: Unknown provider kind
    """
    kind = getattr(provider_config, 'kind', None)
    if kind == 'google':
        return GoogleTranslate(provider_config.api_key, protector=protector, **kwargs)
    if kind == 'aws':
        return AwsTranslate(
            provider_config.access_key_id,
            provider_config.secret_access_key,
            provider_config.region,
            protector=protector,
            **kwargs,
        )
    if kind == 'azure':
        return AzureTranslate(
            provider_config.secret_key, provider_config.region, protector=protector, **kwargs
        )
    if kind == 'deepl':
        return DeepLTranslate(
            provider_config.secret_key, provider_config.plan, protector=protector, **kwargs
        )
    if kind == 'openai':
        return OpenAITranslate(
            provider_config.api_key,
            base_url=provider_config.base_url,
            model=provider_config.model,
            max_tokens=provider_config.max_tokens,
            temperature=provider_config.temperature,
            top_p=provider_config.top_p,
            n=provider_config.n,
            frequency_penalty=provider_config.frequency_penalty,
            presence_penalty=provider_config.presence_penalty,
            protector=protector,
            **kwargs,
        )
    raise ConfigurationError(
        f"Unknown translation provider: {kind}",
        code='INVALID_PROVIDER',
        hint="Set one of ATJ_GOOGLE_API_KEY, ATJ_AWS_ACCESS_KEY_ID, ATJ_AZURE_SECRET_KEY, "
             "ATJ_DEEPL_FREE_SECRET_KEY, ATJ_DEEPL_PRO_SECRET_KEY or ATJ_OPEN_AI_SECRET_KEY",
    )


__all__ = [
    'TranslationProvider',
    'GoogleTranslate',
    'AwsTranslate',
    'AzureTranslate',
    'DeepLTranslate',
    'OpenAITranslate',
    'create_provider',
]
