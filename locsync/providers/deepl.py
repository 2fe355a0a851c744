#!/usr/bin/env python3
"""DeepL provider (free and pro plans)."""

from ..errors import ConfigurationError, ProviderError
from .base import TranslationProvider

DEEPL_ENDPOINTS = {
    'free': "https://api-free.deepl.com",
    'pro': "https://api.deepl.com",
}

DEEPL_LANGUAGES = (
    "AR", "BG", "CS", "DA", "DE", "EL", "EN", "EN-GB", "EN-US", "ES", "ET",
    "FI", "FR", "HU", "ID", "IT", "JA", "LT", "LV", "NB", "NL", "PL", "PT",
    "PT-PT", "PT-BR", "RO", "RU", "SK", "SL", "SV", "TR", "UK", "ZH",
)


class DeepLTranslate(TranslationProvider):
    """
    DeepL REST API.

    Locales are upper-cased; the source language is sent without its region
    since DeepL only accepts plain source codes.
    """

    name = "deepl"
    supported_languages = DEEPL_LANGUAGES

    def __init__(self, secret_key: str, plan: str = 'free', **kwargs):
        if plan not in DEEPL_ENDPOINTS:
            raise ConfigurationError(
                f"Unknown DeepL plan: {plan}. Use 'free' or 'pro'",
                code='INVALID_PROVIDER',
            )
        super().__init__(**kwargs)
        self.secret_key = secret_key
        self.plan = plan
        self.endpoint = DEEPL_ENDPOINTS[plan]

    def is_valid_locale(self, locale: str) -> bool:
        return locale.upper() in self.supported_languages

    def _translate(self, text: str, source_locale: str, target_locale: str) -> str:
        data = self._request(
            'POST',
            f"{self.endpoint}/v2/translate",
            headers={'Authorization': f"DeepL-Auth-Key {self.secret_key}"},
            json={
                'text': [text],
                'source_lang': source_locale.split('-')[0].upper(),
                'target_lang': target_locale.upper(),
            },
        )
        try:
            return data['translations'][0]['text']
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(f"Unexpected DeepL API response format: {data}") from e
