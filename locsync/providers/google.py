#!/usr/bin/env python3
"""Google Cloud Translation (v2 REST) provider."""

import html
from typing import Optional

from ..errors import ProviderError
from ..logger import get_logger
from .base import TranslationProvider

logger = get_logger(__name__)

GOOGLE_ENDPOINT = "https://translation.googleapis.com/language/translate/v2"


class GoogleTranslate(TranslationProvider):
    """
    Google Translate v2 with an API key.

    The supported language list is fetched once by initialize(); locale
    checks are case-insensitive.
    """

    name = "google"

    def __init__(self, api_key: str, supported_languages: Optional[list[str]] = None, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.supported = [code.lower() for code in supported_languages or []]

    def initialize(self) -> None:
        if self.supported:
            return
        data = self._request('GET', f"{GOOGLE_ENDPOINT}/languages", params={'key': self.api_key})
        languages = data.get('data', {}).get('languages', [])
        self.supported = [language['language'].lower() for language in languages]
        logger.debug(f"Google supports {len(self.supported)} languages")

    def is_valid_locale(self, locale: str) -> bool:
        return locale.lower() in self.supported

    def _translate(self, text: str, source_locale: str, target_locale: str) -> str:
        try:
            data = self._request(
                'POST',
                GOOGLE_ENDPOINT,
                params={'key': self.api_key},
                json={'q': text, 'target': target_locale, 'format': 'text'},
            )
        except ProviderError as e:
            if 'Invalid Value' in e.message:
                e.hint = f"Invalid locale {target_locale}"
            raise

        try:
            translated = data['data']['translations'][0]['translatedText']
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(f"Unexpected Google API response format: {data}") from e
        return html.unescape(translated)
