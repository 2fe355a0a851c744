#!/usr/bin/env python3
"""Azure AI Translator (v3) provider."""

import uuid

from ..errors import ProviderError
from .base import TranslationProvider

AZURE_ENDPOINT = "https://api.cognitive.microsofttranslator.com"

AZURE_LANGUAGES = (
    "af", "sq", "am", "ar", "hy", "as", "az", "bn", "ba", "bs", "bg", "yue",
    "ca", "lzh", "zh-Hans", "zh-Hant", "hr", "cs", "da", "prs", "dv", "nl",
    "en", "et", "fj", "fil", "fi", "fr", "fr-ca", "ka", "de", "el", "gu", "ht",
    "he", "hi", "mww", "hu", "is", "id", "iu", "ga", "it", "ja", "kn", "kk",
    "km", "tlh-Latn", "tlh-Piqd", "ko", "ku", "kmr", "ky", "lo", "lv", "lt",
    "mk", "mg", "ms", "ml", "mt", "mi", "mr", "mn-Cyrl", "mn-Mong", "my", "ne",
    "nb", "or", "ps", "fa", "pl", "pt", "pt-pt", "pa", "otq", "ro", "ru", "sm",
    "sr-Cyrl", "sr-Latn", "sk", "sl", "es", "sw", "sv", "ty", "ta", "tt", "te",
    "th", "bo", "ti", "to", "tr", "tk", "uk", "ur", "ug", "uz", "vi", "cy",
    "yua",
)


class AzureTranslate(TranslationProvider):
    """Azure Translator with a subscription key and region."""

    name = "azure"
    supported_languages = AZURE_LANGUAGES

    def __init__(self, secret_key: str, region: str, endpoint: str = AZURE_ENDPOINT, **kwargs):
        super().__init__(**kwargs)
        self.secret_key = secret_key
        self.region = region
        self.endpoint = endpoint.rstrip('/')
        self._supported = {code.lower() for code in self.supported_languages}

    def is_valid_locale(self, locale: str) -> bool:
        return locale.lower() in self._supported

    def _translate(self, text: str, source_locale: str, target_locale: str) -> str:
        data = self._request(
            'POST',
            f"{self.endpoint}/translate",
            params={'api-version': '3.0', 'from': source_locale, 'to': target_locale},
            headers={
                'Ocp-Apim-Subscription-Key': self.secret_key,
                'Ocp-Apim-Subscription-Region': self.region,
                'X-ClientTraceId': str(uuid.uuid4()),
            },
            json=[{'text': text}],
        )
        try:
            return data[0]['translations'][0]['text']
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(f"Unexpected Azure API response format: {data}") from e
