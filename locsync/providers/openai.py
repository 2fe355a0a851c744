#!/usr/bin/env python3
"""OpenAI-compatible chat completions provider."""

from typing import Optional

from ..errors import ProviderError
from ..logger import get_logger
from .base import TranslationProvider
from .tokens import TokenEstimator

logger = get_logger(__name__)

OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o-mini"

OPENAI_LANGUAGES = {
    "af": "Afrikaans", "sq": "Albanian", "am": "Amharic", "ar": "Arabic",
    "hy": "Armenian", "az": "Azerbaijani", "eu": "Basque", "be": "Belarusian",
    "bn": "Bengali", "bs": "Bosnian", "bg": "Bulgarian", "ca": "Catalan",
    "ceb": "Cebuano", "zh-CN": "Chinese (Simplified)",
    "zh-TW": "Chinese (Traditional)", "co": "Corsican", "hr": "Croatian",
    "cs": "Czech", "da": "Danish", "nl": "Dutch", "en": "English",
    "eo": "Esperanto", "et": "Estonian", "fi": "Finnish", "fr": "French",
    "fy": "Frisian", "gl": "Galician", "ka": "Georgian", "de": "German",
    "el": "Greek", "gu": "Gujarati", "ht": "Haitian Creole", "ha": "Hausa",
    "haw": "Hawaiian", "he": "Hebrew", "hi": "Hindi", "hmn": "Hmong",
    "hu": "Hungarian", "is": "Icelandic", "ig": "Igbo", "id": "Indonesian",
    "ga": "Irish", "it": "Italian", "ja": "Japanese", "jv": "Javanese",
    "kn": "Kannada", "kk": "Kazakh", "km": "Khmer", "ko": "Korean",
    "ku": "Kurdish", "ky": "Kyrgyz", "lo": "Lao", "la": "Latin",
    "lv": "Latvian", "lt": "Lithuanian", "lb": "Luxembourgish",
    "mk": "Macedonian", "mg": "Malagasy", "ms": "Malay", "ml": "Malayalam",
    "mt": "Maltese", "mi": "Maori", "mr": "Marathi", "mn": "Mongolian",
    "my": "Myanmar (Burmese)", "ne": "Nepali", "no": "Norwegian",
    "ny": "Nyanja (Chichewa)", "or": "Odia (Oriya)", "ps": "Pashto",
    "fa": "Persian", "pl": "Polish", "pt": "Portuguese", "pa": "Punjabi",
    "ro": "Romanian", "ru": "Russian", "sm": "Samoan", "gd": "Scots Gaelic",
    "sr": "Serbian", "st": "Sesotho", "sn": "Shona", "sd": "Sindhi",
    "si": "Sinhala (Sinhalese)", "sk": "Slovak", "sl": "Slovenian",
    "so": "Somali", "es": "Spanish", "su": "Sundanese", "sw": "Swahili",
    "sv": "Swedish", "tl": "Tagalog (Filipino)", "tg": "Tajik", "ta": "Tamil",
    "tt": "Tatar", "te": "Telugu", "th": "Thai", "tr": "Turkish",
    "tk": "Turkmen", "uk": "Ukrainian", "ur": "Urdu", "ug": "Uyghur",
    "uz": "Uzbek", "vi": "Vietnamese", "cy": "Welsh", "xh": "Xhosa",
    "yi": "Yiddish", "yo": "Yoruba", "zu": "Zulu",
}


class OpenAITranslate(TranslationProvider):
    """
    Chat completions against OpenAI or any compatible endpoint.

    The model is asked to translate a single string. Positional markers
    (%1, %2...) must survive untouched, which the system prompt spells out.
    """

    name = "openai"
    supported_languages = tuple(OPENAI_LANGUAGES)

    def __init__(
        self,
        api_key: str,
        base_url: str = OPENAI_BASE_URL,
        model: str = DEFAULT_MODEL,
        max_tokens: Optional[int] = None,
        temperature: float = 0.3,
        top_p: float = 1.0,
        n: int = 1,
        frequency_penalty: float = 0.0,
        presence_penalty: float = 0.0,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.base_url = (base_url or OPENAI_BASE_URL).rstrip('/')
        self.model = model or DEFAULT_MODEL
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.top_p = top_p
        self.n = n
        self.frequency_penalty = frequency_penalty
        self.presence_penalty = presence_penalty
        self.estimator = TokenEstimator()

    def _language(self, locale: str) -> str:
        return OPENAI_LANGUAGES.get(locale, locale)

    def system_prompt(self, source_locale: str, target_locale: str) -> str:
        return (
            f"You will be provided with a sentence in {self._language(source_locale)}, "
            f"and your task is to translate it into {self._language(target_locale)}. "
            "Keep markers such as %1 or %2 exactly as they are. "
            "Reply with the translation only."
        )

    def _translate(self, text: str, source_locale: str, target_locale: str) -> str:
        body = {
            'model': self.model,
            'messages': [
                {'role': 'system', 'content': self.system_prompt(source_locale, target_locale)},
                {'role': 'user', 'content': text},
            ],
            'temperature': self.temperature,
            'max_tokens': self.estimator.max_tokens_for(text, self.max_tokens),
            'top_p': self.top_p,
            'n': self.n,
            'frequency_penalty': self.frequency_penalty,
            'presence_penalty': self.presence_penalty,
        }
        logger.debug(f"Calling OpenAI API (model: {self.model})...")
        data = self._request(
            'POST',
            f"{self.base_url}/chat/completions",
            headers={'Authorization': f"Bearer {self.api_key}"},
            json=body,
        )

        try:
            content = data['choices'][0]['message'].get('content')
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise ProviderError(f"Unexpected OpenAI API response format: {data}") from e
        if content is None:
            raise ProviderError(f"OpenAI returned no content for: {text!r}", code='EMPTY_RESPONSE')
        return content.strip('\n')
