#!/usr/bin/env python3
"""Amazon Translate provider (boto3)."""

from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import ProviderError, RateLimitError
from .base import TranslationProvider

AWS_LANGUAGES = (
    "af", "sq", "am", "ar", "hy", "az", "bn", "bs", "bg", "ca", "zh", "zh-TW",
    "hr", "cs", "da", "fa-AF", "nl", "en", "et", "fa", "tl", "fi", "fr", "fr-CA",
    "ka", "de", "el", "gu", "ht", "ha", "he", "hi", "hu", "is", "id", "ga", "it",
    "ja", "kn", "kk", "ko", "lv", "lt", "mk", "ms", "ml", "mt", "mr", "mn", "no",
    "ps", "pl", "pt", "pt-PT", "pa", "ro", "ru", "sr", "si", "sk", "sl", "so",
    "es", "es-MX", "sw", "sv", "ta", "te", "th", "tr", "uk", "ur", "uz", "vi",
    "cy",
)

THROTTLING_CODES = ('ThrottlingException', 'TooManyRequestsException', 'LimitExceededException')


class AwsTranslate(TranslationProvider):
    """
    Amazon Translate with an access key pair and region.

    Args:
        access_key_id: AWS access key id
        secret_access_key: AWS secret access key
        region: AWS region the Translate endpoint lives in
        translate_client: Prebuilt boto3 ``translate`` client (built from the keys when omitted)
    """

    name = "aws"
    supported_languages = AWS_LANGUAGES

    def __init__(
        self,
        access_key_id: str,
        secret_access_key: str,
        region: str,
        translate_client: Optional[Any] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.region = region
        self.translate_client = translate_client or boto3.client(
            'translate',
            region_name=region,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
        )
        self._supported = {code.lower() for code in self.supported_languages}

    def is_valid_locale(self, locale: str) -> bool:
        return locale.lower() in self._supported

    def _translate(self, text: str, source_locale: str, target_locale: str) -> str:
        try:
            response = self.translate_client.translate_text(
                Text=text,
                SourceLanguageCode=source_locale,
                TargetLanguageCode=target_locale,
            )
        except ClientError as e:
            error = e.response.get('Error', {})
            code = error.get('Code', '')
            if code in THROTTLING_CODES:
                raise RateLimitError(f"aws API rate limit exceeded ({code})", code='RATE_LIMITED') from e
            raise ProviderError(
                f"aws API error ({code}): {error.get('Message', e)}",
                code='API_ERROR',
                details={'aws_code': code},
            ) from e
        except BotoCoreError as e:
            raise ProviderError(f"aws API call failed: {e}", code='NETWORK_ERROR') from e

        try:
            return response['TranslatedText']
        except (KeyError, TypeError) as e:
            raise ProviderError(f"Unexpected AWS API response format: {response}") from e
