#!/usr/bin/env python3
"""
Base class for translation providers.

A provider wraps one vendor API. translate_text() masks placeholders, calls
the vendor under the retry policy and restores placeholders in the result.
Subclasses implement _translate() and may override initialize() and
is_valid_locale().
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from ..errors import ProviderError, RateLimitError
from ..logger import get_logger
from ..placeholders import PlaceholderProtector

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 60.0


def get_httpx_timeout(timeout: float) -> httpx.Timeout:
    """Connect quickly, allow slow reads."""
    return httpx.Timeout(connect=10.0, write=30.0, read=float(timeout), pool=10.0)


def error_detail(response: httpx.Response) -> str:
    """Best-effort error text from a vendor error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:500] or "No details"

    if isinstance(body, dict):
        detail = body.get('error', body.get('message', body))
        if isinstance(detail, dict):
            return str(detail.get('message', detail))
        return str(detail)
    return str(body)[:500]


class TranslationProvider(ABC):
    """
    Abstract translation backend.

    Attributes:
        protector: Placeholder protector applied around every call
        max_retries: How often a rate-limited call is retried
        retry_delay: Seconds to wait between rate-limit retries
    """

    name = "provider"
    supported_languages: tuple[str, ...] = ()

    def __init__(
        self,
        protector: Optional[PlaceholderProtector] = None,
        client: Optional[httpx.Client] = None,
        max_retries: int = 5,
        retry_delay: float = 10.0,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.protector = protector or PlaceholderProtector()
        self.client = client or httpx.Client(timeout=get_httpx_timeout(timeout))
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self) -> None:
        self.client.close()

    def initialize(self) -> None:
        """Optional capability probe, run once before the first locale."""

    def is_valid_locale(self, locale: str) -> bool:
        return locale in self.supported_languages

    def translate_text(self, text: str, source_locale: str, target_locale: str) -> str:
        """
        Translate one string, keeping its placeholders intact.

        Raises:
            ProviderError: Vendor failure or rate limit retries exhausted
        """
        masked, spans = self.protector.protect(text)
        translated = self._call_with_retries(masked, source_locale, target_locale)
        return self.protector.restore(translated, spans)

    def _call_with_retries(self, text: str, source_locale: str, target_locale: str) -> str:
        attempt = 0
        while True:
            try:
                return self._translate(text, source_locale, target_locale)
            except RateLimitError as e:
                if attempt >= self.max_retries:
                    raise ProviderError(
                        f"{self.name}: rate limit exceeded after {self.max_retries} retries",
                        code='RATE_LIMITED',
                    ) from e
                attempt += 1
                logger.info(
                    f"Rate limit exceeded. Retrying in {self.retry_delay:g} seconds... "
                    f"(Attempt {attempt}/{self.max_retries})"
                )
                time.sleep(self.retry_delay)

    @abstractmethod
    def _translate(self, text: str, source_locale: str, target_locale: str) -> str:
        """Single vendor call on masked text."""
        pass

    def _request(self, method: str, url: str, **kwargs) -> Any:
        """
        Send a request and decode its JSON body.

        Raises:
            RateLimitError: HTTP 429
            ProviderError: Transport failure or any other non-2xx status
        """
        try:
            response = self.client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise ProviderError(f"{self.name} API request timeout", code='TIMEOUT') from e
        except httpx.HTTPError as e:
            raise ProviderError(f"{self.name} API call failed: {e}", code='NETWORK_ERROR') from e

        if response.status_code == 429:
            raise RateLimitError(f"{self.name} API rate limit exceeded", code='RATE_LIMITED')
        if response.is_error:
            raise ProviderError(
                f"{self.name} API error ({response.status_code}): {error_detail(response)}",
                code='API_ERROR',
                details={'status': response.status_code},
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(f"{self.name} API returned invalid JSON", code='API_ERROR') from e
