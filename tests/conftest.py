"""Shared fixtures: an offline translation provider and locale folders."""

import json

import httpx
import pytest

from locsync.errors import ProviderError
from locsync.providers.base import TranslationProvider


def _offline(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected network call to {request.url}")


class StubProvider(TranslationProvider):
    """
    Provider that never touches the network.

    Masked text (placeholders already replaced by %N markers) is looked up
    in translations; anything else becomes "<target>:<text>".
    """

    name = "stub"

    def __init__(self, translations=None, fail=(), supported=None, **kwargs):
        kwargs.setdefault('client', httpx.Client(transport=httpx.MockTransport(_offline)))
        super().__init__(**kwargs)
        self.translations = translations or {}
        self.fail = set(fail)
        self.supported = supported
        self.calls = []
        self.initialized = False

    def initialize(self) -> None:
        self.initialized = True

    def is_valid_locale(self, locale: str) -> bool:
        return self.supported is None or locale in self.supported

    def _translate(self, text, source_locale, target_locale):
        self.calls.append((text, source_locale, target_locale))
        if text in self.fail:
            raise ProviderError(f"cannot translate {text!r}")
        return self.translations.get(text, f"{target_locale}:{text}")


@pytest.fixture
def stub_provider():
    """Fixture to create a StubProvider with no canned translations."""
    provider = StubProvider()
    yield provider
    provider.close()


@pytest.fixture
def i18n_dir(tmp_path):
    """en.json source plus an existing fr.json and an empty de.json."""
    folder = tmp_path / "i18n"
    folder.mkdir()
    (folder / "en.json").write_text(json.dumps({
        "greet": "Hello {name}",
        "menu": {"home": "Home", "count": 3},
    }), encoding="utf-8")
    (folder / "fr.json").write_text(json.dumps({
        "greet": "Bonjour {name}",
        "legacy": "Ancien",
    }), encoding="utf-8")
    (folder / "de.json").write_text("", encoding="utf-8")
    return folder
