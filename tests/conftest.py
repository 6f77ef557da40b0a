"""Shared test fixtures for the viet_listener test suite.

WHY: Most modules need a small lexicon and an oracle whose answers are
known in advance. Centralizing them keeps every test on the same data.

HOW: SAMPLE_LEXICON is a handful of real dictionary entries. FakeOracle is
a real TranslationOracle subclass whose _translate_batch() answers from a
dict, so the shared cache/batching/fallback logic in the base class is
exercised exactly as in production. make_oracle builds one.

RULES:
- No test touches the network
- FakeOracle returns None (identity fallback) for texts it does not know
- Texts listed in fail_on make their whole batch raise OracleUnavailableError
"""

from __future__ import annotations

from typing import Dict, List, Optional

import httpx
import pytest

from viet_listener.core.lexicon import Lexicon
from viet_listener.errors import MalformedOracleResponseError, OracleUnavailableError
from viet_listener.oracle.base import TranslationCache, TranslationOracle


SAMPLE_LEXICON: Dict[str, str] = {
    "cái này": "this",
    "xin chào": "hello",
    "cảm ơn": "thank you",
    "tôi": "I, me",
    "ăn": "eat",
    "cơm": "rice, meal",
    "ăn cơm": "eat a meal",
    "không": "no, not",
    "bạn": "friend, you",
}


class FakeOracle(TranslationOracle):
    """Dict-backed oracle that records every batch it is asked to translate."""

    name = "fake"

    def __init__(
        self,
        translations: Optional[Dict[str, str]] = None,
        fail_on: Optional[set] = None,
        malformed_on: Optional[set] = None,
        batch_size: int = 128,
        **kwargs,
    ) -> None:
        super().__init__(batch_size=batch_size, **kwargs)
        self.translations = dict(translations or {})
        self.fail_on = set(fail_on or ())
        self.malformed_on = set(malformed_on or ())
        self.batches: List[List[str]] = []

    async def _translate_batch(
        self,
        client: httpx.AsyncClient,
        batch: List[str],
        source: str,
        target: str,
    ) -> List[Optional[str]]:
        self.batches.append(list(batch))
        if self.fail_on.intersection(batch):
            raise OracleUnavailableError(500, "boom")
        if self.malformed_on.intersection(batch):
            raise MalformedOracleResponseError("garbage")
        return [self.translations.get(text) for text in batch]

    @property
    def requested(self) -> List[str]:
        """Every text sent to the backend, in order."""
        return [text for batch in self.batches for text in batch]


@pytest.fixture
def lexicon() -> Lexicon:
    """A fresh lexicon with the sample entries."""
    return Lexicon(SAMPLE_LEXICON)


@pytest.fixture
def make_oracle():
    """Factory for FakeOracle instances with a fresh cache."""

    def _make(translations=None, **kwargs) -> FakeOracle:
        kwargs.setdefault("cache", TranslationCache())
        return FakeOracle(translations, **kwargs)

    return _make


@pytest.fixture
def lexicon_file(tmp_path):
    """Write SAMPLE_LEXICON to a JSON file and return its path."""
    import json

    path = tmp_path / "dictionary.json"
    path.write_text(json.dumps(SAMPLE_LEXICON, ensure_ascii=False), encoding="utf-8")
    return path
