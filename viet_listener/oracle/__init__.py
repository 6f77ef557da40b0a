"""Translation oracle package — async clients for external translation services.

WHY: Spans missing from the lexicon need translations from somewhere.
This package hides every backend-specific detail (request framing, batch
limits, response parsing) behind one contract: ordered texts in, ordered
translations out, a distinguishable error on failure.

HOW: base.py holds the cache and the shared batching/fallback logic;
google.py and gemini.py implement one backend each. create_oracle() picks
a backend from the configured API keys.

RULES:
- All oracle HTTP calls go through a TranslationOracle (no direct httpx
  usage elsewhere)
- No API key configured → create_oracle() returns None (lexicon-only mode)
"""

from __future__ import annotations

from viet_listener.config import BackendConfig, cache_max_entries, load_translation_backend
from viet_listener.oracle.base import TranslationCache, TranslationOracle
from viet_listener.oracle.gemini import GeminiOracle
from viet_listener.oracle.google import GoogleTranslateOracle

__all__ = [
    "GeminiOracle",
    "GoogleTranslateOracle",
    "TranslationCache",
    "TranslationOracle",
    "create_oracle",
]


def create_oracle(
    backend: BackendConfig | None = None,
    cache: TranslationCache | None = None,
) -> TranslationOracle | None:
    """Build the oracle for the configured backend, or None without a key.

    Args:
        backend: Explicit backend; defaults to load_translation_backend().
        cache: Shared cache; defaults to one bounded by
            TRANSLATION_CACHE_MAX_ENTRIES.
    """
    backend = backend or load_translation_backend()
    if backend is None:
        return None

    if cache is None:
        cache = TranslationCache(max_entries=cache_max_entries())

    if backend.name == "google":
        return GoogleTranslateOracle(api_key=backend.api_key, cache=cache)
    if backend.name == "gemini":
        return GeminiOracle(api_key=backend.api_key, cache=cache)
    raise ValueError(f"Unknown translation backend: {backend.name!r}")
