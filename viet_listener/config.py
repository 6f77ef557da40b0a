"""Configuration constants, oracle backend selection, and .env loading.

WHY: Centralizes all configurable values — API endpoints, batch sizes,
file locations, concurrency limits — so they are easy to find and override
without touching the segmentation logic.

HOW: python-dotenv loads the .env file on import. Constants are module-level
values read from the environment with defaults. load_translation_backend()
decides which oracle backend to use from the API keys that are present.

RULES:
- API keys are loaded from .env via python-dotenv, never hardcoded
- A Google Translate key wins over a Gemini key when both are set
- No key at all is a valid configuration (lexicon-only mode)
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load .env from the project root (where the server/CLI is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Languages
# ---------------------------------------------------------------------------

SOURCE_LANGUAGE = "vi"
TARGET_LANGUAGE = "en"

LANGUAGE_NAMES: dict[str, str] = {
    "vi": "Vietnamese",
    "en": "English",
}
"""Display names used in prompt-style oracle requests."""

DIRECTIONS: dict[str, tuple[str, str]] = {
    "vi-to-en": ("vi", "en"),
    "en-to-vi": ("en", "vi"),
}
"""Translate-operation directions → (source, target) language codes."""

# ---------------------------------------------------------------------------
# Translation oracle backends
# ---------------------------------------------------------------------------

GOOGLE_TRANSLATE_URL = os.getenv(
    "GOOGLE_TRANSLATE_URL",
    "https://translation.googleapis.com/language/translate/v2",
)
GOOGLE_BATCH_SIZE = int(os.getenv("GOOGLE_BATCH_SIZE", "128"))

GEMINI_BASE_URL = os.getenv(
    "GEMINI_BASE_URL",
    "https://generativelanguage.googleapis.com/v1beta",
)
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_BATCH_SIZE = int(os.getenv("GEMINI_BATCH_SIZE", "20"))

ORACLE_MAX_CONCURRENCY = int(os.getenv("ORACLE_MAX_CONCURRENCY", "3"))
"""Maximum number of oracle HTTP calls in flight at once."""

TRANSLATION_CACHE_MAX_ENTRIES = int(os.getenv("TRANSLATION_CACHE_MAX_ENTRIES", "0"))
"""0 keeps the cache unbounded; any positive value enables LRU eviction."""

# ---------------------------------------------------------------------------
# Files and server
# ---------------------------------------------------------------------------

DICTIONARY_PATH = os.getenv("DICTIONARY_PATH", "dictionary.json")
WORD_FREQUENCY_PATH = os.getenv("WORD_FREQUENCY_PATH", "data/word-frequency.json")
PROGRESS_PATH = os.getenv("PROGRESS_PATH", "practice-progress.json")

SERVER_HOST = os.getenv("SERVER_HOST", "0.0.0.0")
SERVER_PORT = int(os.getenv("SERVER_PORT", "8765"))

STUDY_SHEET_LIMIT = 30


@dataclass
class BackendConfig:
    """Selected oracle backend and its API key."""

    name: str  # "google" or "gemini"
    api_key: str


def load_translation_backend() -> BackendConfig | None:
    """Pick the translation oracle backend from the environment.

    WHY: The original deployment accepted either a Google Cloud Translation
    key or a Gemini key. The bulk Google backend is preferred because it is
    cheaper per item and returns structured results.

    HOW: Reads GOOGLE_TRANSLATE_API_KEY, then GEMINI_API_KEY, from
    os.environ (populated by python-dotenv).

    RULES:
    - Returns None when neither key is set (lexicon-only mode)
    - Blank keys are treated as missing
    """
    google_key = os.getenv("GOOGLE_TRANSLATE_API_KEY", "").strip()
    if google_key:
        return BackendConfig(name="google", api_key=google_key)

    gemini_key = os.getenv("GEMINI_API_KEY", "").strip()
    if gemini_key:
        return BackendConfig(name="gemini", api_key=gemini_key)

    return None


def cache_max_entries() -> int | None:
    """Return the configured cache bound, or None for an unbounded cache."""
    return TRANSLATION_CACHE_MAX_ENTRIES if TRANSLATION_CACHE_MAX_ENTRIES > 0 else None
