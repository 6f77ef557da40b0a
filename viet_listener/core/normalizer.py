"""Punctuation stripping and syllable splitting.

WHY: Every segmentation path starts from the same syllable sequence.
Transcripts arrive with sentence punctuation and several quotation
variants that must not end up glued to syllables ("ai?" vs "ai").

HOW: Each mark in a fixed punctuation set is replaced by a space, runs
of whitespace collapse to one space, the result is trimmed and split.

RULES:
- Removed marks: . , ! ? ; : and straight/curly quotes, (), [], {}
- Diacritics and letter case are preserved
- Empty input yields an empty sequence; require_syllables() turns that
  into EmptyInputError for callers that must reject it
- Pure functions, no side effects
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from viet_listener.errors import EmptyInputError

PUNCTUATION = frozenset('.,!?;:"“”\'‘’()[]{}')

_PUNCTUATION_RE = re.compile("[" + re.escape("".join(sorted(PUNCTUATION))) + "]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Replace punctuation with spaces, collapse whitespace, and trim."""
    cleaned = _PUNCTUATION_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", cleaned).strip()


def split_syllables(text: str) -> list[str]:
    """Split text into its ordered syllable sequence."""
    normalized = normalize_text(text)
    if not normalized:
        return []
    return normalized.split(" ")


def require_syllables(text: str) -> list[str]:
    """Split text into syllables, rejecting input that has none.

    Raises:
        EmptyInputError: If nothing but punctuation/whitespace remains.
    """
    syllables = split_syllables(text)
    if not syllables:
        raise EmptyInputError("No text provided")
    return syllables


def join_syllables(syllables: Sequence[str]) -> str:
    """Join syllables into a phrase key (single spaces)."""
    return " ".join(syllables)
