"""Longest-match segmentation against the lexicon only.

WHY: Counting vocabulary across hours of transcript must not trigger an
oracle call per syllable. A deterministic dictionary-only pass is good
enough there and costs O(N·4) lookups.

HOW: From the current position, try phrases of 4, 3, then 2 syllables;
take the first lexicon hit and jump past it. Without a multi-syllable hit,
emit the single syllable and advance by one.

RULES:
- Never calls the oracle
- Single syllables are emitted whether or not the lexicon knows them
- Output words keep the input's original casing
"""

from __future__ import annotations

from collections.abc import Sequence

from viet_listener.core.lexicon import MAX_SPAN, Lexicon
from viet_listener.core.normalizer import join_syllables, split_syllables


def greedy_segment(text: str | Sequence[str], lexicon: Lexicon) -> list[str]:
    """Segment text (or a pre-split syllable list) by longest lexicon match.

    Args:
        text: Raw text, or an already-normalized syllable sequence.
        lexicon: Dictionary to match against.

    Returns:
        Ordered list of words; joining them with spaces reproduces the
        normalized input.
    """
    syllables = split_syllables(text) if isinstance(text, str) else list(text)
    words: list[str] = []

    i = 0
    while i < len(syllables):
        matched = False
        for length in range(min(MAX_SPAN, len(syllables) - i), 1, -1):
            compound = join_syllables(syllables[i:i + length])
            if lexicon.lookup(compound) is not None:
                words.append(compound)
                i += length
                matched = True
                break

        if not matched:
            words.append(syllables[i])
            i += 1

    return words
