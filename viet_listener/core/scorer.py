"""Candidate span generation, resolution, and compound-detection scoring.

WHY: The optimizer needs a score for every possible grouping of 1–4
syllables. The score encodes how much we believe the grouping is a real
word: dictionary knowledge first, then oracle evidence of a compound,
then coincidence.

HOW: generate_candidates() builds a table of every (start, length) span,
resolving lexicon hits immediately and queueing the rest for the oracle.
resolve_unresolved() attaches oracle results (or identity fallbacks).
score_spans() then compares each multi-syllable oracle translation with
the naive concatenation of its single-syllable translations: a short
translation that differs from the concatenation in both word orders
means the syllables form a compound.

RULES:
- Lexicon span: score = length × 10
- Detected compound: score = length × 8, and the phrase is learned into
  the lexicon (in memory)
- Oracle span that is not a compound: score = length × 1
- Identity-fallback multi-syllable span: score = 0, never learned (an
  untranslated grouping carries no evidence and never beats its singles)
- Single syllable not in the lexicon: score = 1
- The concatenation check is exact string equality after lowercasing;
  it is not semantic ("child" + "this" vs "this child" is NOT a compound)
"""

from __future__ import annotations

from collections.abc import Sequence

from viet_listener.core.lexicon import MAX_SPAN, Lexicon
from viet_listener.core.models import OracleResult, Span, SpanOrigin
from viet_listener.core.normalizer import join_syllables

LEXICON_WEIGHT = 10
COMPOUND_WEIGHT = 8
NON_COMPOUND_WEIGHT = 1
SINGLE_FLOOR = 1
FALLBACK_WEIGHT = 0
MAX_COMPOUND_WORDS = 3

SpanTable = list[dict[int, Span]]
"""table[start][length] → Span."""

Candidate = tuple[int, int, str]
"""(start, length, phrase) of a span still waiting for a translation."""


def generate_candidates(
    syllables: Sequence[str],
    lexicon: Lexicon,
) -> tuple[SpanTable, list[Candidate]]:
    """Build every candidate span and resolve those the lexicon knows.

    Returns:
        The span table (lexicon spans only) and the ordered list of
        candidates to send to the oracle.
    """
    n = len(syllables)
    table: SpanTable = [{} for _ in range(n)]
    unresolved: list[Candidate] = []

    for i in range(n):
        for length in range(1, min(MAX_SPAN, n - i) + 1):
            phrase = join_syllables(syllables[i:i + length])
            entry = lexicon.lookup(phrase)
            if entry is not None:
                table[i][length] = Span(
                    start=i,
                    length=length,
                    text=phrase,
                    translation=entry,
                    origin=SpanOrigin.LEXICON,
                    score=length * LEXICON_WEIGHT,
                )
            else:
                unresolved.append((i, length, phrase))

    return table, unresolved


def resolve_unresolved(
    table: SpanTable,
    unresolved: Sequence[Candidate],
    results: Sequence[OracleResult] | None,
) -> None:
    """Fill the table with oracle results, or identity fallbacks without them.

    Args:
        results: One OracleResult per unresolved candidate, in order, or
            None when no oracle is available.
    """
    if results is not None and len(results) != len(unresolved):
        raise ValueError(
            f"Expected {len(unresolved)} oracle results, got {len(results)}"
        )

    for j, (i, length, phrase) in enumerate(unresolved):
        if results is None or results[j].is_fallback:
            translation, origin = phrase, SpanOrigin.FALLBACK
        else:
            translation, origin = results[j].text, SpanOrigin.ORACLE
        table[i][length] = Span(
            start=i,
            length=length,
            text=phrase,
            translation=translation,
            origin=origin,
        )


def first_sense(translation: str) -> str:
    """Return the first comma-separated sense, trimmed and lowercased."""
    return translation.split(",")[0].strip().lower()


def is_compound(translation: str, parts: Sequence[str]) -> bool:
    """Decide whether a multi-syllable translation indicates a compound.

    Args:
        translation: The oracle's translation of the whole span.
        parts: First senses of each single syllable, in forward order.

    RULES:
    - Non-empty after trimming
    - Differs from the forward and the reversed concatenation
    - At most 3 words (a single concept, not a sentence)
    """
    compound = translation.lower().strip()
    if not compound:
        return False
    concat = " ".join(parts)
    concat_reversed = " ".join(reversed(parts))
    return (
        compound != concat
        and compound != concat_reversed
        and len(compound.split()) <= MAX_COMPOUND_WORDS
    )


def score_spans(table: SpanTable, lexicon: Lexicon) -> int:
    """Assign scores to every non-lexicon span; learn detected compounds.

    Returns:
        Number of compounds detected (and learned) in this table.
    """
    detected = 0
    for i, row in enumerate(table):
        for length in sorted(row):
            span = row[length]
            if span.origin is SpanOrigin.LEXICON:
                continue
            if length == 1:
                span.score = SINGLE_FLOOR
                continue
            if span.origin is SpanOrigin.FALLBACK:
                span.score = length * FALLBACK_WEIGHT
                continue

            parts = [first_sense(table[i + k][1].translation) for k in range(length)]
            if is_compound(span.translation, parts):
                span.score = length * COMPOUND_WEIGHT
                lexicon.learn(span.text, span.translation)
                detected += 1
            else:
                span.score = length * NON_COMPOUND_WEIGHT
    return detected
