"""Dynamic-programming segmentation over scored candidate spans.

WHY: Greedy longest-match cannot weigh a weak long grouping against two
strong short ones. The optimal segmentation is the partition of the
syllable sequence whose spans have the highest total score.

HOW: best[j] is the best total for covering syllables [0, j); choice[j]
is the span that achieved it. Positions are processed in increasing
order and span lengths in increasing order; an entry is only replaced on
strict improvement. Backtracking from N through choice[] and reversing
gives the segmentation.

RULES:
- Evaluation order is fixed: ascending start, ascending length, strict ">"
  update. On equal totals the candidate evaluated first is kept, i.e. the
  one reached from the smaller start index. This order is part of the
  determinism contract; do not reorder the loops.
- Every syllable is covered exactly once (Segmentation validates this)
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from viet_listener.core.lexicon import MAX_SPAN, Lexicon
from viet_listener.core.models import Segmentation, Span
from viet_listener.core.normalizer import require_syllables
from viet_listener.core.scorer import (
    SpanTable,
    generate_candidates,
    resolve_unresolved,
    score_spans,
)
from viet_listener.oracle.base import TranslationOracle

logger = logging.getLogger(__name__)


def solve(table: SpanTable, n: int) -> list[Span]:
    """Return the highest-scoring exact cover of [0, n) as ordered spans.

    Args:
        table: table[start][length] → scored Span, for every start < n.
        n: Number of syllables.

    Raises:
        ValueError: If position n is unreachable (missing single-syllable spans).
    """
    best = [-math.inf] * (n + 1)
    choice: list[Span | None] = [None] * (n + 1)
    best[0] = 0

    for i in range(n):
        if best[i] == -math.inf:
            continue
        for length in range(1, min(MAX_SPAN, n - i) + 1):
            span = table[i].get(length)
            if span is None:
                continue
            total = best[i] + span.score
            if total > best[i + length]:
                best[i + length] = total
                choice[i + length] = span

    if n and choice[n] is None:
        raise ValueError(f"No segmentation covers all {n} syllables")

    spans: list[Span] = []
    pos = n
    while pos > 0:
        span = choice[pos]
        if span is None:
            raise ValueError(f"Span table has no span ending at syllable {pos}")
        spans.append(span)
        pos = span.start
    spans.reverse()
    return spans


async def build_span_table(
    syllables: Sequence[str],
    lexicon: Lexicon,
    oracle: TranslationOracle | None,
    source: str = "vi",
    target: str = "en",
) -> SpanTable:
    """Generate, resolve, and score every candidate span for the syllables.

    RULES:
    - Unresolved spans go to the oracle in ONE translate call
    - Without an oracle, unresolved spans become identity fallbacks
    - OracleUnavailableError propagates; nothing is scored in that case
    """
    table, unresolved = generate_candidates(syllables, lexicon)

    results = None
    if unresolved and oracle is not None:
        results = await oracle.translate_detailed(
            [phrase for _, _, phrase in unresolved], source, target
        )
    resolve_unresolved(table, unresolved, results)

    detected = score_spans(table, lexicon)
    logger.debug(
        "Scored %d syllables: %d lexicon-unresolved spans, %d compound(s) detected",
        len(syllables), len(unresolved), detected,
    )
    return table


async def segment_optimal(
    text: str,
    lexicon: Lexicon,
    oracle: TranslationOracle | None = None,
    source: str = "vi",
    target: str = "en",
) -> Segmentation:
    """Segment text into the highest-scoring sequence of words.

    Raises:
        EmptyInputError: If the text has no syllables.
        OracleUnavailableError: If an oracle batch fails.
    """
    syllables = require_syllables(text)
    table = await build_span_table(syllables, lexicon, oracle, source, target)
    return Segmentation(syllables=tuple(syllables), spans=solve(table, len(syllables)))
