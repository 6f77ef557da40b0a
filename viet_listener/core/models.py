"""Dataclasses for spans, segmentations, oracle results, and vocabulary.

WHY: The segmenter produces many overlapping candidate spans per input and
then picks a partition of them. Downstream consumers (API, CLI, frequency
counting) need a well-typed, validated result rather than loose dicts.

HOW: Span is one candidate grouping of 1–4 syllables with its translation,
origin, and score. Segmentation is the chosen partition and validates the
exact-cover invariant on construction. The remaining dataclasses carry the
results of the translate and suggest operations and of vocabulary counting.

RULES:
- Span.length is in 1..4; Span.end is exclusive
- A Segmentation's spans must exactly partition [0, len(syllables))
- SpanOrigin.FALLBACK marks untranslated passthrough; never confuse it
  with LEXICON or ORACLE
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class SpanOrigin(str, enum.Enum):
    """Where a span's translation came from.

    Inherits from str so values serialize cleanly to JSON.
    """

    LEXICON = "lexicon"
    ORACLE = "oracle"
    FALLBACK = "identity-fallback"


@dataclass
class Span:
    """A candidate grouping of consecutive syllables.

    RULES:
    - start: index of the first syllable
    - length: number of syllables (1..4)
    - text: the syllables joined by single spaces, original casing
    - translation: lexicon entry, oracle output, or the text itself (fallback)
    - score: confidence assigned by the scorer (0 until scored)
    """

    start: int
    length: int
    text: str
    translation: str
    origin: SpanOrigin
    score: int = 0

    @property
    def end(self) -> int:
        return self.start + self.length

    @property
    def from_lexicon(self) -> bool:
        return self.origin is SpanOrigin.LEXICON


@dataclass
class Segmentation:
    """An ordered partition of a syllable sequence into spans.

    WHY: The exact-cover property is the only valid output shape. Checking
    it at construction means no caller can ever observe a gapped or
    overlapping result.

    HOW: __post_init__ walks the spans and verifies each starts where the
    previous one ended, the last ends at len(syllables), and each span's
    text matches the syllables it claims.

    RULES:
    - Raises ValueError on any gap, overlap, or text mismatch
    - An empty syllable sequence has an empty span list
    """

    syllables: tuple[str, ...]
    spans: list[Span] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.syllables = tuple(self.syllables)
        position = 0
        for span in self.spans:
            if span.start != position or span.length < 1:
                raise ValueError(
                    f"Span ({span.start}, {span.length}) does not continue at position {position}"
                )
            expected = " ".join(self.syllables[span.start:span.end])
            if span.end > len(self.syllables) or span.text != expected:
                raise ValueError(
                    f"Span ({span.start}, {span.length}) text {span.text!r} "
                    f"does not match syllables {expected!r}"
                )
            position = span.end
        if position != len(self.syllables):
            raise ValueError(
                f"Spans cover {position} of {len(self.syllables)} syllables"
            )

    @property
    def total_score(self) -> int:
        return sum(span.score for span in self.spans)

    def words(self) -> list[dict[str, str]]:
        """Return the ordered ``{word, translation, origin}`` output list."""
        return [
            {
                "word": span.text,
                "translation": span.translation,
                "origin": span.origin.value,
            }
            for span in self.spans
        ]


@dataclass
class OracleResult:
    """One translated item returned by the oracle client."""

    text: str
    is_fallback: bool = False


@dataclass
class TranslationResult:
    """Result of the translate operation: whole sentence plus word breakdown."""

    original: str
    translation: str
    words: list[Span] = field(default_factory=list)


@dataclass
class SuggestionWord:
    word: str
    known: bool
    frequency: int


@dataclass
class Suggestion:
    """One candidate Vietnamese phrasing for an English reply.

    RULES:
    - known_ratio is known_count / len(words), 0.0 when there are no words
    """

    vietnamese: str
    english: str
    words: list[SuggestionWord]
    known_count: int
    known_ratio: float


@dataclass
class VocabularyEntry:
    """Per-run count for one word, with its lexicon translation ("" if none)."""

    word: str
    count: int
    translation: str = ""


@dataclass
class FrequencyEntry:
    """One row of the persisted cumulative frequency table."""

    word: str
    count: int
