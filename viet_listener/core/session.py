"""Session object owning the lexicon and oracle, and the high-level operations.

WHY: The lexicon learns compounds at runtime and the oracle caches every
translation. Keeping that state in one explicit object (rather than module
globals) lets the server share it across requests, lets the CLI scope it
to one run, and lets tests build isolated instances and inspect the cache.

HOW: SegmentationSession wraps a Lexicon and an optional TranslationOracle.
It is an async context manager that opens/closes the oracle's HTTP client.
Its methods implement the user-facing operations: optimal and greedy
segmentation, the sentence translate operation, suggestion ranking, and
status/export helpers.

RULES:
- No oracle → lexicon-only mode: unresolved spans become identity fallbacks
- segment(): EmptyInputError before any work; OracleUnavailableError
  propagates unless degrade_on_failure=True, which logs and re-runs
  lexicon-only
- translate_sentence() and suggest() require an oracle
  (OracleNotConfiguredError otherwise)
- suggest() runs back-translations concurrently; the oracle's semaphore
  bounds how many HTTP calls are in flight
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from pathlib import Path

from viet_listener.config import DICTIONARY_PATH, DIRECTIONS, SOURCE_LANGUAGE, TARGET_LANGUAGE
from viet_listener.core.greedy import greedy_segment
from viet_listener.core.lexicon import Lexicon, load_lexicon
from viet_listener.core.models import Segmentation, Suggestion, SuggestionWord, TranslationResult
from viet_listener.core.normalizer import require_syllables
from viet_listener.core.optimizer import segment_optimal
from viet_listener.errors import EmptyInputError, OracleNotConfiguredError, OracleUnavailableError
from viet_listener.oracle import TranslationOracle, create_oracle

logger = logging.getLogger(__name__)

SUGGESTION_TEMPLATES = (
    "{text}",
    "I want to say: {text}",
    "Reply: {text}",
)
MAX_SUGGESTIONS = 3


class SegmentationSession:
    """Shared lexicon + oracle state and the operations built on them.

    RULES:
    - Use as: async with SegmentationSession(lexicon, oracle) as session: ...
      (entering is only required when an oracle is set)
    """

    def __init__(
        self,
        lexicon: Lexicon | None = None,
        oracle: TranslationOracle | None = None,
    ) -> None:
        self.lexicon = lexicon if lexicon is not None else Lexicon()
        self.oracle = oracle

    async def __aenter__(self) -> SegmentationSession:
        if self.oracle is not None:
            await self.oracle.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self.oracle is not None:
            await self.oracle.__aexit__(exc_type, exc_val, exc_tb)

    # ------------------------------------------------------------------
    # Segmentation
    # ------------------------------------------------------------------

    async def segment(self, text: str, degrade_on_failure: bool = False) -> Segmentation:
        """Optimal segmentation of Vietnamese text with translations.

        Raises:
            EmptyInputError: If the text has no syllables.
            OracleUnavailableError: If the oracle fails and
                degrade_on_failure is False.
        """
        try:
            return await segment_optimal(
                text, self.lexicon, self.oracle, SOURCE_LANGUAGE, TARGET_LANGUAGE
            )
        except OracleUnavailableError as exc:
            if not degrade_on_failure:
                raise
            logger.warning("Oracle unavailable (%s), falling back to lexicon-only", exc)
            return await segment_optimal(
                text, self.lexicon, None, SOURCE_LANGUAGE, TARGET_LANGUAGE
            )

    def segment_greedy(self, text: str) -> list[str]:
        """Dictionary-only longest-match segmentation."""
        return greedy_segment(require_syllables(text), self.lexicon)

    # ------------------------------------------------------------------
    # Translate operation
    # ------------------------------------------------------------------

    def _require_oracle(self) -> TranslationOracle:
        if self.oracle is None:
            raise OracleNotConfiguredError(
                "No translation API key set. "
                "Add GOOGLE_TRANSLATE_API_KEY or GEMINI_API_KEY to .env."
            )
        return self.oracle

    async def translate_sentence(
        self,
        text: str,
        direction: str = "vi-to-en",
    ) -> TranslationResult:
        """Translate a whole sentence and, for vi-to-en, break it into words.

        RULES:
        - direction is "vi-to-en" or "en-to-vi" (ValueError otherwise)
        - en-to-vi returns an empty word list
        """
        if direction not in DIRECTIONS:
            raise ValueError(
                "Unknown direction '{}'. Available: {}".format(
                    direction, ", ".join(sorted(DIRECTIONS))
                )
            )
        require_syllables(text)
        oracle = self._require_oracle()
        source, target = DIRECTIONS[direction]

        [sentence] = await oracle.translate([text], source, target)

        words = []
        if direction == "vi-to-en":
            words = (await self.segment(text)).spans

        return TranslationResult(original=text, translation=sentence, words=words)

    # ------------------------------------------------------------------
    # Suggestion ranking
    # ------------------------------------------------------------------

    async def suggest(
        self,
        english_text: str,
        known_words: Mapping[str, int] | None = None,
    ) -> list[Suggestion]:
        """Rank Vietnamese phrasings of an English reply by familiar vocabulary.

        WHY: A learner replying in Vietnamese should prefer the phrasing
        that uses the most words they have already heard.

        HOW: Translate the text and two framing variants en→vi, keep the
        unique results, greedy-segment each, mark words found in
        known_words (frequency > 0), back-translate each phrasing vi→en
        concurrently, and sort by known-word ratio.

        RULES:
        - At most 3 suggestions, first-seen order before sorting
        - Sorting is stable, descending by known_ratio
        - known_words keys are matched case-insensitively
        """
        if not english_text or not english_text.strip():
            raise EmptyInputError("No text provided")
        oracle = self._require_oracle()

        known = {word.lower(): freq for word, freq in (known_words or {}).items()}
        variations = [t.format(text=english_text) for t in SUGGESTION_TEMPLATES]
        translations = await oracle.translate(variations, TARGET_LANGUAGE, SOURCE_LANGUAGE)
        unique = list(dict.fromkeys(t for t in translations if t.strip()))[:MAX_SUGGESTIONS]

        async def _build(vietnamese: str) -> Suggestion:
            words = greedy_segment(vietnamese, self.lexicon)
            details = []
            for word in words:
                frequency = known.get(word.lower(), 0)
                details.append(SuggestionWord(word=word, known=frequency > 0, frequency=frequency))
            known_count = sum(1 for d in details if d.known)

            [back_translation] = await oracle.translate(
                [vietnamese], SOURCE_LANGUAGE, TARGET_LANGUAGE
            )
            return Suggestion(
                vietnamese=vietnamese,
                english=back_translation,
                words=details,
                known_count=known_count,
                known_ratio=known_count / len(words) if words else 0.0,
            )

        suggestions = list(await asyncio.gather(*(_build(vi) for vi in unique)))
        suggestions.sort(key=lambda s: s.known_ratio, reverse=True)
        return suggestions

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def status(self) -> dict:
        """Summarize session state for the status endpoint and CLI."""
        return {
            "has_api_key": self.oracle is not None,
            "backend": self.oracle.name if self.oracle is not None else "dictionary only",
            "dictionary_size": len(self.lexicon),
            "learned_count": self.lexicon.learned_count,
            "cache_size": len(self.oracle.cache) if self.oracle is not None else 0,
        }


def create_session(
    dictionary_path: str | Path | None = None,
    use_oracle: bool = True,
) -> SegmentationSession:
    """Build a session from configuration.

    Args:
        dictionary_path: Lexicon JSON file; defaults to DICTIONARY_PATH.
            A missing file yields an empty lexicon.
        use_oracle: False forces lexicon-only mode even when a key is set.
    """
    lexicon = load_lexicon(dictionary_path or DICTIONARY_PATH)
    oracle = create_oracle() if use_oracle else None
    if oracle is None:
        logger.info("No translation backend configured, using dictionary only")
    else:
        logger.info("Translation backend: %s", oracle.name)
    return SegmentationSession(lexicon=lexicon, oracle=oracle)
