"""Pydantic request/response models for the HTTP API.

WHY: The browser practice app speaks camelCase JSON. The FastAPI endpoints
need typed schemas for request validation, response serialization, and the
automatic OpenAPI documentation at /docs.

HOW: Each endpoint has its own request and/or response model. Fields are
snake_case in Python and carry a camelCase alias on the wire. Request
models accept both the current and the legacy field names through
AliasChoices.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Responses are serialized by alias (camelCase)
- Response models never expose internal implementation details
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Direction(str, Enum):
    """Translation direction for POST /api/translate.

    RULES:
    - Values match keys in viet_listener.config.DIRECTIONS exactly
    """

    vi_to_en = "vi-to-en"
    en_to_vi = "en-to-vi"


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class TranslateRequest(BaseModel):
    """Body of POST /api/translate.

    RULES:
    - direction and mode are synonyms
    """

    text: str = Field(description="Text to translate (Vietnamese for vi-to-en).")
    direction: Direction = Field(
        default=Direction.vi_to_en,
        validation_alias=AliasChoices("direction", "mode"),
        description="Translation direction.",
    )

    model_config = {"json_schema_extra": {
        "examples": [{"text": "cái này là của ai", "direction": "vi-to-en"}]
    }}


class SuggestRequest(BaseModel):
    """Body of POST /api/suggest.

    RULES:
    - englishText and targetEnglishText are synonyms
    - learnedWords and knownWordFrequencies are synonyms; keys are words,
      values are how often the learner has heard them
    """

    english_text: str = Field(
        validation_alias=AliasChoices("englishText", "targetEnglishText", "english_text"),
        description="English reply the learner wants to say in Vietnamese.",
    )
    known_words: Dict[str, int] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("learnedWords", "knownWordFrequencies", "known_words"),
        description="Word → frequency map of vocabulary the learner already knows.",
    )

    model_config = {"json_schema_extra": {
        "examples": [
            {"englishText": "I am hungry", "learnedWords": {"tôi": 12, "đói": 3}}
        ]
    }}


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SentenceTranslation(_CamelModel):
    original: str = Field(description="Input text as submitted.")
    translation: str = Field(description="Whole-sentence translation from the oracle.")


class WordTranslation(_CamelModel):
    """One segmented word with its translation."""

    word: str = Field(description="Word as it appears in the input (1-4 syllables).")
    translation: str = Field(description="Translation; equals the word itself for fallbacks.")
    from_lexicon: bool = Field(
        alias="fromLexicon",
        description="True when the translation came from the dictionary.",
    )
    origin: str = Field(description="'lexicon', 'oracle', or 'identity-fallback'.")


class TranslateResponse(_CamelModel):
    """Response of POST /api/translate.

    RULES:
    - words is empty for en-to-vi
    - words exactly cover the input syllables in order
    """

    sentence: SentenceTranslation = Field(description="Whole-sentence translation.")
    words: List[WordTranslation] = Field(description="Word-by-word breakdown.")


class SuggestionWordInfo(_CamelModel):
    word: str = Field(description="Greedy-segmented word of the suggestion.")
    known: bool = Field(description="True when the learner has heard this word before.")
    frequency: int = Field(description="How often the learner has heard it (0 if unknown).")


class SuggestionInfo(_CamelModel):
    """One Vietnamese phrasing of the learner's English reply."""

    vietnamese: str = Field(description="Vietnamese phrasing.")
    english: str = Field(description="Back-translation of the phrasing.")
    words: List[SuggestionWordInfo] = Field(description="Per-word familiarity.")
    known_ratio: float = Field(alias="knownRatio", description="Known words / all words.")
    known_count: int = Field(alias="knownCount", description="Number of known words.")


class SuggestResponse(_CamelModel):
    suggestions: List[SuggestionInfo] = Field(
        description="Up to three phrasings, most familiar first.",
    )


class StatusResponse(_CamelModel):
    """Response of GET /api/status."""

    has_api_key: bool = Field(alias="hasApiKey", description="Whether an oracle is configured.")
    backend: str = Field(description="Oracle backend name, or 'dictionary only'.")
    dictionary_size: int = Field(alias="dictionarySize", description="Lexicon entries.")
    learned_count: int = Field(
        alias="learnedCount",
        description="Compounds learned since startup.",
    )
    cache_size: int = Field(alias="cacheSize", description="Cached oracle translations.")


class LearnedEntriesResponse(_CamelModel):
    count: int = Field(description="Number of learned entries.")
    entries: Dict[str, str] = Field(description="Learned phrase → translation.")


class ProgressSavedResponse(_CamelModel):
    saved: bool = Field(description="Always true once the file has been written.")


class ErrorResponse(BaseModel):
    """Standard error response body.

    RULES:
    - detail is always a human-readable error message
    """

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
