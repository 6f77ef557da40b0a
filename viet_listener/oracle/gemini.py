"""Gemini prompt-based translation backend.

WHY: When only a Gemini key is available, a generative model can translate
short phrases too — but it answers in free text, so the request has to be
framed as a numbered list and the answer parsed back by number.

HOW: Each batch (up to 20 items) becomes one prompt with lines
``1. text``, ``2. text``… The reply's lines are matched by their numeric
prefix, so reordered, skipped, or chatty lines never shift translations
onto the wrong item.

RULES:
- Batch size defaults to 20 items
- Temperature 0.1, plain-text reply
- Non-200 → OracleUnavailableError
- No candidate text in the response → MalformedOracleResponseError
- Items whose number is missing from the reply → None (identity fallback)
"""

from __future__ import annotations

import re

import httpx

from viet_listener.config import (
    GEMINI_BASE_URL,
    GEMINI_BATCH_SIZE,
    GEMINI_MODEL,
    LANGUAGE_NAMES,
)
from viet_listener.errors import MalformedOracleResponseError, OracleUnavailableError
from viet_listener.oracle.base import TranslationOracle

_NUMBERED_LINE_RE = re.compile(r"^\s*(\d+)\s*[.):]\s*(.*?)\s*$")

_PROMPT_TEMPLATE = (
    "Translate each line from {source} to {target}. Return ONLY the "
    "translations, one per line, numbered to match. No explanations.\n\n{numbered}"
)


def build_numbered_prompt(batch: list[str], source: str, target: str) -> str:
    """Build the translation prompt with one numbered line per item."""
    numbered = "\n".join(f"{i}. {text}" for i, text in enumerate(batch, start=1))
    return _PROMPT_TEMPLATE.format(
        source=LANGUAGE_NAMES.get(source, source),
        target=LANGUAGE_NAMES.get(target, target),
        numbered=numbered,
    )


def parse_numbered_lines(text: str, count: int) -> list[str | None]:
    """Parse a numbered reply into exactly ``count`` slots.

    RULES:
    - Only lines starting with a number followed by ".", ")" or ":" count
    - Numbers outside 1..count are ignored
    - The first line for a number wins; blank translations stay None
    """
    result: list[str | None] = [None] * count
    for line in text.splitlines():
        match = _NUMBERED_LINE_RE.match(line)
        if not match:
            continue
        index = int(match.group(1)) - 1
        translation = match.group(2)
        if 0 <= index < count and result[index] is None and translation:
            result[index] = translation
    return result


class GeminiOracle(TranslationOracle):
    """Oracle backed by the Gemini generateContent REST API."""

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        base_url: str | None = None,
        batch_size: int = GEMINI_BATCH_SIZE,
        **kwargs,
    ) -> None:
        super().__init__(batch_size=batch_size, **kwargs)
        self._api_key = api_key
        self._model = model or GEMINI_MODEL
        self._base_url = (base_url or GEMINI_BASE_URL).rstrip("/")

    def _headers(self) -> dict[str, str]:
        return {
            "x-goog-api-key": self._api_key,
            "Content-Type": "application/json",
        }

    @property
    def url(self) -> str:
        return f"{self._base_url}/models/{self._model}:generateContent"

    async def _translate_batch(
        self,
        client: httpx.AsyncClient,
        batch: list[str],
        source: str,
        target: str,
    ) -> list[str | None]:
        body = {
            "contents": [{"parts": [{"text": build_numbered_prompt(batch, source, target)}]}],
            "generationConfig": {"temperature": 0.1, "maxOutputTokens": 4096},
        }
        resp = await client.post(self.url, json=body)
        if resp.status_code != 200:
            raise OracleUnavailableError(resp.status_code, resp.text)

        try:
            reply = resp.json()["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise MalformedOracleResponseError(
                f"Gemini returned no text content: {resp.text[:200]}"
            ) from exc
        if not isinstance(reply, str):
            raise MalformedOracleResponseError("Gemini returned non-text content")

        return parse_numbered_lines(reply, len(batch))
