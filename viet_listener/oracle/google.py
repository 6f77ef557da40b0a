"""Google Cloud Translation (v2) bulk backend.

WHY: The bulk API translates up to 128 strings per call and returns them
as a structured list, which makes it the cheapest and most reliable
backend for translating every candidate span of a sentence.

HOW: POSTs ``{q: [...], source, target, format: "text"}`` with the API key
in the X-goog-api-key header and reads data.translations[*].translatedText.

RULES:
- Batch size defaults to 128 items
- Non-200 → OracleUnavailableError (status code + body)
- Missing data.translations → MalformedOracleResponseError
- Fewer translations than requested → None for the missing tail
"""

from __future__ import annotations

import httpx

from viet_listener.config import GOOGLE_BATCH_SIZE, GOOGLE_TRANSLATE_URL
from viet_listener.errors import MalformedOracleResponseError, OracleUnavailableError
from viet_listener.oracle.base import TranslationOracle


class GoogleTranslateOracle(TranslationOracle):
    """Oracle backed by the Google Cloud Translation v2 REST API."""

    name = "google"

    def __init__(
        self,
        api_key: str,
        url: str | None = None,
        batch_size: int = GOOGLE_BATCH_SIZE,
        **kwargs,
    ) -> None:
        super().__init__(batch_size=batch_size, **kwargs)
        self._api_key = api_key
        self._url = url or GOOGLE_TRANSLATE_URL

    def _headers(self) -> dict[str, str]:
        return {
            "X-goog-api-key": self._api_key,
            "Content-Type": "application/json",
        }

    async def _translate_batch(
        self,
        client: httpx.AsyncClient,
        batch: list[str],
        source: str,
        target: str,
    ) -> list[str | None]:
        resp = await client.post(
            self._url,
            json={"q": batch, "source": source, "target": target, "format": "text"},
        )
        if resp.status_code != 200:
            raise OracleUnavailableError(resp.status_code, resp.text)

        try:
            translations = resp.json()["data"]["translations"]
            texts = [item["translatedText"] for item in translations]
        except (ValueError, KeyError, TypeError) as exc:
            raise MalformedOracleResponseError(
                f"Unexpected Google Translate response: {resp.text[:200]}"
            ) from exc

        result: list[str | None] = [None] * len(batch)
        for j, text in enumerate(texts[:len(batch)]):
            if isinstance(text, str):
                result[j] = text
        return result
