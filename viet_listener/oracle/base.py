"""Translation cache and the backend-agnostic oracle client.

WHY: The segmenter asks for translations of every candidate span that the
lexicon does not know — often dozens of short phrases per sentence, many
repeated across sentences. Each backend (bulk translation API, prompt-based
model) has its own request framing and batch limits, but the segmenter
must only see "ordered list in, ordered list out".

HOW: TranslationOracle owns an httpx.AsyncClient (async context manager)
and a TranslationCache. translate_detailed() answers from the cache where
possible, deduplicates the rest, chunks them into backend-sized batches,
and runs the batches as independent tasks bounded by a semaphore.
Subclasses only implement _translate_batch(), which returns one entry per
input, None where the response had nothing for that index.

RULES:
- Output always has the same length and order as the input
- Missing or unparseable items fall back to the source text with
  is_fallback=True, and a warning is logged — never silent
- Fallback results are not cached, so a later request can retry them
- A transport/HTTP failure fails its whole batch; other batches still run
  and their results are cached; then one OracleUnavailableError is raised
- No locking: cache writes happen in a single step after each response
- At most max_concurrency batch requests are in flight at once
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import OrderedDict
from collections.abc import Sequence

import httpx

from viet_listener.config import ORACLE_MAX_CONCURRENCY
from viet_listener.core.models import OracleResult
from viet_listener.errors import MalformedOracleResponseError, OracleUnavailableError

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str, str]


class TranslationCache:
    """In-memory cache of translations keyed by (source, target, text).

    WHY: The same syllables and short phrases recur constantly; repeat
    lookups must not cost another network call.

    HOW: An OrderedDict in insertion/recency order. With max_entries=None
    the cache grows for the lifetime of the process. With a bound, reads
    refresh recency and writes evict the least recently used entry.

    RULES:
    - Unbounded by default (suitable for short-lived processes)
    - Long-running services should pass max_entries
    """

    def __init__(self, max_entries: int | None = None) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be positive or None")
        self._entries: OrderedDict[CacheKey, str] = OrderedDict()
        self.max_entries = max_entries

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, source: str, target: str, text: str) -> str | None:
        key = (source, target, text)
        value = self._entries.get(key)
        if value is not None and self.max_entries is not None:
            self._entries.move_to_end(key)
        return value

    def put(self, source: str, target: str, text: str, translation: str) -> None:
        key = (source, target, text)
        self._entries[key] = translation
        if self.max_entries is not None:
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)


class TranslationOracle(ABC):
    """Async client for an external text-translation capability.

    RULES:
    - Use as: async with SomeOracle(...) as oracle: ...
    - batch_size: max items per backend request
    - max_concurrency: max backend requests in flight (semaphore)
    - transport: optional httpx transport, e.g. httpx.MockTransport in tests
    - timeout: None (default) leaves timeouts to the caller
    """

    name = "oracle"

    def __init__(
        self,
        batch_size: int,
        max_concurrency: int | None = None,
        cache: TranslationCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self.batch_size = batch_size
        self.max_concurrency = max_concurrency or ORACLE_MAX_CONCURRENCY
        self.cache = cache if cache is not None else TranslationCache()
        self._transport = transport
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None
        self._semaphore: asyncio.Semaphore | None = None

    async def __aenter__(self) -> TranslationOracle:
        self._client = httpx.AsyncClient(
            headers=self._headers(),
            timeout=self._timeout,
            transport=self._transport,
        )
        self._semaphore = asyncio.Semaphore(self.max_concurrency)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None
        self._semaphore = None

    def _headers(self) -> dict[str, str]:
        """Default headers for every request (auth, content type)."""
        return {}

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None or self._semaphore is None:
            raise RuntimeError(
                f"{type(self).__name__} must be used as an async context manager: "
                f"async with {type(self).__name__}(...) as oracle: ..."
            )
        return self._client

    @abstractmethod
    async def _translate_batch(
        self,
        client: httpx.AsyncClient,
        batch: list[str],
        source: str,
        target: str,
    ) -> list[str | None]:
        """Send one batch to the backend.

        Returns:
            One entry per batch item, in order; None where the response
            had no usable translation for that item.

        Raises:
            OracleUnavailableError: Non-2xx HTTP response.
            MalformedOracleResponseError: Response body cannot be parsed.
        """

    async def translate(
        self,
        texts: Sequence[str],
        source: str,
        target: str,
    ) -> list[str]:
        """Translate texts, returning plain strings in input order."""
        results = await self.translate_detailed(texts, source, target)
        return [r.text for r in results]

    async def translate_detailed(
        self,
        texts: Sequence[str],
        source: str,
        target: str,
    ) -> list[OracleResult]:
        """Translate texts, flagging any identity fallbacks.

        WHY: The segmenter needs to know which translations are real and
        which are passthrough, so it can label the output honestly.

        HOW: Cache lookup per item; unique misses are chunked into batches
        that run concurrently under the semaphore; results are scattered
        back to every input index that asked for the same text.

        RULES:
        - Raises OracleUnavailableError after all batches settle if any
          batch failed; completed batches are already cached by then
        """
        client = self._ensure_client()
        results: list[OracleResult | None] = [None] * len(texts)
        pending: dict[str, list[int]] = {}

        for i, text in enumerate(texts):
            cached = self.cache.get(source, target, text)
            if cached is not None:
                results[i] = OracleResult(cached)
            else:
                pending.setdefault(text, []).append(i)

        if not pending:
            return [r for r in results if r is not None]

        unique = list(pending)
        batches = [
            unique[b:b + self.batch_size]
            for b in range(0, len(unique), self.batch_size)
        ]
        logger.debug(
            "%s: %d cached, %d to translate in %d batch(es)",
            self.name, len(texts) - sum(len(v) for v in pending.values()),
            len(unique), len(batches),
        )

        outcomes = await asyncio.gather(
            *(self._run_batch(client, batch, source, target) for batch in batches),
            return_exceptions=True,
        )

        failures: list[OracleUnavailableError] = []
        for batch, outcome in zip(batches, outcomes):
            if isinstance(outcome, OracleUnavailableError):
                failures.append(outcome)
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            for text, result in zip(batch, outcome):
                for i in pending[text]:
                    results[i] = result

        if failures:
            first = failures[0]
            logger.error(
                "%s: %d of %d batch(es) failed: %s",
                self.name, len(failures), len(batches), first.message,
            )
            raise OracleUnavailableError(
                first.status_code, first.message, failed_batches=len(failures)
            )

        return [r for r in results if r is not None]

    async def _run_batch(
        self,
        client: httpx.AsyncClient,
        batch: list[str],
        source: str,
        target: str,
    ) -> list[OracleResult]:
        """Run one batch request and convert it into OracleResults."""
        if self._semaphore is None:
            raise RuntimeError(
                f"{type(self).__name__} is closed; batches must run inside async with"
            )
        async with self._semaphore:
            try:
                raw = await self._translate_batch(client, batch, source, target)
            except MalformedOracleResponseError as exc:
                logger.warning(
                    "%s: malformed response for batch of %d, using identity fallback: %s",
                    self.name, len(batch), exc,
                )
                raw = [None] * len(batch)
            except httpx.HTTPError as exc:
                raise OracleUnavailableError(0, str(exc) or type(exc).__name__) from exc

        results: list[OracleResult] = []
        missing = 0
        for j, text in enumerate(batch):
            translated = raw[j] if j < len(raw) else None
            if translated is None:
                missing += 1
                results.append(OracleResult(text, is_fallback=True))
            else:
                self.cache.put(source, target, text, translated)
                results.append(OracleResult(translated))

        if missing:
            logger.warning(
                "%s: %d of %d item(s) missing from response, using identity fallback",
                self.name, missing, len(batch),
            )
        return results
