"""
Query cache and query client for the Console API.

Reads are cached per query key and shared between concurrent callers;
writes invalidate keys by prefix so the next read refetches. Retries only
cover transient failures: transport errors and 408/429/5xx answers.
"""

import asyncio
import math
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Hashable, Iterable, Optional, Tuple, Union

import httpx

from shared.logging import get_logger
from shared.retry import RetryConfig, RetryError, call_with_retry
from .api_client import ApiRequestError
from .notifications import Notifier

QueryKey = Tuple[Hashable, ...]
KeyLike = Union[QueryKey, str, list]
Fetcher = Callable[[], Awaitable[Any]]

DEFAULT_CACHE_TIME = 30 * 60.0
RETRYABLE_STATUSES = {408, 429}


def normalize_key(key: KeyLike) -> QueryKey:
    if isinstance(key, tuple):
        return key
    if isinstance(key, list):
        return tuple(key)
    return (key,)


def is_transient(exc: Exception) -> bool:
    """True for failures worth retrying."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, ApiRequestError):
        return exc.status in RETRYABLE_STATUSES or exc.status >= 500
    return False


def query_retry_config() -> RetryConfig:
    """Two retries, delay doubling from 1s, capped at 30s."""
    return RetryConfig(max_attempts=3, base_delay=1.0, max_delay=30.0, jitter=False, retry_if=is_transient)


def mutation_retry_config() -> RetryConfig:
    """One retry."""
    return RetryConfig(max_attempts=2, base_delay=1.0, max_delay=30.0, jitter=False, retry_if=is_transient)


@dataclass
class CacheEntry:
    """Cached result of one query."""
    data: Any = None
    has_data: bool = False
    updated_at: float = 0.0
    last_access: float = 0.0
    invalidated: bool = False
    generation: int = 0
    inflight: Optional["asyncio.Future[Any]"] = None


class QueryCache:
    """Per-key result cache with in-flight deduplication."""

    def __init__(
        self,
        stale_time: float = math.inf,
        cache_time: float = DEFAULT_CACHE_TIME,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.stale_time = stale_time
        self.cache_time = cache_time
        self.clock = clock
        self.logger = get_logger("console_client.query_cache")
        self._entries: Dict[QueryKey, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: KeyLike) -> bool:
        return normalize_key(key) in self._entries

    def is_fresh(self, key: KeyLike) -> bool:
        entry = self._entries.get(normalize_key(key))
        return entry is not None and self._fresh(entry, self.clock())

    def _fresh(self, entry: CacheEntry, now: float) -> bool:
        return entry.has_data and not entry.invalidated and (now - entry.updated_at) < self.stale_time

    async def fetch(self, key: KeyLike, fetcher: Fetcher) -> Any:
        """Return fresh cached data or run ``fetcher`` once for all concurrent callers."""
        key = normalize_key(key)
        now = self.clock()
        self.evict(now)

        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = CacheEntry()
        entry.last_access = now

        if self._fresh(entry, now):
            self.logger.debug("Cache hit", key=key)
            return entry.data

        if entry.inflight is None or entry.inflight.done():
            self.logger.debug("Cache miss", key=key)
            entry.inflight = asyncio.ensure_future(self._run(entry, fetcher, entry.generation))

        # a cancelled caller must not cancel the shared fetch
        return await asyncio.shield(entry.inflight)

    async def _run(self, entry: CacheEntry, fetcher: Fetcher, generation: int) -> Any:
        try:
            data = await fetcher()
        finally:
            entry.inflight = None

        entry.data = data
        entry.has_data = True
        entry.updated_at = self.clock()
        # an invalidation issued while fetching wins over this result
        entry.invalidated = entry.generation != generation
        return data

    def get_data(self, key: KeyLike) -> Any:
        """Cached data for ``key`` regardless of freshness, or None."""
        entry = self._entries.get(normalize_key(key))
        return entry.data if entry is not None and entry.has_data else None

    def set_data(self, key: KeyLike, data: Any) -> None:
        """Store ``data`` as a fresh result for ``key``."""
        key = normalize_key(key)
        entry = self._entries.setdefault(key, CacheEntry())
        entry.data = data
        entry.has_data = True
        entry.invalidated = False
        entry.updated_at = entry.last_access = self.clock()

    def invalidate(self, prefix: KeyLike) -> int:
        """Mark every entry whose key starts with ``prefix`` stale."""
        prefix = normalize_key(prefix)
        count = 0
        for key, entry in self._entries.items():
            if key[:len(prefix)] == prefix:
                entry.invalidated = True
                entry.generation += 1
                count += 1

        self.logger.debug("Cache invalidated", prefix=prefix, entries=count)
        return count

    def remove(self, prefix: KeyLike) -> None:
        """Drop entries under ``prefix`` entirely."""
        prefix = normalize_key(prefix)
        for key in [k for k in self._entries if k[:len(prefix)] == prefix]:
            del self._entries[key]

    def evict(self, now: Optional[float] = None) -> int:
        """Drop idle entries unused for longer than ``cache_time``."""
        now = self.clock() if now is None else now
        expired = [
            key for key, entry in self._entries.items()
            if entry.inflight is None and (now - entry.last_access) > self.cache_time
        ]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()


class QueryClient:
    """Couples the cache with retry policy and mutation notifications."""

    def __init__(
        self,
        cache: Optional[QueryCache] = None,
        notifier: Optional[Notifier] = None,
        *,
        query_retry: Optional[RetryConfig] = None,
        mutation_retry: Optional[RetryConfig] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.cache = cache or QueryCache()
        self.notifier = notifier or Notifier()
        self.query_retry = query_retry or query_retry_config()
        self.mutation_retry = mutation_retry or mutation_retry_config()
        self._sleep = sleep
        self.logger = get_logger("console_client.query_client")

    async def _with_retry(self, fn: Fetcher, config: RetryConfig) -> Any:
        try:
            return await call_with_retry(
                fn,
                exceptions=(ApiRequestError, httpx.TransportError),
                config=config,
                sleep=self._sleep,
            )
        except RetryError as exc:
            raise exc.last_exception

    async def fetch_query(self, key: KeyLike, fn: Fetcher) -> Any:
        """Cached read; failures propagate to the caller after retries."""
        return await self.cache.fetch(key, lambda: self._with_retry(fn, self.query_retry))

    async def mutate(
        self,
        fn: Fetcher,
        *,
        invalidate: Iterable[KeyLike] = (),
        error_title: str = "Error",
    ) -> Any:
        """Run a write; invalidate ``invalidate`` on success, notify on failure."""
        try:
            result = await self._with_retry(fn, self.mutation_retry)
        except Exception as exc:
            message = exc.message if isinstance(exc, ApiRequestError) else str(exc) or type(exc).__name__
            self.notifier.error(error_title, message)
            raise

        for key in invalidate:
            self.cache.invalidate(key)
        return result
