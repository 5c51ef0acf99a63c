"""Single-slot TTL cache for generated store insights.

Holds only the most recent result. An entry is served while it is younger
than the TTL *and* the fingerprint of the current store data still matches
the one it was generated from.

Usage:
    cache = InsightCache(ttl_seconds=3600)

    entry, cached = await cache.get_or_generate(fingerprint, produce_entry)
"""
import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional, Tuple

from app.models.insights import Insights, RawMetrics
from app.utils.logger import log


@dataclass(frozen=True)
class CacheEntry:
    fingerprint: str
    insights: Insights
    raw_metrics: RawMetrics
    generated_at: str  # ISO-8601
    cached_at: float  # clock() seconds at write time


EntryProducer = Callable[[], Awaitable[Tuple[CacheEntry, bool]]]


class InsightCache:
    """Single-slot cache with TTL + fingerprint validation and single-flight misses.

    The producer passed to get_or_generate returns (entry, cacheable); an
    entry that is not cacheable is handed to every waiter but not stored.
    """

    def __init__(self, ttl_seconds: float = 3600, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entry: Optional[CacheEntry] = None
        self._lock = asyncio.Lock()
        self._in_flight: Dict[str, asyncio.Future] = {}

    def now(self) -> float:
        """Current time on the cache clock, for stamping cached_at"""
        return self._clock()

    def _age_minutes(self, entry: CacheEntry) -> int:
        return round((self._clock() - entry.cached_at) / 60)

    def is_valid(self, fingerprint: str) -> bool:
        entry = self._entry
        if entry is None:
            return False

        age = self._clock() - entry.cached_at
        if age > self.ttl_seconds:
            log.info(f"[Insights Cache] Cache expired (age: {self._age_minutes(entry)} min)")
            return False

        if entry.fingerprint != fingerprint:
            log.info("[Insights Cache] Data changed, cache invalidated")
            return False

        log.info(f"[Insights Cache] Cache HIT (age: {self._age_minutes(entry)} min)")
        return True

    def get(self, fingerprint: str) -> Optional[CacheEntry]:
        """Return the entry if it is valid for this fingerprint"""
        if self.is_valid(fingerprint):
            return self._entry
        return None

    def put(self, entry: CacheEntry) -> None:
        """Replace the slot unconditionally"""
        self._entry = entry
        log.info("[Insights Cache] Cache updated with new insights")

    def clear(self) -> None:
        self._entry = None

    @property
    def entry(self) -> Optional[CacheEntry]:
        return self._entry

    def age_seconds(self) -> Optional[float]:
        if self._entry is None:
            return None
        return self._clock() - self._entry.cached_at

    def in_flight_count(self) -> int:
        return len(self._in_flight)

    async def get_or_generate(
        self,
        fingerprint: str,
        producer: EntryProducer,
    ) -> Tuple[CacheEntry, bool]:
        """
        Serve a valid entry, or run the producer once per fingerprint.

        Concurrent misses with the same fingerprint wait on the in-flight
        producer instead of starting their own. The producer keeps running
        even if a waiter is cancelled.

        Returns:
            (entry, cached) where cached is False only for the caller that
            triggered generation.
        """
        async with self._lock:
            entry = self.get(fingerprint)
            if entry is not None:
                return entry, True

            future = self._in_flight.get(fingerprint)
            owner = future is None
            if owner:
                log.info("[Insights Cache] Cache MISS - calling AI")
                future = asyncio.ensure_future(self._produce(fingerprint, producer))
                future.add_done_callback(self._log_failure)
                self._in_flight[fingerprint] = future
            else:
                log.info("[Insights Cache] Joining in-flight generation")

        entry = await asyncio.shield(future)
        return entry, not owner

    @staticmethod
    def _log_failure(future: asyncio.Future) -> None:
        # retrieves the exception even when every waiter was cancelled
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            log.warning(f"[Insights Cache] Generation failed: {type(exc).__name__}: {exc}")

    async def _produce(self, fingerprint: str, producer: EntryProducer) -> CacheEntry:
        try:
            entry, cacheable = await producer()
            if cacheable:
                async with self._lock:
                    self.put(entry)
            return entry
        finally:
            self._in_flight.pop(fingerprint, None)
