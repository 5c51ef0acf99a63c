"""
Admin Insights Service

Request pipeline behind GET /admin/insights:
  aggregate store data -> fingerprint summary -> cache check
    hit:  cached insights + fresh raw metrics
    miss: LLM generation -> parse/fallback -> cache write

Raw metrics always come from the current request's aggregation, never from
the cache.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from app.config import Settings, get_settings
from app.connectors.base import StoreDataGateway
from app.models.insights import AggregationResult, Insights, RawMetrics
from app.services.insight_synthesizer import build_fallback_insights, synthesize_insights
from app.services.insights_aggregator import InsightsAggregator
from app.services.llm_service import InsightGenerationError, LLMService
from app.utils.helpers import fingerprint_data, to_iso_timestamp, utc_now
from app.utils.insight_cache import CacheEntry, InsightCache
from app.utils.logger import log


@dataclass
class InsightsResult:
    insights: Insights
    raw_metrics: RawMetrics
    generated_at: str
    cached: bool

    def to_response(self) -> Dict[str, Any]:
        return {
            "success": True,
            "insights": self.insights.to_payload(),
            "rawMetrics": self.raw_metrics.to_payload(),
            "generatedAt": self.generated_at,
            "cached": self.cached,
        }


class InsightsService:
    """Owns the insight cache and wires aggregation, generation and synthesis"""

    def __init__(
        self,
        aggregator: InsightsAggregator,
        llm_service: LLMService,
        cache: InsightCache,
        currency_symbol: str = "£",
        fallback_on_error: bool = False
    ):
        self.aggregator = aggregator
        self.llm_service = llm_service
        self.cache = cache
        self.currency_symbol = currency_symbol
        self.fallback_on_error = fallback_on_error

    @classmethod
    def from_settings(
        cls,
        gateway: StoreDataGateway,
        settings: Optional[Settings] = None,
        llm_service: Optional[LLMService] = None
    ) -> "InsightsService":
        settings = settings or get_settings()
        return cls(
            aggregator=InsightsAggregator(gateway),
            llm_service=llm_service or LLMService(settings),
            cache=InsightCache(ttl_seconds=settings.insights_cache_ttl_seconds),
            currency_symbol=settings.currency_symbol,
            fallback_on_error=settings.llm_fallback_on_error,
        )

    async def get_insights(self, refresh: bool = False, now: Optional[datetime] = None) -> InsightsResult:
        """
        Run the full pipeline for one request.

        A refresh never reports cached, even when it joins a generation that
        another request already started.

        Raises:
            SourceFetchError: a store query failed
            InsightGenerationError: the LLM call failed (unless fallback_on_error)
        """
        if refresh:
            log.info("[Insights Cache] Refresh requested, clearing cache")
            self.cache.clear()

        aggregation = await self.aggregator.aggregate(now)
        fingerprint = fingerprint_data(aggregation.summary.to_payload())

        async def produce() -> Tuple[CacheEntry, bool]:
            return await self._generate_entry(fingerprint, aggregation)

        entry, cached = await self.cache.get_or_generate(fingerprint, produce)

        return InsightsResult(
            insights=entry.insights,
            raw_metrics=aggregation.raw_metrics,
            generated_at=entry.generated_at,
            cached=cached and not refresh,
        )

    async def _generate_entry(self, fingerprint: str, aggregation: AggregationResult) -> Tuple[CacheEntry, bool]:
        """Produce a new cache entry; the flag says whether it may be stored"""
        cacheable = True
        try:
            raw_text = await self.llm_service.generate_store_insights(aggregation.summary)
            insights, from_llm = synthesize_insights(raw_text, aggregation, self.currency_symbol)
        except InsightGenerationError as e:
            if not self.fallback_on_error:
                raise
            log.warning(f"Serving rule-based insights after LLM failure: {e}")
            insights, from_llm = build_fallback_insights(aggregation, self.currency_symbol), False
            cacheable = False

        log.info(f"Insights generated (source: {'llm' if from_llm else 'fallback'})")
        entry = CacheEntry(
            fingerprint=fingerprint,
            insights=insights,
            raw_metrics=aggregation.raw_metrics,
            generated_at=to_iso_timestamp(utc_now()),
            cached_at=self.cache.now(),
        )
        return entry, cacheable

    def cache_status(self) -> Dict[str, Any]:
        entry = self.cache.entry
        age = self.cache.age_seconds()
        return {
            "populated": entry is not None,
            "fingerprint": entry.fingerprint if entry else None,
            "generated_at": entry.generated_at if entry else None,
            "age_seconds": round(age, 1) if age is not None else None,
            "ttl_seconds": self.cache.ttl_seconds,
            "in_flight": self.cache.in_flight_count(),
        }
