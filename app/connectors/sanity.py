"""
Sanity Connector

Reads orders, products and customers from the Sanity content lake via the
HTTP query API (GROQ). Always queries the live API host, never the CDN, so
admin figures reflect the latest published documents.
"""
import asyncio
import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from app.config import Settings, get_settings
from app.connectors.base import SourceFetchError, StoreDataGateway
from app.connectors.sanity_queries import (
    CUSTOMER_COUNT_QUERY,
    CUSTOMERS_WITH_STATS_QUERY,
    LOW_STOCK_COUNT_QUERY,
    ORDER_COUNT_QUERY,
    ORDER_STATUS_DISTRIBUTION_QUERY,
    ORDERS_LAST_7_DAYS_QUERY,
    PRODUCTS_INVENTORY_QUERY,
    REVENUE_BY_PERIOD_QUERY,
    REVENUE_OVER_TIME_QUERY,
    TOP_SELLING_PRODUCTS_QUERY,
    TOTAL_REVENUE_QUERY,
    UNFULFILLED_ORDERS_QUERY,
)
from app.models.store import (
    CustomerWithStats,
    OrderRecord,
    ProductRecord,
    ProductSale,
    RevenuePeriod,
    RevenuePoint,
    StatusDistribution,
    StoreStats,
    UnfulfilledOrder,
)
from app.utils.helpers import to_iso_timestamp
from app.utils.logger import log

ModelT = TypeVar("ModelT", bound=BaseModel)


class SanityConnector(StoreDataGateway):
    """
    Connector for the Sanity HTTP query API

    One shared AsyncClient is created lazily and reused across requests;
    call close() on shutdown.
    """

    def __init__(
        self,
        project_id: str,
        dataset: str = "production",
        api_version: str = "2024-01-01",
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize Sanity connector

        Args:
            project_id: Sanity project ID
            dataset: Dataset name
            api_version: Dated API version (e.g., "2024-01-01")
            token: Optional read token (required for private datasets)
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        super().__init__(source_name="sanity", source_type="content_lake")

        if not project_id:
            raise ValueError("Sanity project ID is required (set SANITY_PROJECT_ID)")

        self.project_id = project_id
        self.dataset = dataset
        self.api_version = api_version.lstrip("v")
        self.token = token
        self.timeout = timeout
        self.base_url = f"https://{project_id}.api.sanity.io/v{self.api_version}"
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SanityConnector":
        settings = settings or get_settings()
        return cls(
            project_id=settings.sanity_project_id,
            dataset=settings.sanity_dataset,
            api_version=settings.sanity_api_version,
            token=settings.sanity_token,
            timeout=settings.sanity_timeout_seconds,
        )

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._get_headers(),
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def query(
        self,
        query_name: str,
        groq: str,
        params: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Run a GROQ query and return its `result`

        Raises:
            SourceFetchError: on transport errors, non-200 responses or a
                malformed response body
        """
        start = time.time()
        try:
            response = await self._get_client().post(
                f"/data/query/{self.dataset}",
                params={"perspective": "published"},
                json={"query": groq, "params": params or {}},
            )
        except httpx.HTTPError as e:
            self.error_count += 1
            log.error(f"Sanity query {query_name} failed: {type(e).__name__}: {e}")
            raise SourceFetchError(query_name, f"transport error: {e}") from e

        if response.status_code != 200:
            self.error_count += 1
            log.error(f"Sanity query {query_name} failed: {response.status_code} - {response.text[:200]}")
            raise SourceFetchError(query_name, f"HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            self.error_count += 1
            raise SourceFetchError(query_name, "response is not valid JSON") from e

        if not isinstance(body, dict) or "result" not in body:
            self.error_count += 1
            raise SourceFetchError(query_name, "response has no result")

        self.fetch_count += 1
        self.last_fetch = datetime.utcnow()
        log.debug(f"Sanity query {query_name} took {time.time() - start:.2f}s")
        return body["result"]

    async def _fetch_one(
        self,
        query_name: str,
        groq: str,
        model: Type[ModelT],
        params: Optional[Dict[str, Any]] = None
    ) -> ModelT:
        result = await self.query(query_name, groq, params)
        try:
            return model.model_validate(result or {})
        except ValidationError as e:
            raise SourceFetchError(query_name, f"unexpected payload: {e.error_count()} validation errors") from e

    async def _fetch_many(
        self,
        query_name: str,
        groq: str,
        model: Type[ModelT],
        params: Optional[Dict[str, Any]] = None
    ) -> List[ModelT]:
        result = await self.query(query_name, groq, params)
        if result is None:
            return []
        if not isinstance(result, list):
            raise SourceFetchError(query_name, "expected a list result")
        try:
            return [model.model_validate(row) for row in result if row is not None]
        except ValidationError as e:
            raise SourceFetchError(query_name, f"unexpected payload: {e.error_count()} validation errors") from e

    async def _fetch_number(self, query_name: str, groq: str) -> float:
        result = await self.query(query_name, groq)
        if result is None:
            return 0
        if isinstance(result, bool) or not isinstance(result, (int, float)):
            raise SourceFetchError(query_name, "expected a numeric result")
        return result

    # ─────────────────────────────────────────────
    # INSIGHTS QUERIES
    # ─────────────────────────────────────────────

    async def fetch_recent_orders(self, start_date: datetime) -> List[OrderRecord]:
        return await self._fetch_many(
            "recent_orders",
            ORDERS_LAST_7_DAYS_QUERY,
            OrderRecord,
            {"startDate": to_iso_timestamp(start_date)},
        )

    async def fetch_status_distribution(self) -> StatusDistribution:
        return await self._fetch_one(
            "status_distribution", ORDER_STATUS_DISTRIBUTION_QUERY, StatusDistribution
        )

    async def fetch_product_sales(self) -> List[ProductSale]:
        return await self._fetch_many("product_sales", TOP_SELLING_PRODUCTS_QUERY, ProductSale)

    async def fetch_products_inventory(self) -> List[ProductRecord]:
        return await self._fetch_many("products_inventory", PRODUCTS_INVENTORY_QUERY, ProductRecord)

    async def fetch_unfulfilled_orders(self) -> List[UnfulfilledOrder]:
        return await self._fetch_many("unfulfilled_orders", UNFULFILLED_ORDERS_QUERY, UnfulfilledOrder)

    async def fetch_revenue_by_period(
        self,
        current_start: datetime,
        previous_start: datetime
    ) -> RevenuePeriod:
        return await self._fetch_one(
            "revenue_by_period",
            REVENUE_BY_PERIOD_QUERY,
            RevenuePeriod,
            {
                "currentStart": to_iso_timestamp(current_start),
                "previousStart": to_iso_timestamp(previous_start),
            },
        )

    # ─────────────────────────────────────────────
    # DASHBOARD STATS
    # ─────────────────────────────────────────────

    async def fetch_store_stats(self) -> StoreStats:
        revenue, customers, orders, low_stock = await asyncio.gather(
            self._fetch_number("total_revenue", TOTAL_REVENUE_QUERY),
            self._fetch_number("customer_count", CUSTOMER_COUNT_QUERY),
            self._fetch_number("order_count", ORDER_COUNT_QUERY),
            self._fetch_number("low_stock_count", LOW_STOCK_COUNT_QUERY),
        )
        return StoreStats(
            revenue=revenue,
            customers=int(customers),
            orders=int(orders),
            low_stock=int(low_stock),
        )

    async def fetch_revenue_over_time(self, start_date: datetime) -> List[RevenuePoint]:
        return await self._fetch_many(
            "revenue_over_time",
            REVENUE_OVER_TIME_QUERY,
            RevenuePoint,
            {"startDate": to_iso_timestamp(start_date)},
        )

    # ─────────────────────────────────────────────
    # CUSTOMERS
    # ─────────────────────────────────────────────

    async def fetch_customers_with_stats(
        self,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = 20
    ) -> List[CustomerWithStats]:
        return await self._fetch_many(
            "customers_with_stats",
            CUSTOMERS_WITH_STATS_QUERY,
            CustomerWithStats,
            {
                "search": f"*{search}*" if search else None,
                "start": offset,
                "end": offset + limit,
            },
        )
