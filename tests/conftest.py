"""
Shared in-memory fakes for the insights pipeline tests.

FakeGateway serves canned store records instead of querying Sanity;
StubLLM returns a fixed response (or raises) instead of calling Claude.
"""
import asyncio
import json
from datetime import datetime, timedelta, timezone

import pytest

from app.connectors.base import SourceFetchError, StoreDataGateway
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

NOW = datetime(2024, 5, 15, 12, 0, 0, tzinfo=timezone.utc)

VALID_LLM_RESPONSE = json.dumps({
    "salesTrends": {
        "summary": "Revenue grew 20% week over week.",
        "highlights": ["4 orders this week", "Velvet Sofa is the top seller"],
        "trend": "up",
    },
    "inventory": {
        "summary": "Two products are running low.",
        "alerts": ["Low stock: Velvet Sofa (2 left)"],
        "recommendations": ["Reorder Velvet Sofa"],
    },
    "actionItems": {
        "urgent": ["Ship order ORD-1001"],
        "recommended": ["Promote the oak shelf"],
        "opportunities": ["Bundle sofas with cushions"],
    },
})


def _run(coro):
    """Run a coroutine to completion on a fresh event loop."""
    return asyncio.run(coro)


class FakeGateway(StoreDataGateway):
    """StoreDataGateway backed by in-memory records."""

    def __init__(
        self,
        orders=None,
        status=None,
        sales=None,
        products=None,
        unfulfilled=None,
        revenue=None,
        stats=None,
        revenue_points=None,
        customers=None,
        fail_on=None,
    ):
        super().__init__(source_name="fake", source_type="memory")
        self.orders = orders or []
        self.status = status or StatusDistribution()
        self.sales = sales or []
        self.products = products or []
        self.unfulfilled = unfulfilled or []
        self.revenue = revenue or RevenuePeriod()
        self.stats = stats or StoreStats()
        self.revenue_points = revenue_points or []
        self.customers = customers or []
        self.fail_on = fail_on
        self.calls = []
        self.closed = False

    async def _serve(self, name, value):
        self.calls.append(name)
        await asyncio.sleep(0)
        if name == self.fail_on:
            self.error_count += 1
            raise SourceFetchError(name, "HTTP 500")
        self.fetch_count += 1
        return value

    async def fetch_recent_orders(self, start_date):
        self.recent_orders_start = start_date
        return await self._serve("recent_orders", list(self.orders))

    async def fetch_status_distribution(self):
        return await self._serve("status_distribution", self.status)

    async def fetch_product_sales(self):
        return await self._serve("product_sales", list(self.sales))

    async def fetch_products_inventory(self):
        return await self._serve("products_inventory", list(self.products))

    async def fetch_unfulfilled_orders(self):
        return await self._serve("unfulfilled_orders", list(self.unfulfilled))

    async def fetch_revenue_by_period(self, current_start, previous_start):
        self.revenue_window = (current_start, previous_start)
        return await self._serve("revenue_by_period", self.revenue)

    async def fetch_store_stats(self):
        return await self._serve("store_stats", self.stats)

    async def fetch_revenue_over_time(self, start_date):
        self.revenue_start = start_date
        return await self._serve("revenue_over_time", list(self.revenue_points))

    async def fetch_customers_with_stats(self, search=None, offset=0, limit=20):
        self.customer_query = (search, offset, limit)
        matches = [
            c for c in self.customers
            if not search or any(search.lower() in (v or "").lower() for v in (c.email, c.name))
        ]
        return await self._serve("customers_with_stats", matches[offset:offset + limit])

    async def close(self):
        self.closed = True


class StubLLM:
    """Stands in for LLMService."""

    def __init__(self, response=VALID_LLM_RESPONSE, error=None, delay=0.0, available=True):
        self.response = response
        self.error = error
        self.delay = delay
        self.available = available
        self.calls = 0

    def is_available(self):
        return self.available

    async def generate_store_insights(self, summary):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response


def sample_store(**overrides):
    """A small but complete store: revenue up 20%, one urgent order, mixed stock."""
    data = dict(
        orders=[
            OrderRecord(id="o1", order_number="ORD-1001", total=100.0, status="paid", created_at=NOW - timedelta(days=1)),
            OrderRecord(id="o2", order_number="ORD-1002", total=50.0, status="shipped", created_at=NOW - timedelta(days=2)),
        ],
        status=StatusDistribution(paid=2, shipped=5, delivered=10, cancelled=1),
        sales=[
            ProductSale(product_id="p1", product_name="Velvet Sofa", product_price=400.0, quantity=2),
            ProductSale(product_id="p2", product_name="Oak Shelf", product_price=80.0, quantity=1),
            ProductSale(product_id="p1", product_name="Velvet Sofa", product_price=400.0, quantity=1),
        ],
        products=[
            ProductRecord(id="p1", name="Velvet Sofa", price=400.0, stock=2, category="Sofas"),
            ProductRecord(id="p2", name="Oak Shelf", price=80.0, stock=5, category="Storage"),
            ProductRecord(id="p3", name="Coffee Table", price=150.0, stock=0, category="Tables"),
            ProductRecord(id="p4", name="Floor Lamp", price=60.0, stock=25, category="Lighting"),
        ],
        unfulfilled=[
            UnfulfilledOrder(id="u1", order_number="ORD-0990", total=220.0, created_at=NOW - timedelta(days=3), item_count=2),
            UnfulfilledOrder(id="u2", order_number="ORD-1001", total=100.0, created_at=NOW - timedelta(days=1), item_count=1),
        ],
        revenue=RevenuePeriod(current_period=1200.0, previous_period=1000.0, current_order_count=4, previous_order_count=3),
        stats=StoreStats(revenue=5400.0, customers=42, orders=57, low_stock=3),
        revenue_points=[
            RevenuePoint(date=NOW - timedelta(days=3, hours=2), total=100.0),
            RevenuePoint(date=NOW - timedelta(days=3, hours=1), total=50.5),
            RevenuePoint(date=None, total=999.0),
            RevenuePoint(date=NOW - timedelta(days=1), total=None),
            RevenuePoint(date=NOW - timedelta(hours=1), total=80.0),
        ],
        customers=[
            CustomerWithStats(id="c3", email="zoe@example.com", name="Zoe Smith", order_count=3,
                              total_spent=450.0, last_order_date=NOW - timedelta(days=1)),
            CustomerWithStats(id="c2", email="sam@example.com", name=None),
            CustomerWithStats(id="c1", email="amy@example.com", name="Amy Smithers", order_count=1, total_spent=80.0),
        ],
    )
    data.update(overrides)
    return FakeGateway(**data)


@pytest.fixture
def store():
    return sample_store()
