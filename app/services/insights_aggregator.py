"""
Insights Aggregator

Pulls the six store datasets the admin insights need, concurrently, and
derives the summary handed to the LLM plus the headline metrics returned
with every response.

Windows:
  current  = last 7 days
  previous = 7-14 days ago
"""
import asyncio
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from app.connectors.base import StoreDataGateway
from app.models.insights import (
    AggregationResult,
    DataSummary,
    InventorySummary,
    OperationsSummary,
    ProductCategorySummary,
    ProductStockSummary,
    RawMetrics,
    SalesTrendsSummary,
    TopProduct,
    TopProductSummary,
    UnfulfilledOrderSummary,
)
from app.models.store import OrderRecord, ProductRecord, ProductSale, UnfulfilledOrder
from app.utils.helpers import calculate_percentage_change, days_since, safe_divide, utc_now

PERIOD_DAYS = 7
TOP_PRODUCTS_LIMIT = 5
RESTOCK_LIMIT = 5
SLOW_MOVING_LIMIT = 5
LOW_STOCK_THRESHOLD = 5  # stock <= 5 counts as low
SLOW_MOVING_MIN_STOCK = 10  # stock > 10 with no sales counts as slow-moving
URGENT_AFTER_DAYS = 2  # unfulfilled for more than 2 days


def aggregate_product_sales(sales: List[ProductSale]) -> Dict[str, TopProduct]:
    """Group sold line items by product id, summing quantity and revenue"""
    by_product: Dict[str, TopProduct] = {}
    for sale in sales:
        if not sale.product_id:
            continue
        revenue = sale.quantity * (sale.product_price or 0)
        existing = by_product.get(sale.product_id)
        if existing:
            existing.total_quantity += sale.quantity
            existing.revenue += revenue
        else:
            by_product[sale.product_id] = TopProduct(
                id=sale.product_id,
                name=sale.product_name or "Unknown",
                total_quantity=sale.quantity,
                revenue=revenue,
            )
    return by_product


def top_products(by_product: Dict[str, TopProduct], limit: int = TOP_PRODUCTS_LIMIT) -> List[TopProduct]:
    """Best sellers by units sold (stable for ties)"""
    return sorted(by_product.values(), key=lambda p: p.total_quantity, reverse=True)[:limit]


def needs_restock(
    products: List[ProductRecord],
    sold_by_id: Dict[str, int],
    limit: int = RESTOCK_LIMIT
) -> List[ProductRecord]:
    """Low-stock products that are actually selling, lowest stock first"""
    candidates = [
        p for p in products
        if p.stock <= LOW_STOCK_THRESHOLD and sold_by_id.get(p.id, 0) > 0
    ]
    return sorted(candidates, key=lambda p: p.stock)[:limit]


def slow_moving(
    products: List[ProductRecord],
    sold_by_id: Dict[str, int],
    limit: int = SLOW_MOVING_LIMIT
) -> List[ProductRecord]:
    """Well-stocked products with no sales, in source order"""
    return [
        p for p in products
        if p.stock > SLOW_MOVING_MIN_STOCK and sold_by_id.get(p.id, 0) == 0
    ][:limit]


def average_order_value(orders: List[OrderRecord]) -> float:
    return safe_divide(sum(o.total or 0 for o in orders), len(orders))


def _stock_summary(products: List[ProductRecord]) -> List[ProductStockSummary]:
    return [ProductStockSummary(name=p.name, stock=p.stock, category=p.category) for p in products]


class InsightsAggregator:
    """Builds the per-request DataSummary and RawMetrics from a store gateway"""

    def __init__(self, gateway: StoreDataGateway):
        self.gateway = gateway

    async def aggregate(self, now: Optional[datetime] = None) -> AggregationResult:
        """
        Fetch all datasets and derive the summary.

        Raises whatever the gateway raises (SourceFetchError); there is no
        partial-result mode.
        """
        now = now or utc_now()
        current_start = now - timedelta(days=PERIOD_DAYS)
        previous_start = now - timedelta(days=PERIOD_DAYS * 2)

        (
            recent_orders,
            status_distribution,
            product_sales,
            products,
            unfulfilled,
            revenue_period,
        ) = await asyncio.gather(
            self.gateway.fetch_recent_orders(current_start),
            self.gateway.fetch_status_distribution(),
            self.gateway.fetch_product_sales(),
            self.gateway.fetch_products_inventory(),
            self.gateway.fetch_unfulfilled_orders(),
            self.gateway.fetch_revenue_by_period(current_start, previous_start),
        )

        # Sales
        by_product = aggregate_product_sales(product_sales)
        best_sellers = top_products(by_product)
        sold_by_id = {pid: p.total_quantity for pid, p in by_product.items()}

        # Inventory
        restock = needs_restock(products, sold_by_id)
        slow = slow_moving(products, sold_by_id)
        out_of_stock = [p for p in products if p.stock == 0]
        low_stock = [p for p in products if 0 < p.stock <= LOW_STOCK_THRESHOLD]

        # Metrics
        current_revenue = revenue_period.current_period or 0
        previous_revenue = revenue_period.previous_period or 0
        revenue_change = calculate_percentage_change(current_revenue, previous_revenue)
        avg_order_value = average_order_value(recent_orders)

        summary = DataSummary(
            sales_trends=SalesTrendsSummary(
                current_week_revenue=current_revenue,
                previous_week_revenue=previous_revenue,
                revenue_change_percent=f"{revenue_change:.1f}",
                current_week_orders=revenue_period.current_order_count or 0,
                previous_week_orders=revenue_period.previous_order_count or 0,
                avg_order_value=f"{avg_order_value:.2f}",
                top_products=[
                    TopProductSummary(
                        name=p.name,
                        units_sold=p.total_quantity,
                        revenue=f"{p.revenue:.2f}",
                    )
                    for p in best_sellers
                ],
            ),
            inventory=InventorySummary(
                out_of_stock=[
                    ProductCategorySummary(name=p.name, category=p.category) for p in out_of_stock
                ],
                low_stock=_stock_summary(low_stock),
                needs_restock=_stock_summary(restock),
                slow_moving=_stock_summary(slow),
                total_products=len(products),
                out_of_stock_count=len(out_of_stock),
                low_stock_count=len(low_stock),
            ),
            operations=self._operations_summary(status_distribution, unfulfilled, now),
        )

        raw_metrics = RawMetrics(
            current_revenue=current_revenue,
            previous_revenue=previous_revenue,
            revenue_change=f"{revenue_change:.1f}",
            order_count=revenue_period.current_order_count or 0,
            avg_order_value=f"{avg_order_value:.2f}",
            unfulfilled_count=len(unfulfilled),
            # Includes out-of-stock items, unlike the summary's low-stock bucket
            low_stock_count=len([p for p in products if p.stock <= LOW_STOCK_THRESHOLD]),
        )

        return AggregationResult(
            summary=summary,
            raw_metrics=raw_metrics,
            revenue_change=revenue_change,
            top_products=best_sellers,
            needs_restock=restock,
            slow_moving=slow,
        )

    @staticmethod
    def _operations_summary(status_distribution, unfulfilled: List[UnfulfilledOrder], now: datetime) -> OperationsSummary:
        orders = [
            UnfulfilledOrderSummary(
                order_number=o.order_number,
                total=o.total,
                days_since_order=days_since(o.created_at, now),
                item_count=o.item_count,
            )
            for o in unfulfilled
        ]
        return OperationsSummary(
            status_distribution=status_distribution,
            unfulfilled_orders=orders,
            urgent_orders=len([o for o in orders if o.days_since_order > URGENT_AFTER_DAYS]),
        )
