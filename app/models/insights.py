"""
Aggregated store summary, headline metrics and the insights contract.

Everything here serializes with camelCase keys; the declared field order is
the serialization order, which the change fingerprint depends on.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.models.store import ProductRecord, StatusDistribution


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        """Plain dict with camelCase keys, in declaration order"""
        return self.model_dump(mode="json", by_alias=True)


# ─────────────────────────────────────────────
# DATA SUMMARY (input to fingerprint + prompt)
# ─────────────────────────────────────────────


class TopProductSummary(CamelModel):
    name: str
    units_sold: int
    revenue: str  # two decimals


class SalesTrendsSummary(CamelModel):
    current_week_revenue: float
    previous_week_revenue: float
    revenue_change_percent: str  # one decimal
    current_week_orders: int
    previous_week_orders: int
    avg_order_value: str  # two decimals
    top_products: List[TopProductSummary] = Field(default_factory=list)


class ProductCategorySummary(CamelModel):
    name: Optional[str] = None
    category: Optional[str] = None


class ProductStockSummary(CamelModel):
    name: Optional[str] = None
    stock: int
    category: Optional[str] = None


class InventorySummary(CamelModel):
    out_of_stock: List[ProductCategorySummary] = Field(default_factory=list)
    low_stock: List[ProductStockSummary] = Field(default_factory=list)
    needs_restock: List[ProductStockSummary] = Field(default_factory=list)
    slow_moving: List[ProductStockSummary] = Field(default_factory=list)
    total_products: int = 0
    out_of_stock_count: int = 0
    low_stock_count: int = 0


class UnfulfilledOrderSummary(CamelModel):
    order_number: Optional[str] = None
    total: Optional[float] = None
    days_since_order: int
    item_count: int = 0


class OperationsSummary(CamelModel):
    status_distribution: StatusDistribution
    unfulfilled_orders: List[UnfulfilledOrderSummary] = Field(default_factory=list)
    urgent_orders: int = 0


class DataSummary(CamelModel):
    """Normalized aggregation of a single request's store data"""

    sales_trends: SalesTrendsSummary
    inventory: InventorySummary
    operations: OperationsSummary


# ─────────────────────────────────────────────
# RAW METRICS (always fresh, returned to caller)
# ─────────────────────────────────────────────


class RawMetrics(CamelModel):
    current_revenue: float
    previous_revenue: float
    revenue_change: str  # one decimal
    order_count: int
    avg_order_value: str  # two decimals
    unfulfilled_count: int
    low_stock_count: int


# ─────────────────────────────────────────────
# INSIGHTS CONTRACT
# ─────────────────────────────────────────────

Trend = Literal["up", "down", "stable"]


class SalesTrendsInsights(CamelModel):
    summary: str
    highlights: List[str] = Field(default_factory=list)
    trend: Trend


class InventoryInsights(CamelModel):
    summary: str
    alerts: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class ActionItems(CamelModel):
    urgent: List[str] = Field(default_factory=list)
    recommended: List[str] = Field(default_factory=list)
    opportunities: List[str] = Field(default_factory=list)


class Insights(CamelModel):
    """Structured insights, either generated by the LLM or synthesized from metrics"""

    sales_trends: SalesTrendsInsights
    inventory: InventoryInsights
    action_items: ActionItems


# ─────────────────────────────────────────────
# AGGREGATION RESULT
# ─────────────────────────────────────────────


@dataclass
class TopProduct:
    id: str
    name: str
    total_quantity: int
    revenue: float


@dataclass
class AggregationResult:
    """Everything one aggregation pass produces"""
    summary: DataSummary
    raw_metrics: RawMetrics
    revenue_change: float
    top_products: List[TopProduct] = field(default_factory=list)
    needs_restock: List[ProductRecord] = field(default_factory=list)
    slow_moving: List[ProductRecord] = field(default_factory=list)
