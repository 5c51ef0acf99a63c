"""Data models for the Store Insights service"""

from app.models.store import (
    OrderItem,
    OrderRecord,
    StatusDistribution,
    ProductSale,
    ProductRecord,
    UnfulfilledOrder,
    RevenuePeriod,
    StoreStats,
    RevenuePoint,
    DailyRevenue,
    RevenueSeries,
    CustomerWithStats,
    CustomerPage,
)

from app.models.insights import (
    DataSummary,
    RawMetrics,
    Insights,
    TopProduct,
    AggregationResult,
)

__all__ = [
    "OrderItem",
    "OrderRecord",
    "StatusDistribution",
    "ProductSale",
    "ProductRecord",
    "UnfulfilledOrder",
    "RevenuePeriod",
    "StoreStats",
    "RevenuePoint",
    "DailyRevenue",
    "RevenueSeries",
    "CustomerWithStats",
    "CustomerPage",
    "DataSummary",
    "RawMetrics",
    "Insights",
    "TopProduct",
    "AggregationResult",
]
