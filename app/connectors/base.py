"""
Base Connector Class

Store data connectors inherit from this base class.
Defines the read queries the insights pipeline depends on and the common
failure type for all of them.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

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


class SourceFetchError(Exception):
    """A query against the store data source failed"""

    def __init__(self, query_name: str, message: str):
        self.query_name = query_name
        super().__init__(f"{query_name}: {message}")


class StoreDataGateway(ABC):
    """
    Base class for store data sources

    Every query either returns typed records or raises SourceFetchError.
    """

    def __init__(self, source_name: str, source_type: str = "content_lake"):
        """
        Initialize connector

        Args:
            source_name: Name of data source (e.g., 'sanity')
            source_type: Type of source (e.g., 'content_lake')
        """
        self.source_name = source_name
        self.source_type = source_type
        self.last_fetch: Optional[datetime] = None
        self.fetch_count = 0
        self.error_count = 0

    @abstractmethod
    async def fetch_recent_orders(self, start_date: datetime) -> List[OrderRecord]:
        """Orders created on or after start_date, newest first"""

    @abstractmethod
    async def fetch_status_distribution(self) -> StatusDistribution:
        """Order counts per status"""

    @abstractmethod
    async def fetch_product_sales(self) -> List[ProductSale]:
        """Sold line items across completed orders"""

    @abstractmethod
    async def fetch_products_inventory(self) -> List[ProductRecord]:
        """All products with their stock levels"""

    @abstractmethod
    async def fetch_unfulfilled_orders(self) -> List[UnfulfilledOrder]:
        """Paid orders that still need to ship, oldest first"""

    @abstractmethod
    async def fetch_revenue_by_period(
        self,
        current_start: datetime,
        previous_start: datetime
    ) -> RevenuePeriod:
        """Revenue and order counts for [current_start, now) and [previous_start, current_start)"""

    @abstractmethod
    async def fetch_store_stats(self) -> StoreStats:
        """Headline counters for the admin dashboard"""

    @abstractmethod
    async def fetch_revenue_over_time(self, start_date: datetime) -> List[RevenuePoint]:
        """Date and total of every completed order since start_date, oldest first"""

    @abstractmethod
    async def fetch_customers_with_stats(
        self,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = 20
    ) -> List[CustomerWithStats]:
        """
        Customers newest first, each with order count, spend and last order date

        Args:
            search: Substring matched against email or name (case-insensitive)
            offset: Number of customers to skip
            limit: Maximum number of customers to return
        """

    async def close(self) -> None:
        """Release any held resources"""
        return None
