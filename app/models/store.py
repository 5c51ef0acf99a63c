"""
Read-only snapshots of store records returned by the content lake.

Field aliases follow the camelCase names used by the store documents.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel


class StoreRecord(BaseModel):
    """Base for records fetched from the store; accepts camelCase or snake_case input"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class OrderItem(StoreRecord):
    quantity: int = 0
    price_at_purchase: Optional[float] = None
    product_name: Optional[str] = None
    product_id: Optional[str] = None

    @field_validator("quantity", mode="before")
    @classmethod
    def _null_quantity(cls, value):
        return value or 0


class OrderRecord(StoreRecord):
    """One customer order"""

    id: str = Field(alias="_id")
    order_number: Optional[str] = None
    total: Optional[float] = None
    status: Optional[str] = None
    created_at: Optional[datetime] = None
    item_count: int = 0
    items: List[OrderItem] = Field(default_factory=list)

    @field_validator("items", mode="before")
    @classmethod
    def _null_items(cls, value):
        return value or []

    @field_validator("item_count", mode="before")
    @classmethod
    def _null_count(cls, value):
        return value or 0


class StatusDistribution(StoreRecord):
    """Order counts by fulfilment status"""

    paid: int = 0
    shipped: int = 0
    delivered: int = 0
    cancelled: int = 0

    @field_validator("paid", "shipped", "delivered", "cancelled", mode="before")
    @classmethod
    def _null_to_zero(cls, value):
        return value or 0


class ProductSale(StoreRecord):
    """One sold line item, flattened with its product"""

    product_id: Optional[str] = None
    product_name: Optional[str] = None
    product_price: Optional[float] = None
    quantity: int = 0

    @field_validator("quantity", mode="before")
    @classmethod
    def _null_quantity(cls, value):
        return value or 0


class ProductRecord(StoreRecord):
    """One catalog item with its stock level"""

    id: str = Field(alias="_id")
    name: Optional[str] = None
    price: Optional[float] = None
    stock: int = 0
    category: Optional[str] = None

    @field_validator("stock", mode="before")
    @classmethod
    def _null_stock(cls, value):
        return value or 0


class UnfulfilledOrder(StoreRecord):
    """A paid order that has not shipped yet"""

    id: str = Field(alias="_id")
    order_number: Optional[str] = None
    total: Optional[float] = None
    created_at: Optional[datetime] = None  # missing dates age from the epoch
    email: Optional[str] = None
    item_count: int = 0

    @field_validator("item_count", mode="before")
    @classmethod
    def _null_count(cls, value):
        return value or 0


class RevenuePeriod(StoreRecord):
    """Revenue and order counts for this week and the week before"""

    current_period: float = 0
    previous_period: float = 0
    current_order_count: int = 0
    previous_order_count: int = 0

    @field_validator(
        "current_period",
        "previous_period",
        "current_order_count",
        "previous_order_count",
        mode="before",
    )
    @classmethod
    def _null_to_zero(cls, value):
        return value or 0


class StoreStats(StoreRecord):
    """Headline counters for the admin dashboard"""

    revenue: float = 0
    customers: int = 0
    orders: int = 0
    low_stock: int = 0


class RevenuePoint(StoreRecord):
    """One completed order reduced to its date and total, for the revenue chart"""

    date: Optional[datetime] = None
    total: Optional[float] = None


class DailyRevenue(StoreRecord):
    date: str  # YYYY-MM-DD, UTC
    revenue: float = 0


class RevenueSeries(StoreRecord):
    """Completed-order revenue summed per day since start_date"""

    start_date: datetime
    days: List[DailyRevenue] = Field(default_factory=list)
    total: float = 0


class CustomerWithStats(StoreRecord):
    """A customer with order count, lifetime spend and most recent order"""

    id: str = Field(alias="_id")
    email: Optional[str] = None
    name: Optional[str] = None
    stripe_customer_id: Optional[str] = None
    created_at: Optional[datetime] = None
    order_count: int = 0
    total_spent: float = 0
    last_order_date: Optional[datetime] = None

    @field_validator("order_count", "total_spent", mode="before")
    @classmethod
    def _null_to_zero(cls, value):
        return value or 0

    @computed_field(alias="displayName")
    @property
    def display_name(self) -> str:
        return self.name or self.email or ""

    @computed_field(alias="isActive")
    @property
    def is_active(self) -> bool:
        return self.order_count > 0


class CustomerPage(StoreRecord):
    """One page of the customer listing"""

    customers: List[CustomerWithStats] = Field(default_factory=list)
    offset: int = 0
    limit: int = 20
    has_more: bool = False
