"""
Store Stats Service

Headline counters for the admin dashboard grid (total revenue, customers,
orders and low-stock products) and the daily revenue series behind the
revenue chart. Always read live; not cached.
"""
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from app.connectors.base import StoreDataGateway
from app.models.store import DailyRevenue, RevenuePoint, RevenueSeries, StoreStats
from app.utils.helpers import utc_now
from app.utils.logger import log

REVENUE_CHART_DAYS = 30


def group_revenue_by_day(points: Iterable[RevenuePoint]) -> List[DailyRevenue]:
    """
    Sum order totals per UTC calendar day.

    Points without a date are skipped and a missing total counts as zero.
    Days keep the order in which they first appear.
    """
    grouped: Dict[str, float] = {}
    for point in points:
        if point.date is None:
            continue
        moment = point.date
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        day = moment.astimezone(timezone.utc).date().isoformat()
        grouped[day] = grouped.get(day, 0) + (point.total or 0)
    return [DailyRevenue(date=day, revenue=round(revenue, 2)) for day, revenue in grouped.items()]


class StoreStatsService:
    def __init__(self, gateway: StoreDataGateway):
        self.gateway = gateway

    async def get_stats(self) -> StoreStats:
        stats = await self.gateway.fetch_store_stats()
        log.info(
            f"Store stats: revenue={stats.revenue:.2f} customers={stats.customers} "
            f"orders={stats.orders} low_stock={stats.low_stock}"
        )
        return stats

    async def get_revenue_series(
        self,
        days: int = REVENUE_CHART_DAYS,
        now: Optional[datetime] = None
    ) -> RevenueSeries:
        """Completed-order revenue per day over the last `days` days"""
        start_date = (now or utc_now()) - timedelta(days=days)
        points = await self.gateway.fetch_revenue_over_time(start_date)
        daily = group_revenue_by_day(points)
        total = round(sum(d.revenue for d in daily), 2)
        log.info(f"Revenue series: {len(daily)} days with sales, total={total:.2f} over {days} days")
        return RevenueSeries(start_date=start_date, days=daily, total=total)
