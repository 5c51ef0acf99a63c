"""
Customer Service

Paged customer listing for the admin dashboard, with per-customer order
count, lifetime spend and last order date.
"""
from typing import Optional

from app.connectors.base import StoreDataGateway
from app.models.store import CustomerPage
from app.utils.logger import log

PAGE_SIZE = 20


class CustomerService:
    def __init__(self, gateway: StoreDataGateway):
        self.gateway = gateway

    async def list_customers(
        self,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = PAGE_SIZE
    ) -> CustomerPage:
        """
        One page of customers, newest first.

        Asks the gateway for one row past the page to learn whether another
        page exists.
        """
        search = (search or "").strip() or None
        rows = await self.gateway.fetch_customers_with_stats(search, offset, limit + 1)
        page = CustomerPage(
            customers=rows[:limit],
            offset=offset,
            limit=limit,
            has_more=len(rows) > limit,
        )
        log.info(
            f"Customers: {len(page.customers)} from offset {offset}"
            + (f" matching '{search}'" if search else "")
            + (" (more available)" if page.has_more else "")
        )
        return page
