"""
Admin insights, store stats, revenue and customer endpoints
"""
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from app.services.customer_service import CustomerService
from app.services.insights_service import InsightsService
from app.services.store_stats_service import StoreStatsService
from app.utils.logger import log

router = APIRouter(prefix="/admin", tags=["insights"])


def get_insights_service(request: Request) -> InsightsService:
    return request.app.state.insights_service


def get_stats_service(request: Request) -> StoreStatsService:
    return request.app.state.stats_service


def get_customer_service(request: Request) -> CustomerService:
    return request.app.state.customer_service


def _failure(message: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"success": False, "error": message})


@router.get("/insights")
async def get_admin_insights(
    refresh: bool = Query(False, description="Discard cached insights and regenerate"),
    service: InsightsService = Depends(get_insights_service)
):
    """
    AI insights for the store admin dashboard

    Returns sales trends, inventory status and action items, plus headline
    metrics computed from the current store data. Insights are cached for up
    to an hour and regenerated as soon as the underlying data changes.
    With refresh=true the response always reports cached: false.
    """
    try:
        result = await service.get_insights(refresh=refresh)
        return result.to_response()
    except Exception as e:
        log.error(f"Failed to generate insights: {type(e).__name__}: {e}")
        return _failure("Failed to generate insights")


@router.get("/stats")
async def get_store_stats(service: StoreStatsService = Depends(get_stats_service)):
    """Headline counters: total revenue, customers, orders, low-stock products"""
    try:
        stats = await service.get_stats()
        return {"success": True, "stats": stats.model_dump(by_alias=True)}
    except Exception as e:
        log.error(f"Failed to load store stats: {type(e).__name__}: {e}")
        return _failure("Failed to load store stats")


@router.get("/revenue")
async def get_revenue_over_time(
    days: int = Query(30, ge=1, le=365, description="Length of the window in days"),
    service: StoreStatsService = Depends(get_stats_service)
):
    """Completed-order revenue summed per day, oldest day first"""
    try:
        series = await service.get_revenue_series(days=days)
        return {"success": True, "revenue": series.model_dump(mode="json", by_alias=True)}
    except Exception as e:
        log.error(f"Failed to load revenue data: {type(e).__name__}: {e}")
        return _failure("Failed to load revenue data")


@router.get("/customers")
async def list_customers(
    search: str = Query("", description="Match against customer email or name"),
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    service: CustomerService = Depends(get_customer_service)
):
    """
    Customers newest first with order count, total spent and last order date

    Use offset and limit to page; hasMore tells whether another page exists.
    """
    try:
        page = await service.list_customers(search=search, offset=offset, limit=limit)
        return {"success": True, **page.model_dump(mode="json", by_alias=True)}
    except Exception as e:
        log.error(f"Failed to load customers: {type(e).__name__}: {e}")
        return _failure("Failed to load customers")
