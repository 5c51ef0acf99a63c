"""
Health check and status endpoints
"""
from fastapi import APIRouter, Request
from datetime import datetime
from app import __version__

router = APIRouter()


@router.get("/health")
async def health_check():
    """Liveness probe; does not touch the store or the LLM"""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "version": __version__
    }


@router.get("/status")
async def get_status(request: Request):
    """Configuration, data source counters and insight cache state"""
    state = request.app.state
    settings = state.settings
    gateway = state.gateway
    insights_service = state.insights_service

    return {
        "app_name": settings.app_name,
        "version": __version__,
        "environment": settings.environment,
        "llm_available": insights_service.llm_service.is_available(),
        "data_source": {
            "name": gateway.source_name,
            "type": gateway.source_type,
            "fetch_count": gateway.fetch_count,
            "error_count": gateway.error_count,
            "last_fetch": gateway.last_fetch.isoformat() if gateway.last_fetch else None
        },
        "insights_cache": insights_service.cache_status(),
        "timestamp": datetime.utcnow().isoformat()
    }
