"""
Store Insights Service
Main FastAPI application
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import Optional

from app.config import Settings, get_settings
from app.connectors.base import StoreDataGateway
from app.connectors.sanity import SanityConnector
from app.services.customer_service import CustomerService
from app.services.insights_service import InsightsService
from app.services.llm_service import LLMService
from app.services.store_stats_service import StoreStatsService
from app.utils.logger import log
from app import __version__

# Import routers
from app.api import health, insights


def create_app(
    settings: Optional[Settings] = None,
    gateway: Optional[StoreDataGateway] = None,
    llm_service: Optional[LLMService] = None
) -> FastAPI:
    """
    Build the application.

    gateway and llm_service default to the Sanity connector and Claude
    client configured from settings; tests pass in-memory fakes.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events"""
        # Startup
        log.info(f"Starting {settings.app_name} v{__version__}")
        log.info(f"Environment: {settings.environment}")

        store = gateway or SanityConnector.from_settings(settings)
        app.state.settings = settings
        app.state.gateway = store
        app.state.insights_service = InsightsService.from_settings(store, settings, llm_service)
        app.state.stats_service = StoreStatsService(store)
        app.state.customer_service = CustomerService(store)
        log.info(f"Store data source: {store.source_name}")

        yield

        # Shutdown
        await store.close()
        log.info("Shutting down application")

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        description="""
        AI-powered insights for the store admin dashboard

        - Weekly sales trends, inventory alerts and prioritized action items
        - Generated by Claude from live store data, cached until the data changes
        - Rule-based insights when the model output cannot be used
        """,
        lifespan=lifespan
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health.router, tags=["health"])
    app.include_router(insights.router)

    @app.get("/")
    async def root():
        """Root endpoint with API information"""
        return {
            "app": settings.app_name,
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
            "status": "/status",
            "features": {
                "llm_insights": settings.enable_llm_insights
            },
            "endpoints": {
                "admin_insights": "GET /admin/insights",
                "admin_insights_refresh": "GET /admin/insights?refresh=true",
                "admin_stats": "GET /admin/stats",
                "admin_revenue": "GET /admin/revenue?days=30",
                "admin_customers": "GET /admin/customers?search=&offset=0&limit=20"
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )
