"""
FastAPI Application

Main entry point for the E-Commerce Dashboard Analytics API.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import PlainTextResponse
import structlog

from dashboard_api.analytics.aggregator import AnalyticsAggregator
from dashboard_api.config import Settings, get_settings
from dashboard_api.database.connection import init_database, close_database, get_db
from dashboard_api.serving.cache import InMemoryReportCache, create_report_cache, close_redis
from dashboard_api.serving.api.middleware import RequestLoggingMiddleware
from dashboard_api.serving.api.routes import health_router, dashboard_router

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    from dashboard_api.config.logging import configure_logging

    settings: Settings = app.state.settings
    configure_logging(settings=settings)
    logger.info("Starting E-Commerce Dashboard Analytics API", environment=settings.app_env)

    # The API keeps serving when the store is down; the analytics endpoint
    # answers 500 until it becomes reachable.
    try:
        await init_database(config=settings.database)
        logger.info("Database initialized")
    except Exception as e:
        logger.warning("Database init failed", error=str(e))

    try:
        app.state.report_cache = await create_report_cache(settings)
    except Exception as e:
        logger.warning("Report cache init failed, falling back to in-memory cache", error=str(e))
        app.state.report_cache = InMemoryReportCache(ttl_seconds=settings.cache.ttl_seconds)

    app.state.aggregator = AnalyticsAggregator(
        get_db,
        low_stock_threshold=settings.analytics.low_stock_threshold,
    )

    yield

    logger.info("Shutting down...")
    await close_database()
    await close_redis()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="E-Commerce Dashboard Analytics API",
        description="Pre-aggregated revenue, inventory, customer and KPI metrics for the dashboard",
        version=settings.version,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health_router, prefix="/api", tags=["Health"])
    app.include_router(dashboard_router, prefix="/api/dashboard", tags=["Dashboard"])

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        """Welcome text."""
        return "E-commerce dashboard analytics api"

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
