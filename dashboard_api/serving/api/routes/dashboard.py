"""
Dashboard Analytics Endpoint

Serves the composite analytics report, recomputing it only when the cached
copy is missing or expired.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
import structlog

from dashboard_api.analytics.aggregator import AnalyticsAggregator
from dashboard_api.analytics.schemas import AnalyticsReport, ErrorResponse
from dashboard_api.serving.cache import ReportCache

router = APIRouter()
logger = structlog.get_logger(__name__)


def get_report_cache(request: Request) -> ReportCache:
    """FastAPI dependency returning the application's report cache."""
    return request.app.state.report_cache


def get_aggregator(request: Request) -> AnalyticsAggregator:
    """FastAPI dependency returning the application's aggregator."""
    return request.app.state.aggregator


@router.get(
    "/analytics",
    response_model=AnalyticsReport,
    responses={500: {"model": ErrorResponse}},
)
async def get_dashboard_analytics(
    cache: ReportCache = Depends(get_report_cache),
    aggregator: AnalyticsAggregator = Depends(get_aggregator),
):
    """
    Get the dashboard analytics report.

    Returns the cached report when one is still fresh; otherwise computes a
    new one and caches it. Failures are reported as HTTP 500 and never cached.
    """
    try:
        cached = await cache.get()
        if cached is not None:
            logger.debug("Returning cached analytics report")
            return cached

        logger.info("Analytics cache miss, computing report")
        report = await aggregator.compute_report()
        await cache.set(report)
        return report
    except Exception as e:
        logger.error("Error in get_dashboard_analytics", error=str(e), error_type=type(e).__name__)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(message="Internal server error", error=str(e)).model_dump(),
        )
