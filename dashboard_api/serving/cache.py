"""
Report Cache Module

Single-slot, time-expiring cache for the dashboard report:
- In-process backend with passive expiry and an injectable clock
- Redis backend so several workers can share one report
- TTL management (600 seconds by default)
"""

import time
from typing import Callable, Optional, Protocol, runtime_checkable

import structlog
from redis.asyncio import Redis, ConnectionPool

from dashboard_api.analytics.schemas import AnalyticsReport
from dashboard_api.config import Settings, get_settings

logger = structlog.get_logger(__name__)

DEFAULT_TTL_SECONDS = 600
DEFAULT_CACHE_KEY = "dashboardAnalytics"

# Global Redis connection
_redis_pool: Optional[ConnectionPool] = None
_redis_client: Optional[Redis] = None


@runtime_checkable
class ReportCache(Protocol):
    """Interface shared by the report cache backends."""

    async def get(self) -> Optional[AnalyticsReport]:
        """Return the stored report, or None on a miss or after expiry."""
        ...

    async def set(self, report: AnalyticsReport) -> None:
        """Store the report, replacing any previous one and restarting its TTL."""
        ...

    async def clear(self) -> None:
        """Drop the stored report."""
        ...

    async def ping(self) -> bool:
        """Check the backend is reachable."""
        ...


class InMemoryReportCache:
    """
    Process-local report cache.

    Entries expire passively: every read compares the clock against the
    expiry time, and nothing runs in the background.

    Example:
        cache = InMemoryReportCache(ttl_seconds=600)
        await cache.set(report)
        cached = await cache.get()
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._report: Optional[AnalyticsReport] = None
        self._expires_at: float = 0.0

    async def get(self) -> Optional[AnalyticsReport]:
        if self._report is None:
            return None
        if self._clock() >= self._expires_at:
            self._report = None
            return None
        return self._report

    async def set(self, report: AnalyticsReport) -> None:
        self._report = report
        self._expires_at = self._clock() + self.ttl_seconds

    async def clear(self) -> None:
        self._report = None
        self._expires_at = 0.0

    async def ping(self) -> bool:
        return True


class RedisReportCache:
    """
    Redis-backed report cache.

    The report is stored as JSON under a single key with SETEX, so Redis
    enforces the TTL.
    """

    def __init__(
        self,
        client: Redis,
        key: str = DEFAULT_CACHE_KEY,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ):
        self._client = client
        self.key = key
        self.ttl_seconds = ttl_seconds

    async def get(self) -> Optional[AnalyticsReport]:
        value = await self._client.get(self.key)

        if value is None:
            return None

        return AnalyticsReport.model_validate_json(value)

    async def set(self, report: AnalyticsReport) -> None:
        serialized = report.model_dump_json(by_alias=True)
        await self._client.setex(self.key, self.ttl_seconds, serialized)

    async def clear(self) -> None:
        await self._client.delete(self.key)

    async def ping(self) -> bool:
        return bool(await self._client.ping())


async def init_redis(url: str, max_connections: int = 20, socket_timeout: int = 5) -> Redis:
    """Initialize Redis connection pool"""
    global _redis_pool, _redis_client

    if _redis_client is not None:
        return _redis_client

    _redis_pool = ConnectionPool.from_url(
        url,
        max_connections=max_connections,
        socket_timeout=socket_timeout,
        decode_responses=True,
    )

    _redis_client = Redis(connection_pool=_redis_pool)

    try:
        await _redis_client.ping()
        logger.info("Redis connection established")
    except Exception as e:
        logger.error("Redis connection failed", error=str(e))
        raise

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection pool"""
    global _redis_pool, _redis_client

    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None

    if _redis_pool:
        await _redis_pool.disconnect()
        _redis_pool = None
        logger.info("Redis connection closed")


async def create_report_cache(settings: Optional[Settings] = None) -> ReportCache:
    """
    Build the report cache selected by configuration.

    Args:
        settings: Application settings (defaults to the cached settings)

    Returns:
        The in-memory cache, or the Redis cache when CACHE_BACKEND=redis
    """
    settings = settings or get_settings()

    if settings.cache.backend == "redis":
        client = await init_redis(
            settings.redis.get_url(),
            max_connections=settings.redis.max_connections,
            socket_timeout=settings.redis.socket_timeout,
        )
        logger.info("Using Redis report cache", key=settings.cache.key, ttl=settings.cache.ttl_seconds)
        return RedisReportCache(client, key=settings.cache.key, ttl_seconds=settings.cache.ttl_seconds)

    logger.info("Using in-memory report cache", ttl=settings.cache.ttl_seconds)
    return InMemoryReportCache(ttl_seconds=settings.cache.ttl_seconds)
