"""
Integration Tests - HTTP API
"""
import asyncio
from datetime import datetime, timezone
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from dashboard_api.analytics.aggregator import AnalyticsAggregator
from dashboard_api.analytics.exceptions import AnalyticsComputationError
from dashboard_api.config import Settings
from dashboard_api.config.settings import AnalyticsSettings, CacheSettings, DatabaseSettings
from dashboard_api.database.connection import close_database, init_database
from dashboard_api.main import create_app
from dashboard_api.serving.api.routes.dashboard import get_aggregator, get_report_cache
from dashboard_api.serving.cache import InMemoryReportCache

from conftest import make_order, make_user

ANALYTICS_URL = "/api/dashboard/analytics"


@pytest.fixture
def report_cache(fake_clock) -> InMemoryReportCache:
    return InMemoryReportCache(ttl_seconds=600, clock=fake_clock)


@pytest.fixture
def stub_aggregator(sample_report):
    aggregator = MagicMock(spec=AnalyticsAggregator)
    aggregator.compute_report = AsyncMock(return_value=sample_report)
    return aggregator


@pytest.fixture
def app(test_settings, report_cache, stub_aggregator):
    app = create_app(test_settings)
    app.state.report_cache = report_cache
    app.dependency_overrides[get_report_cache] = lambda: report_cache
    app.dependency_overrides[get_aggregator] = lambda: stub_aggregator
    return app


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


class TestDashboardAnalytics:
    """Tests for GET /api/dashboard/analytics"""

    async def test_miss_computes_and_caches(self, client, stub_aggregator, report_cache, sample_report):
        response = await client.get(ANALYTICS_URL)

        assert response.status_code == 200
        data = response.json()
        assert data["activeUsers"] == 4
        assert data["totalRevenue"] == 1500.0
        assert data["kpis"]["conversionRate"] == "75.00"
        assert data["inventoryMetrics"]["totalStock"] == 150
        assert data["customerAnalytics"]["customersSegment"][0]["segment"] == "VIP"
        stub_aggregator.compute_report.assert_awaited_once()
        assert await report_cache.get() is sample_report

    async def test_hit_skips_recomputation(self, client, stub_aggregator):
        first = await client.get(ANALYTICS_URL)
        second = await client.get(ANALYTICS_URL)

        assert second.status_code == 200
        assert second.json() == first.json()
        assert stub_aggregator.compute_report.await_count == 1

    async def test_recomputes_after_ttl(self, client, stub_aggregator, fake_clock):
        await client.get(ANALYTICS_URL)

        fake_clock.advance(601)
        response = await client.get(ANALYTICS_URL)

        assert response.status_code == 200
        assert stub_aggregator.compute_report.await_count == 2

    async def test_failure_returns_500(self, client, stub_aggregator):
        stub_aggregator.compute_report.side_effect = AnalyticsComputationError("connection refused")

        response = await client.get(ANALYTICS_URL)

        assert response.status_code == 500
        assert response.json() == {"message": "Internal server error", "error": "connection refused"}

    async def test_failure_is_not_cached(self, client, stub_aggregator, report_cache, sample_report):
        stub_aggregator.compute_report.side_effect = [
            AnalyticsComputationError("connection refused"),
            sample_report,
        ]

        failed = await client.get(ANALYTICS_URL)
        assert await report_cache.get() is None

        recovered = await client.get(ANALYTICS_URL)

        assert failed.status_code == 500
        assert recovered.status_code == 200
        assert stub_aggregator.compute_report.await_count == 2

    async def test_concurrent_misses_store_a_correct_report(self, client, stub_aggregator, report_cache, sample_report):
        """Test racing misses may both compute but leave a valid report cached"""
        responses = await asyncio.gather(client.get(ANALYTICS_URL), client.get(ANALYTICS_URL))

        assert all(r.status_code == 200 for r in responses)
        assert 1 <= stub_aggregator.compute_report.await_count <= 2
        assert await report_cache.get() == sample_report


class TestEndToEnd:
    """Tests running the real aggregator behind the endpoint"""

    async def test_report_from_database(self, app, client, session_factory, seed_records):
        now = datetime(2026, 3, 20, tzinfo=timezone.utc)
        app.dependency_overrides[get_aggregator] = lambda: AnalyticsAggregator(
            session_factory, clock=lambda: now
        )
        await seed_records(
            [make_user("u1")],
            [
                make_order("o1", "u1", 100, datetime(2026, 3, 1, tzinfo=timezone.utc)),
                make_order("o2", "u1", 200, datetime(2026, 3, 5, tzinfo=timezone.utc)),
                make_order("o3", "u1", 300, datetime(2026, 3, 10, tzinfo=timezone.utc)),
            ],
        )

        response = await client.get(ANALYTICS_URL)

        assert response.status_code == 200
        data = response.json()
        assert data["monthlySalesData"] == [{"year": 2026, "month": 3, "revenue": 600.0, "orders": 3}]
        assert data["totalRevenue"] == 600.0
        assert data["activeUsers"] == 1
        assert data["kpis"]["conversionRate"] == "300.00"
        assert data["kpis"]["averageOrderValue"] == 200.0
        assert data["customerAnalytics"]["customersSegment"][0]["segment"] == "Regular"
        assert data["inventoryMetrics"] == {"totalStock": 0, "averageStock": 0.0, "lowStock": 0, "outOfStock": 0}


class TestMiscEndpoints:
    """Tests for welcome and health endpoints"""

    async def test_root_welcome_text(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.text == "E-commerce dashboard analytics api"

    async def test_liveness(self, client):
        response = await client.get("/api/health/live")

        assert response.json() == {"status": "alive"}

    async def test_health_without_database(self, client):
        response = await client.get("/api/health")

        data = response.json()
        assert response.status_code == 200
        assert data["status"] == "unhealthy"
        assert data["environment"] == "testing"
        assert data["checks"]["database"]["status"] == "unhealthy"
        assert data["checks"]["cache"]["status"] == "healthy"

    async def test_health_with_database(self, client, database_url):
        await init_database(database_url)
        try:
            response = await client.get("/api/health")
        finally:
            await close_database()

        data = response.json()
        assert data["status"] == "healthy"
        assert data["checks"]["database"]["status"] == "healthy"
        assert "latency_ms" in data["checks"]["database"]

    async def test_cors_headers(self, client):
        response = await client.get("/", headers={"Origin": "http://localhost:5173"})

        assert response.headers["access-control-allow-origin"] == "*"

    async def test_request_id_header(self, client):
        response = await client.get("/", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"
        assert response.headers["X-Response-Time"].endswith("ms")


class TestLifespan:
    """Tests for start-up wiring from the settings given to create_app"""

    async def test_injected_settings_take_effect(self, database_url, tmp_path):
        settings = Settings(
            app_env="testing",
            database=DatabaseSettings(url=database_url),
            cache=CacheSettings(ttl_seconds=30),
            analytics=AnalyticsSettings(low_stock_threshold=3),
        )
        app = create_app(settings)

        async with app.router.lifespan_context(app):
            cache = app.state.report_cache
            aggregator = app.state.aggregator
            report = await aggregator.compute_report()

        assert isinstance(cache, InMemoryReportCache)
        assert cache.ttl_seconds == 30
        assert aggregator.low_stock_threshold == 3
        assert (tmp_path / "dashboard.db").exists()
        assert report.active_users == 0
