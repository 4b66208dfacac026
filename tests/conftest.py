"""
Test Suite Configuration
"""
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Callable, Iterable

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from dashboard_api.analytics.aggregator import compose_report
from dashboard_api.analytics.schemas import (
    AnalyticsReport,
    CustomerSegmentEntry,
    InventoryMetrics,
    MonthlySales,
)
from dashboard_api.analytics.segmentation import CustomerSegment
from dashboard_api.config import Settings
from dashboard_api.database.models import Base, Order, Product, User

FIXED_NOW = datetime(2026, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        app_env="testing",
        debug=True,
    )


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def database_url(tmp_path) -> str:
    """SQLite file database; a file lets concurrent sessions use separate connections"""
    return f"sqlite+aiosqlite:///{tmp_path / 'dashboard.db'}"


@pytest.fixture
async def test_engine(database_url) -> AsyncGenerator[AsyncEngine, None]:
    """Create test database engine with the schema in place"""
    engine = create_async_engine(database_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine"""
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
def seed_records(session_factory) -> Callable:
    """Insert ORM records into the test database"""

    async def _seed(*groups: Iterable) -> None:
        async with session_factory() as session:
            for records in groups:
                session.add_all(list(records))
            await session.commit()

    return _seed


def make_user(user_id: str, email: str = None) -> User:
    return User(id=user_id, email=email or f"{user_id}@example.com", name=user_id.title())


def make_product(product_id: str, stock: int, category: str = "electronics") -> Product:
    return Product(id=product_id, name=f"Product {product_id}", category=category, price=19.99, stock=stock)


def make_order(order_id: str, user_id: str, amount: float, order_date: datetime) -> Order:
    return Order(id=order_id, user_id=user_id, total_amount=amount, order_date=order_date)


def days_ago(days: float, now: datetime = FIXED_NOW) -> datetime:
    return now - timedelta(days=days)


@pytest.fixture
def sample_report(fixed_now) -> AnalyticsReport:
    """A small, fully populated report"""
    segments = [
        CustomerSegmentEntry(
            user_id="user-1",
            total_spend=1200.0,
            order_count=2,
            average_order_value=600.0,
            last_purchase_date=days_ago(3),
            days_since_last_purchase=3.0,
            segment=CustomerSegment.VIP,
        ),
        CustomerSegmentEntry(
            user_id="user-2",
            total_spend=300.0,
            order_count=1,
            average_order_value=300.0,
            last_purchase_date=days_ago(45),
            days_since_last_purchase=45.0,
            segment=CustomerSegment.AT_RISK,
        ),
    ]
    return compose_report(
        active_users=4,
        total_products=3,
        total_revenue=1500.0,
        total_orders=3,
        monthly_sales=[
            MonthlySales(year=2026, month=1, revenue=300.0, orders=1),
            MonthlySales(year=2026, month=3, revenue=1200.0, orders=2),
        ],
        inventory=InventoryMetrics(total_stock=150, average_stock=50.0, low_stock=1, out_of_stock=0),
        segments=segments,
        generated_at=fixed_now,
    )
