"""
Dashboard Analytics Aggregator

Computes the composite dashboard report from the users, products and orders
tables. Five independent read-only queries run concurrently, each on its own
session, and are joined before the report is composed:

- user and product counts
- revenue totals
- monthly sales series
- inventory metrics
- per-customer purchase summaries with segment labels

A failure in any query cancels the others and aborts the whole report.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, AsyncContextManager, Awaitable, Callable, List, Optional, Tuple, TypeVar

import structlog
from sqlalchemy import case, extract, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dashboard_api.analytics.exceptions import AnalyticsComputationError
from dashboard_api.analytics.schemas import (
    AnalyticsReport,
    CustomerAnalytics,
    CustomerSegmentEntry,
    InventoryMetrics,
    KPIs,
    MonthlySales,
)
from dashboard_api.analytics.segmentation import as_utc, assign_segment, days_since
from dashboard_api.database.models import Order, Product, User
from dashboard_api.database.types import utc_wall_clock

logger = structlog.get_logger(__name__)

SessionScope = Callable[[], AsyncContextManager[AsyncSession]]
T = TypeVar("T")

DEFAULT_LOW_STOCK_THRESHOLD = 10


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnalyticsAggregator:
    """
    Runs the dashboard aggregation queries and composes the report.

    Example:
        aggregator = AnalyticsAggregator(get_db)
        report = await aggregator.compute_report()
    """

    def __init__(
        self,
        session_scope: SessionScope,
        low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._session_scope = session_scope
        self.low_stock_threshold = low_stock_threshold
        self._clock = clock or _utcnow

    async def _fetch(self, stmt) -> List[Any]:
        """Execute a statement on a fresh session and materialize its rows."""
        async with self._session_scope() as session:
            result = await session.execute(stmt)
            return result.all()

    async def _run_query(self, name: str, query: Awaitable[T]) -> T:
        """Await one aggregation query, tagging a failure with the query name."""
        try:
            return await query
        except Exception as e:
            raise AnalyticsComputationError(str(e), query=name) from e

    async def count_users(self) -> int:
        rows = await self._fetch(select(func.count()).select_from(User))
        return int(rows[0][0])

    async def count_products(self) -> int:
        rows = await self._fetch(select(func.count()).select_from(Product))
        return int(rows[0][0])

    async def revenue_totals(self) -> Tuple[float, int]:
        """Total revenue and order count; (0.0, 0) without orders."""
        rows = await self._fetch(
            select(
                func.sum(Order.total_amount).label("revenue"),
                func.count(Order.id).label("orders"),
            )
        )
        row = rows[0]
        return float(row.revenue or 0), int(row.orders or 0)

    async def monthly_sales(self) -> List[MonthlySales]:
        """Revenue and orders per calendar month, oldest first. Empty months are omitted."""
        order_date = utc_wall_clock(Order.order_date)
        year = extract("year", order_date)
        month = extract("month", order_date)
        rows = await self._fetch(
            select(
                year.label("year"),
                month.label("month"),
                func.sum(Order.total_amount).label("revenue"),
                func.count(Order.id).label("orders"),
            )
            .group_by(year, month)
            .order_by(year, month)
        )
        return [
            MonthlySales(
                year=int(row.year),
                month=int(row.month),
                revenue=float(row.revenue or 0),
                orders=int(row.orders),
            )
            for row in rows
        ]

    async def inventory_metrics(self) -> InventoryMetrics:
        """Stock totals across all products; all zero for an empty catalog."""
        rows = await self._fetch(
            select(
                func.count(Product.id).label("products"),
                func.sum(Product.stock).label("total_stock"),
                func.avg(Product.stock).label("average_stock"),
                func.sum(case((Product.stock < self.low_stock_threshold, 1), else_=0)).label("low_stock"),
                func.sum(case((Product.stock == 0, 1), else_=0)).label("out_of_stock"),
            )
        )
        row = rows[0]
        if not row.products:
            return InventoryMetrics()

        return InventoryMetrics(
            total_stock=int(row.total_stock or 0),
            average_stock=float(row.average_stock or 0),
            low_stock=int(row.low_stock or 0),
            out_of_stock=int(row.out_of_stock or 0),
        )

    async def customer_segments(self, now: datetime) -> List[CustomerSegmentEntry]:
        """
        Purchase summary of every user with at least one order.

        Args:
            now: Reference time for days since last purchase

        Returns:
            One entry per purchasing user, labelled with its segment
        """
        rows = await self._fetch(
            select(
                Order.user_id,
                func.sum(Order.total_amount).label("total_spend"),
                func.count(Order.id).label("order_count"),
                func.avg(Order.total_amount).label("average_order_value"),
                func.max(Order.order_date).label("last_purchase_date"),
            )
            .group_by(Order.user_id)
            .order_by(Order.user_id)
        )

        segments = []
        for row in rows:
            total_spend = float(row.total_spend or 0)
            days = days_since(row.last_purchase_date, now)
            segments.append(
                CustomerSegmentEntry(
                    user_id=str(row.user_id),
                    total_spend=total_spend,
                    order_count=int(row.order_count),
                    average_order_value=float(row.average_order_value or 0),
                    last_purchase_date=as_utc(row.last_purchase_date),
                    days_since_last_purchase=days,
                    segment=assign_segment(total_spend, days),
                )
            )
        return segments

    async def compute_report(self) -> AnalyticsReport:
        """
        Compute the full dashboard report.

        Raises:
            AnalyticsComputationError: If any query fails
        """
        now = self._clock()
        start = time.perf_counter()

        try:
            async with asyncio.TaskGroup() as tg:
                users_task = tg.create_task(self._run_query("users", self.count_users()))
                products_task = tg.create_task(self._run_query("products", self.count_products()))
                revenue_task = tg.create_task(self._run_query("revenue", self.revenue_totals()))
                monthly_task = tg.create_task(self._run_query("monthly_sales", self.monthly_sales()))
                inventory_task = tg.create_task(self._run_query("inventory", self.inventory_metrics()))
                segments_task = tg.create_task(self._run_query("customers", self.customer_segments(now)))
        except ExceptionGroup as group:
            error = group.exceptions[0]
            logger.error(
                "Analytics aggregation failed",
                query=error.query,
                error=str(error),
                error_type=type(error.__cause__).__name__,
                failures=len(group.exceptions),
            )
            raise error

        total_revenue, total_orders = revenue_task.result()
        report = compose_report(
            active_users=users_task.result(),
            total_products=products_task.result(),
            total_revenue=total_revenue,
            total_orders=total_orders,
            monthly_sales=monthly_task.result(),
            inventory=inventory_task.result(),
            segments=segments_task.result(),
            generated_at=now,
        )

        logger.info(
            "Analytics report computed",
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
            users=report.active_users,
            orders=total_orders,
            customers=report.customer_analytics.total_customers,
        )
        return report


def format_conversion_rate(total_orders: int, active_users: int) -> str:
    """Orders per user as a percentage with two decimals."""
    if active_users > 0:
        return f"{total_orders / active_users * 100:.2f}"
    return "0.00"


def compose_report(
    *,
    active_users: int,
    total_products: int,
    total_revenue: float,
    total_orders: int,
    monthly_sales: List[MonthlySales],
    inventory: InventoryMetrics,
    segments: List[CustomerSegmentEntry],
    generated_at: datetime,
) -> AnalyticsReport:
    """Combine the query results into the report, deriving the KPIs."""
    total_spend = sum(entry.total_spend for entry in segments)
    average_lifetime_value = total_spend / len(segments) if segments else 0.0

    return AnalyticsReport(
        active_users=active_users,
        total_products=total_products,
        total_revenue=total_revenue,
        monthly_sales_data=monthly_sales,
        inventory_metrics=inventory,
        customer_analytics=CustomerAnalytics(
            total_customers=len(segments),
            average_lifetime_value=average_lifetime_value,
            customers_segment=segments,
        ),
        kpis=KPIs(
            average_order_value=total_revenue / total_orders if total_orders > 0 else 0.0,
            conversion_rate=format_conversion_rate(total_orders, active_users),
            stock_turnover_rate=(
                total_revenue / inventory.total_stock if inventory.total_stock > 0 else 0.0
            ),
        ),
        generated_at=generated_at,
    )
