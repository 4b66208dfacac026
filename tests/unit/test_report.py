"""
Unit Tests - Report Composition
"""
import pytest

from dashboard_api.analytics.aggregator import compose_report, format_conversion_rate
from dashboard_api.analytics.schemas import InventoryMetrics, MonthlySales


def empty_report(fixed_now, **overrides):
    values = dict(
        active_users=0,
        total_products=0,
        total_revenue=0.0,
        total_orders=0,
        monthly_sales=[],
        inventory=InventoryMetrics(),
        segments=[],
        generated_at=fixed_now,
    )
    values.update(overrides)
    return compose_report(**values)


class TestComposeReport:
    """Tests for KPI derivation"""

    def test_empty_store(self, fixed_now):
        """Test a fresh deployment with no records at all"""
        report = empty_report(fixed_now)

        assert report.total_revenue == 0
        assert report.monthly_sales_data == []
        assert report.kpis.average_order_value == 0
        assert report.kpis.conversion_rate == "0.00"
        assert report.kpis.stock_turnover_rate == 0
        assert report.customer_analytics.total_customers == 0
        assert report.customer_analytics.average_lifetime_value == 0
        assert report.inventory_metrics == InventoryMetrics(
            total_stock=0, average_stock=0.0, low_stock=0, out_of_stock=0
        )

    def test_users_without_orders(self, fixed_now):
        """Test conversion rate is zero when users exist but nobody ordered"""
        report = empty_report(fixed_now, active_users=5)

        assert report.kpis.conversion_rate == "0.00"
        assert float(report.kpis.conversion_rate) == 0

    def test_kpis(self, sample_report):
        """Test KPI values of a populated report"""
        assert sample_report.kpis.average_order_value == pytest.approx(500.0)
        assert sample_report.kpis.conversion_rate == "75.00"
        assert sample_report.kpis.stock_turnover_rate == pytest.approx(10.0)

    def test_average_lifetime_value(self, sample_report):
        """Test lifetime value averages spend over purchasing customers only"""
        analytics = sample_report.customer_analytics

        assert analytics.total_customers == 2
        assert analytics.average_lifetime_value == pytest.approx(750.0)

    def test_stock_turnover_without_stock(self, fixed_now):
        """Test revenue with an empty warehouse does not divide by zero"""
        report = empty_report(
            fixed_now,
            total_revenue=600.0,
            total_orders=3,
            total_products=2,
            inventory=InventoryMetrics(total_stock=0, average_stock=0.0, low_stock=2, out_of_stock=2),
        )

        assert report.kpis.stock_turnover_rate == 0
        assert report.kpis.average_order_value == pytest.approx(200.0)

    def test_monthly_rows_are_passed_through(self, fixed_now):
        rows = [MonthlySales(year=2026, month=2, revenue=10.0, orders=1)]
        report = empty_report(fixed_now, monthly_sales=rows)

        assert report.monthly_sales_data == rows


class TestConversionRate:
    """Tests for conversion rate formatting"""

    @pytest.mark.parametrize(
        "orders,users,expected",
        [
            (3, 1, "300.00"),
            (1, 3, "33.33"),
            (2, 3, "66.67"),
            (0, 10, "0.00"),
            (5, 0, "0.00"),
        ],
    )
    def test_formatting(self, orders, users, expected):
        assert format_conversion_rate(orders, users) == expected


class TestReportSerialization:
    """Tests for the JSON shape consumed by the dashboard"""

    def test_camel_case_fields(self, sample_report):
        data = sample_report.model_dump(by_alias=True, mode="json")

        assert set(data) == {
            "activeUsers",
            "totalProducts",
            "totalRevenue",
            "monthlySalesData",
            "inventoryMetrics",
            "customerAnalytics",
            "kpis",
            "generatedAt",
        }
        assert set(data["inventoryMetrics"]) == {"totalStock", "averageStock", "lowStock", "outOfStock"}
        assert set(data["customerAnalytics"]) == {
            "totalCustomers",
            "averageLifetimeValue",
            "customersSegment",
        }
        assert set(data["kpis"]) == {"averageOrderValue", "conversionRate", "stockTurnoverRate"}
        assert data["monthlySalesData"][0] == {"year": 2026, "month": 1, "revenue": 300.0, "orders": 1}

    def test_segment_entry_fields(self, sample_report):
        entry = sample_report.model_dump(by_alias=True, mode="json")["customerAnalytics"]["customersSegment"][0]

        assert entry["userId"] == "user-1"
        assert entry["totalSpend"] == 1200.0
        assert entry["orderCount"] == 2
        assert entry["daysSinceLastPurchase"] == 3.0
        assert entry["segment"] == "VIP"
        assert "lastPurchaseDate" in entry
