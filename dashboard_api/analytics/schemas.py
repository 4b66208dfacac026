"""
Analytics Report Schemas

Response models for the dashboard. Fields are snake_case in Python and
serialized in camelCase, the shape the dashboard page consumes.
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from dashboard_api.analytics.segmentation import CustomerSegment


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MonthlySales(CamelModel):
    """Revenue and order count of one calendar month"""
    year: int
    month: int = Field(ge=1, le=12)
    revenue: float
    orders: int


class InventoryMetrics(CamelModel):
    """Stock levels across the catalog"""
    total_stock: int = 0
    average_stock: float = 0.0
    low_stock: int = 0
    out_of_stock: int = 0


class CustomerSegmentEntry(CamelModel):
    """Per-customer purchase summary with its segment label"""
    user_id: str
    total_spend: float
    order_count: int
    average_order_value: float
    last_purchase_date: datetime
    days_since_last_purchase: float
    segment: CustomerSegment


class CustomerAnalytics(CamelModel):
    """Purchasing customers and their lifetime value"""
    total_customers: int
    average_lifetime_value: float
    customers_segment: List[CustomerSegmentEntry]


class KPIs(CamelModel):
    """Derived headline ratios"""
    average_order_value: float
    conversion_rate: str
    stock_turnover_rate: float


class AnalyticsReport(CamelModel):
    """Composite dashboard report"""
    active_users: int
    total_products: int
    total_revenue: float
    monthly_sales_data: List[MonthlySales]
    inventory_metrics: InventoryMetrics
    customer_analytics: CustomerAnalytics
    kpis: KPIs
    generated_at: datetime


class ErrorResponse(BaseModel):
    """Error body returned with HTTP 500"""
    message: str
    error: str
