"""
Analytics Module
"""
from .aggregator import AnalyticsAggregator, compose_report
from .exceptions import AnalyticsError, AnalyticsComputationError
from .schemas import AnalyticsReport
from .segmentation import CustomerSegment, assign_segment

__all__ = [
    "AnalyticsAggregator",
    "compose_report",
    "AnalyticsError",
    "AnalyticsComputationError",
    "AnalyticsReport",
    "CustomerSegment",
    "assign_segment",
]
