"""
Serving Module
"""
from .cache import (
    ReportCache,
    InMemoryReportCache,
    RedisReportCache,
    create_report_cache,
    init_redis,
    close_redis,
)

__all__ = [
    "ReportCache",
    "InMemoryReportCache",
    "RedisReportCache",
    "create_report_cache",
    "init_redis",
    "close_redis",
]
