"""
Database Module
"""
from .connection import init_database, close_database, get_db, check_database_health
from .models import Base, User, Product, Order, OrderStatus
from .types import UTCDateTime, utc_wall_clock

__all__ = [
    "init_database",
    "close_database",
    "get_db",
    "check_database_health",
    "Base",
    "User",
    "Product",
    "Order",
    "OrderStatus",
    "UTCDateTime",
    "utc_wall_clock",
]
