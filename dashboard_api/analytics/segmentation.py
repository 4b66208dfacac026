"""
Customer Segmentation Rules

Labels a purchasing customer from their total spend and the time since
their most recent order. Rules are evaluated in order; the first match wins.
"""

from datetime import datetime, timezone
from enum import Enum

VIP_SPEND_THRESHOLD = 1000
RECENT_PURCHASE_DAYS = 7
REGULAR_PURCHASE_DAYS = 30

SECONDS_PER_DAY = 60 * 60 * 24


class CustomerSegment(str, Enum):
    """Segment labels as shown on the dashboard"""
    VIP = "VIP"
    ACTIVE = "Active"
    REGULAR = "Regular"
    AT_RISK = "At risk"


def assign_segment(total_spend: float, days_since_last_purchase: float) -> CustomerSegment:
    """
    Assign a segment label.

    Args:
        total_spend: Sum of the customer's order amounts
        days_since_last_purchase: Fractional days since the latest order

    Returns:
        CustomerSegment: VIP, Active, Regular or At risk
    """
    if total_spend >= VIP_SPEND_THRESHOLD and days_since_last_purchase < RECENT_PURCHASE_DAYS:
        return CustomerSegment.VIP
    if days_since_last_purchase < RECENT_PURCHASE_DAYS:
        return CustomerSegment.ACTIVE
    if days_since_last_purchase < REGULAR_PURCHASE_DAYS:
        return CustomerSegment.REGULAR
    return CustomerSegment.AT_RISK


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps from the store as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_since(moment: datetime, now: datetime) -> float:
    """Fractional number of days elapsed between moment and now."""
    return (as_utc(now) - as_utc(moment)).total_seconds() / SECONDS_PER_DAY
