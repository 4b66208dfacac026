"""
Analytics Errors
"""

from typing import Optional


class AnalyticsError(Exception):
    """Base class for analytics failures"""


class AnalyticsComputationError(AnalyticsError):
    """
    The report could not be computed.

    Raised when the record store is unreachable or one of the aggregation
    queries fails. The message carries the underlying error text and
    `query` names the aggregation that failed, when known.
    """

    def __init__(self, message: str, query: Optional[str] = None):
        super().__init__(message)
        self.query = query
