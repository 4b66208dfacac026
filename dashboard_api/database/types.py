"""
Column Types

Timestamps are stored and returned in UTC on every backend. SQLite has no
timezone-aware column type and keeps only the wall-clock part of a value,
so offsets are normalized before they reach the driver.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.functions import FunctionElement
from sqlalchemy.types import TypeDecorator


def _to_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return value
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timezone-aware timestamp, converted to UTC on write and read"""
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return _to_utc(value)

    def process_result_value(self, value, dialect):
        return _to_utc(value)


class utc_wall_clock(FunctionElement):
    """
    A timestamp expression as UTC wall-clock time.

    Wrap a column with this before extracting calendar parts so the year and
    month do not depend on the session time zone.
    """
    name = "utc_wall_clock"
    type = DateTime()
    inherit_cache = True


@compiles(utc_wall_clock)
def _compile_utc_wall_clock(element, compiler, **kw):
    # Other backends already store the UTC wall-clock value
    return compiler.process(element.clauses, **kw)


@compiles(utc_wall_clock, "postgresql")
def _compile_utc_wall_clock_postgresql(element, compiler, **kw):
    return "timezone('UTC', %s)" % compiler.process(element.clauses, **kw)
