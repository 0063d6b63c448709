"""
Date and time utilities for the ingestion pipeline.
Provides lenient parsing of cell values and the day-boundary helpers used by filters.
"""

from datetime import datetime, date, time, timezone
from typing import Any, Optional

from dateutil import parser

from dashboard.utils.logger import get_logger

logger = get_logger(__name__)

END_OF_DAY = time(23, 59, 59, 999999)
# Fills the parts a partial value leaves out, instead of the current date
PARSE_DEFAULT = datetime(1970, 1, 1)


def to_naive_utc(dt: datetime) -> datetime:
    """Drop tzinfo after converting aware datetimes to UTC; naive values pass through."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a raw cell value into a naive UTC datetime.

    Args:
        value: String, datetime or date taken from a spreadsheet or CSV cell

    Returns:
        Parsed datetime, or None if the value is empty or not a date
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return to_naive_utc(value)

    if isinstance(value, date):
        return datetime.combine(value, time.min)

    date_string = str(value).strip()
    if not date_string:
        return None

    try:
        return to_naive_utc(parser.parse(date_string, default=PARSE_DEFAULT))
    except (ValueError, OverflowError, TypeError):
        logger.debug(f"Unparseable date value: {date_string!r}")
        return None


def end_of_day(dt: datetime) -> datetime:
    """Move a datetime to the last representable instant of its day."""
    return datetime.combine(dt.date(), END_OF_DAY)


def format_iso(dt: Optional[datetime]) -> str:
    """ISO-8601 with millisecond precision and a Z suffix, empty for None."""
    if dt is None:
        return ""
    return to_naive_utc(dt).isoformat(timespec="milliseconds") + "Z"
