"""
Time Utilities

Venues report time differently: OKX sends epoch milliseconds as a string,
BitOasis and the streams send nothing and are stamped on receipt. Everything
is normalized to timezone-aware UTC datetimes, and rendered as ISO-8601 with a
trailing "Z" on the wire.
"""

from datetime import datetime, timezone
from typing import Union


def to_utc_datetime(timestamp: Union[int, float, str]) -> datetime:
    """
    Convert an epoch timestamp (seconds or milliseconds) to UTC datetime.

    Values above 1e12 are treated as milliseconds. Numeric strings are
    accepted since several venues quote timestamps as strings.

    Raises:
        ValueError: If timestamp is negative or not a number

    Examples:
        >>> to_utc_datetime(1704110400000)
        datetime.datetime(2024, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)
        >>> to_utc_datetime("1704110400")
        datetime.datetime(2024, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)
    """
    timestamp = float(timestamp)

    if timestamp < 0:
        raise ValueError(f"Timestamp cannot be negative: {timestamp}")

    if timestamp > 1e12:
        timestamp = timestamp / 1000.0

    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OSError, OverflowError, ValueError) as e:
        raise ValueError(f"Invalid timestamp: {timestamp}. Error: {e}")


def current_utc_datetime() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso8601(dt: datetime) -> str:
    """
    Render a datetime as ISO-8601 in UTC with millisecond precision.

    Naive datetimes are assumed to already be UTC.

    Example:
        >>> to_iso8601(datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc))
        '2024-01-01T12:00:00.000Z'
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"
