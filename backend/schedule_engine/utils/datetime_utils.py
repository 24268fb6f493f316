"""
Timezone-aware datetime utilities.

The engine stores and compares UTC datetimes only. SQLite hands back naive
values, which are interpreted as UTC.
"""

from datetime import datetime, timezone
from typing import Annotated, Optional

from pydantic import AfterValidator

# UTC timezone constant
UTC = timezone.utc


def now_utc() -> datetime:
    """
    Get current UTC datetime (timezone-aware).

    Replaces datetime.utcnow() which is deprecated in Python 3.12+.

    Returns:
        datetime: Current UTC time with tzinfo set to UTC
    """
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure datetime is timezone-aware and in UTC.

    Args:
        dt: datetime to convert (can be None, naive, or timezone-aware)

    Returns:
        Optional[datetime]: UTC timezone-aware datetime, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume UTC
        return dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC)


def to_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Strip tzinfo after converting to UTC (for SQLite DateTime columns)."""
    if dt is None:
        return None
    return ensure_utc(dt).replace(tzinfo=None)


# Pydantic field type: any datetime input, stored as aware UTC
UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]
