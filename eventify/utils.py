from datetime import datetime, timezone
from typing import Optional


def as_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Return a timezone-naive datetime in UTC for storage."""

    if dt is None or dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)
