from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current instant as a naive UTC datetime, the form pymongo stores and returns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_storage(value: Optional[datetime]) -> Optional[datetime]:
    # aware values are shifted to UTC, naive values are taken as UTC already
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def to_iso_millis(value: datetime) -> str:
    """Render an instant as ISO-8601 UTC with milliseconds, e.g. 2026-10-19T08:15:30.123Z."""
    value = to_storage(value)
    return value.isoformat(timespec="milliseconds") + "Z"
