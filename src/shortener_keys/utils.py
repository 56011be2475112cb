import uuid
from datetime import datetime, timezone
from typing import Optional


def uuid_factory() -> str:
    """Helper function to create a UUID string."""
    return uuid.uuid4().hex


def raw_key_factory() -> str:
    """Helper function to create a new random raw API key (dashed uuid4)."""
    return str(uuid.uuid4())


def datetime_factory() -> datetime:
    """Helper function to create a timezone-aware datetime object."""
    return datetime.now(timezone.utc)


def normalize_datetime(value: Optional[datetime]) -> Optional[datetime]:
    """Ensure datetimes are timezone-aware and expressed in UTC.

    Naive values are taken as UTC. Values with another offset are converted,
    since some backends (SQLite) drop the offset when storing them.
    """
    if value is None:
        return None

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)

    return value.astimezone(timezone.utc)
