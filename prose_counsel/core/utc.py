"""
UTC DateTime Utilities for ProSe Counsel.

All datetimes are stored and handled in UTC with timezone awareness.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Get current UTC time as timezone-aware datetime.

    This is the standard function for all timestamps.
    Always returns a datetime with tzinfo=timezone.utc.

    Example:
        from prose_counsel.core.utc import utc_now

        created_at = utc_now()  # 2025-12-08 03:00:00+00:00
    """
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """
    Get current UTC time as ISO 8601 string with Z suffix.

    Returns format: "2025-12-08T03:00:00.123456Z"
    """
    return utc_now().isoformat().replace("+00:00", "Z")


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC timezone-aware datetime.

    - If naive: assumes UTC and adds timezone
    - If aware: converts to UTC
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_iso(iso_string: str) -> datetime:
    """
    Parse ISO 8601 datetime string to timezone-aware UTC datetime.

    Handles:
    - "2025-12-08T03:00:00Z"
    - "2025-12-08T03:00:00+00:00"
    - "2025-12-08T03:00:00" (assumes UTC)
    - "2025-12-08" (midnight UTC)

    Raises:
        ValueError: if the string is not ISO 8601
    """
    cleaned = iso_string.strip().replace("Z", "+00:00")
    return to_utc(datetime.fromisoformat(cleaned))
