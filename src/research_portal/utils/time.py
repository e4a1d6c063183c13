"""Time and date helpers."""

from datetime import date, datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Timezone-aware current UTC time (column default)."""
    return datetime.now(timezone.utc)


def utc_now_z() -> str:
    """
    Get current UTC time as ISO 8601 string with Z suffix.

    Example:
        >>> utc_now_z()
        '2025-12-23T00:27:07.804867Z'
    """
    return utc_now().isoformat().replace("+00:00", "Z")


def parse_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a YYYY-MM-DD string into a date.

    Empty or None input returns None so callers can pass optional CLI
    arguments straight through.

    Raises:
        ValueError: If the string is not an ISO calendar date
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValueError(f"Invalid date '{value}'. Expected YYYY-MM-DD") from None
