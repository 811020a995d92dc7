"""
Date helpers shared by the feed normalizers.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Tuple

_LOG = logging.getLogger(__name__)

DISPLAY_DATETIME = "%Y-%m-%d %H:%M UTC"
DISPLAY_DATE = "%Y-%m-%d"
LONG_DATE = "%B %d, %Y"
API_DATE = "%Y-%m-%d"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-ish timestamp as returned by NASA APIs; None if unparseable."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip().replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        _LOG.debug("Unparseable timestamp: %s", value)
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed


def format_timestamp(value: Optional[str], pattern: str = DISPLAY_DATETIME) -> str:
    """Reformat a timestamp; unparseable input is returned as-is."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return value or ""
    return parsed.strftime(pattern)


def format_epoch(timestamp: Optional[int], pattern: str = DISPLAY_DATETIME) -> str:
    if timestamp is None:
        return ""
    return datetime.fromtimestamp(int(timestamp), tz=timezone.utc).strftime(pattern)


def epic_archive_path(value: str) -> str:
    """Split an EPIC capture time into archive path segments.

    ``"2024-10-05 08:24:19"`` becomes ``"2024/10/05"``.
    """
    day = value.strip().split()[0] if value and value.strip() else ""
    parts = day.split("-")
    if len(parts) != 3 or not all(part.isdigit() for part in parts):
        raise ValueError(f"Invalid EPIC date: {value!r}")
    year, month, day_of_month = parts
    return f"{year}/{month}/{day_of_month}"


def date_range(days: int, today: Optional[date] = None) -> Tuple[str, str]:
    """Start and end dates (API format) covering the last ``days`` days."""
    end = today or date.today()
    start = end - timedelta(days=days)
    return start.strftime(API_DATE), end.strftime(API_DATE)
