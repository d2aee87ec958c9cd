"""
Utility helper functions
"""
import math
import re
from datetime import datetime, timezone
from typing import Optional

INVALID_DATE = "Invalid Date"

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def sanitize_filename(name: str) -> str:
    """
    Sanitize a string to be used as a filename.

    Args:
        name: Original name

    Returns:
        Sanitized filename
    """
    # Remove invalid characters
    sanitized = re.sub(r'[<>:"/\\|?*]', '', name)
    # Replace spaces with underscores
    sanitized = sanitized.replace(' ', '_')
    # Limit length
    return sanitized[:100]


def format_duration(ms: float) -> str:
    """
    Format duration in milliseconds to human-readable string.

    Args:
        ms: Duration in milliseconds

    Returns:
        Formatted duration string
    """
    if math.isnan(ms):
        return "NaN"
    if ms < 1000:
        return f"{int(ms)}ms"
    elif ms < 60000:
        return f"{ms / 1000:.1f}s"
    else:
        minutes = int(ms // 60000)
        seconds = (ms % 60000) / 1000
        return f"{minutes}m {seconds:.0f}s"


def format_seconds(ms: float) -> str:
    """Milliseconds as seconds with one decimal, e.g. 2200 -> '2.2'."""
    if math.isnan(ms):
        return "NaN"
    return f"{ms / 1000:.1f}"


def js_round(value: float) -> float:
    """
    Round half up, the way the dashboard's client code rounds.

    NaN is returned unchanged so bad input stays visible.
    """
    if math.isnan(value) or math.isinf(value):
        return value
    return math.floor(value + 0.5)


def timestamp_now() -> str:
    """Get current UTC timestamp as ISO format string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(ts: Optional[str]) -> Optional[datetime]:
    """Parse an ISO format timestamp string; naive values are taken as local time."""
    if not ts:
        return None
    try:
        parsed = datetime.fromisoformat(ts.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def timestamp_to_ms(ts: Optional[str]) -> float:
    """
    Convert an ISO timestamp to epoch milliseconds.

    Returns NaN for anything that does not parse.
    """
    parsed = parse_timestamp(ts)
    if parsed is None:
        return math.nan
    return round(parsed.timestamp() * 1000)


def _twelve_hour(dt: datetime) -> tuple:
    hour = dt.hour % 12 or 12
    meridiem = "AM" if dt.hour < 12 else "PM"
    return hour, meridiem


def format_timestamp(ts: Optional[str]) -> str:
    """
    Format an ISO timestamp for run cards.

    Example: "Jan 19, 2024, 1:53 PM"
    """
    parsed = parse_timestamp(ts)
    if parsed is None:
        return INVALID_DATE
    local = parsed.astimezone()
    hour, meridiem = _twelve_hour(local)
    return f"{_MONTHS[local.month - 1]} {local.day}, {local.year}, {hour}:{local.minute:02d} {meridiem}"


def format_chart_label(ts: Optional[str]) -> str:
    """
    Format an ISO timestamp for chart axes.

    Example: "Jan 19, 01:53 PM"
    """
    parsed = parse_timestamp(ts)
    if parsed is None:
        return INVALID_DATE
    local = parsed.astimezone()
    hour, meridiem = _twelve_hour(local)
    return f"{_MONTHS[local.month - 1]} {local.day}, {hour:02d}:{local.minute:02d} {meridiem}"
