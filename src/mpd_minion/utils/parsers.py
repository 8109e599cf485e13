"""
Value parsing utilities.

MPD reports every value as a string; these helpers turn them into numbers
without raising on empty or malformed input.
"""

from typing import Any


def atoi_def(value: Any, default: int) -> int:
    """
    Parse an integer, falling back to a default.

    Args:
        value: Raw value (usually a string from the server)
        default: Value returned when parsing fails

    Returns:
        Parsed integer or default

    Example:
        atoi_def("12", -1) -> 12
        atoi_def("", -1) -> -1
    """
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_float_def(value: Any, default: float) -> float:
    """Parse a float, falling back to a default."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def first_value(value: Any) -> Any:
    """Return the first element of a repeated tag, or the value itself.

    python-mpd2 returns a list when a song carries the same tag more than once
    (e.g. several Artist lines).
    """
    if isinstance(value, list):
        return value[0] if value else None
    return value


def format_time(seconds: float) -> str:
    """Format time in seconds to M:SS (or H:MM:SS) format."""
    if seconds < 0:
        return "0:00"

    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"
