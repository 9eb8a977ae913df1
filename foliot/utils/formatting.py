"""
Display helpers for durations and timestamps.

Timestamps are printed in the wall-clock time they were recorded in, using
the date and time formats from the configuration.
"""

from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from .config import get_config_manager


def format_duration(duration: timedelta, show_seconds: Optional[bool] = None) -> str:
    """
    Format a duration as hours and minutes, e.g. "2h 30m".

    Zero units are left out. Negative durations count as zero.

    Args:
        duration: Duration to format
        show_seconds: Append seconds; the display.show_seconds setting if None

    Returns:
        Duration text, "0m" (or "0s" with seconds) for an empty duration
    """
    if show_seconds is None:
        show_seconds = get_config_manager().show_seconds()

    minutes, seconds = divmod(max(int(duration.total_seconds()), 0), 60)
    hours, minutes = divmod(minutes, 60)

    units: List[Tuple[int, str]] = [(hours, "h"), (minutes, "m")]
    if show_seconds:
        units.append((seconds, "s"))

    text = " ".join(f"{value}{unit}" for value, unit in units if value)
    return text or f"0{units[-1][1]}"


def format_hours(duration: timedelta) -> str:
    """Format a duration as decimal hours with two places."""
    return f"{duration / timedelta(hours=1):.2f}"


def format_date(dt: datetime) -> str:
    return dt.strftime(get_config_manager().get_date_format())


def format_time(dt: datetime) -> str:
    return dt.strftime(get_config_manager().get_time_format())


def format_datetime(dt: datetime) -> str:
    """Format a timestamp as its configured date followed by its time."""
    return f"{format_date(dt)} {format_time(dt)}"


def pluralize(count: int, singular: str, plural: Optional[str] = None) -> str:
    """Pick the word form for count; the plural defaults to singular + "s"."""
    if count == 1:
        return singular
    return plural or f"{singular}s"
