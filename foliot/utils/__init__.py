"""Utility functions for Foliot."""

from .formatting import format_datetime, format_duration, format_hours, pluralize
from .time_parsing import (
    combine_date_and_time,
    current_time,
    parse_clock_time,
    parse_duration_hours,
    parse_starting_value,
)

__all__ = [
    "combine_date_and_time",
    "current_time",
    "format_datetime",
    "format_duration",
    "format_hours",
    "parse_clock_time",
    "parse_duration_hours",
    "parse_starting_value",
    "pluralize",
]
