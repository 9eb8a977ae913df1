"""
Time parsing utilities for Foliot.

This module parses the times of day, durations and datetimes given on the
command line and resolves them against the current local time.
"""

import math
import re
from datetime import date, datetime, time, timedelta
from typing import Optional, Union

from ..core.exceptions import ParseError

# Accepts 9:30, 09:30, 0930, 09:30h and 0930h
_CLOCK_TIME_RE = re.compile(r"^(\d{1,2}):?(\d{2})h?$")

DATETIME_FORMATS = [
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
    "%d.%m.%Y-%H:%M",
    "%d.%m.%Y %H:%M",
]


def current_time() -> datetime:
    """
    Get the current local time, rounded to the nearest minute.

    Returns:
        Timezone-aware datetime in the local timezone
    """
    now = datetime.now().astimezone()
    return (now + timedelta(seconds=30)).replace(second=0, microsecond=0)


def parse_clock_time(text: str) -> time:
    """
    Parse a 24-hour time of day.

    Args:
        text: Time of day such as "15:30"

    Returns:
        The parsed time of day

    Raises:
        ParseError: If the text is malformed or out of range
    """
    match = _CLOCK_TIME_RE.match(text.strip())
    if not match:
        raise ParseError(f"unable to parse time '{text}'", value=text)

    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ParseError(f"time '{text}' is out of range", value=text)

    return time(hour, minute)


def parse_duration_hours(value: Union[str, float]) -> timedelta:
    """
    Parse a non-negative decimal number of hours.

    Args:
        value: Number of hours, e.g. "2.5"

    Returns:
        The duration, resolved to whole seconds

    Raises:
        ParseError: If the value is not a finite, non-negative number
    """
    try:
        hours = float(value)
    except (TypeError, ValueError):
        raise ParseError(f"unable to parse duration '{value}'", value=str(value))

    if math.isnan(hours) or math.isinf(hours):
        raise ParseError(f"duration '{value}' is not a finite number", value=str(value))
    if hours < 0:
        raise ParseError(f"duration '{value}' must not be negative", value=str(value))

    return timedelta(seconds=round(hours * 3600))


def combine_date_and_time(
    reference_date: Optional[date], time_of_day: time, now: datetime
) -> datetime:
    """
    Attach a date to a time of day.

    Without a reference date the time is taken to be today, unless that would
    lie in the future, in which case it is taken to be yesterday.

    Args:
        reference_date: Date to use, or None to infer it from now
        time_of_day: The time of day
        now: Current time

    Returns:
        Timezone-aware datetime, with the local UTC offset of its own date
    """
    if reference_date is not None:
        return datetime.combine(reference_date, time_of_day).astimezone()

    today = now.astimezone().date()
    result = datetime.combine(today, time_of_day).astimezone()
    if result > now:
        # Yesterday may have a different UTC offset
        result = datetime.combine(today - timedelta(days=1), time_of_day).astimezone()
    return result


def parse_starting_value(text: str, now: datetime) -> datetime:
    """
    Parse a --starting value as a full datetime or a time of day.

    Args:
        text: Datetime in one of DATETIME_FORMATS, or a time of day
        now: Current time used to resolve a bare time of day

    Returns:
        Timezone-aware datetime

    Raises:
        ParseError: If the text matches none of the accepted forms
    """
    for fmt in DATETIME_FORMATS:
        try:
            parsed = datetime.strptime(text.strip(), fmt)
        except ValueError:
            continue
        return parsed.astimezone()

    try:
        time_of_day = parse_clock_time(text)
    except ParseError:
        raise ParseError(f"unable to parse datetime '{text}'", value=text)

    return combine_date_and_time(None, time_of_day, now)
