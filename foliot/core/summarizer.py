"""
Period summaries for Foliot.

Entries are grouped by the calendar period containing their start time. An
entry running across a period boundary counts entirely towards the period it
started in.
"""

import calendar
from collections import defaultdict
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Dict, Iterable, List

from ..db.models import Entry, PeriodSummary


class Granularity(str, Enum):
    """Calendar unit used to group entries."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


def period_start(moment: datetime, granularity: Granularity) -> date:
    """Get the first day of the period containing moment."""
    day = moment.date()
    if granularity == Granularity.DAY:
        return day
    if granularity == Granularity.WEEK:
        return day - timedelta(days=day.weekday())
    if granularity == Granularity.MONTH:
        return day.replace(day=1)
    return day.replace(month=1, day=1)


def days_in_period(start: date, granularity: Granularity) -> int:
    """Get the number of calendar days of the period starting at start."""
    if granularity == Granularity.DAY:
        return 1
    if granularity == Granularity.WEEK:
        return 7
    if granularity == Granularity.MONTH:
        return calendar.monthrange(start.year, start.month)[1]
    return 366 if calendar.isleap(start.year) else 365


def period_label(start: date, granularity: Granularity) -> str:
    """Get a sortable, human readable label for a period."""
    if granularity == Granularity.DAY:
        return start.strftime("%Y-%m-%d (%a)")
    if granularity == Granularity.WEEK:
        year, week, _ = start.isocalendar()
        return f"{year}-W{week:02d}"
    if granularity == Granularity.MONTH:
        return start.strftime("%Y-%m (%B)")
    return start.strftime("%Y")


def summarize(
    entries: Iterable[Entry], granularity: Granularity = Granularity.MONTH
) -> List[PeriodSummary]:
    """
    Aggregate entries into per-period totals.

    Args:
        entries: Entries to aggregate, in any order
        granularity: Calendar unit to group by

    Returns:
        One summary per period that has entries, oldest period first
    """
    groups: Dict[date, List[Entry]] = defaultdict(list)
    for entry in entries:
        groups[period_start(entry.start_time, granularity)].append(entry)

    summaries = []
    for start in sorted(groups):
        group = groups[start]
        summaries.append(
            PeriodSummary(
                period_start=start,
                label=period_label(start, granularity),
                total_duration=total_all(group),
                entry_count=len(group),
                days_active=len({e.start_time.date() for e in group}),
                days_in_period=days_in_period(start, granularity),
            )
        )

    return summaries


def total_all(entries: Iterable[Entry]) -> timedelta:
    """Sum the durations of all entries."""
    return sum((entry.duration for entry in entries), timedelta(0))
