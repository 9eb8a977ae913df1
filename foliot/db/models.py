"""
Data models for Foliot.

This module defines the Pydantic models for clock entries, running clocks,
namespaces and period summaries.
"""

from datetime import date, datetime, timedelta
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


def _localize(value: datetime) -> datetime:
    """Attach the local timezone to a naive timestamp."""
    if value.tzinfo is None:
        return value.astimezone()
    return value


class Entry(BaseModel):
    """Model for a completed clock entry."""

    start_time: datetime = Field(..., description="Time the clock was started")
    end_time: datetime = Field(..., description="Time the clock was stopped")
    comment: Optional[str] = Field(None, description="Optional comment")

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_timezone(cls, v: datetime) -> datetime:
        """Read timestamps without an offset as local time."""
        return _localize(v)

    @field_validator("comment")
    @classmethod
    def validate_comment(cls, v: Optional[str]) -> Optional[str]:
        """Strip comments and treat blank ones as absent."""
        if v is None:
            return None
        v = v.strip()
        return v or None

    @model_validator(mode="after")
    def validate_span(self) -> "Entry":
        """Validate that the entry does not end before it starts."""
        if self.end_time < self.start_time:
            raise ValueError("End time must not be before start time")
        return self

    @property
    def duration(self) -> timedelta:
        """Get the duration of the entry."""
        return self.end_time - self.start_time

    def overlaps(self, other: "Entry") -> bool:
        """Check whether the spans of two entries overlap (touching is fine)."""
        return self.start_time < other.end_time and other.start_time < self.end_time


class Session(BaseModel):
    """Model for a running clock that has not been stopped yet."""

    start_time: datetime = Field(..., description="Time the clock was started")

    @field_validator("start_time")
    @classmethod
    def validate_timezone(cls, v: datetime) -> datetime:
        """Read a start time without an offset as local time."""
        return _localize(v)

    def elapsed(self, now: datetime) -> timedelta:
        """Get the time elapsed since clock-in."""
        return now - self.start_time


class Namespace(BaseModel):
    """Model for a named, independent time tracking record."""

    name: str = Field(..., min_length=1, description="Namespace name")
    session: Optional[Session] = Field(
        None, description="Running clock (None while idle)"
    )
    entries: List[Entry] = Field(
        default_factory=list, description="Completed entries in insertion order"
    )

    @property
    def is_running(self) -> bool:
        """Check if a clock is running in this namespace."""
        return self.session is not None


class PeriodSummary(BaseModel):
    """Model for the aggregated time of one calendar period."""

    period_start: date = Field(..., description="First day of the period")
    label: str = Field(..., description="Human readable period label")
    total_duration: timedelta = Field(
        timedelta(0), description="Sum of entry durations"
    )
    entry_count: int = Field(0, description="Number of entries")
    days_active: int = Field(0, description="Number of distinct start dates")
    days_in_period: int = Field(..., gt=0, description="Calendar days in the period")

    @property
    def hours_per_week(self) -> float:
        """Average tracked hours per week over the whole period."""
        weeks = self.days_in_period / 7
        return self.total_duration.total_seconds() / 3600 / weeks

