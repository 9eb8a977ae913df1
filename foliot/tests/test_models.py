"""
Tests for data models (foliot.db.models).

This module tests the Pydantic models including validation and derived values.
"""

from datetime import date, datetime, timedelta

import pytest
from pydantic import ValidationError

from conftest import at
from foliot.db.models import Entry, Namespace, PeriodSummary, Session


class TestEntry:
    """Test cases for Entry model."""

    def test_entry_creation(self) -> None:
        """Test creating an entry with all fields."""
        # Act
        entry = Entry(
            start_time=at(2024, 1, 1, 9, 0),
            end_time=at(2024, 1, 1, 10, 30),
            comment="standup",
        )

        # Assert
        assert entry.start_time == at(2024, 1, 1, 9, 0)
        assert entry.end_time == at(2024, 1, 1, 10, 30)
        assert entry.comment == "standup"
        assert entry.duration == timedelta(hours=1, minutes=30)

    def test_entry_without_comment(self) -> None:
        """Test that the comment is optional."""
        entry = Entry(start_time=at(2024, 1, 1, 9, 0), end_time=at(2024, 1, 1, 9, 5))

        assert entry.comment is None

    def test_entry_blank_comment_is_dropped(self) -> None:
        """Test that blank comments are treated as absent and others stripped."""
        blank = Entry(
            start_time=at(2024, 1, 1, 9, 0), end_time=at(2024, 1, 1, 9, 5), comment="   "
        )
        padded = Entry(
            start_time=at(2024, 1, 1, 9, 0), end_time=at(2024, 1, 1, 9, 5), comment=" x "
        )

        assert blank.comment is None
        assert padded.comment == "x"

    def test_entry_end_before_start_raises_error(self) -> None:
        """Test that an entry cannot end before it starts."""
        with pytest.raises(ValidationError) as exc_info:
            Entry(start_time=at(2024, 1, 1, 10, 0), end_time=at(2024, 1, 1, 9, 0))

        assert "End time must not be before start time" in str(exc_info.value)

    def test_entry_zero_length_is_allowed(self) -> None:
        """Test that an entry may end exactly when it starts."""
        entry = Entry(start_time=at(2024, 1, 1, 10, 0), end_time=at(2024, 1, 1, 10, 0))

        assert entry.duration == timedelta(0)

    def test_entry_overlaps(self) -> None:
        """Test overlap detection between entries."""
        base = Entry(start_time=at(2024, 1, 1, 9, 0), end_time=at(2024, 1, 1, 11, 0))
        inside = Entry(start_time=at(2024, 1, 1, 9, 30), end_time=at(2024, 1, 1, 10, 0))
        touching = Entry(start_time=at(2024, 1, 1, 11, 0), end_time=at(2024, 1, 1, 12, 0))
        around = Entry(start_time=at(2024, 1, 1, 8, 0), end_time=at(2024, 1, 1, 12, 0))

        assert base.overlaps(inside)
        assert inside.overlaps(base)
        assert base.overlaps(around)
        assert not base.overlaps(touching)
        assert not touching.overlaps(base)

    def test_entry_parses_iso_strings(self) -> None:
        """Test that timestamps can be given as ISO strings, as read from YAML."""
        entry = Entry.model_validate(
            {
                "start_time": "2024-01-01T09:00:00+01:00",
                "end_time": "2024-01-01T09:15:00+01:00",
            }
        )

        assert entry.start_time == at(2024, 1, 1, 9, 0)
        assert entry.duration == timedelta(minutes=15)

    def test_entry_naive_timestamps_are_local(self) -> None:
        """Test that timestamps without an offset get the local one."""
        entry = Entry(start_time=datetime(2024, 1, 1, 9, 0), end_time=at(2024, 1, 1, 10, 0))

        assert entry.start_time.tzinfo is not None
        assert entry.start_time == at(2024, 1, 1, 9, 0)
        assert entry.duration == timedelta(hours=1)


class TestSession:
    """Test cases for Session model."""

    def test_session_elapsed(self) -> None:
        """Test elapsed time of a running clock."""
        session = Session(start_time=at(2024, 1, 1, 9, 0))

        assert session.elapsed(at(2024, 1, 1, 11, 15)) == timedelta(hours=2, minutes=15)

    def test_session_naive_start_is_local(self) -> None:
        """Test that a start time without an offset can be compared with now."""
        session = Session.model_validate({"start_time": "2024-01-01T09:00:00"})

        assert session.start_time.utcoffset() == timedelta(hours=1)
        assert session.elapsed(at(2024, 1, 1, 9, 30)) == timedelta(minutes=30)


class TestNamespace:
    """Test cases for Namespace model."""

    def test_namespace_defaults(self) -> None:
        """Test a fresh namespace is idle and empty."""
        namespace = Namespace(name="default")

        assert namespace.session is None
        assert namespace.entries == []
        assert namespace.is_running is False

    def test_namespace_running(self) -> None:
        """Test is_running with a session."""
        namespace = Namespace(name="work", session=Session(start_time=at(2024, 1, 1)))

        assert namespace.is_running is True

    def test_namespace_name_must_not_be_empty(self) -> None:
        """Test that an empty namespace name is rejected."""
        with pytest.raises(ValidationError):
            Namespace(name="")

    def test_namespace_equality(self, sample_namespace: Namespace) -> None:
        """Test that namespaces compare by value."""
        copy = sample_namespace.model_copy(deep=True)

        assert copy == sample_namespace
        copy.entries.pop()
        assert copy != sample_namespace


class TestPeriodSummary:
    """Test cases for PeriodSummary model."""

    def test_hours_per_week(self) -> None:
        """Test average hours per week over a 28 day month."""
        summary = PeriodSummary(
            period_start=date(2023, 2, 1),
            label="2023-02 (February)",
            total_duration=timedelta(hours=40),
            entry_count=10,
            days_active=8,
            days_in_period=28,
        )

        assert summary.hours_per_week == pytest.approx(10.0)

    def test_days_in_period_must_be_positive(self) -> None:
        """Test that a period has at least one day."""
        with pytest.raises(ValidationError):
            PeriodSummary(period_start=date(2024, 1, 1), label="x", days_in_period=0)
