"""
Pytest configuration and fixtures for Foliot tests.

This module provides shared fixtures and configuration for all test modules.
"""

import os
import tempfile
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator, List
from unittest.mock import patch

import pytest

import foliot.utils.config as config_module
from foliot.core.store import NamespaceStore
from foliot.core.time_tracker import TimeTracker
from foliot.db.models import Entry, Namespace, Session
from foliot.db.repository import NamespaceRepository

# Fixed wall-clock offset so tests do not depend on the machine timezone
TZ = timezone(timedelta(hours=1))

# POSIX TZ value with the same fixed offset as TZ
LOCAL_TZ = "CET-1"

# Central European time with its DST rules, as a POSIX TZ value
DST_TZ = "CET-1CEST,M3.5.0,M10.5.0/3"


def at(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    """Build an aware datetime in the test timezone."""
    return datetime(year, month, day, hour, minute, tzinfo=TZ)


class FakeClock:
    """Controllable replacement for current_time."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def use_timezone(monkeypatch: pytest.MonkeyPatch, tz: str) -> None:
    """Switch the process local timezone."""
    monkeypatch.setenv("TZ", tz)
    time.tzset()


@pytest.fixture(autouse=True)
def local_timezone(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Make the local timezone match TZ."""
    if not hasattr(time, "tzset"):
        pytest.skip("changing the local timezone needs time.tzset")
    use_timezone(monkeypatch, LOCAL_TZ)
    yield
    monkeypatch.undo()
    time.tzset()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path) -> Generator[None, None, None]:
    """Keep the configuration manager away from the real user directories."""
    with (
        patch.object(config_module, "user_config_dir", return_value=str(tmp_path / "config")),
        patch.object(config_module, "user_data_dir", return_value=str(tmp_path / "data")),
        patch.object(config_module, "_config_manager", None),
    ):
        yield


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def repository(temp_dir: Path) -> NamespaceRepository:
    """Provide a repository on a temporary data directory."""
    return NamespaceRepository(temp_dir)


@pytest.fixture
def store(repository: NamespaceRepository) -> NamespaceStore:
    """Provide a namespace store on the test repository."""
    return NamespaceStore(repository, lock_timeout=1.0)


@pytest.fixture
def fake_clock() -> FakeClock:
    """Provide a clock fixed at 2024-03-15 18:00."""
    return FakeClock(at(2024, 3, 15, 18, 0))


@pytest.fixture
def time_tracker(temp_dir: Path, fake_clock: FakeClock) -> TimeTracker:
    """Provide a test time tracker instance driven by the fake clock."""
    return TimeTracker(temp_dir, clock=fake_clock, lock_timeout=1.0)


@pytest.fixture
def sample_entry() -> Entry:
    """Provide a sample entry for testing."""
    return Entry(
        start_time=at(2024, 1, 1, 9, 0),
        end_time=at(2024, 1, 1, 10, 30),
        comment="Write tests",
    )


@pytest.fixture
def sample_entries() -> List[Entry]:
    """Provide entries spread over two months, one crossing the month edge."""
    return [
        Entry(start_time=at(2024, 1, 10, 9, 0), end_time=at(2024, 1, 10, 12, 0), comment="planning"),
        Entry(start_time=at(2024, 1, 10, 13, 0), end_time=at(2024, 1, 10, 14, 30)),
        Entry(start_time=at(2024, 1, 31, 23, 50), end_time=at(2024, 2, 1, 0, 10), comment="deploy"),
        Entry(start_time=at(2024, 2, 5, 8, 0), end_time=at(2024, 2, 5, 10, 0), comment="review"),
    ]


@pytest.fixture
def sample_namespace(sample_entries: List[Entry]) -> Namespace:
    """Provide a running namespace with entries."""
    return Namespace(
        name="work",
        session=Session(start_time=at(2024, 2, 6, 9, 0)),
        entries=list(sample_entries),
    )
