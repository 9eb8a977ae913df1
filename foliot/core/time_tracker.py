"""
Core time tracking functionality for Foliot.

This module contains the TimeTracker class that runs every operation as one
locked load-modify-save transaction on a single namespace.
"""

import logging
import re
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from pydantic import ValidationError

from ..db.models import Entry, PeriodSummary, Session
from ..db.repository import NamespaceRepository
from ..utils.time_parsing import current_time
from .exceptions import (
    AlreadyRunningError,
    IndexOutOfRangeError,
    InvalidDurationError,
    NotRunningError,
    ParseError,
    PersistenceError,
    TimeTrackingError,
)
from .ledger import EntryView, Ledger
from .session import SessionController, SessionState
from .store import NamespaceStore
from .summarizer import Granularity, summarize, total_all

logger = logging.getLogger(__name__)

__all__ = [
    "AlreadyRunningError",
    "IndexOutOfRangeError",
    "InvalidDurationError",
    "NotRunningError",
    "ParseError",
    "PersistenceError",
    "TimeTracker",
    "TimeTrackingError",
]


class TimeTracker:
    """Main time tracking service that coordinates namespaces and clocks."""

    def __init__(
        self,
        data_dir: Path,
        clock: Callable[[], datetime] = current_time,
        lock_timeout: Optional[float] = 10.0,
    ):
        """
        Initialize TimeTracker with the given data directory.

        Args:
            data_dir: Directory where the namespace records are stored
            clock: Callable returning the current time
            lock_timeout: Seconds to wait for a namespace lock
        """
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self.repository = NamespaceRepository(self.data_dir)
        self.store = NamespaceStore(self.repository, lock_timeout=lock_timeout)
        self.now = clock

    def clockin(self, namespace: str, starting: Optional[datetime] = None) -> Session:
        """
        Start the clock of a namespace.

        Args:
            namespace: Name of the namespace
            starting: Optional start time, defaults to now

        Returns:
            The started session

        Raises:
            AlreadyRunningError: If the clock is already running
            InvalidDurationError: If starting lies in the future
        """
        with self.store.transaction(namespace) as ns:
            session = SessionController(ns, self.now).clockin(starting)

        logger.info("Started clock for namespace %s at %s", namespace, session.start_time)
        return session

    def clockout(self, namespace: str, comment: Optional[str] = None) -> Entry:
        """
        Stop the clock of a namespace and record the entry.

        Args:
            namespace: Name of the namespace
            comment: Optional comment for the entry

        Returns:
            The recorded entry

        Raises:
            NotRunningError: If no clock is running
        """
        with self.store.transaction(namespace) as ns:
            entry = SessionController(ns, self.now).clockout(comment)

        logger.info("Stopped clock for namespace %s after %s", namespace, entry.duration)
        return entry

    def clock(
        self,
        namespace: str,
        duration: timedelta,
        starting: Optional[datetime] = None,
        comment: Optional[str] = None,
    ) -> Entry:
        """
        Record an entry of a fixed duration.

        Args:
            namespace: Name of the namespace
            duration: Length of the entry
            starting: Optional start of the entry, defaults to now minus duration
            comment: Optional comment for the entry

        Returns:
            The recorded entry

        Raises:
            InvalidDurationError: If duration is zero or negative
        """
        with self.store.transaction(namespace) as ns:
            entry = SessionController(ns, self.now).clock(duration, starting, comment)

        logger.info("Added %s entry to namespace %s", entry.duration, namespace)
        return entry

    def abort(self, namespace: str) -> Session:
        """
        Discard the running clock of a namespace.

        Returns:
            The discarded session

        Raises:
            NotRunningError: If no clock is running
        """
        with self.store.transaction(namespace) as ns:
            session = SessionController(ns, self.now).abort()

        logger.info("Aborted clock for namespace %s", namespace)
        return session

    def get_state(self, namespace: str) -> SessionState:
        """Get whether the clock of a namespace is idle or running."""
        return SessionController(self.store.reload(namespace), self.now).state

    def get_active_session(self, namespace: str) -> Optional[Session]:
        """
        Get the running clock of a namespace.

        Returns:
            The running session, or None if the namespace is idle
        """
        return self.store.reload(namespace).session

    def get_elapsed(self, namespace: str) -> Optional[timedelta]:
        """Get how long the clock of a namespace has been running."""
        session = self.get_active_session(namespace)
        if session is None:
            return None
        return session.elapsed(self.now())

    def get_entries(
        self, namespace: str, pattern: Optional[str] = None
    ) -> List[Tuple[int, Entry]]:
        """
        Get the entries of a namespace with their ledger indices.

        Args:
            namespace: Name of the namespace
            pattern: Optional regular expression matched against comments;
                entries without a comment always match

        Returns:
            List of (0-based index, entry) pairs in ledger order

        Raises:
            ParseError: If pattern is not a valid regular expression
        """
        return list(self._matching(namespace, pattern).indexed())

    def get_entries_between(
        self, namespace: str, range_start: datetime, range_end: datetime
    ) -> List[Entry]:
        """Get the entries of a namespace starting in [range_start, range_end)."""
        ledger = Ledger(self.store.reload(namespace).entries)
        return list(ledger.list_between(range_start, range_end))

    def update_entry(
        self,
        namespace: str,
        index: int,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        comment: Optional[str] = None,
    ) -> Entry:
        """
        Replace fields of an entry; fields left as None keep their value.

        Args:
            namespace: Name of the namespace
            index: 0-based ledger index of the entry

        Returns:
            The updated entry

        Raises:
            IndexOutOfRangeError: If there is no entry at index
            InvalidDurationError: If the updated entry would end before it starts
        """
        with self.store.transaction(namespace) as ns:
            ledger = Ledger(ns.entries)
            current = ledger[index]
            try:
                updated = Entry(
                    start_time=start_time if start_time is not None else current.start_time,
                    end_time=end_time if end_time is not None else current.end_time,
                    comment=comment if comment is not None else current.comment,
                )
            except ValidationError as e:
                raise InvalidDurationError(
                    f"Entry {index} of namespace '{namespace}' would end before it starts"
                ) from e
            ledger.edit(index, updated)

        logger.info("Updated entry %d of namespace %s", index, namespace)
        return updated

    def delete_entry(self, namespace: str, index: int) -> Entry:
        """
        Delete an entry.

        Returns:
            The deleted entry

        Raises:
            IndexOutOfRangeError: If there is no entry at index
        """
        with self.store.transaction(namespace) as ns:
            deleted = Ledger(ns.entries).delete(index)

        logger.info("Deleted entry %d of namespace %s", index, namespace)
        return deleted

    def summarize(
        self,
        namespace: str,
        granularity: Granularity = Granularity.MONTH,
        pattern: Optional[str] = None,
    ) -> List[PeriodSummary]:
        """
        Get per-period totals of a namespace.

        Args:
            namespace: Name of the namespace
            granularity: Calendar unit to group by
            pattern: Optional comment filter, as for get_entries

        Returns:
            Period summaries, oldest first
        """
        return summarize(self._matching(namespace, pattern), granularity)

    def total(self, namespace: str, pattern: Optional[str] = None) -> timedelta:
        """Get the total duration of the entries of a namespace."""
        return total_all(self._matching(namespace, pattern))

    def find_overlaps(self, namespace: str, entry: Entry) -> List[Entry]:
        """Get the entries of a namespace that overlap the given entry."""
        overlaps = Ledger(self.store.reload(namespace).entries).overlapping(entry)
        # The entry itself is in the ledger once it has been recorded
        if entry in overlaps:
            overlaps.remove(entry)
        return overlaps

    def validate_namespace(self, namespace: str) -> int:
        """
        Check that the record of a namespace can be loaded.

        Returns:
            Number of entries in the namespace

        Raises:
            PersistenceError: If the record is unreadable or invalid
        """
        return len(self.store.reload(namespace).entries)

    def get_namespace_path(self, namespace: str) -> Path:
        """Get the record path of a namespace."""
        return self.repository.path_for(namespace)

    def list_namespaces(self) -> List[str]:
        """Get the names of all namespaces that have a record."""
        return self.repository.list_namespaces()

    def _matching(self, namespace: str, pattern: Optional[str]) -> EntryView:
        ledger = Ledger(self.store.reload(namespace).entries)
        try:
            return ledger.matching(pattern)
        except re.error as e:
            raise ParseError(f"Invalid filter '{pattern}': {e}", value=pattern) from e
