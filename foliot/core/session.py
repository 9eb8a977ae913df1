"""
Clock state machine for one namespace.

A namespace is either idle or running. clockin starts a clock, clockout turns
it into an entry, abort discards it. clock adds a fixed-duration entry and
never touches the running clock.
"""

import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional

from pydantic import ValidationError

from ..db.models import Entry, Namespace, Session
from ..utils.time_parsing import current_time
from .exceptions import AlreadyRunningError, InvalidDurationError, NotRunningError
from .ledger import Ledger

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """State of the clock of a namespace."""

    IDLE = "idle"
    RUNNING = "running"


class SessionController:
    """Applies clock operations to a single namespace."""

    def __init__(
        self, namespace: Namespace, clock: Callable[[], datetime] = current_time
    ):
        """
        Initialize the controller.

        Args:
            namespace: Namespace to operate on; it is mutated in place
            clock: Callable returning the current time
        """
        self.namespace = namespace
        self.ledger = Ledger(namespace.entries)
        self._clock = clock

    @property
    def state(self) -> SessionState:
        """Get the current clock state."""
        return SessionState.RUNNING if self.namespace.is_running else SessionState.IDLE

    def clockin(self, starting: Optional[datetime] = None) -> Session:
        """
        Start the clock.

        Args:
            starting: Optional start time, defaults to now

        Returns:
            The started session

        Raises:
            AlreadyRunningError: If a clock is already running
            InvalidDurationError: If starting lies in the future
        """
        active = self.namespace.session
        if active is not None:
            raise AlreadyRunningError(
                f"Clock is already running for namespace '{self.namespace.name}' "
                f"since {active.start_time:%Y-%m-%d %H:%M}. "
                "Clock out or abort it first."
            )

        now = self._clock()
        start_time = starting if starting is not None else now
        if start_time > now:
            raise InvalidDurationError(
                f"Cannot clock in at {start_time:%Y-%m-%d %H:%M}, which is in the future"
            )

        session = Session(start_time=start_time)
        self.namespace.session = session
        logger.debug("Clocked in namespace %s at %s", self.namespace.name, start_time)
        return session

    def clockout(self, comment: Optional[str] = None) -> Entry:
        """
        Stop the clock and record the entry.

        Args:
            comment: Optional comment for the entry

        Returns:
            The recorded entry

        Raises:
            NotRunningError: If no clock is running
            InvalidDurationError: If the clock started after the current time
        """
        active = self.namespace.session
        if active is None:
            raise NotRunningError(
                f"Clock is not running for namespace '{self.namespace.name}'"
            )

        end_time = self._clock()
        entry = self._build_entry(active.start_time, end_time, comment)

        self.ledger.append(entry)
        self.namespace.session = None
        logger.debug("Clocked out namespace %s at %s", self.namespace.name, end_time)
        return entry

    def clock(
        self,
        duration: timedelta,
        starting: Optional[datetime] = None,
        comment: Optional[str] = None,
    ) -> Entry:
        """
        Record an entry of a fixed duration.

        The running clock, if any, is left alone.

        Args:
            duration: Length of the entry
            starting: Start of the entry; defaults to now minus duration
            comment: Optional comment for the entry

        Returns:
            The recorded entry

        Raises:
            InvalidDurationError: If duration is zero or negative
        """
        if duration <= timedelta(0):
            raise InvalidDurationError(
                f"Duration must be positive, got {duration.total_seconds() / 3600:g} hours"
            )

        if starting is not None:
            start_time = starting
        else:
            start_time = self._clock() - duration

        entry = self._build_entry(start_time, start_time + duration, comment)
        self.ledger.append(entry)
        logger.debug(
            "Clocked %s in namespace %s starting %s",
            duration,
            self.namespace.name,
            start_time,
        )
        return entry

    def abort(self) -> Session:
        """
        Discard the running clock without recording an entry.

        Returns:
            The discarded session

        Raises:
            NotRunningError: If no clock is running
        """
        active = self.namespace.session
        if active is None:
            raise NotRunningError(
                f"Clock is not running for namespace '{self.namespace.name}'"
            )

        self.namespace.session = None
        logger.debug("Aborted clock of namespace %s", self.namespace.name)
        return active

    def _build_entry(
        self, start_time: datetime, end_time: datetime, comment: Optional[str]
    ) -> Entry:
        try:
            return Entry(start_time=start_time, end_time=end_time, comment=comment)
        except ValidationError as e:
            raise InvalidDurationError(
                f"Entry from {start_time:%Y-%m-%d %H:%M} to {end_time:%Y-%m-%d %H:%M} "
                "ends before it starts"
            ) from e
