"""
Exceptions raised by the Foliot engine.

Every error the engine reports derives from TimeTrackingError so the CLI can
turn any of them into a non-zero exit with a single handler.
"""

from typing import Optional


class TimeTrackingError(Exception):
    """Base exception for time tracking operations."""

    pass


class ParseError(TimeTrackingError):
    """Raised when a time of day, duration or datetime cannot be parsed."""

    def __init__(self, message: str, value: Optional[str] = None):
        super().__init__(message)
        self.value = value


class SessionStateError(TimeTrackingError):
    """Raised when the clock state machine is used out of order."""

    pass


class AlreadyRunningError(SessionStateError):
    """Raised on clockin while a clock is already running."""

    pass


class NotRunningError(SessionStateError):
    """Raised on clockout or abort while no clock is running."""

    pass


class InvalidDurationError(TimeTrackingError):
    """Raised when an entry would have a zero or negative duration."""

    pass


class IndexOutOfRangeError(TimeTrackingError):
    """Raised when an edit or delete references a non-existent entry."""

    def __init__(self, index: int, length: int):
        super().__init__(
            f"Entry index {index} is out of range (ledger has {length} entries)"
        )
        self.index = index
        self.length = length


class PersistenceError(TimeTrackingError):
    """Raised when a namespace record cannot be read or written."""

    pass


class LockTimeoutError(PersistenceError):
    """Raised when the namespace lock cannot be acquired in time."""

    pass


class HistoryError(TimeTrackingError):
    """Raised when the git history collaborator fails."""

    pass
