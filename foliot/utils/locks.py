"""
Advisory file locks for Foliot.

A namespace record is read, modified and written back by separate process
invocations. Holding an exclusive lock over that sequence keeps two
invocations from losing each other's updates.
"""

import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from ..core.exceptions import LockTimeoutError

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 0.05


@contextmanager
def namespace_lock(lock_path: Path, timeout: Optional[float] = 10.0) -> Iterator[None]:
    """
    Hold an exclusive advisory lock on lock_path.

    Args:
        lock_path: Lock file, created if missing
        timeout: Seconds to wait for the lock, or None to wait forever

    Raises:
        LockTimeoutError: If the lock is not acquired within timeout
    """
    try:
        import fcntl
    except ModuleNotFoundError:
        logger.debug("fcntl is not available, not locking %s", lock_path)
        yield
        return

    lock_path.parent.mkdir(parents=True, exist_ok=True)
    handle = lock_path.open("a+", encoding="utf-8")
    try:
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            try:
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                break
            except BlockingIOError:
                if deadline is not None and time.monotonic() >= deadline:
                    raise LockTimeoutError(
                        f"Timed out waiting for lock {lock_path}; "
                        "is another foliot command running?"
                    )
                time.sleep(POLL_INTERVAL_SECONDS)

        logger.debug("Acquired lock %s", lock_path)
        try:
            yield
        finally:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
            logger.debug("Released lock %s", lock_path)
    finally:
        handle.close()
