"""
Entry ledger for Foliot.

The ledger is the ordered list of completed entries of one namespace. Entries
are identified by their position, so edits and deletes take an index.
"""

import re
from datetime import datetime
from typing import Callable, Iterator, List, Optional, Tuple

from ..db.models import Entry
from .exceptions import IndexOutOfRangeError


class EntryView:
    """Lazy, re-iterable view over the entries of a ledger."""

    def __init__(self, entries: List[Entry], predicate: Callable[[Entry], bool]):
        self._entries = entries
        self._predicate = predicate

    def __iter__(self) -> Iterator[Entry]:
        return (entry for entry in self._entries if self._predicate(entry))

    def indexed(self) -> Iterator[Tuple[int, Entry]]:
        """Iterate over (ledger index, entry) pairs."""
        return (
            (index, entry)
            for index, entry in enumerate(self._entries)
            if self._predicate(entry)
        )


class Ledger:
    """Ordered collection of the completed entries of one namespace."""

    def __init__(self, entries: Optional[List[Entry]] = None):
        """
        Initialize the ledger.

        Args:
            entries: List to operate on; it is mutated in place so a
                namespace's entry list can be wrapped directly
        """
        self._entries = entries if entries is not None else []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._entries)

    def __getitem__(self, index: int) -> Entry:
        self._check_index(index)
        return self._entries[index]

    def append(self, entry: Entry) -> None:
        """Add an entry at the end of the ledger."""
        self._entries.append(entry)

    def edit(self, index: int, entry: Entry) -> Entry:
        """
        Replace the entry at the given position.

        Args:
            index: 0-based position of the entry
            entry: The replacement

        Returns:
            The entry that was replaced

        Raises:
            IndexOutOfRangeError: If there is no entry at index
        """
        self._check_index(index)
        previous = self._entries[index]
        self._entries[index] = entry
        return previous

    def delete(self, index: int) -> Entry:
        """
        Remove the entry at the given position.

        Later entries shift down by one.

        Raises:
            IndexOutOfRangeError: If there is no entry at index
        """
        self._check_index(index)
        return self._entries.pop(index)

    def list_between(self, range_start: datetime, range_end: datetime) -> EntryView:
        """Get entries whose start time lies in [range_start, range_end)."""
        return EntryView(
            self._entries, lambda e: range_start <= e.start_time < range_end
        )

    def matching(self, pattern: Optional[str]) -> EntryView:
        """
        Get entries whose comment matches a regular expression.

        Entries without a comment always match. A pattern of None matches
        everything.

        Raises:
            re.error: If the pattern is not a valid regular expression
        """
        if pattern is None:
            return EntryView(self._entries, lambda e: True)

        regex = re.compile(pattern)
        return EntryView(
            self._entries,
            lambda e: e.comment is None or regex.search(e.comment) is not None,
        )

    def overlapping(self, entry: Entry) -> List[Entry]:
        """Get the entries whose span overlaps the given entry."""
        return [e for e in self._entries if e is not entry and e.overlaps(entry)]

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._entries):
            raise IndexOutOfRangeError(index, len(self._entries))
