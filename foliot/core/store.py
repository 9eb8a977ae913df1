"""
Namespace store for Foliot.

The store keeps the namespaces loaded during one invocation and owns their
load/save lifecycle. Mutations go through transaction(), which holds the
namespace lock from load to save.
"""

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from ..db.models import Namespace
from ..db.repository import NamespaceRepository
from ..utils.locks import namespace_lock

logger = logging.getLogger(__name__)


class NamespaceStore:
    """Mapping from namespace name to loaded namespace."""

    def __init__(self, repository: NamespaceRepository, lock_timeout: Optional[float] = 10.0):
        """
        Initialize the store.

        Args:
            repository: Repository used to read and write records
            lock_timeout: Seconds to wait for a namespace lock
        """
        self.repository = repository
        self.lock_timeout = lock_timeout
        self._namespaces: Dict[str, Namespace] = {}

    def load(self, name: str) -> Namespace:
        """Load a namespace, reusing it if it was already loaded."""
        if name not in self._namespaces:
            self._namespaces[name] = self.repository.load(name)
        return self._namespaces[name]

    def reload(self, name: str) -> Namespace:
        """Load a namespace from disk, discarding any loaded copy."""
        self._namespaces.pop(name, None)
        return self.load(name)

    def save(self, name: str, namespace: Optional[Namespace] = None) -> None:
        """Save a namespace, by default the loaded one."""
        if namespace is None:
            namespace = self._namespaces[name]
        self.repository.save(name, namespace)
        self._namespaces[name] = namespace

    @contextmanager
    def transaction(self, name: str) -> Iterator[Namespace]:
        """
        Lock, load and yield a namespace, then save it.

        The namespace is only saved if the body completes without raising.
        If the body or the save fails, the loaded copy is dropped so the next
        load reads the record from disk. The lock is released on every exit
        path.
        """
        lock_path = self.repository.lock_path_for(name)
        with namespace_lock(lock_path, timeout=self.lock_timeout):
            namespace = self.reload(name)
            try:
                yield namespace
                self.save(name, namespace)
            except BaseException:
                # Drop the possibly half-modified copy
                self._namespaces.pop(name, None)
                raise
            logger.debug("Committed namespace %s", name)
