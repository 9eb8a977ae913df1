"""
Namespace repository for Foliot.

This module provides the data access layer: one YAML record per namespace in
the data directory, replaced atomically on every save.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, List, Optional, Set

import yaml
from pydantic import ValidationError

from ..core.exceptions import PersistenceError
from .models import Namespace, Session
from .schema import namespace_to_record, record_to_namespace

logger = logging.getLogger(__name__)

RECORD_SUFFIX = ".yaml"
LOCK_SUFFIX = ".lock"

# Running clock of a version 1 namespace, kept beside its bare-list record
LEGACY_CLOCKIN_SUFFIX = "-clockin"


class NamespaceRepository:
    """Repository for reading and writing namespace records."""

    def __init__(self, data_dir: Path):
        """Initialize repository with the data directory."""
        self.data_dir = Path(data_dir)
        self._legacy_clockins: Set[str] = set()

    def path_for(self, name: str) -> Path:
        """
        Get the record path of a namespace.

        Raises:
            PersistenceError: If the name cannot be used as a file name
        """
        if (
            not name
            or name in (".", "..")
            or "/" in name
            or os.sep in name
            or name.endswith(LEGACY_CLOCKIN_SUFFIX)
        ):
            raise PersistenceError(f"Invalid namespace name '{name}'")
        return self.data_dir / f"{name}{RECORD_SUFFIX}"

    def lock_path_for(self, name: str) -> Path:
        """Get the lock file path of a namespace."""
        self.path_for(name)
        return self.data_dir / f".{name}{LOCK_SUFFIX}"

    def legacy_clockin_path_for(self, name: str) -> Path:
        """Get the path of the running clock file of a version 1 namespace."""
        return self.path_for(name).with_name(f"{name}{LEGACY_CLOCKIN_SUFFIX}{RECORD_SUFFIX}")

    def exists(self, name: str) -> bool:
        """Check if a record exists for the namespace."""
        return self.path_for(name).is_file() or self.legacy_clockin_path_for(name).is_file()

    def list_namespaces(self) -> List[str]:
        """Get the names of all namespaces that have a record, sorted."""
        if not self.data_dir.is_dir():
            return []
        names = set()
        for path in self.data_dir.glob(f"*{RECORD_SUFFIX}"):
            if not path.is_file() or path.name.startswith("."):
                continue
            name = path.stem
            if name.endswith(LEGACY_CLOCKIN_SUFFIX):
                name = name[: -len(LEGACY_CLOCKIN_SUFFIX)]
            if name:
                names.add(name)
        return sorted(names)

    def load(self, name: str) -> Namespace:
        """
        Load a namespace.

        A namespace without a record is new, not missing: an empty, idle
        namespace is returned.

        Raises:
            PersistenceError: If the record cannot be read or is malformed
        """
        path = self.path_for(name)
        self._legacy_clockins.discard(name)

        record = None
        if path.exists():
            record = self._read(path)
        else:
            logger.debug("No record for namespace %s, starting empty", name)

        namespace = record_to_namespace(name, record)

        # Version 1 kept the running clock in a file of its own
        legacy_path = self.legacy_clockin_path_for(name)
        if (record is None or isinstance(record, list)) and legacy_path.is_file():
            namespace.session = self._read_legacy_clockin(legacy_path)
            if namespace.session is not None:
                self._legacy_clockins.add(name)
                logger.debug("Read running clock of namespace %s from %s", name, legacy_path)

        return namespace

    def save(self, name: str, namespace: Namespace) -> Path:
        """
        Save a namespace, replacing its record atomically.

        The record is written to a temporary file in the data directory which
        is then renamed over the previous record.

        Returns:
            Path of the written record

        Raises:
            PersistenceError: If the record cannot be serialized or written
        """
        path = self.path_for(name)

        try:
            content = yaml.safe_dump(
                namespace_to_record(namespace),
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )
        except yaml.YAMLError as e:
            raise PersistenceError(
                f"Could not serialize namespace '{name}': {e}"
            ) from e

        tmp_name = None
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.data_dir,
                prefix=f".{name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(f"Could not write {path}: {e}") from e

        if name in self._legacy_clockins:
            legacy_path = self.legacy_clockin_path_for(name)
            try:
                legacy_path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                raise PersistenceError(f"Could not remove {legacy_path}: {e}") from e
            self._legacy_clockins.discard(name)
            logger.info("Moved running clock of namespace %s into %s", name, path)

        logger.debug("Saved namespace %s to %s", name, path)
        return path

    def _read(self, path: Path) -> Any:
        """Parse a YAML file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                return yaml.safe_load(f)
        except OSError as e:
            raise PersistenceError(f"Could not read {path}: {e}") from e
        except yaml.YAMLError as e:
            raise PersistenceError(f"Could not parse {path}: {e}") from e

    def _read_legacy_clockin(self, path: Path) -> Optional[Session]:
        """Read a version 1 running clock file, None when it is empty."""
        data = self._read(path)
        if data is None:
            return None
        try:
            return Session.model_validate(data)
        except ValidationError as e:
            raise PersistenceError(f"Running clock in {path} is invalid: {e}") from e
