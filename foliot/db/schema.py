"""
Record schema definition for Foliot.

This module contains the layout of the YAML record stored for each namespace
and the migration logic for older layouts.
"""

from typing import Any, Dict, List

from pydantic import ValidationError

from ..core.exceptions import PersistenceError
from .models import Entry, Namespace, Session

# Record schema version
SCHEMA_VERSION = 2

# Version 1 records are a bare list of entries, the layout of the clock files
# written before the running clock moved into the record.
LEGACY_SCHEMA_VERSION = 1


def namespace_to_record(namespace: Namespace) -> Dict[str, Any]:
    """Convert a namespace into the plain structure written to disk."""
    record: Dict[str, Any] = {"version": SCHEMA_VERSION}

    if namespace.session is not None:
        record["clockin"] = namespace.session.model_dump(mode="json")

    record["entries"] = [
        entry.model_dump(mode="json", exclude_none=True)
        for entry in namespace.entries
    ]
    return record


def record_to_namespace(name: str, record: Any) -> Namespace:
    """
    Convert a record read from disk into a namespace.

    Args:
        name: Name of the namespace the record belongs to
        record: Structure produced by the YAML parser (None for an empty file)

    Returns:
        The namespace

    Raises:
        PersistenceError: If the record is malformed or too new
    """
    if record is None:
        return Namespace(name=name)

    version = _get_schema_version(record)
    if version > SCHEMA_VERSION:
        raise PersistenceError(
            f"Record for namespace '{name}' has schema version {version}, "
            f"newer than the supported version {SCHEMA_VERSION}"
        )
    if version < SCHEMA_VERSION:
        record = _migrate_record(record, version, SCHEMA_VERSION)

    try:
        session_data = record.get("clockin")
        entries_data = record.get("entries") or []
        if not isinstance(entries_data, list):
            raise PersistenceError(
                f"Record for namespace '{name}' has malformed entries"
            )

        return Namespace(
            name=name,
            session=Session.model_validate(session_data) if session_data else None,
            entries=[Entry.model_validate(item) for item in entries_data],
        )
    except ValidationError as e:
        raise PersistenceError(f"Record for namespace '{name}' is invalid: {e}") from e


def _get_schema_version(record: Any) -> int:
    """Get the schema version of a record."""
    if isinstance(record, list):
        return LEGACY_SCHEMA_VERSION
    if not isinstance(record, dict):
        raise PersistenceError(
            f"Record must be a mapping, got {type(record).__name__}"
        )

    version = record.get("version", SCHEMA_VERSION)
    if not isinstance(version, int):
        raise PersistenceError(f"Record has malformed schema version {version!r}")
    return version


def _migrate_record(record: Any, from_version: int, to_version: int) -> Dict[str, Any]:
    """Migrate a record from one schema version to another."""
    if from_version == 1 and to_version >= 2:
        entries: List[Any] = list(record)
        record = {"version": 2, "entries": entries}

    return record
