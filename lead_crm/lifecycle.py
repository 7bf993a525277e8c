"""Persistence of operator-managed lead status, notes, and contact history."""
from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Protocol, Tuple

from .models import (
    LIFECYCLE_STATUSES,
    STATUS_CONTACTED,
    Lead,
    LeadStatusRecord,
    normalise_contact_key,
)

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class LifecycleStoreError(RuntimeError):
    """Raised when the lifecycle store cannot persist a record."""


class StaleWriteError(LifecycleStoreError):
    """Raised when a versioned write targets an outdated record."""


class InvalidStatusError(ValueError):
    """Raised when a lifecycle status outside the known set is requested."""


# --- Storage surfaces ---

class KeyValueStorage(Protocol):
    """Synchronous string key/value surface backing the lifecycle store."""

    def get_item(self, key: str) -> Optional[str]:  # pragma: no cover - runtime protocol
        """Return the stored value or ``None``."""

    def set_item(self, key: str, value: str) -> None:  # pragma: no cover - runtime protocol
        """Persist ``value`` under ``key``."""

    def keys(self) -> Iterable[str]:  # pragma: no cover - runtime protocol
        """Return every stored key."""


class MemoryStorage:
    """In-process storage used for tests and embedding."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def keys(self) -> List[str]:
        return list(self._items)


class JsonFileStorage:
    """Storage persisted as a single JSON object on disk.

    The file is re-read on every access so separate processes observe each
    other's writes; there is no locking and the last writer wins.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            LOGGER.warning("Lifecycle store %s is unreadable; treating it as empty", self.path)
            return {}
        if not isinstance(payload, dict):
            LOGGER.warning("Lifecycle store %s does not contain a JSON object; ignoring it", self.path)
            return {}
        return {str(key): value for key, value in payload.items() if isinstance(value, str)}

    def get_item(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._read()
        items[key] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            handle, temp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        except OSError as exc:
            raise LifecycleStoreError(f"Unable to write lifecycle store '{self.path}'") from exc
        try:
            with os.fdopen(handle, "w", encoding="utf-8") as stream:
                json.dump(items, stream, ensure_ascii=False, indent=2, sort_keys=True)
            os.replace(temp_name, self.path)
        except BaseException as exc:
            try:
                os.unlink(temp_name)
            except OSError:
                LOGGER.warning("Could not remove temporary file %s", temp_name)
            if isinstance(exc, OSError):
                raise LifecycleStoreError(f"Unable to write lifecycle store '{self.path}'") from exc
            raise

    def keys(self) -> List[str]:
        return list(self._read())


# --- Lifecycle store ---

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LeadLifecycleStore:
    """Keyed side-store of lifecycle status that outlives aggregation passes.

    The store enforces no transition graph: any status may follow any other.
    Writes are last-writer-wins unless the caller passes ``expected_version``.
    """

    def __init__(
        self,
        storage: Optional[KeyValueStorage] = None,
        *,
        key_prefix: str = "lead_status:",
        clock: Optional[Clock] = None,
    ) -> None:
        self._storage = storage if storage is not None else MemoryStorage()
        self._key_prefix = key_prefix
        self._clock = clock or _utcnow

    def _storage_key(self, contact_key: str) -> str:
        normalised = normalise_contact_key(contact_key)
        if normalised is None:
            raise ValueError("A contact key is required")
        return f"{self._key_prefix}{normalised}"

    def _decode(self, storage_key: str, raw: Optional[str]) -> Optional[LeadStatusRecord]:
        if raw is None:
            return None
        try:
            return LeadStatusRecord.from_dict(json.loads(raw))
        except (ValueError, TypeError):
            LOGGER.warning("Ignoring undecodable lifecycle record %s", storage_key)
            return None

    def get_status(self, contact_key: str) -> LeadStatusRecord:
        """Return the stored record for ``contact_key`` or the default ``new`` record."""

        try:
            storage_key = self._storage_key(contact_key)
        except ValueError:
            return LeadStatusRecord()
        record = self._decode(storage_key, self._storage.get_item(storage_key))
        return record if record is not None else LeadStatusRecord()

    def set_status(
        self,
        contact_key: str,
        lifecycle_status: str,
        notes: str = "",
        *,
        expected_version: Optional[int] = None,
    ) -> LeadStatusRecord:
        """Upsert the record for ``contact_key``, stamping contact and update times."""

        if lifecycle_status not in LIFECYCLE_STATUSES:
            raise InvalidStatusError(
                f"Unknown lifecycle status '{lifecycle_status}'. Expected one of {LIFECYCLE_STATUSES}"
            )
        storage_key = self._storage_key(contact_key)
        current = self._decode(storage_key, self._storage.get_item(storage_key))
        current_version = current.version if current is not None else 0
        if expected_version is not None and expected_version != current_version:
            raise StaleWriteError(
                f"Lifecycle record for '{contact_key}' is at version {current_version}, expected {expected_version}"
            )

        now = self._clock()
        record = LeadStatusRecord(
            lifecycle_status=lifecycle_status,
            notes=notes or "",
            last_contact_at=now,
            updated_at=now,
            version=current_version + 1,
        )
        self._storage.set_item(storage_key, json.dumps(record.as_dict(), ensure_ascii=False))
        LOGGER.debug("Stored lifecycle status %s for %s", lifecycle_status, storage_key)
        return record

    def mark_contacted(self, contact_key: str, reason: str = "") -> LeadStatusRecord:
        """Record an outbound contact.

        Always sets ``contacted``, overwriting any prior status including
        ``qualified`` and ``converted``.
        """

        return self.set_status(contact_key, STATUS_CONTACTED, reason)

    def overlay(self, leads: List[Lead]) -> List[Lead]:
        for lead in leads:
            lead.apply_status(self.get_status(lead.contact_key))
        return leads

    def entries(self) -> Iterator[Tuple[str, LeadStatusRecord]]:
        for storage_key in self._storage.keys():
            if not storage_key.startswith(self._key_prefix):
                continue
            record = self._decode(storage_key, self._storage.get_item(storage_key))
            if record is not None:
                yield storage_key[len(self._key_prefix):], record


__all__ = [
    "InvalidStatusError",
    "JsonFileStorage",
    "KeyValueStorage",
    "LeadLifecycleStore",
    "LifecycleStoreError",
    "MemoryStorage",
    "StaleWriteError",
]
