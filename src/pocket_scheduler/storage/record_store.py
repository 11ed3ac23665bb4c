# src/pocket_scheduler/storage/record_store.py

from __future__ import annotations

import json
import logging
import secrets
import threading
import time
from collections.abc import Callable, Mapping
from datetime import datetime
from enum import StrEnum
from typing import Any, TypeVar

from ..core.observers import ChangeAction, ChangeBus, ChangeEvent
from ..core.ports import Clock, StorageMedium
from .models import (
    EVENT_PATCH_FIELDS,
    SETTINGS_PATCH_FIELDS,
    TASK_PATCH_FIELDS,
    Event,
    Task,
    UserSettings,
    encode_patch,
)

logger = logging.getLogger(__name__)

R = TypeVar("R")

_B36 = "0123456789abcdefghijklmnopqrstuvwxyz"


class Collection(StrEnum):
    EVENTS = "events"
    TASKS = "tasks"
    SETTINGS = "settings"


_LIST_COLLECTIONS = (Collection.EVENTS, Collection.TASKS)

_PATCH_FIELDS: dict[Collection, dict[str, str]] = {
    Collection.EVENTS: EVENT_PATCH_FIELDS,
    Collection.TASKS: TASK_PATCH_FIELDS,
    Collection.SETTINGS: SETTINGS_PATCH_FIELDS,
}

# Persisted keys a patch may touch, per collection.
_ALLOWED_KEYS: dict[Collection, frozenset[str]] = {
    c: frozenset(fields.values()) for c, fields in _PATCH_FIELDS.items()
}


def _to_base36(n: int) -> str:
    if n <= 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_B36[r])
    return "".join(reversed(out))


def generate_id() -> str:
    """
    Opaque record id: base-36 millisecond timestamp + random base-36 suffix.

    Collisions are improbable but not impossible; callers do not check for them.
    """
    ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_B36) for _ in range(11))
    return _to_base36(ms) + suffix


class _ReadError(Exception):
    """A stored value exists but cannot be read or decoded."""


class RecordStore:
    """
    Persistence of the three collections (events, tasks, settings) on a key-value medium.

    Every value is a whole JSON document; there are no partial writes. Mutations are
    read-modify-write of the full collection, serialized by a re-entrant lock so the
    reminder thread and the front-end never interleave mid-write.

    Failure policy:
    - medium / JSON errors never escape: writes return False, reads behave as "absent"
    - a failed write leaves the previously persisted value untouched
    """

    def __init__(
        self,
        medium: StorageMedium,
        *,
        bus: ChangeBus | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._medium = medium
        self._bus = bus or ChangeBus()
        self._clock = clock or datetime.now
        self._lock = threading.RLock()
        self.initialize()
        logger.info(
            "RecordStore ready events=%d tasks=%d",
            len(self._raw_list_or_empty(Collection.EVENTS)),
            len(self._raw_list_or_empty(Collection.TASKS)),
        )

    @property
    def bus(self) -> ChangeBus:
        return self._bus

    @property
    def medium(self) -> StorageMedium:
        return self._medium

    @staticmethod
    def generate_id() -> str:
        return generate_id()

    # ---- low-level helpers ----

    def _read(self, collection: Collection) -> Any | None:
        try:
            text = self._medium.read(collection.value)
        except Exception as e:
            logger.exception("Error reading collection %s", collection.value)
            raise _ReadError(collection.value) from e
        if text is None:
            return None
        try:
            return json.loads(text)
        except ValueError as e:
            logger.error("Collection %s holds invalid JSON; treating as unreadable", collection.value)
            raise _ReadError(collection.value) from e

    def _write(self, collection: Collection, value: Any) -> bool:
        # Serialize fully before touching the medium: a bad value never reaches it.
        try:
            text = json.dumps(value, ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError):
            logger.exception("Error serializing collection %s", collection.value)
            return False
        try:
            self._medium.write(collection.value, text)
        except Exception:
            logger.exception("Error saving collection %s", collection.value)
            return False
        return True

    def _read_list(self, collection: Collection) -> list[dict[str, Any]]:
        raw = self._read(collection)
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.error("Collection %s is not a list (got %s)", collection.value, type(raw).__name__)
            raise _ReadError(collection.value)
        return [r for r in raw if isinstance(r, dict)]

    def _raw_list_or_empty(self, collection: Collection) -> list[dict[str, Any]]:
        try:
            return self._read_list(collection)
        except _ReadError:
            return []

    def _notify(self, collection: Collection, action: ChangeAction, record_id: str | None = None) -> None:
        self._bus.emit(ChangeEvent(collection=collection.value, action=action, record_id=record_id))

    @staticmethod
    def _require_list_collection(collection: Collection) -> Collection:
        collection = Collection(collection)
        if collection not in _LIST_COLLECTIONS:
            raise ValueError(f"{collection.value} is not a record list")
        return collection

    @staticmethod
    def _parse_records(raw: list[dict[str, Any]], parse: Callable[[Mapping[str, Any]], R]) -> list[R]:
        out: list[R] = []
        for item in raw:
            try:
                out.append(parse(item))
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed record id=%r", item.get("id"))
        return out

    # ---- generic API ----

    def initialize(self) -> None:
        """Create absent collections: [] for events/tasks, defaults for settings."""
        with self._lock:
            for collection in _LIST_COLLECTIONS:
                try:
                    missing = self._read(collection) is None
                except _ReadError:
                    # Unreadable data is left alone rather than silently replaced.
                    continue
                if missing:
                    self._write(collection, [])
            try:
                missing = self._read(Collection.SETTINGS) is None
            except _ReadError:
                missing = False
            if missing:
                self._write(Collection.SETTINGS, UserSettings().to_dict())

    def get(self, collection: Collection | str) -> Any | None:
        """Raw JSON value of a collection, or None when absent or unreadable."""
        collection = Collection(collection)
        with self._lock:
            try:
                return self._read(collection)
            except _ReadError:
                return None

    def set(self, collection: Collection | str, value: Any) -> bool:
        """Replace a whole collection. Returns False on serialization/medium failure."""
        collection = Collection(collection)
        with self._lock:
            ok = self._write(collection, value)
        if ok:
            self._notify(collection, ChangeAction.REPLACE)
        return ok

    def find_by_id(self, collection: Collection | str, record_id: str) -> dict[str, Any] | None:
        collection = self._require_list_collection(collection)
        with self._lock:
            for record in self._raw_list_or_empty(collection):
                if record.get("id") == record_id:
                    return record
        return None

    def add(self, collection: Collection | str, record: Mapping[str, Any]) -> bool:
        """Append a record and persist the whole collection."""
        collection = self._require_list_collection(collection)
        with self._lock:
            try:
                records = self._read_list(collection)
            except _ReadError:
                return False
            records.append(dict(record))
            ok = self._write(collection, records)
        if ok:
            logger.debug("Record added collection=%s id=%s", collection.value, record.get("id"))
            self._notify(collection, ChangeAction.ADD, record.get("id"))
        return ok

    def update(self, collection: Collection | str, record_id: str, patch: Mapping[str, Any]) -> bool:
        """
        Shallow-merge `patch` (persisted JSON keys) over the record with `record_id`.

        Keys outside the collection's allowlist are dropped. Returns False when no record
        has that id; the collection is left unchanged in that case.
        """
        collection = self._require_list_collection(collection)
        allowed = _ALLOWED_KEYS[collection]
        clean = {k: v for k, v in patch.items() if k in allowed}
        dropped = sorted(set(patch) - allowed)
        if dropped:
            logger.warning("Ignoring unknown %s fields in update: %s", collection.value, ", ".join(dropped))

        with self._lock:
            try:
                records = self._read_list(collection)
            except _ReadError:
                return False
            for i, record in enumerate(records):
                if record.get("id") == record_id:
                    records[i] = {**record, **clean}
                    break
            else:
                logger.debug("Update of unknown id collection=%s id=%s", collection.value, record_id)
                return False
            ok = self._write(collection, records)
        if ok:
            self._notify(collection, ChangeAction.UPDATE, record_id)
        return ok

    def delete_by_id(self, collection: Collection | str, record_id: str) -> bool:
        """
        Persist the collection without `record_id`.

        An unknown id removes nothing and still succeeds.
        """
        collection = self._require_list_collection(collection)
        with self._lock:
            try:
                records = self._read_list(collection)
            except _ReadError:
                return False
            kept = [r for r in records if r.get("id") != record_id]
            ok = self._write(collection, kept)
        if ok:
            self._notify(collection, ChangeAction.DELETE, record_id)
        return ok

    # ---- events ----

    def get_events(self) -> list[Event]:
        with self._lock:
            raw = self._raw_list_or_empty(Collection.EVENTS)
        return self._parse_records(raw, Event.from_dict)

    def get_event(self, event_id: str) -> Event | None:
        raw = self.find_by_id(Collection.EVENTS, event_id)
        if raw is None:
            return None
        parsed = self._parse_records([raw], Event.from_dict)
        return parsed[0] if parsed else None

    def add_event(self, event: Event) -> bool:
        return self.add(Collection.EVENTS, event.to_dict())

    def update_event(self, event_id: str, patch: Mapping[str, Any] | None = None, **fields: Any) -> bool:
        encoded, dropped = encode_patch({**(patch or {}), **fields}, EVENT_PATCH_FIELDS)
        if dropped:
            logger.warning("Ignoring unknown event fields: %s", ", ".join(sorted(dropped)))
        return self.update(Collection.EVENTS, event_id, encoded)

    def delete_event(self, event_id: str) -> bool:
        return self.delete_by_id(Collection.EVENTS, event_id)

    # ---- tasks ----

    def get_tasks(self) -> list[Task]:
        with self._lock:
            raw = self._raw_list_or_empty(Collection.TASKS)
        return self._parse_records(raw, Task.from_dict)

    def get_task(self, task_id: str) -> Task | None:
        raw = self.find_by_id(Collection.TASKS, task_id)
        if raw is None:
            return None
        parsed = self._parse_records([raw], Task.from_dict)
        return parsed[0] if parsed else None

    def add_task(self, task: Task) -> bool:
        return self.add(Collection.TASKS, task.to_dict())

    def update_task(self, task_id: str, patch: Mapping[str, Any] | None = None, **fields: Any) -> bool:
        encoded, dropped = encode_patch({**(patch or {}), **fields}, TASK_PATCH_FIELDS)
        if dropped:
            logger.warning("Ignoring unknown task fields: %s", ", ".join(sorted(dropped)))
        return self.update(Collection.TASKS, task_id, encoded)

    def delete_task(self, task_id: str) -> bool:
        return self.delete_by_id(Collection.TASKS, task_id)

    # ---- settings ----

    def get_settings(self) -> UserSettings:
        raw = self.get(Collection.SETTINGS)
        if isinstance(raw, Mapping):
            return UserSettings.from_dict(raw)
        return UserSettings()

    def save_settings(self, settings: UserSettings) -> bool:
        return self.set(Collection.SETTINGS, settings.to_dict())

    def update_settings(self, patch: Mapping[str, Any] | None = None, **fields: Any) -> bool:
        """Shallow-merge allowlisted fields over the stored settings object."""
        encoded, dropped = encode_patch({**(patch or {}), **fields}, SETTINGS_PATCH_FIELDS)
        if dropped:
            logger.warning("Ignoring unknown settings fields: %s", ", ".join(sorted(dropped)))
        with self._lock:
            try:
                current = self._read(Collection.SETTINGS)
            except _ReadError:
                return False
            base = dict(current) if isinstance(current, Mapping) else UserSettings().to_dict()
            ok = self._write(Collection.SETTINGS, {**base, **encoded})
        if ok:
            self._notify(Collection.SETTINGS, ChangeAction.UPDATE)
        return ok

    # ---- snapshot / maintenance ----

    def export_snapshot(self) -> dict[str, Any]:
        with self._lock:
            events = self.get(Collection.EVENTS)
            tasks = self.get(Collection.TASKS)
            settings = self.get(Collection.SETTINGS)
        return {
            "events": events if isinstance(events, list) else [],
            "tasks": tasks if isinstance(tasks, list) else [],
            "settings": settings if isinstance(settings, Mapping) else UserSettings().to_dict(),
            "exportTimestamp": self._clock().isoformat(),
        }

    def import_snapshot(self, data: Any) -> bool:
        """
        Overwrite each collection present in `data`; absent (or null) fields are left untouched.

        The whole input is checked before anything is written. Returns False on a structural
        problem or a failed write; missing fields are not an error.
        """
        if not isinstance(data, Mapping):
            logger.error("Import failed: snapshot is not an object (got %s)", type(data).__name__)
            return False

        plan: list[tuple[Collection, Any]] = []
        for collection in _LIST_COLLECTIONS:
            value = data.get(collection.value)
            if value is None:
                continue
            if not isinstance(value, list) or not all(isinstance(r, Mapping) for r in value):
                logger.error("Import failed: %s must be a list of objects", collection.value)
                return False
            plan.append((collection, [dict(r) for r in value]))

        settings = data.get(Collection.SETTINGS.value)
        if settings is not None:
            if not isinstance(settings, Mapping):
                logger.error("Import failed: settings must be an object")
                return False
            plan.append((Collection.SETTINGS, dict(settings)))

        written: list[Collection] = []
        with self._lock:
            for collection, value in plan:
                if not self._write(collection, value):
                    logger.error(
                        "Import aborted at %s (already written: %s)",
                        collection.value,
                        ", ".join(c.value for c in written) or "none",
                    )
                    ok = False
                    break
                written.append(collection)
            else:
                ok = True

        for collection in written:
            self._notify(collection, ChangeAction.REPLACE)
        logger.info("Import %s collections=%s", "done" if ok else "failed", [c.value for c in written])
        return ok

    def clear_all(self) -> bool:
        """Remove all three collections, then re-initialize them to empty/default."""
        with self._lock:
            try:
                for collection in Collection:
                    self._medium.remove(collection.value)
            except Exception:
                logger.exception("Error clearing data")
                return False
            self.initialize()
        for collection in Collection:
            self._notify(collection, ChangeAction.CLEAR)
        logger.info("All collections cleared")
        return True
