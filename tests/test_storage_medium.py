# tests/test_storage_medium.py

from __future__ import annotations

from datetime import date, time
from pathlib import Path

import pytest

from pocket_scheduler.cli.bootstrap import create_initial_state
from pocket_scheduler.storage.medium import MediumFullError, MemoryMedium, SqliteMedium
from pocket_scheduler.storage.record_store import RecordStore

from .fakes import FixedClock, make_event


def test_memory_medium_quota_rejects_whole_write() -> None:
    medium = MemoryMedium(quota_chars=20)
    medium.write("a", "x" * 10)

    with pytest.raises(MediumFullError):
        medium.write("b", "y" * 15)
    assert medium.read("b") is None

    # overwriting a key only counts the new value
    medium.write("a", "z" * 19)
    assert medium.read("a") == "z" * 19


def test_sqlite_medium_read_write_remove(tmp_path: Path) -> None:
    medium = SqliteMedium(tmp_path / "kv.sqlite3")

    assert medium.read("events") is None
    medium.write("events", "[]")
    medium.write("events", '[{"id": "e1"}]')
    assert medium.read("events") == '[{"id": "e1"}]'
    assert medium.keys() == ["events"]

    medium.remove("events")
    medium.remove("events")
    assert medium.read("events") is None


def test_records_survive_reopening_sqlite_store(tmp_path: Path, clock: FixedClock) -> None:
    db = tmp_path / "scheduler.sqlite3"
    store = RecordStore(SqliteMedium(db), clock=clock)
    store.add_event(make_event("e1", date(2026, 10, 20), time(9, 0), title="Persisted"))

    reopened = RecordStore(SqliteMedium(db), clock=clock)
    events = reopened.get_events()
    assert [e.title for e in events] == ["Persisted"]


def test_create_initial_state_uses_configured_backend(settings) -> None:
    state = create_initial_state(settings=settings)
    assert isinstance(state.store.medium, MemoryMedium)
    assert state.store.get_settings().default_reminder_time == 15

    settings.store_backend = "sqlite"
    state = create_initial_state(settings=settings)
    assert isinstance(state.store.medium, SqliteMedium)
    assert settings.store_path.exists()
