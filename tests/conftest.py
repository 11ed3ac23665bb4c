# tests/conftest.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from pocket_scheduler.core.state import AppState
from pocket_scheduler.storage.medium import MemoryMedium
from pocket_scheduler.storage.record_store import RecordStore

from .fakes import FixedClock

# Monday 2026-10-19, 09:00 local.
NOW = datetime(2026, 10, 19, 9, 0)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="pocket-scheduler-test",
        data_dir=tmp_path,
        store_backend="memory",
        store_path=tmp_path / "scheduler.sqlite3",
        reminders_enabled=True,
        reminder_interval_seconds=0.01,
        overdue_window_minutes=60,
        reminder_policy="exact",
    )


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture()
def medium() -> MemoryMedium:
    return MemoryMedium()


@pytest.fixture()
def store(medium: MemoryMedium, clock: FixedClock) -> RecordStore:
    return RecordStore(medium, clock=clock)


@pytest.fixture()
def state(settings: SimpleNamespace, store: RecordStore, clock: FixedClock) -> AppState:
    """AppState over an in-memory medium and a fixed clock."""
    return AppState(settings=settings, store=store, clock=clock)
