# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from pocket_scheduler.config import Settings


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in (
        "SCHED_DATA_DIR",
        "SCHED_STORE_BACKEND",
        "SCHED_STORE_PATH",
        "SCHED_REMINDERS_ENABLED",
        "SCHED_REMINDER_INTERVAL_SECONDS",
        "SCHED_OVERDUE_WINDOW_MINUTES",
        "SCHED_REMINDER_POLICY",
        "SCHED_LOG_QUIET",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env: pytest.MonkeyPatch) -> None:
    settings = Settings.from_env()
    assert settings.store_backend == "sqlite"
    assert settings.store_path == Path(".local/pocket_scheduler") / "scheduler.sqlite3"
    assert settings.reminders_enabled is True
    assert settings.reminder_interval_seconds == 60.0
    assert settings.overdue_window_minutes == 60
    assert settings.reminder_policy == "exact"
    assert settings.log_quiet_loggers == ("pocket_scheduler.reminders",)


def test_env_overrides(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    clean_env.setenv("SCHED_DATA_DIR", str(tmp_path))
    clean_env.setenv("SCHED_STORE_BACKEND", "Memory")
    clean_env.setenv("SCHED_REMINDERS_ENABLED", "off")
    clean_env.setenv("SCHED_REMINDER_INTERVAL_SECONDS", "5")
    clean_env.setenv("SCHED_OVERDUE_WINDOW_MINUTES", "30")
    clean_env.setenv("SCHED_REMINDER_POLICY", "catch_up")

    settings = Settings.from_env()
    assert settings.data_dir == tmp_path
    assert settings.store_path == tmp_path / "scheduler.sqlite3"
    assert settings.store_backend == "memory"
    assert settings.reminders_enabled is False
    assert settings.reminder_interval_seconds == 5.0
    assert settings.overdue_window_minutes == 30
    assert settings.reminder_policy == "catch_up"


def test_invalid_values_fall_back_to_defaults(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("SCHED_STORE_BACKEND", "postgres")
    clean_env.setenv("SCHED_OVERDUE_WINDOW_MINUTES", "soon")
    clean_env.setenv("SCHED_REMINDER_POLICY", "sometimes")

    settings = Settings.from_env()
    assert settings.store_backend == "sqlite"
    assert settings.overdue_window_minutes == 60
    assert settings.reminder_policy == "exact"


def test_log_quiet_list_is_comma_separated(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("SCHED_LOG_QUIET", " pocket_scheduler.reminders , pocket_scheduler.storage,,")
    assert Settings.from_env().log_quiet_loggers == ("pocket_scheduler.reminders", "pocket_scheduler.storage")

    clean_env.setenv("SCHED_LOG_QUIET", "")
    assert Settings.from_env().log_quiet_loggers == ()
