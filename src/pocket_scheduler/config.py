# src/pocket_scheduler/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing required at import time; every value has a local default.
- Local data (store, logs) lives under a gitignored data dir.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "SCHED"

STORE_BACKENDS = ("sqlite", "memory")
REMINDER_POLICIES = ("exact", "catch_up")


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """Comma-separated list. Set but empty means an empty list."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def _env_choice(name: str, default: str, choices: tuple[str, ...]) -> str:
    raw = _env(name, default).strip().lower()
    return raw if raw in choices else default


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    log_quiet_loggers: tuple[str, ...]

    # ---- Front-end ----
    console_enabled: bool

    # ---- Storage ----
    data_dir: Path
    store_backend: str
    store_path: Path

    # ---- Reminders ----
    reminders_enabled: bool
    reminder_interval_seconds: float
    overdue_window_minutes: int
    reminder_policy: str

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "pocket-scheduler").strip() or "pocket-scheduler"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        log_quiet_loggers = _env_list(_k("LOG_QUIET"), ("pocket_scheduler.reminders",))

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/pocket_scheduler"))
        store_backend = _env_choice(_k("STORE_BACKEND"), "sqlite", STORE_BACKENDS)
        store_path = _env_path(_k("STORE_PATH"), data_dir / "scheduler.sqlite3")

        reminders_enabled = _env_bool(_k("REMINDERS_ENABLED"), True)
        reminder_interval_seconds = _env_float(_k("REMINDER_INTERVAL_SECONDS"), 60.0)
        overdue_window_minutes = _env_int(_k("OVERDUE_WINDOW_MINUTES"), 60)
        reminder_policy = _env_choice(_k("REMINDER_POLICY"), "exact", REMINDER_POLICIES)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            log_quiet_loggers=log_quiet_loggers,
            console_enabled=console_enabled,
            data_dir=data_dir,
            store_backend=store_backend,
            store_path=store_path,
            reminders_enabled=reminders_enabled,
            reminder_interval_seconds=reminder_interval_seconds,
            overdue_window_minutes=max(0, overdue_window_minutes),
            reminder_policy=reminder_policy,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
