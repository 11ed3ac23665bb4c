# src/pocket_scheduler/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- picks the storage medium and wires the record store into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import StorageMedium
from ..core.state import AppState
from ..storage.medium import MemoryMedium, SqliteMedium
from ..storage.record_store import RecordStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.store_path.parent.mkdir(parents=True, exist_ok=True)


def build_medium(settings) -> StorageMedium:
    backend = str(getattr(settings, "store_backend", "sqlite")).lower()
    if backend == "memory":
        logger.warning("Using in-memory storage: nothing will survive a restart.")
        return MemoryMedium()
    return SqliteMedium(settings.store_path)


def create_initial_state(*, settings=None, medium: StorageMedium | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings (and the medium) injectable makes the app easier to test and avoids
    hidden global config reads. If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    if medium is None:
        _ensure_local_dirs(settings)
        medium = build_medium(settings)

    return AppState(settings=settings, store=RecordStore(medium))
