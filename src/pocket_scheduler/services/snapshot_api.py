# src/pocket_scheduler/services/snapshot_api.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path

from ..core.state import AppState

logger = logging.getLogger(__name__)


def default_export_name(state: AppState) -> str:
    return f"scheduler_backup_{state.now().date().isoformat()}.json"


def export_to_file(state: AppState, path: str | Path) -> Path | None:
    """
    Write the snapshot as pretty JSON (atomic replace). Returns the path, or None on failure.
    A directory path gets a dated file name inside it.
    """
    target = Path(path).expanduser()
    if target.is_dir():
        target = target / default_export_name(state)

    snapshot = state.store.export_snapshot()
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.with_suffix(target.suffix + ".tmp")
        tmp.write_text(json.dumps(snapshot, ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp, target)
        with contextlib.suppress(Exception):
            # Best-effort: personal schedule data, keep the file private on disk.
            os.chmod(target, 0o600)
    except Exception:
        logger.exception("Failed to export snapshot to %s", target)
        return None

    logger.info(
        "Exported snapshot events=%d tasks=%d to %s",
        len(snapshot["events"]),
        len(snapshot["tasks"]),
        target,
    )
    return target


def import_from_file(state: AppState, path: str | Path) -> bool:
    source = Path(path).expanduser()
    try:
        data = json.loads(source.read_text("utf-8"))
    except Exception:
        logger.exception("Failed to read snapshot from %s", source)
        return False
    return state.store.import_snapshot(data)
