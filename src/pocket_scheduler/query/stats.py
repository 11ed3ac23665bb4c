# src/pocket_scheduler/query/stats.py

from __future__ import annotations

from datetime import datetime

from ..storage.record_store import RecordStore
from .events import attended_events, upcoming_events


def storage_stats(store: RecordStore, now: datetime) -> dict[str, int]:
    """Collection totals, keyed the same way as the exported snapshot fields."""
    events = store.get_events()
    tasks = store.get_tasks()
    completed = sum(1 for t in tasks if t.is_completed)
    return {
        "totalEvents": len(events),
        "upcomingEvents": len(upcoming_events(events, now)),
        "attendedEvents": len(attended_events(events, now)),
        "totalTasks": len(tasks),
        "completedTasks": completed,
        "pendingTasks": len(tasks) - completed,
    }
