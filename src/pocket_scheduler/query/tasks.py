# src/pocket_scheduler/query/tasks.py

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum

from ..core.ports import Clock
from ..storage.models import Task
from ..storage.record_store import RecordStore

ALL = "all"

STATUS_COMPLETED = "completed"
STATUS_PENDING = "pending"


@dataclass(slots=True, frozen=True)
class TaskFilters:
    """
    Task list filters. "all" disables a filter.

    category / priority are exact matches; status is "completed" / "pending" / "all".
    """

    category: str = ALL
    priority: str = ALL
    status: str = ALL


def apply_filters(tasks: Iterable[Task], filters: TaskFilters) -> list[Task]:
    out: list[Task] = []
    for task in tasks:
        if filters.category != ALL and task.category != filters.category:
            continue
        if filters.priority != ALL and task.priority.value != filters.priority:
            continue
        if filters.status == STATUS_COMPLETED and not task.is_completed:
            continue
        if filters.status == STATUS_PENDING and task.is_completed:
            continue
        out.append(task)
    return out


def _created_ts(task: Task) -> float:
    if task.created_date is None:
        return 0.0
    return task.created_date.timestamp()


def _sort_key(task: Task) -> tuple:
    # Tuple order is the tiebreak order:
    # pending first, higher priority first, dated before undated (earliest due first), newest first.
    due = (0, task.due_date) if task.due_date is not None else (1, date.max)
    return (task.is_completed, -task.priority.rank, due, -_created_ts(task))


def sort_tasks(tasks: Iterable[Task]) -> list[Task]:
    return sorted(tasks, key=_sort_key)


def is_overdue(task: Task, today: date) -> bool:
    """Due before today and not completed."""
    if task.due_date is None or task.is_completed:
        return False
    return task.due_date < today


def is_due_today(task: Task, today: date) -> bool:
    if task.due_date is None or task.is_completed:
        return False
    return task.due_date == today


def is_due_soon(task: Task, today: date) -> bool:
    """Due 1 to 7 calendar days from today (inclusive) and not completed."""
    if task.due_date is None or task.is_completed:
        return False
    return 1 <= (task.due_date - today).days <= 7


def overdue_tasks(tasks: Iterable[Task], today: date) -> list[Task]:
    return [t for t in tasks if is_overdue(t, today)]


class DueBadge(StrEnum):
    OVERDUE = "overdue"
    DUE_TODAY = "due_today"
    DUE_SOON = "due_soon"
    DUE = "due"


def due_badge(task: Task, today: date) -> DueBadge | None:
    """Classification shown next to a pending task with a due date."""
    if task.due_date is None or task.is_completed:
        return None
    if is_overdue(task, today):
        return DueBadge.OVERDUE
    if is_due_today(task, today):
        return DueBadge.DUE_TODAY
    if is_due_soon(task, today):
        return DueBadge.DUE_SOON
    return DueBadge.DUE


def task_stats(tasks: Iterable[Task], today: date) -> dict[str, int]:
    items = list(tasks)
    completed = sum(1 for t in items if t.is_completed)
    return {
        "total": len(items),
        "pending": len(items) - completed,
        "completed": completed,
        "overdue": len(overdue_tasks(items, today)),
    }


class TaskQueries:
    """Task views bound to a store and a clock."""

    def __init__(self, store: RecordStore, *, clock: Clock = datetime.now) -> None:
        self._store = store
        self._clock = clock

    def today(self) -> date:
        return self._clock().date()

    def list(self, filters: TaskFilters | None = None) -> list[Task]:
        """Filtered, then sorted."""
        tasks = self._store.get_tasks()
        if filters is not None:
            tasks = apply_filters(tasks, filters)
        return sort_tasks(tasks)

    def by_category(self, category: str) -> list[Task]:
        return [t for t in self._store.get_tasks() if t.category == category]

    def by_priority(self, priority: str) -> list[Task]:
        return [t for t in self._store.get_tasks() if t.priority.value == priority]

    def completed(self) -> list[Task]:
        return [t for t in self._store.get_tasks() if t.is_completed]

    def pending(self) -> list[Task]:
        return [t for t in self._store.get_tasks() if not t.is_completed]

    def overdue(self) -> list[Task]:
        return overdue_tasks(self._store.get_tasks(), self.today())

    def stats(self) -> dict[str, int]:
        return task_stats(self._store.get_tasks(), self.today())
