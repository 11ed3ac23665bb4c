# src/pocket_scheduler/services/task_api.py

from __future__ import annotations

import logging
from typing import Any

from ..core.state import AppState
from ..storage.models import Task
from ..storage.record_store import generate_id
from .validation import ValidationError, require_text, to_date, to_priority

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "personal"


def create_task(
    state: AppState,
    *,
    title: Any,
    category: str | None = None,
    priority: Any = None,
    due_date: Any = None,
    description: str = "",
) -> Task | None:
    """
    Validate input and append a new pending task.
    Returns the stored Task, or None if the store rejected the write.
    """
    task = Task(
        id=generate_id(),
        title=require_text(title, "Please enter a task title"),
        category=(category or DEFAULT_CATEGORY).strip() or DEFAULT_CATEGORY,
        priority=to_priority(priority),
        due_date=to_date(due_date, required=False),
        is_completed=False,
        completed_date=None,
        created_date=state.now(),
        description=(description or "").strip(),
    )
    if not state.store.add_task(task):
        logger.warning("Failed to add task title=%r", task.title)
        return None
    logger.info("Task added id=%s priority=%s due=%s", task.id, task.priority.value, task.due_date)
    return task


def edit_task(state: AppState, task_id: str, **fields: Any) -> bool:
    patch: dict[str, Any] = {}
    if "title" in fields:
        patch["title"] = require_text(fields.pop("title"), "Please enter a task title")
    if "category" in fields:
        patch["category"] = str(fields.pop("category") or DEFAULT_CATEGORY).strip()
    if "priority" in fields:
        patch["priority"] = to_priority(fields.pop("priority"))
    if "due_date" in fields:
        patch["due_date"] = to_date(fields.pop("due_date"), required=False)
    if "description" in fields:
        patch["description"] = str(fields.pop("description") or "").strip()
    if fields:
        raise ValidationError(f"Unknown task field(s): {', '.join(sorted(fields))}")
    return state.store.update_task(task_id, patch)


def toggle_task_completion(state: AppState, task_id: str) -> Task | None:
    """
    Flip is_completed. completed_date is stamped on completion and cleared on re-open.

    Returns the updated task, or None if it does not exist or the write failed.
    """
    task = state.store.get_task(task_id)
    if task is None:
        return None

    completing = not task.is_completed
    ok = state.store.update_task(
        task_id,
        is_completed=completing,
        completed_date=state.now() if completing else None,
    )
    if not ok:
        logger.warning("Failed to toggle task id=%s", task_id)
        return None
    return state.store.get_task(task_id)


def delete_task(state: AppState, task_id: str) -> bool:
    return state.store.delete_task(task_id)
