# src/pocket_scheduler/services/event_api.py

from __future__ import annotations

import logging
from typing import Any

from ..core.state import AppState
from ..storage.models import Event
from ..storage.record_store import generate_id
from .validation import ValidationError, require_text, to_date, to_event_type, to_minutes, to_time

logger = logging.getLogger(__name__)


def create_event(
    state: AppState,
    *,
    title: Any,
    date: Any,
    time: Any,
    type: Any = None,
    description: str = "",
    reminder_minutes: Any = None,
) -> Event | None:
    """
    Validate input and append a new event.

    Raises ValidationError for bad input (nothing is stored).
    Returns the stored Event, or None if the store rejected the write.
    """
    if not title or not date or not time:
        raise ValidationError("Please fill in all required fields")

    if reminder_minutes is None or reminder_minutes == "":
        reminder_minutes = state.store.get_settings().default_reminder_time

    event = Event(
        id=generate_id(),
        title=require_text(title, "Please fill in all required fields"),
        date=to_date(date),
        time=to_time(time),
        type=to_event_type(type),
        reminder_minutes=to_minutes(reminder_minutes),
        is_completed=False,
        created_date=state.now(),
        description=(description or "").strip(),
    )

    if not state.store.add_event(event):
        logger.warning("Failed to add event title=%r", event.title)
        return None
    logger.info("Event added id=%s date=%s time=%s", event.id, event.date, event.time)
    return event


def edit_event(state: AppState, event_id: str, **fields: Any) -> bool:
    """
    Validate and apply a partial edit. Only the given fields change.

    Returns False when the event does not exist or the write failed.
    """
    patch: dict[str, Any] = {}
    if "title" in fields:
        patch["title"] = require_text(fields.pop("title"), "Please fill in all required fields")
    if "date" in fields:
        patch["date"] = to_date(fields.pop("date"))
    if "time" in fields:
        patch["time"] = to_time(fields.pop("time"))
    if "type" in fields:
        patch["type"] = to_event_type(fields.pop("type"))
    if "reminder_minutes" in fields:
        patch["reminder_minutes"] = to_minutes(fields.pop("reminder_minutes"))
    if "description" in fields:
        patch["description"] = str(fields.pop("description") or "").strip()
    if fields:
        raise ValidationError(f"Unknown event field(s): {', '.join(sorted(fields))}")
    return state.store.update_event(event_id, patch)


def complete_event(state: AppState, event_id: str) -> bool:
    return state.store.update_event(event_id, is_completed=True)


def delete_event(state: AppState, event_id: str) -> bool:
    return state.store.delete_event(event_id)
