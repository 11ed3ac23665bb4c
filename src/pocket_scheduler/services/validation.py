# src/pocket_scheduler/services/validation.py

from __future__ import annotations

from datetime import date, time
from typing import Any

from ..storage.models import EventType, Priority, Theme, parse_date


class ValidationError(ValueError):
    """Bad user input. str(err) is a message suitable for showing to the user."""


def require_text(value: Any, message: str) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise ValidationError(message)
    return text


def to_date(value: Any, *, required: bool = True) -> date | None:
    if value is None or value == "":
        if required:
            raise ValidationError("Please fill in all required fields")
        return None
    try:
        return parse_date(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date {value!r}; use YYYY-MM-DD") from None


def to_time(value: Any) -> time:
    if value is None or value == "":
        raise ValidationError("Please fill in all required fields")
    if isinstance(value, time):
        parsed = value
    else:
        try:
            parsed = time.fromisoformat(str(value).strip())
        except ValueError:
            raise ValidationError(f"Invalid time {value!r}; use HH:MM") from None
    if parsed.tzinfo is not None:
        raise ValidationError(f"Invalid time {value!r}; use local HH:MM without a UTC offset")
    return parsed


def to_minutes(value: Any, *, field_name: str = "reminder") -> int:
    try:
        minutes = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field_name} minutes {value!r}") from None
    if minutes < 0:
        raise ValidationError(f"{field_name.capitalize()} minutes cannot be negative")
    return minutes


def to_event_type(value: Any) -> EventType:
    if value is None or value == "":
        return EventType.CUSTOM
    try:
        return EventType(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(t.value for t in EventType)
        raise ValidationError(f"Unknown event type {value!r} (choose: {choices})") from None


def to_priority(value: Any) -> Priority:
    if value is None or value == "":
        return Priority.MEDIUM
    try:
        return Priority(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(p.value for p in Priority)
        raise ValidationError(f"Unknown priority {value!r} (choose: {choices})") from None


def to_theme(value: Any) -> Theme:
    try:
        return Theme(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(t.value for t in Theme)
        raise ValidationError(f"Unknown theme {value!r} (choose: {choices})") from None


def to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    raw = str(value).strip().lower()
    if raw in {"1", "true", "yes", "y", "on"}:
        return True
    if raw in {"0", "false", "no", "n", "off"}:
        return False
    raise ValidationError(f"Expected on/off, got {value!r}")
