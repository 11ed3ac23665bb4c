# src/pocket_scheduler/storage/models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import StrEnum
from typing import Any


class EventType(StrEnum):
    MEETING = "meeting"
    BIRTHDAY = "birthday"
    FESTIVAL = "festival"
    CUSTOM = "custom"

    @classmethod
    def from_raw(cls, raw: Any) -> EventType:
        if not raw:
            return cls.CUSTOM
        try:
            return cls(str(raw))
        except ValueError:
            return cls.CUSTOM


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]

    @classmethod
    def from_raw(cls, raw: Any) -> Priority:
        if not raw:
            return cls.MEDIUM
        try:
            return cls(str(raw))
        except ValueError:
            return cls.MEDIUM


_PRIORITY_RANK = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}


class Theme(StrEnum):
    LIGHT = "light"
    DARK = "dark"

    @classmethod
    def from_raw(cls, raw: Any) -> Theme:
        try:
            return cls(str(raw))
        except ValueError:
            return cls.LIGHT


# ---- JSON value codecs ----


def format_time(value: time) -> str:
    if value.second or value.microsecond:
        return value.isoformat(timespec="seconds")
    return value.isoformat(timespec="minutes")


def to_json_value(value: Any) -> Any:
    """Convert a Python field value into its persisted JSON form."""
    # datetime is a date subclass: check it first.
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, time):
        return format_time(value)
    if isinstance(value, StrEnum):
        return value.value
    return value


def parse_date(raw: Any) -> date | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    text = str(raw).strip()
    # Full ISO timestamps ("2024-05-01T00:00:00.000Z") are accepted; only the day matters.
    return date.fromisoformat(text[:10])


def parse_time(raw: Any) -> time | None:
    """Wall-clock time of day. Any UTC offset in stored data is dropped (times are local)."""
    if raw is None or raw == "":
        return None
    parsed = raw if isinstance(raw, time) else time.fromisoformat(str(raw).strip())
    return parsed.replace(tzinfo=None)


def parse_datetime(raw: Any) -> datetime | None:
    """Naive local datetime; aware values ("...Z", "+02:00") are converted to local time first."""
    if raw is None or raw == "":
        return None
    parsed = raw if isinstance(raw, datetime) else datetime.fromisoformat(str(raw).strip())
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


# ---- records ----


@dataclass(slots=True)
class Event:
    id: str
    title: str
    date: date
    time: time

    type: EventType = EventType.CUSTOM
    reminder_minutes: int = 15
    is_completed: bool = False
    created_date: datetime | None = None
    description: str = ""

    @property
    def due_at(self) -> datetime:
        """The single instant at which the event occurs (local, naive)."""
        return datetime.combine(self.date, self.time)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "date": to_json_value(self.date),
            "time": to_json_value(self.time),
            "type": self.type.value,
            "reminderMinutes": int(self.reminder_minutes),
            "isCompleted": bool(self.is_completed),
            "createdDate": to_json_value(self.created_date),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Event:
        """Build an Event from its persisted form. Raises ValueError on unusable records."""
        day = parse_date(data.get("date"))
        at = parse_time(data.get("time"))
        if day is None or at is None:
            raise ValueError(f"event {data.get('id')!r} has no date/time")
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            date=day,
            time=at,
            type=EventType.from_raw(data.get("type")),
            reminder_minutes=int(data.get("reminderMinutes") or 0),
            is_completed=bool(data.get("isCompleted", False)),
            created_date=parse_datetime(data.get("createdDate")),
            description=str(data.get("description") or ""),
        )


@dataclass(slots=True)
class Task:
    id: str
    title: str

    category: str = "personal"
    priority: Priority = Priority.MEDIUM
    due_date: date | None = None
    is_completed: bool = False
    completed_date: datetime | None = None
    created_date: datetime | None = None
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "priority": self.priority.value,
            "dueDate": to_json_value(self.due_date),
            "isCompleted": bool(self.is_completed),
            "completedDate": to_json_value(self.completed_date),
            "createdDate": to_json_value(self.created_date),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Task:
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            category=str(data.get("category") or ""),
            priority=Priority.from_raw(data.get("priority")),
            due_date=parse_date(data.get("dueDate")),
            is_completed=bool(data.get("isCompleted", False)),
            completed_date=parse_datetime(data.get("completedDate")),
            created_date=parse_datetime(data.get("createdDate")),
            description=str(data.get("description") or ""),
        )


@dataclass(slots=True)
class UserSettings:
    """The persisted singleton `settings` record (not the process config, see config.py)."""

    theme: Theme = Theme.LIGHT
    default_reminder_time: int = 15
    notifications: bool = True
    last_module: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "theme": self.theme.value,
            "defaultReminderTime": int(self.default_reminder_time),
            "notifications": bool(self.notifications),
        }
        if self.last_module is not None:
            out["lastModule"] = self.last_module
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> UserSettings:
        try:
            reminder = int(data.get("defaultReminderTime", 15))
        except (TypeError, ValueError):
            reminder = 15
        last_module = data.get("lastModule")
        return cls(
            theme=Theme.from_raw(data.get("theme", "light")),
            default_reminder_time=reminder,
            # Only an explicit false disables notifications.
            notifications=data.get("notifications") is not False,
            last_module=str(last_module) if last_module is not None else None,
        )


# Patchable fields per collection: python name -> persisted JSON key.
# `id` is never patchable.
EVENT_PATCH_FIELDS: dict[str, str] = {
    "title": "title",
    "description": "description",
    "date": "date",
    "time": "time",
    "type": "type",
    "reminder_minutes": "reminderMinutes",
    "is_completed": "isCompleted",
}

TASK_PATCH_FIELDS: dict[str, str] = {
    "title": "title",
    "description": "description",
    "category": "category",
    "priority": "priority",
    "due_date": "dueDate",
    "is_completed": "isCompleted",
    "completed_date": "completedDate",
}

SETTINGS_PATCH_FIELDS: dict[str, str] = {
    "theme": "theme",
    "default_reminder_time": "defaultReminderTime",
    "notifications": "notifications",
    "last_module": "lastModule",
}


def encode_patch(patch: Mapping[str, Any], fields: Mapping[str, str]) -> tuple[dict[str, Any], list[str]]:
    """
    Translate a python-named patch into persisted JSON keys.

    Returns (encoded, dropped) where dropped lists the keys outside the allowlist.
    """
    encoded: dict[str, Any] = {}
    dropped: list[str] = []
    for name, value in patch.items():
        key = fields.get(name)
        if key is None:
            dropped.append(name)
            continue
        encoded[key] = to_json_value(value)
    return encoded, dropped
