# src/pocket_scheduler/services/settings_api.py

from __future__ import annotations

from typing import Any

from ..core.state import AppState
from .validation import ValidationError, to_bool, to_minutes, to_theme

# user-facing key -> (field name, converter)
_SETTERS = {
    "theme": ("theme", to_theme),
    "reminder": ("default_reminder_time", to_minutes),
    "default_reminder_time": ("default_reminder_time", to_minutes),
    "notifications": ("notifications", to_bool),
}


def setting_keys() -> list[str]:
    return ["theme", "reminder", "notifications"]


def update_user_setting(state: AppState, key: str, value: Any) -> bool:
    """Convert and store one preference. Raises ValidationError for unknown keys/values."""
    entry = _SETTERS.get(key.strip().lower())
    if entry is None:
        raise ValidationError(f"Unknown setting {key!r} (choose: {', '.join(setting_keys())})")
    field_name, convert = entry
    return state.store.update_settings({field_name: convert(value)})
