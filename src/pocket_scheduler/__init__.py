"""Personal scheduler: events, a to-do list and reminders over a small key-value store."""

__version__ = "0.1.0"
