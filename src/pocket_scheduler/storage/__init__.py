"""
Storage subsystem.

Components:
- models.py: records (Event, Task, UserSettings), enums, JSON codecs, patch allowlists
- medium.py: key-value media (in-memory, SQLite)
- record_store.py: whole-collection persistence + add/update/delete/import/export
"""
