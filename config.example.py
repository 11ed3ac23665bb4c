# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "SCHED_APP_NAME": "App display name (default: pocket-scheduler).",
    "SCHED_LOG_LEVEL": "Console logging level (default: INFO).",
    "SCHED_LOG_QUIET": (
        "Comma-separated logger names shown on the console only at WARNING+ "
        "(default: pocket_scheduler.reminders; empty string quiets nothing)."
    ),
    # Front-end
    "SCHED_CONSOLE_ENABLED": "Run the console REPL (true/false, default: true).",
    # Storage (gitignored)
    "SCHED_DATA_DIR": "Local data directory (default: .local/pocket_scheduler).",
    "SCHED_STORE_BACKEND": "Storage medium: sqlite | memory (default: sqlite).",
    "SCHED_STORE_PATH": "SQLite store path (default: <data_dir>/scheduler.sqlite3).",
    # Reminders
    "SCHED_REMINDERS_ENABLED": "Run the reminder loop (true/false, default: true).",
    "SCHED_REMINDER_INTERVAL_SECONDS": "Polling interval in seconds (default: 60).",
    "SCHED_OVERDUE_WINDOW_MINUTES": "Minutes after the due time during which overdue signals repeat (default: 60).",
    "SCHED_REMINDER_POLICY": "exact (remind on the exact minute only) | catch_up (remind once when within the window).",
}
