# src/pocket_scheduler/cli/commands.py

from __future__ import annotations

import inspect
import logging
import shlex
from collections.abc import Callable
from datetime import date
from typing import cast

from ..core.state import AppState
from ..query.events import week_days
from ..query.stats import storage_stats
from ..query.tasks import ALL, TaskFilters, due_badge
from ..reminders.evaluator import format_clock
from ..services import event_api, settings_api, snapshot_api, task_api
from ..services.validation import ValidationError, to_date
from ..storage.models import Event, Task

CommandEmitter = Callable[[str], None]
CommandHandler4 = Callable[[AppState, list[str], str | None, str | None], str]
CommandHandler5 = Callable[
    [AppState, list[str], str | None, str | None, CommandEmitter | None], str
]
CommandHandler = CommandHandler4 | CommandHandler5

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /events, /task ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        user_id: str | None = None,
        room_id: str | None = None,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Arguments are shell-split, so quoted titles keep their spaces.
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError:
            parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 5

        try:
            if nparams >= 5:
                h5 = cast(CommandHandler5, handler)
                return h5(state, args, user_id, room_id, emit)

            h4 = cast(CommandHandler4, handler)
            return h4(state, args, user_id, room_id)
        except ValidationError as e:
            return str(e)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting helpers ----


def _split_options(args: list[str]) -> tuple[list[str], dict[str, str]]:
    """Separate `key=value` tokens from positional ones."""
    positional: list[str] = []
    options: dict[str, str] = {}
    for arg in args:
        key, sep, value = arg.partition("=")
        if sep and key:
            options[key.lower()] = value
        else:
            positional.append(arg)
    return positional, options


def _fmt_event(event: Event) -> str:
    mark = "x" if event.is_completed else " "
    desc = f" - {event.description}" if event.description else ""
    return (
        f"[{mark}] {event.date.isoformat()} {format_clock(event)} {event.title} "
        f"({event.type.value}, remind {event.reminder_minutes}m){desc}  id={event.id}"
    )


def _fmt_task(task: Task, today: date) -> str:
    mark = "x" if task.is_completed else " "
    badge = due_badge(task, today)
    due = ""
    if task.due_date is not None:
        due = f" due {task.due_date.isoformat()}"
        if badge is not None:
            due += f" [{badge.value}]"
    return f"[{mark}] {task.title} ({task.priority.value}, {task.category}){due}  id={task.id}"


def _fmt_month(state: AppState, year: int, month: int) -> str:
    weeks = state.events.month(year, month)
    lines = [f"{date(year, month, 1):%B %Y}", "  Su   Mo   Tu   We   Th   Fr   Sa"]
    for week in weeks:
        cells = []
        for cell in week:
            if not cell.in_month:
                cells.append("   .")
                continue
            marker = "*" if cell.events else " "
            today = ">" if cell.is_today else " "
            cells.append(f"{today}{cell.day.day:2d}{marker}")
        lines.append(" ".join(cells))
    lines.append("(* = has events, > = today)")
    return "\n".join(lines)


def _list_or_empty(lines: list[str], empty: str) -> str:
    return "\n".join(lines) if lines else empty


def _remember_view(state: AppState, view: str) -> None:
    """Persist the last list view (calendar | events | todo) as lastModule; written only on change."""
    if state.store.get_settings().last_module != view:
        state.store.update_settings(last_module=view)


# ---- commands ----


def cmd_help(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
    emit: CommandEmitter | None = None,
) -> str:
    return registry.build_help()


def cmd_status(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
    emit: CommandEmitter | None = None,
) -> str:
    prefs = state.store.get_settings()
    reminders = "ON" if getattr(state.settings, "reminders_enabled", True) else "OFF"
    return (
        "Status:\n"
        f"  Storage: {getattr(state.settings, 'store_backend', 'sqlite')}\n"
        f"  Reminder loop: {reminders} (policy: {getattr(state.settings, 'reminder_policy', 'exact')})\n"
        f"  Notifications: {'ON' if prefs.notifications else 'OFF'}\n"
        f"  Theme: {prefs.theme.value}, default reminder: {prefs.default_reminder_time}m\n"
        f"  Last view: {prefs.last_module or '-'}"
    )


def cmd_events(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
    emit: CommandEmitter | None = None,
) -> str:
    """
    /events                    -> upcoming events
    /events attended           -> past or completed events
    /events today | date D     -> events on a day
    /events week [D]           -> events in the week containing D
    /events month [YYYY-MM]    -> month grid
    """
    sub = args[0].lower() if args else "upcoming"
    _remember_view(state, "calendar" if sub == "month" else "events")

    if sub == "upcoming":
        items = state.events.upcoming()
        return _list_or_empty([_fmt_event(e) for e in items], "No upcoming events.")

    if sub == "attended":
        items = state.events.attended()
        return _list_or_empty([_fmt_event(e) for e in items], "No attended events.")

    if sub in ("today", "date"):
        day = state.now().date() if sub == "today" else to_date(args[1] if len(args) > 1 else None)
        if day is None:
            return "Usage: /events date YYYY-MM-DD"
        items = state.events.by_date(day)
        return _list_or_empty([_fmt_event(e) for e in items], f"No events on {day.isoformat()}.")

    if sub == "week":
        anchor = to_date(args[1]) if len(args) > 1 else state.now().date()
        if anchor is None:
            return "Usage: /events week [YYYY-MM-DD]"
        days = week_days(anchor)
        items = state.events.in_range(days[0], days[-1])
        header = f"Week {days[0].isoformat()} .. {days[-1].isoformat()}"
        return header + "\n" + _list_or_empty([_fmt_event(e) for e in items], "No events this week.")

    if sub == "month":
        if len(args) > 1:
            try:
                year_s, month_s = args[1].split("-", 1)
                year, month = int(year_s), int(month_s)
                date(year, month, 1)
            except ValueError:
                return "Usage: /events month YYYY-MM"
        else:
            now = state.now()
            year, month = now.year, now.month
        return _fmt_month(state, year, month)

    return "Usage: /events [upcoming|attended|today|date YYYY-MM-DD|week [YYYY-MM-DD]|month [YYYY-MM]]"


def cmd_event(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
    emit: CommandEmitter | None = None,
) -> str:
    """
    /event add "Title" YYYY-MM-DD HH:MM [type=meeting] [reminder=15] [desc="..."]
    /event edit ID key=value ...
    /event done ID | /event rm ID | /event show ID
    """
    usage = (
        "Usage:\n"
        '  /event add "Title" YYYY-MM-DD HH:MM [type=meeting|birthday|festival|custom] [reminder=15] [desc=...]\n'
        "  /event edit ID [title=..] [date=..] [time=..] [type=..] [reminder=..] [desc=..]\n"
        "  /event done ID | /event rm ID | /event show ID"
    )
    if not args:
        return usage

    sub = args[0].lower()
    positional, options = _split_options(args[1:])

    if sub == "add":
        if len(positional) < 3:
            return "Please fill in all required fields (title, date, time)."
        event = event_api.create_event(
            state,
            title=positional[0],
            date=positional[1],
            time=positional[2],
            type=options.get("type"),
            reminder_minutes=options.get("reminder"),
            description=options.get("desc", ""),
        )
        if event is None:
            return "Failed to add event."
        return f"Event added successfully.\n{_fmt_event(event)}"

    if not positional:
        return usage
    event_id = positional[0]

    if sub == "edit":
        renames = {"reminder": "reminder_minutes", "desc": "description"}
        fields = {renames.get(k, k): v for k, v in options.items()}
        if not fields:
            return "Nothing to change."
        ok = event_api.edit_event(state, event_id, **fields)
        return "Event updated successfully." if ok else f"Failed to update event {event_id}."

    if sub == "done":
        ok = event_api.complete_event(state, event_id)
        return "Event marked as completed." if ok else f"Failed to complete event {event_id}."

    if sub in ("rm", "delete"):
        ok = event_api.delete_event(state, event_id)
        return "Event deleted successfully." if ok else "Failed to delete event."

    if sub == "show":
        event = state.store.get_event(event_id)
        return _fmt_event(event) if event else f"No event with id {event_id}."

    return usage


def cmd_tasks(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
    emit: CommandEmitter | None = None,
) -> str:
    """/tasks [category=..] [priority=..] [status=all|pending|completed]"""
    _, options = _split_options(args)
    filters = TaskFilters(
        category=options.get("category", ALL),
        priority=options.get("priority", ALL).lower(),
        status=options.get("status", ALL).lower(),
    )
    _remember_view(state, "todo")
    today = state.now().date()
    items = state.tasks.list(filters)
    stats = state.tasks.stats()
    header = (
        f"Tasks: {stats['total']} total, {stats['pending']} pending, "
        f"{stats['completed']} completed, {stats['overdue']} overdue"
    )
    return header + "\n" + _list_or_empty([_fmt_task(t, today) for t in items], "No tasks found.")


def cmd_task(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
    emit: CommandEmitter | None = None,
) -> str:
    """
    /task add "Title" [priority=high] [category=work] [due=YYYY-MM-DD] [desc="..."]
    /task edit ID key=value ...
    /task done ID (toggles) | /task rm ID | /task show ID
    """
    usage = (
        "Usage:\n"
        '  /task add "Title" [priority=low|medium|high] [category=..] [due=YYYY-MM-DD] [desc=...]\n'
        "  /task edit ID [title=..] [priority=..] [category=..] [due=..] [desc=..]\n"
        "  /task done ID | /task rm ID | /task show ID"
    )
    if not args:
        return usage

    sub = args[0].lower()
    positional, options = _split_options(args[1:])
    today = state.now().date()

    if sub == "add":
        if not positional:
            return "Please enter a task title."
        task = task_api.create_task(
            state,
            title=positional[0],
            category=options.get("category"),
            priority=options.get("priority"),
            due_date=options.get("due"),
            description=options.get("desc", ""),
        )
        if task is None:
            return "Failed to add task."
        return f"Task added successfully.\n{_fmt_task(task, today)}"

    if not positional:
        return usage
    task_id = positional[0]

    if sub == "edit":
        renames = {"due": "due_date", "desc": "description"}
        fields = {renames.get(k, k): v for k, v in options.items()}
        if not fields:
            return "Nothing to change."
        ok = task_api.edit_task(state, task_id, **fields)
        return "Task updated successfully." if ok else f"Failed to update task {task_id}."

    if sub == "done":
        task = task_api.toggle_task_completion(state, task_id)
        if task is None:
            return f"Failed to update task {task_id}."
        return "Task completed!" if task.is_completed else "Task marked as pending."

    if sub in ("rm", "delete"):
        ok = task_api.delete_task(state, task_id)
        return "Task deleted successfully." if ok else "Failed to delete task."

    if sub == "show":
        task = state.store.get_task(task_id)
        return _fmt_task(task, today) if task else f"No task with id {task_id}."

    return usage


def cmd_settings(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
    emit: CommandEmitter | None = None,
) -> str:
    """
    /settings                 -> show preferences
    /settings KEY VALUE       -> theme light|dark, reminder MINUTES, notifications on|off
    """
    if not args:
        prefs = state.store.get_settings()
        return (
            "Settings:\n"
            f"  theme: {prefs.theme.value}\n"
            f"  reminder: {prefs.default_reminder_time}\n"
            f"  notifications: {'on' if prefs.notifications else 'off'}"
        )
    if len(args) < 2:
        return "Usage: /settings KEY VALUE (keys: " + ", ".join(settings_api.setting_keys()) + ")"
    ok = settings_api.update_user_setting(state, args[0], args[1])
    return "Settings saved." if ok else "Failed to save settings."


def cmd_export(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
    emit: CommandEmitter | None = None,
) -> str:
    target = args[0] if args else snapshot_api.default_export_name(state)
    path = snapshot_api.export_to_file(state, target)
    return f"Data exported successfully to {path}" if path else "Failed to export data."


def cmd_import(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
    emit: CommandEmitter | None = None,
) -> str:
    if not args:
        return "Usage: /import PATH"
    ok = snapshot_api.import_from_file(state, args[0])
    return "Data imported successfully." if ok else "Failed to import data."


def cmd_clear(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
    emit: CommandEmitter | None = None,
) -> str:
    if not args or args[0].lower() != "confirm":
        return "This deletes all events, tasks and settings. Run /clear confirm to proceed."
    ok = state.store.clear_all()
    return "All data cleared successfully." if ok else "Failed to clear data."


def cmd_stats(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
    emit: CommandEmitter | None = None,
) -> str:
    stats = storage_stats(state.store, state.now())
    overdue = len(state.tasks.overdue())
    return (
        "Stats:\n"
        f"  Events: {stats['totalEvents']} total, {stats['upcomingEvents']} upcoming, "
        f"{stats['attendedEvents']} attended\n"
        f"  Tasks: {stats['totalTasks']} total, {stats['pendingTasks']} pending, "
        f"{stats['completedTasks']} completed, {overdue} overdue"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show storage / reminder / preference status.")
registry.register(
    "events", cmd_events, help_text="List events: /events [upcoming|attended|today|date D|week|month]."
)
registry.register("event", cmd_event, help_text="Manage one event: /event add|edit|done|rm|show.")
registry.register("tasks", cmd_tasks, help_text="List tasks: /tasks [category=..] [priority=..] [status=..].")
registry.register("task", cmd_task, help_text="Manage one task: /task add|edit|done|rm|show.")
registry.register("settings", cmd_settings, help_text="Show or change preferences: /settings KEY VALUE.")
registry.register("export", cmd_export, help_text="Export all data to a JSON file: /export [PATH].")
registry.register("import", cmd_import, help_text="Import a JSON export: /import PATH.")
registry.register("clear", cmd_clear, help_text="Delete all data: /clear confirm.")
registry.register("stats", cmd_stats, help_text="Show event/task totals.")
