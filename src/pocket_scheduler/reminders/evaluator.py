# src/pocket_scheduler/reminders/evaluator.py

from __future__ import annotations

import math
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from ..core.observers import ChangeAction, ChangeEvent
from ..storage.models import Event

DEFAULT_OVERDUE_WINDOW_MINUTES = 60


class SignalKind(StrEnum):
    REMINDER = "reminder"
    OVERDUE = "overdue"


class ReminderPolicy(StrEnum):
    """
    EXACT_MINUTE: remind only when a poll lands on the minute equal to reminder_minutes.
        A poll that drifts past that minute (or a paused process) misses the reminder.
    CATCH_UP: remind once per event as soon as minutes-until-due is within
        [0, reminder_minutes]. Fired reminders are remembered in memory only.
    """

    EXACT_MINUTE = "exact"
    CATCH_UP = "catch_up"


@dataclass(slots=True, frozen=True)
class ReminderSignal:
    kind: SignalKind
    event: Event
    minutes_until_due: int
    message: str


def minutes_until_due(event: Event, now: datetime) -> int:
    """Whole minutes from `now` to the event's due instant, floored (negative once past)."""
    return math.floor((event.due_at - now).total_seconds() / 60)


def format_clock(event: Event) -> str:
    """12-hour clock, e.g. "9:05 AM"."""
    return event.time.strftime("%I:%M %p").lstrip("0")


def reminder_message(event: Event, minutes: int) -> str:
    return f"Reminder: {event.title} starts in {minutes} minutes"


def overdue_message(event: Event) -> str:
    return f"Overdue: {event.title} was scheduled for {format_clock(event)}"


def _overdue_signal(event: Event, minutes: int, window: int) -> ReminderSignal | None:
    if minutes < 0 and abs(minutes) <= window:
        return ReminderSignal(
            kind=SignalKind.OVERDUE,
            event=event,
            minutes_until_due=minutes,
            message=overdue_message(event),
        )
    return None


def _reminder_signal(event: Event, minutes: int) -> ReminderSignal:
    return ReminderSignal(
        kind=SignalKind.REMINDER,
        event=event,
        minutes_until_due=minutes,
        message=reminder_message(event, minutes),
    )


def evaluate_reminders(
    events: Iterable[Event],
    now: datetime,
    *,
    overdue_window_minutes: int = DEFAULT_OVERDUE_WINDOW_MINUTES,
) -> list[ReminderSignal]:
    """
    One stateless poll with exact-minute semantics.

    For every pending event:
    - REMINDER when the event is still upcoming and minutes-until-due equals
      reminder_minutes exactly
    - OVERDUE when the event is 1..window minutes past due; this repeats on every poll
      inside the window (no de-duplication)
    """
    signals: list[ReminderSignal] = []
    for event in events:
        if event.is_completed:
            continue
        minutes = minutes_until_due(event, now)
        if event.due_at > now and minutes == event.reminder_minutes:
            signals.append(_reminder_signal(event, minutes))
        overdue = _overdue_signal(event, minutes, overdue_window_minutes)
        if overdue is not None:
            signals.append(overdue)
    return signals


class ReminderEvaluator:
    """
    Evaluates polls under a policy; keeps the fired set needed by CATCH_UP.

    evaluate() runs on the reminder thread while on_change() runs on whichever thread
    wrote to the store, so the fired set is guarded by a lock. A CATCH_UP reminder only
    counts as fired once mark_delivered() is called for it.
    """

    def __init__(
        self,
        *,
        policy: ReminderPolicy = ReminderPolicy.EXACT_MINUTE,
        overdue_window_minutes: int = DEFAULT_OVERDUE_WINDOW_MINUTES,
    ) -> None:
        self.policy = ReminderPolicy(policy)
        self.overdue_window_minutes = max(0, int(overdue_window_minutes))
        self._fired: set[str] = set()
        self._lock = threading.Lock()

    @staticmethod
    def _fired_key(event: Event) -> str:
        # Keyed by due instant too, so a rescheduled event reminds again.
        return f"{event.id}@{event.due_at.isoformat()}"

    def evaluate(self, events: Iterable[Event], now: datetime) -> list[ReminderSignal]:
        if self.policy == ReminderPolicy.EXACT_MINUTE:
            return evaluate_reminders(events, now, overdue_window_minutes=self.overdue_window_minutes)

        with self._lock:
            fired = set(self._fired)

        signals: list[ReminderSignal] = []
        for event in events:
            if event.is_completed:
                continue
            minutes = minutes_until_due(event, now)
            due_soon = event.due_at > now and 0 <= minutes <= event.reminder_minutes
            if due_soon and self._fired_key(event) not in fired:
                signals.append(_reminder_signal(event, minutes))
            overdue = _overdue_signal(event, minutes, self.overdue_window_minutes)
            if overdue is not None:
                signals.append(overdue)
        return signals

    def mark_delivered(self, signal: ReminderSignal) -> None:
        """Record a delivered REMINDER so CATCH_UP does not repeat it."""
        if self.policy != ReminderPolicy.CATCH_UP or signal.kind != SignalKind.REMINDER:
            return
        with self._lock:
            self._fired.add(self._fired_key(signal.event))

    def reset(self) -> None:
        with self._lock:
            self._fired.clear()

    def on_change(self, change: ChangeEvent) -> None:
        """ChangeBus listener: forget fired reminders for events that no longer exist."""
        if change.collection != "events":
            return
        if change.action in (ChangeAction.CLEAR, ChangeAction.REPLACE):
            self.reset()
        elif change.action == ChangeAction.DELETE and change.record_id is not None:
            prefix = f"{change.record_id}@"
            with self._lock:
                self._fired = {k for k in self._fired if not k.startswith(prefix)}
