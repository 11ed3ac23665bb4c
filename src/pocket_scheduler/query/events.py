# src/pocket_scheduler/query/events.py

"""
Event views derived from the events collection.

The split between `upcoming` and `attended` is purely "future and pending" vs "everything
else": an event whose time has passed without being completed counts as attended. Whether
to show it as overdue is the front-end's business.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from ..core.ports import Clock
from ..storage.models import Event
from ..storage.record_store import RecordStore


def _as_day(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def events_by_date(events: Iterable[Event], day: date | datetime) -> list[Event]:
    """Events on the given calendar day, in store order."""
    target = _as_day(day)
    return [e for e in events if e.date == target]


def events_in_range(events: Iterable[Event], start: date | datetime, end: date | datetime) -> list[Event]:
    """Events whose day falls within [start, end] (inclusive), in store order."""
    lo, hi = _as_day(start), _as_day(end)
    return [e for e in events if lo <= e.date <= hi]


def upcoming_events(events: Iterable[Event], now: datetime) -> list[Event]:
    """Pending events due strictly after `now`, earliest first (stable)."""
    pending = [e for e in events if e.due_at > now and not e.is_completed]
    return sorted(pending, key=lambda e: e.due_at)


def attended_events(events: Iterable[Event], now: datetime) -> list[Event]:
    """Events due at or before `now`, or completed; most recent first (stable for ties)."""
    done = [e for e in events if e.due_at <= now or e.is_completed]
    # sorted(reverse=True) keeps equal keys in their original order.
    return sorted(done, key=lambda e: e.due_at, reverse=True)


def week_start(day: date | datetime) -> date:
    """The Sunday on or before `day`."""
    d = _as_day(day)
    return d - timedelta(days=(d.weekday() + 1) % 7)


def week_days(day: date | datetime) -> list[date]:
    start = week_start(day)
    return [start + timedelta(days=i) for i in range(7)]


@dataclass(slots=True)
class CalendarDay:
    day: date
    in_month: bool
    is_today: bool
    events: list[Event] = field(default_factory=list)


def month_grid(events: Sequence[Event], year: int, month: int, *, today: date) -> list[list[CalendarDay]]:
    """
    Six Sunday-first weeks covering the month, each cell with that day's events.

    Days from the neighbouring months are included with in_month=False.
    """
    start = week_start(date(year, month, 1))
    weeks: list[list[CalendarDay]] = []
    for w in range(6):
        row: list[CalendarDay] = []
        for d in range(7):
            day = start + timedelta(days=w * 7 + d)
            row.append(
                CalendarDay(
                    day=day,
                    in_month=(day.month == month),
                    is_today=(day == today),
                    events=events_by_date(events, day),
                )
            )
        weeks.append(row)
    return weeks


class EventQueries:
    """Event views bound to a store and a clock."""

    def __init__(self, store: RecordStore, *, clock: Clock = datetime.now) -> None:
        self._store = store
        self._clock = clock

    def by_date(self, day: date | datetime) -> list[Event]:
        return events_by_date(self._store.get_events(), day)

    def in_range(self, start: date | datetime, end: date | datetime) -> list[Event]:
        return events_in_range(self._store.get_events(), start, end)

    def upcoming(self) -> list[Event]:
        return upcoming_events(self._store.get_events(), self._clock())

    def attended(self) -> list[Event]:
        return attended_events(self._store.get_events(), self._clock())

    def month(self, year: int, month: int) -> list[list[CalendarDay]]:
        return month_grid(self._store.get_events(), year, month, today=self._clock().date())
