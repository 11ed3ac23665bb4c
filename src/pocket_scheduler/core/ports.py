# src/pocket_scheduler/core/ports.py

"""
Ports (interfaces) used by the core.

The store, query layers and reminder loop depend on Protocols instead of concrete
implementations. This keeps storage media and front-ends swappable and makes testing easier.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Awaitable, Callable, Protocol

if TYPE_CHECKING:
    from ..reminders.evaluator import ReminderSignal

Clock = Callable[[], datetime]
# Returns the current local (naive) datetime; datetime.now in production, fixed in tests.


class StorageMedium(Protocol):
    """
    Host storage: a flat string -> string key-value space.

    read() returns None for a missing key. Errors (quota, I/O, corruption) are raised;
    the record store decides how to surface them.
    """

    def read(self, key: str) -> str | None: ...
    def write(self, key: str, value: str) -> None: ...
    def remove(self, key: str) -> None: ...


class ReminderSink(Protocol):
    """
    Front-end side port: where the reminder loop delivers signals.

    The sink decides how to present them (console line, desktop notification, ...).
    """

    def deliver(self, signal: ReminderSignal) -> Awaitable[None]: ...
