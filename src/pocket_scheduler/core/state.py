# src/pocket_scheduler/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from ..query.events import EventQueries
from ..query.tasks import TaskQueries
from ..storage.record_store import RecordStore
from .ports import Clock


@dataclass
class AppState:
    """
    Everything a front-end needs, built once in cli/bootstrap.py and passed explicitly.

    `settings` is the process config (config.Settings or a test stand-in);
    user-facing preferences live in the store's `settings` collection.
    """

    settings: object
    store: RecordStore
    clock: Clock = field(default=datetime.now)

    @property
    def events(self) -> EventQueries:
        return EventQueries(self.store, clock=self.clock)

    @property
    def tasks(self) -> TaskQueries:
        return TaskQueries(self.store, clock=self.clock)

    def now(self) -> datetime:
        return self.clock()
