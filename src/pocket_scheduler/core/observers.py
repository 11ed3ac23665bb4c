# src/pocket_scheduler/core/observers.py

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

logger = logging.getLogger(__name__)


class ChangeAction(StrEnum):
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"
    REPLACE = "replace"  # whole collection written (set / import)
    CLEAR = "clear"


@dataclass(slots=True, frozen=True)
class ChangeEvent:
    collection: str
    action: ChangeAction
    record_id: str | None = None


ChangeListener = Callable[[ChangeEvent], None]


class ChangeBus:
    """
    Minimal synchronous observer list.

    Listeners run in the emitting thread, in subscription order. A failing listener is
    logged and does not prevent the others from running.
    """

    def __init__(self) -> None:
        self._listeners: list[ChangeListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a listener. Returns a callable that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            self.unsubscribe(listener)

        return _unsubscribe

    def unsubscribe(self, listener: ChangeListener) -> None:
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

    def emit(self, event: ChangeEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "Change listener failed collection=%s action=%s",
                    event.collection,
                    event.action.value,
                )
