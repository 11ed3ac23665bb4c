# src/pocket_scheduler/reminders/scheduler.py

"""
Reminder scheduler.

A small polling loop that:
- reads the events collection,
- evaluates reminder / overdue signals for the current minute,
- hands them to an injected sink.

Presentation (console line, desktop popup, ...) belongs to the sink, not the scheduler.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..core.ports import Clock, ReminderSink
from ..storage.record_store import RecordStore
from .evaluator import ReminderEvaluator, ReminderSignal

logger = logging.getLogger(__name__)


async def poll_once(
    store: RecordStore,
    sink: ReminderSink,
    evaluator: ReminderEvaluator,
    *,
    now: datetime,
) -> list[ReminderSignal]:
    """
    Run a single poll. Returns the signals that were handed to the sink.

    Nothing is delivered while the stored settings have notifications switched off.
    """
    try:
        events = store.get_events()
    except Exception:
        logger.exception("get_events failed")
        return []

    signals = evaluator.evaluate(events, now)
    if not signals:
        return []

    if not store.get_settings().notifications:
        logger.debug("Notifications disabled; dropping %d signal(s)", len(signals))
        return []

    delivered: list[ReminderSignal] = []
    for signal in signals:
        try:
            await sink.deliver(signal)
        except Exception:
            logger.exception("reminder delivery failed event_id=%s kind=%s", signal.event.id, signal.kind.value)
            continue
        evaluator.mark_delivered(signal)
        delivered.append(signal)
        logger.info("Signal %s event_id=%s minutes=%d", signal.kind.value, signal.event.id, signal.minutes_until_due)
    return delivered


async def run_reminder_loop(
    store: RecordStore,
    sink: ReminderSink,
    *,
    evaluator: ReminderEvaluator | None = None,
    clock: Clock = datetime.now,
    interval_seconds: float = 60.0,
) -> None:
    """
    Simple polling loop.

    Every interval_seconds (first poll immediately):
    - evaluate all pending events against clock()
    - deliver REMINDER / OVERDUE signals to the sink
      (a failing sink is logged; the loop keeps going)

    The loop has no state of its own beyond the evaluator, so missed polls are not replayed.
    To stop it, cancel the coroutine/task.
    """
    sleep_s = max(0.01, float(interval_seconds))
    evaluator = evaluator or ReminderEvaluator()

    logger.info("Reminder loop started interval=%.2fs policy=%s", sleep_s, evaluator.policy.value)
    while True:
        try:
            await poll_once(store, sink, evaluator, now=clock())
        except Exception:
            logger.exception("reminder poll failed")

        await asyncio.sleep(sleep_s)
