# src/pocket_scheduler/reminders/runner.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from dataclasses import dataclass

from ..core.ports import ReminderSink
from ..core.state import AppState
from .evaluator import ReminderEvaluator, ReminderPolicy
from .scheduler import run_reminder_loop

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ReminderBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    task: asyncio.Task

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.task.cancel)
        except Exception:
            logger.debug("Failed to signal reminder loop stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def build_evaluator(settings) -> ReminderEvaluator:
    policy_raw = str(getattr(settings, "reminder_policy", ReminderPolicy.EXACT_MINUTE.value))
    try:
        policy = ReminderPolicy(policy_raw)
    except ValueError:
        logger.warning("Unknown reminder policy %r; using exact", policy_raw)
        policy = ReminderPolicy.EXACT_MINUTE
    return ReminderEvaluator(
        policy=policy,
        overdue_window_minutes=int(getattr(settings, "overdue_window_minutes", 60)),
    )


def start_reminders_in_background(state: AppState, sink: ReminderSink) -> ReminderBackgroundRunner | None:
    """
    Start the reminder loop in a background thread with its own event loop,
    so the blocking console REPL can run in the main thread.
    """
    settings = state.settings
    if not getattr(settings, "reminders_enabled", True):
        logger.info("Reminders disabled, not starting.")
        return None

    interval = float(getattr(settings, "reminder_interval_seconds", 60.0))
    evaluator = build_evaluator(settings)
    state.store.bus.subscribe(evaluator.on_change)

    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        task = loop.create_task(
            run_reminder_loop(
                state.store,
                sink,
                evaluator=evaluator,
                clock=state.clock,
                interval_seconds=interval,
            )
        )
        holder["loop"] = loop
        holder["task"] = task
        ready.set()

        try:
            with contextlib.suppress(asyncio.CancelledError):
                loop.run_until_complete(task)
        finally:
            with contextlib.suppress(Exception):
                loop.stop()
            with contextlib.suppress(Exception):
                loop.close()
            logger.info("Reminder loop stopped.")

    t = threading.Thread(target=runner, name="reminders", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    task = holder.get("task")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(task, asyncio.Task):
        logger.error("Reminder thread did not initialize properly.")
        return None

    logger.info("Reminder background thread started.")
    return ReminderBackgroundRunner(thread=t, loop=loop, task=task)
