# src/pocket_scheduler/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then starts:
- the reminder loop in a background thread (optional),
- the console REPL in the main thread (optional).
"""

from __future__ import annotations

import logging
import signal
import threading

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import ConsoleReminderSink, run_console_loop
from ..logging_setup import setup_logging
from ..reminders.runner import start_reminders_in_background

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/pocket_scheduler")
    quiet = getattr(settings, "log_quiet_loggers", ("pocket_scheduler.reminders",))
    log_file = setup_logging(log_dir=log_dir, console_level=console_level, quiet_loggers=quiet)
    logger.debug("Full log at %s", log_file)

    logger.info("Starting %s...", getattr(settings, "app_name", "pocket-scheduler"))

    state = create_initial_state(settings=settings)

    runner = start_reminders_in_background(state, ConsoleReminderSink())

    # Use an Event so main can wait without a busy while-loop.
    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        signal.signal(signal.SIGTERM, _handle_signal)
        if not settings.console_enabled:
            signal.signal(signal.SIGINT, _handle_signal)
    except Exception:
        # Some platforms may not support SIGTERM, etc.
        pass

    try:
        if settings.console_enabled:
            run_console_loop(state)
            stop_main.set()
        else:
            logger.info("Console disabled. Running reminders only. Press Ctrl+C to stop.")
            stop_main.wait()
    finally:
        if runner is not None:
            runner.stop()
            runner.join(timeout=10.0)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
