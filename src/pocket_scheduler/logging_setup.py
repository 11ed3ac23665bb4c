# src/pocket_scheduler/logging_setup.py

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from pathlib import Path

APP_LOGGER = "pocket_scheduler"
LOG_FILE_NAME = "scheduler.log"
LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _under(name: str, prefix: str) -> bool:
    return name == prefix or name.startswith(prefix + ".")


class ConsoleNoiseFilter(logging.Filter):
    """
    Stderr filter for the interactive console.

    App records pass at the handler level. Loggers listed in `quiet` (by default the
    reminder thread, whose lines would land in the middle of the prompt) need WARNING.
    Anything outside the app, captured warnings included, needs ERROR.
    """

    def __init__(self, *, app: str = APP_LOGGER, quiet: Iterable[str] = ()) -> None:
        super().__init__()
        self.app = app
        self.quiet = tuple(q for q in (s.strip() for s in quiet) if q)

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if any(_under(name, q) for q in self.quiet):
            return record.levelno >= logging.WARNING
        if _under(name, self.app):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path,
    console_level: int = logging.INFO,
    quiet_loggers: Iterable[str] = (),
) -> Path:
    """
    Route all logging to stderr (filtered) and to `<log_dir>/scheduler.log` (DEBUG, unfiltered).

    Replaces whatever handlers the root logger had, so calling it twice does not duplicate
    lines. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(ConsoleNoiseFilter(quiet=quiet_loggers))
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    return log_file
