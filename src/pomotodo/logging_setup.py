# src/pomotodo/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "pomotodo.log"

# Components that log on every statement or tick. On the console they only show
# problems; the log file still gets everything.
_QUIET_COMPONENTS: dict[str, int] = {
    "pomotodo.storage.": logging.WARNING,
    "pomotodo.timer.scheduler": logging.WARNING,
}


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the REPL readable while a pomodoro is running.

    pomotodo records pass, except the storage gateway and the tick scheduler,
    which need WARNING. Captured Python warnings and anything from other
    libraries need ERROR.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if name.startswith("pomotodo."):
            for prefix, level in _QUIET_COMPONENTS.items():
                if name.startswith(prefix):
                    return record.levelno >= level
            return True

        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/pomotodo",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Send logs to stderr (filtered, so prompts and task lists stay legible) and
    to <log_dir>/pomotodo.log, next to the task database.

    Call once from main(), before the event loop thread starts. Returns the log
    file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # A second call (tests, re-entry) must not duplicate output.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s [%(threadName)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    logfile = logging.FileHandler(str(log_file), encoding="utf-8")
    logfile.setLevel(file_level)
    logfile.setFormatter(fmt)
    root.addHandler(logfile)

    logging.captureWarnings(True)
    return log_file
