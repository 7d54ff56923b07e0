# src/pomotodo/cli/main.py

"""
CLI entrypoint.

Initializes logging, starts the event loop thread, builds AppState on it, then
runs the console REPL in the main thread until /exit, EOF, Ctrl+C or SIGTERM.
"""

from __future__ import annotations

import logging
import signal
import sys
import threading

from ..cli.bootstrap import create_initial_state, shutdown_state
from ..cli.runner import start_loop_in_background
from ..config import get_settings
from ..connectors.console_connector import ConsoleView, run_console_loop
from ..core.errors import PomotodoError
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main() -> int:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    runner = start_loop_in_background()
    view = ConsoleView()

    try:
        state = runner.submit(create_initial_state(view=view, settings=settings))
    except PomotodoError as e:
        logger.error("Cannot open the task database: %s", e)
        view.show_error(str(e))
        runner.stop()
        runner.join(timeout=5.0)
        return 1

    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        signal.signal(signal.SIGTERM, _handle_signal)
    except (ValueError, OSError, AttributeError):
        # Not on the main thread, or the platform has no SIGTERM.
        logger.debug("SIGTERM handler not installed.", exc_info=True)

    try:
        run_console_loop(state, runner, stop_main)
    finally:
        try:
            runner.submit(shutdown_state(state), timeout=10.0)
        except Exception:
            logger.exception("Shutdown failed.")
        runner.stop()
        runner.join(timeout=10.0)
        logger.info("Bye.")

    return 0


if __name__ == "__main__":
    sys.exit(main())
