# src/pomotodo/cli/runner.py

"""
Background event loop.

The console REPL is blocking (input()), while storage and the timer are async,
so the loop lives in its own thread and the REPL hands coroutines over to it.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class LoopRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop

    def submit(self, coro: Coroutine[Any, Any, T], timeout: float | None = 30.0) -> T:
        """Run coro on the loop thread and wait for its result."""
        fut = asyncio.run_coroutine_threadsafe(coro, self.loop)
        return fut.result(timeout=timeout)

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.loop.stop)
        except RuntimeError:
            logger.debug("Loop already closed.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_loop_in_background() -> LoopRunner:
    ready = threading.Event()
    holder: dict[str, asyncio.AbstractEventLoop] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        holder["loop"] = loop
        ready.set()

        try:
            loop.run_forever()
        finally:
            pending = asyncio.all_tasks(loop)
            for task in pending:
                task.cancel()
            with contextlib.suppress(Exception):
                loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            loop.close()

    t = threading.Thread(target=runner, name="pomotodo-loop", daemon=True)
    t.start()

    if not ready.wait(timeout=5.0) or "loop" not in holder:
        raise RuntimeError("Event loop thread did not initialize")

    logger.debug("Event loop thread started.")
    return LoopRunner(thread=t, loop=holder["loop"])
