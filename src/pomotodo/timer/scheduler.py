# src/pomotodo/timer/scheduler.py

from __future__ import annotations

"""
Repeating tick scheduler on top of asyncio.

One scheduler owns at most one active schedule: scheduling again cancels the
previous one first, so two tick streams can never run side by side.

Each tick callback is awaited before the next sleep starts, so ticks never
overlap. A handle cancelled from inside its own callback lets that callback
finish; the loop exits right after it.
"""

import asyncio
import logging

from ..core.ports import TickCallback

logger = logging.getLogger(__name__)


class AsyncioIntervalHandle:
    def __init__(self, interval_seconds: float, callback: TickCallback) -> None:
        self._interval = interval_seconds
        self._callback = callback
        self._cancelled = False
        self._in_callback = False
        self._task: asyncio.Task[None] = asyncio.get_running_loop().create_task(self._run())

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if not self._in_callback:
            self._task.cancel()

    async def _run(self) -> None:
        while not self._cancelled:
            await asyncio.sleep(self._interval)
            if self._cancelled:
                break
            self._in_callback = True
            try:
                await self._callback()
            except Exception:
                logger.exception("Tick callback failed")
            finally:
                self._in_callback = False


class AsyncioIntervalScheduler:
    """
    Must be used from inside a running event loop.

    To stop ticking, cancel the handle (or call cancel_all on shutdown).
    """

    def __init__(self) -> None:
        self._active: AsyncioIntervalHandle | None = None

    @property
    def active(self) -> AsyncioIntervalHandle | None:
        if self._active is not None and self._active.cancelled:
            self._active = None
        return self._active

    def schedule(self, interval_seconds: float, callback: TickCallback) -> AsyncioIntervalHandle:
        if self._active is not None and not self._active.cancelled:
            logger.warning("Replacing an active tick schedule")
            self._active.cancel()

        handle = AsyncioIntervalHandle(max(0.001, float(interval_seconds)), callback)
        self._active = handle
        logger.debug("Tick scheduled every %.3fs", interval_seconds)
        return handle

    def cancel_all(self) -> None:
        if self._active is not None:
            self._active.cancel()
            self._active = None
