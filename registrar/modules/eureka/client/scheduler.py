"""Cancellable fixed-interval scheduling on the running asyncio loop."""

from __future__ import annotations

import asyncio
import inspect
import logging
import weakref
from typing import Awaitable, Callable, Optional, Union

log = logging.getLogger(__name__)

TickCallback = Callable[[], Union[None, Awaitable[None]]]


class ScheduleHandle:
    """Handle to one recurring callback. ``cancel`` is safe to call twice."""

    def __init__(self, task: asyncio.Task) -> None:
        self._task = task

    @property
    def cancelled(self) -> bool:
        return self._task.done()

    def cancel(self) -> None:
        if not self._task.done():
            self._task.cancel()


class IntervalScheduler:
    """Run a callback every ``interval`` seconds until its handle is cancelled.

    A failing callback is logged and the next tick still fires. Bound methods
    are held weakly: once their owner is garbage collected the schedule ends.
    """

    def schedule(self, interval: float, callback: TickCallback, *, name: Optional[str] = None) -> ScheduleHandle:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        if inspect.ismethod(callback):
            ref = weakref.WeakMethod(callback)
        else:
            ref = lambda: callback  # noqa: E731
        task = asyncio.get_running_loop().create_task(self._run(interval, ref), name=name)
        return ScheduleHandle(task)

    async def _run(self, interval: float, ref: Callable[[], Optional[TickCallback]]) -> None:
        while True:
            await asyncio.sleep(interval)
            callback = ref()
            if callback is None:
                log.debug("Owner of scheduled callback is gone, stopping schedule")
                return
            try:
                result = callback()
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception:  # noqa: BLE001
                log.exception("Scheduled callback %s failed", getattr(callback, "__qualname__", callback))
            finally:
                # no strong reference to the owner while sleeping
                callback = result = None
