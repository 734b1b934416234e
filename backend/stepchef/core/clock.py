"""
Wall clock and recurring-callback scheduler used by the timer and the alarm.
"""

import asyncio
import logging
import time
from typing import Callable, Optional, Protocol

log = logging.getLogger(__name__)


class Clock(Protocol):
    def now(self) -> float: ...


class ScheduledHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_every(self, interval: float, callback: Callable[[], None]) -> ScheduledHandle: ...


class SystemClock:
    """Epoch seconds; survives process restarts unlike a monotonic clock."""

    def now(self) -> float:
        return time.time()


class _TaskHandle:
    def __init__(self, task: asyncio.Task):
        self.task = task

    def cancel(self) -> None:
        self.task.cancel()


class AsyncioScheduler:
    """Runs callbacks at a fixed interval as tasks on the running event loop."""

    def call_every(self, interval: float, callback: Callable[[], None]) -> _TaskHandle:
        task = asyncio.get_running_loop().create_task(self._repeat(interval, callback))
        return _TaskHandle(task)

    async def _repeat(self, interval: float, callback: Callable[[], None]):
        while True:
            await asyncio.sleep(interval)
            try:
                callback()
            except Exception as e:
                log.error(f"Scheduled callback {callback!r} failed: {e}")


def cancel_handle(handle: Optional[ScheduledHandle]) -> None:
    if handle is not None:
        handle.cancel()
