"""Asyncio implementation of the timer scheduler port.

Each fire spawns the callback as its own task. Spawned tasks are held in a
set until they finish so they are not garbage collected mid-flight, and so
shutdown can wait for them.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import structlog

from storibloom.application.ports.timer_scheduler import (
    TimerCallback,
    TimerHandle,
    TimerSchedulerProtocol,
)


class AsyncioTimerHandle(TimerHandle):
    """Cancellable handle over the current asyncio.TimerHandle of a timer.

    For repeating timers the underlying loop handle is replaced on every
    fire; cancelling this wrapper stops the whole chain.
    """

    def __init__(self) -> None:
        self._loop_handle: Optional[asyncio.TimerHandle] = None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        if self._loop_handle is not None:
            self._loop_handle.cancel()
            self._loop_handle = None


class AsyncioTimerScheduler(TimerSchedulerProtocol):
    """Schedules coroutine callbacks on the running event loop.

    Must be used from within a running loop. Callback exceptions are logged;
    they never stop a repeating timer.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[None]] = set()
        self._log = structlog.get_logger().bind(service="asyncio_timer_scheduler")

    @property
    def active_tasks(self) -> int:
        """Number of callback tasks still running."""
        return len(self._tasks)

    def call_later(self, delay_ms: int, callback: TimerCallback) -> TimerHandle:
        handle = AsyncioTimerHandle()
        loop = asyncio.get_running_loop()

        def fire() -> None:
            handle._loop_handle = None
            if handle.cancelled:
                return
            self._spawn(callback)

        handle._loop_handle = loop.call_later(max(0, delay_ms) / 1000, fire)
        return handle

    def call_repeating(
        self, interval_ms: int, callback: TimerCallback
    ) -> TimerHandle:
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")

        handle = AsyncioTimerHandle()
        loop = asyncio.get_running_loop()
        interval = interval_ms / 1000
        next_at = loop.time() + interval

        def fire() -> None:
            nonlocal next_at
            if handle.cancelled:
                return
            # Fixed cadence: schedule the next fire before running this one
            next_at += interval
            now = loop.time()
            if next_at < now:
                next_at = now + interval
            handle._loop_handle = loop.call_at(next_at, fire)
            self._spawn(callback)

        handle._loop_handle = loop.call_at(next_at, fire)
        return handle

    def _spawn(self, callback: TimerCallback) -> None:
        task = asyncio.ensure_future(self._run(callback))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, callback: TimerCallback) -> None:
        try:
            await callback()
        except asyncio.CancelledError:
            raise
        except Exception:
            self._log.exception("timer_callback_failed")

    async def drain(self) -> None:
        """Wait for every callback task that is currently running."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
