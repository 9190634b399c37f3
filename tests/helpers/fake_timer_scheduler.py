"""FakeTimerScheduler - simulated-clock timers for deterministic tests.

Timers never fire on their own. ``advance(ms)`` walks the FakeTimeAuthority
forward to each due timer in (due time, scheduling order) and runs its
callback to completion before moving on, so a test reads like a timeline:

    >>> timers = FakeTimerScheduler(clock)
    >>> debouncer.trigger("room-1")
    >>> await timers.advance(10_000)   # job has run

Timers armed by a callback for a time inside the advanced window fire within
the same ``advance`` call.
"""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass, field

from storibloom.application.ports.timer_scheduler import (
    TimerCallback,
    TimerHandle,
    TimerSchedulerProtocol,
)
from tests.helpers.fake_time_authority import FakeTimeAuthority


@dataclass
class FakeTimer:
    """A scheduled fire on the simulated clock."""

    due_ms: int
    seq: int
    callback: TimerCallback
    interval_ms: int | None = None
    fire_count: int = 0
    _cancelled: bool = field(default=False, repr=False)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class FakeTimerScheduler(TimerSchedulerProtocol):
    """TimerSchedulerProtocol driven by a FakeTimeAuthority.

    Attributes:
        fired: Total callback runs, for assertions.
    """

    def __init__(self, time_authority: FakeTimeAuthority) -> None:
        self._time = time_authority
        self._timers: list[FakeTimer] = []
        self._seq = itertools.count()
        self._tasks: set[asyncio.Task[None]] = set()
        self.fired = 0

    def call_later(self, delay_ms: int, callback: TimerCallback) -> TimerHandle:
        timer = FakeTimer(
            due_ms=self._time.now_ms() + max(0, delay_ms),
            seq=next(self._seq),
            callback=callback,
        )
        self._timers.append(timer)
        return timer

    def call_repeating(
        self, interval_ms: int, callback: TimerCallback
    ) -> TimerHandle:
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        timer = FakeTimer(
            due_ms=self._time.now_ms() + interval_ms,
            seq=next(self._seq),
            callback=callback,
            interval_ms=interval_ms,
        )
        self._timers.append(timer)
        return timer

    def pending(self) -> list[FakeTimer]:
        """Live timers ordered by due time."""
        self._timers = [t for t in self._timers if not t.cancelled]
        return sorted(self._timers, key=lambda t: (t.due_ms, t.seq))

    @property
    def pending_count(self) -> int:
        return len(self.pending())

    def next_due_ms(self) -> int | None:
        """Due time of the earliest live timer."""
        pending = self.pending()
        return pending[0].due_ms if pending else None

    async def advance(self, ms: int, *, wait: bool = True) -> None:
        """Move the clock forward by ms, firing due timers in order.

        Args:
            ms: Milliseconds to advance.
            wait: Run each callback to completion before the next timer.
                With False, callbacks are only spawned, which lets a test
                observe overlapping runs.
        """
        target = self._time.now_ms() + ms
        while True:
            pending = self.pending()
            if not pending or pending[0].due_ms > target:
                break
            timer = pending[0]
            if timer.due_ms > self._time.now_ms():
                self._time.advance_ms(timer.due_ms - self._time.now_ms())

            if timer.interval_ms is not None:
                timer.due_ms += timer.interval_ms
                timer.seq = next(self._seq)
            else:
                self._timers.remove(timer)

            timer.fire_count += 1
            self.fired += 1
            task = asyncio.ensure_future(timer.callback())
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            if wait:
                await task
            else:
                await asyncio.sleep(0)

        remaining = target - self._time.now_ms()
        if remaining > 0:
            self._time.advance_ms(remaining)

    async def run_due(self) -> None:
        """Fire timers due at the current time without moving the clock."""
        await self.advance(0)

    async def drain(self) -> None:
        """Wait for every spawned callback to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
