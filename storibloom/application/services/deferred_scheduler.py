"""Deferred one-shot scheduler: one replaceable timer per key.

Unlike the debounce scheduler, scheduling again for the same key does not
coalesce with the earlier request; it replaces it outright. Used for
stage-exit actions that must happen at a deadline even if no client polls
the system afterwards.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import structlog

from storibloom.application.ports.time_authority import TimeAuthorityProtocol
from storibloom.application.ports.timer_scheduler import (
    TimerHandle,
    TimerSchedulerProtocol,
)

DeferredAction = Callable[[str], Awaitable[object]]


@dataclass
class _Deferred:
    when_ms: int
    handle: TimerHandle | None = None


class DeferredOneShotScheduler:
    """Per-key single-fire timers that replace rather than stack.

    The action receives only the key; it must re-validate whatever state it
    acts on at fire time, since the deadline may have moved or another path
    may already have done the work.

    Example:
        >>> closer = DeferredOneShotScheduler(
        ...     action=close_if_still_final,
        ...     timer_scheduler=timers,
        ...     time_authority=clock,
        ... )
        >>> closer.schedule("room-1", room.stage_ends_at)
    """

    def __init__(
        self,
        action: DeferredAction,
        timer_scheduler: TimerSchedulerProtocol,
        time_authority: TimeAuthorityProtocol,
        name: str = "deferred",
    ) -> None:
        """Initialize the scheduler.

        Args:
            action: Coroutine function run with the key when its timer fires.
            timer_scheduler: Port used to arm timers.
            time_authority: Clock used to turn deadlines into delays.
            name: Label bound into every log line.
        """
        self._action = action
        self._timers = timer_scheduler
        self._time = time_authority
        self._scheduled: dict[str, _Deferred] = {}
        self._log = structlog.get_logger().bind(service="deferred_scheduler", name=name)

    def schedule(self, key: str, when_ms: int) -> None:
        """Arm the action for a key at an absolute time, replacing any prior one.

        A deadline already in the past fires at the next loop iteration
        rather than being skipped. Never raises; failures are logged.

        Args:
            key: Timer key, usually a room id.
            when_ms: Fire time in epoch milliseconds.
        """
        try:
            self.cancel(key)
            delay = max(0, when_ms - self._time.now_ms())
            deferred = _Deferred(when_ms=when_ms)
            deferred.handle = self._timers.call_later(
                delay, lambda: self._fire(key, deferred)
            )
            self._scheduled[key] = deferred
            self._log.debug("deferred_scheduled", key=key, when_ms=when_ms, delay_ms=delay)
        except Exception:
            self._log.exception("deferred_schedule_failed", key=key)

    async def _fire(self, key: str, deferred: _Deferred) -> None:
        # A replaced or cancelled timer that still fires must not act.
        if self._scheduled.get(key) is not deferred:
            return
        del self._scheduled[key]
        try:
            await self._action(key)
        except asyncio.CancelledError:
            raise
        except Exception:
            # No automatic retry; the next schedule() call re-arms.
            self._log.exception("deferred_action_failed", key=key)

    def cancel(self, key: str) -> bool:
        """Cancel the pending timer for a key.

        Returns:
            True if a timer was pending, False otherwise.
        """
        deferred = self._scheduled.pop(key, None)
        if deferred is None:
            return False
        if deferred.handle is not None:
            deferred.handle.cancel()
        return True

    def is_scheduled(self, key: str) -> bool:
        """Check whether a timer is pending for a key."""
        return key in self._scheduled

    def scheduled_at(self, key: str) -> int | None:
        """Pending fire time for a key in epoch milliseconds, None if none."""
        deferred = self._scheduled.get(key)
        return deferred.when_ms if deferred is not None else None

    def scheduled_keys(self) -> list[str]:
        """Keys with a pending timer."""
        return list(self._scheduled)

    def cancel_all(self) -> int:
        """Cancel every pending timer.

        Returns:
            Number of timers cancelled.
        """
        keys = self.scheduled_keys()
        for key in keys:
            self.cancel(key)
        return len(keys)
