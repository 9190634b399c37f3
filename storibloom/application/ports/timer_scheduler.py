"""Timer scheduler port: run later, run repeatedly, cancel.

The stage engine, the debounce scheduler, and the deferred one-shot
scheduler are built on this port so they can be driven by a simulated
clock in tests instead of real wall-clock delays.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol

TimerCallback = Callable[[], Awaitable[None]]


class TimerHandle(Protocol):
    """Handle to a scheduled one-shot or repeating timer."""

    def cancel(self) -> None:
        """Prevent any future fire of this timer.

        Never interrupts a callback that is already running.
        Cancelling twice is safe.
        """
        ...

    @property
    def cancelled(self) -> bool:
        """Whether cancel() has been called."""
        ...


class TimerSchedulerProtocol(Protocol):
    """Protocol for scheduling asynchronous callbacks.

    Each fire runs the callback as its own task, so a slow callback never
    delays other timers.

    Methods:
        call_later: Run a callback once after a delay
        call_repeating: Run a callback at a fixed cadence until cancelled
    """

    def call_later(self, delay_ms: int, callback: TimerCallback) -> TimerHandle:
        """Schedule a one-shot callback.

        Args:
            delay_ms: Delay in milliseconds. Negative values are treated as
                zero (fire at the next loop iteration).
            callback: Zero-argument coroutine function.

        Returns:
            Handle that can cancel the pending fire.
        """
        ...

    def call_repeating(
        self, interval_ms: int, callback: TimerCallback
    ) -> TimerHandle:
        """Schedule a callback every interval_ms, first fire after one interval.

        The cadence is fixed: the next fire is scheduled when the current
        one starts, not when it finishes.

        Args:
            interval_ms: Cadence in milliseconds (must be positive).
            callback: Zero-argument coroutine function.

        Returns:
            Handle that stops future fires.

        Raises:
            ValueError: If interval_ms is not positive.
        """
        ...
