"""Per-key debounce scheduler with a max-wait ceiling.

Coalesces bursts of trigger calls for the same key (usually a room id) into
one delayed run of an asynchronous job. Continuous triggering cannot postpone
the job forever: the run always starts within ``max_wait_ms`` of the first
trigger of the window.

Each key is a small state machine:

    idle --trigger--> pending --timer fires--> running --job done--> idle
                      pending --trigger------> pending (rescheduled)
                      running --trigger------> running (ignored)

``idle`` is simply the absence of an entry, so after a run completes the key
starts a fresh window on its next trigger.

Usage:
    debouncer = DebounceScheduler(
        job=summary_service.summarize,
        timer_scheduler=timers,
        time_authority=clock,
        config=DebounceConfig(delay_ms=10_000, max_wait_ms=30_000),
    )
    debouncer.trigger(room_id)   # on every relevant chat message
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from functools import partial

import structlog

from storibloom.application.ports.time_authority import TimeAuthorityProtocol
from storibloom.application.ports.timer_scheduler import (
    TimerHandle,
    TimerSchedulerProtocol,
)
from storibloom.config.stage_config import DEFAULT_DEBOUNCE_CONFIG, DebounceConfig

DebounceJob = Callable[[str], Awaitable[object]]


class DebounceState(Enum):
    """Lifecycle state of a tracked key (untracked keys are idle)."""

    PENDING = "pending"
    RUNNING = "running"


@dataclass
class _DebounceEntry:
    """Mutable per-key bookkeeping."""

    first_trigger_at_ms: int
    state: DebounceState = DebounceState.PENDING
    handle: TimerHandle | None = None
    trigger_count: int = 1


class DebounceScheduler:
    """Coalesces per-key triggers into single delayed job runs.

    Guarantees:
    - At most one pending timer per key
    - At most one job execution in flight per key
    - A run starts no later than first trigger + max_wait_ms
    - Job failures are logged and never escape trigger()

    Attributes:
        delay_ms: Quiet period before the job runs.
        max_wait_ms: Latency ceiling measured from the first trigger.
    """

    def __init__(
        self,
        job: DebounceJob,
        timer_scheduler: TimerSchedulerProtocol,
        time_authority: TimeAuthorityProtocol,
        config: DebounceConfig | None = None,
        name: str = "debounce",
    ) -> None:
        """Initialize the scheduler.

        Args:
            job: Coroutine function run with the key.
            timer_scheduler: Port used to arm delayed runs.
            time_authority: Clock used to measure the max-wait window.
            config: Delay and max-wait. Uses default if not provided.
            name: Label bound into every log line.
        """
        config = config or DEFAULT_DEBOUNCE_CONFIG
        self._job = job
        self._timers = timer_scheduler
        self._time = time_authority
        self.delay_ms = config.delay_ms
        self.max_wait_ms = config.max_wait_ms
        self._entries: dict[str, _DebounceEntry] = {}
        self._closed = False
        self._log = structlog.get_logger().bind(service="debounce_scheduler", name=name)

    @property
    def closed(self) -> bool:
        """Whether destroy() has been called."""
        return self._closed

    def trigger(self, key: str) -> None:
        """Record activity for a key and (re)schedule its job.

        Never raises; failures to schedule are logged.

        Args:
            key: Coalescing key, usually a room id.
        """
        if self._closed:
            self._log.warning("debounce_trigger_after_destroy", key=key)
            return
        try:
            self._trigger(key)
        except Exception:
            self._log.exception("debounce_trigger_failed", key=key)

    def _trigger(self, key: str) -> None:
        now = self._time.now_ms()
        entry = self._entries.get(key)

        if entry is None:
            entry = _DebounceEntry(first_trigger_at_ms=now)
            self._entries[key] = entry
            self._arm(key, entry, self.delay_ms)
            self._log.debug("debounce_window_opened", key=key, wait_ms=self.delay_ms)
            return

        if entry.state is DebounceState.RUNNING:
            self._log.debug("debounce_trigger_while_running", key=key)
            return

        entry.trigger_count += 1
        if entry.handle is not None:
            entry.handle.cancel()

        elapsed = now - entry.first_trigger_at_ms
        if elapsed >= self.max_wait_ms:
            self._log.info(
                "debounce_max_wait_reached",
                key=key,
                elapsed_ms=elapsed,
                triggers=entry.trigger_count,
            )
            self._arm(key, entry, 0)
            return

        wait = min(self.delay_ms, self.max_wait_ms - elapsed)
        self._arm(key, entry, wait)

    def _arm(self, key: str, entry: _DebounceEntry, wait_ms: int) -> None:
        entry.handle = self._timers.call_later(wait_ms, partial(self._run, key, entry))

    async def _run(self, key: str, entry: _DebounceEntry) -> None:
        """Execute the job for a pending entry, then return the key to idle."""
        if self._entries.get(key) is not entry or entry.state is not DebounceState.PENDING:
            return

        entry.state = DebounceState.RUNNING
        entry.handle = None
        started = self._time.now_ms()
        try:
            await self._job(key)
            self._log.debug(
                "debounce_job_completed",
                key=key,
                triggers=entry.trigger_count,
                waited_ms=started - entry.first_trigger_at_ms,
            )
        except asyncio.CancelledError:
            raise
        except Exception:
            self._log.exception("debounce_job_failed", key=key)
        finally:
            if self._entries.get(key) is entry:
                del self._entries[key]

    def cancel(self, key: str) -> bool:
        """Drop a pending run without executing it.

        Args:
            key: Coalescing key.

        Returns:
            True if a pending run was dropped, False if the key was idle or
            its job is already running.
        """
        entry = self._entries.get(key)
        if entry is None or entry.state is not DebounceState.PENDING:
            return False
        if entry.handle is not None:
            entry.handle.cancel()
        del self._entries[key]
        return True

    async def flush(self, key: str) -> bool:
        """Run a pending job now and wait for it.

        Args:
            key: Coalescing key.

        Returns:
            True if a pending run was executed, False otherwise.
        """
        entry = self._entries.get(key)
        if entry is None or entry.state is not DebounceState.PENDING:
            return False
        if entry.handle is not None:
            entry.handle.cancel()
        await self._run(key, entry)
        return True

    async def flush_all(self) -> int:
        """Run every pending job now, one key at a time.

        Returns:
            Number of jobs executed.
        """
        flushed = 0
        for key in self.pending_keys():
            if await self.flush(key):
                flushed += 1
        return flushed

    def pending_keys(self) -> list[str]:
        """Keys with a run scheduled but not started."""
        return [
            key
            for key, entry in self._entries.items()
            if entry.state is DebounceState.PENDING
        ]

    def state_of(self, key: str) -> DebounceState | None:
        """Current state of a key, None when idle."""
        entry = self._entries.get(key)
        return entry.state if entry is not None else None

    def destroy(self) -> None:
        """Cancel every pending run and refuse further triggers.

        Jobs already running are allowed to finish.
        """
        self._closed = True
        for key in self.pending_keys():
            self.cancel(key)
        self._log.info("debounce_scheduler_destroyed")
