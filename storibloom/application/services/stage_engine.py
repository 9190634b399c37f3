"""Stage engine: the stage/time authority for every active room.

The engine is the single place that
(a) notices a room's stage changed by any means,
(b) fires the transition reactor exactly once per change, and
(c) auto-advances time-bound, non-held stages when their budget expires.

Request handlers call ``touch(room_id)`` on every inbound request for a room,
keeping it "hot". A repeating tick inspects hot rooms one at a time so two
ticks never write the same room concurrently.

FINAL is time-bounded but held: the tick never modifies or advances it. The
final auto-close timer ends it instead.

Usage:
    engine = StageEngine(
        room_repository=rooms,
        reactor=facilitator,
        timer_scheduler=AsyncioTimerScheduler(),
        time_authority=TimeAuthorityService(),
    )
    await engine.start()
    ...
    engine.touch(room_id)   # from request handlers
    ...
    await engine.stop()
"""

from __future__ import annotations

import asyncio
from typing import Optional

import structlog

from storibloom.application.ports.room_repository import RoomRepositoryProtocol
from storibloom.application.ports.stage_reactor import StageReactorProtocol
from storibloom.application.ports.stage_tracking import StageTrackingProtocol
from storibloom.application.ports.time_authority import TimeAuthorityProtocol
from storibloom.application.ports.timer_scheduler import (
    TimerHandle,
    TimerSchedulerProtocol,
)
from storibloom.config.stage_config import (
    DEFAULT_STAGE_ENGINE_CONFIG,
    StageEngineConfig,
)
from storibloom.domain.errors.stage import ConcurrentStageModificationError
from storibloom.domain.models.room import STAGE_ENDS_AT_FIELD, STAGE_FIELD, RoomState
from storibloom.domain.models.stage import INITIAL_STAGE, parse_stage
from storibloom.domain.services.stage_machine import StageMachine
from storibloom.infrastructure.adapters.in_memory_stage_tracking import (
    InMemoryStageTracking,
)
from storibloom.infrastructure.observability.correlation import (
    correlation_scope,
    generate_correlation_id,
)


class StageEngine:
    """Authoritative tick loop over hot rooms.

    Guarantees:
    - The reactor is invoked at most once per stage value change the engine
      observes; re-observing the same stage never re-invokes it.
    - First observation and deadline bootstrapping never invoke the reactor.
    - The new stage is persisted before the reactor is invoked.
    - A failure in one room never aborts the rest of the tick.

    Attributes:
        tick_interval_ms: Tick cadence.
        inactivity_window_ms: Rooms untouched for longer are evicted.
    """

    def __init__(
        self,
        room_repository: RoomRepositoryProtocol,
        reactor: StageReactorProtocol,
        timer_scheduler: TimerSchedulerProtocol,
        time_authority: TimeAuthorityProtocol,
        stage_machine: StageMachine | None = None,
        tracking: StageTrackingProtocol | None = None,
        config: StageEngineConfig | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            room_repository: Reads and conditionally writes room state.
            reactor: Invoked once per observed stage change.
            timer_scheduler: Drives the repeating tick.
            time_authority: Source of "now".
            stage_machine: Stage order and budgets. Default table if omitted.
            tracking: Hot set and observed stages. Fresh in-memory store
                if omitted.
            config: Tick cadence and inactivity window.
        """
        config = config or DEFAULT_STAGE_ENGINE_CONFIG
        self._rooms = room_repository
        self._reactor = reactor
        self._timers = timer_scheduler
        self._time = time_authority
        self._machine = stage_machine or StageMachine()
        self._tracking = tracking if tracking is not None else InMemoryStageTracking()
        self.tick_interval_ms = config.tick_interval_ms
        self.inactivity_window_ms = config.inactivity_window_ms

        self._handle: Optional[TimerHandle] = None
        self._ticking = False
        self._inflight: Optional[asyncio.Task[object]] = None
        self._log = structlog.get_logger().bind(service="stage_engine")

    @property
    def running(self) -> bool:
        """Check if the tick loop is scheduled."""
        return self._handle is not None

    @property
    def tracking(self) -> StageTrackingProtocol:
        """The engine's hot set and observed-stage store."""
        return self._tracking

    def touch(self, room_id: str, previous_stage: str | None = None) -> None:
        """Mark a room as active now.

        Cheap and idempotent; safe to call on every inbound request.
        Never raises.

        Args:
            room_id: Room that just saw activity. Empty ids are ignored.
            previous_stage: Stage the caller is about to replace. When the
                engine has no observed stage for the room yet, this becomes
                the baseline, so the caller's own change is seen as a
                transition instead of being absorbed as the first sighting.
        """
        if not room_id:
            return
        try:
            self._tracking.touch(room_id, self._time.now_ms())
            if (
                previous_stage is not None
                and self._tracking.observed_stage(room_id) is None
            ):
                parsed = parse_stage(previous_stage or INITIAL_STAGE.value)
                baseline = parsed.value if parsed is not None else previous_stage
                self._tracking.record_stage(room_id, baseline)
                self._log.debug("room_stage_seeded", room_id=room_id, stage=baseline)
        except Exception:
            self._log.exception("stage_touch_failed", room_id=room_id)

    async def start(self) -> None:
        """Start the tick loop.

        Note:
            Calling start multiple times is safe (idempotent).
        """
        if self._handle is not None:
            return
        self._handle = self._timers.call_repeating(self.tick_interval_ms, self.tick)
        self._log.info(
            "stage_engine_started",
            tick_interval_ms=self.tick_interval_ms,
            inactivity_window_ms=self.inactivity_window_ms,
        )

    async def stop(self) -> None:
        """Stop scheduling ticks.

        A tick already in flight is allowed to finish and is awaited;
        no new tick starts afterwards. Calling stop when not running is safe.
        """
        if self._handle is None:
            return
        self._handle.cancel()
        self._handle = None

        inflight = self._inflight
        if (
            inflight is not None
            and inflight is not asyncio.current_task()
            and not inflight.done()
        ):
            await asyncio.wait({inflight})
        self._log.info("stage_engine_stopped")

    async def tick(self) -> None:
        """Inspect every hot room once, sequentially.

        Overlapping ticks are skipped rather than interleaved, so a slow
        reactor delays the next tick instead of racing it.
        """
        if self._ticking:
            self._log.debug("stage_tick_skipped_overlap")
            return

        self._ticking = True
        self._inflight = asyncio.current_task()
        try:
            room_ids = self._tracking.hot_room_ids()
            if not room_ids:
                return

            now = self._time.now_ms()
            with correlation_scope(generate_correlation_id("tick-")):
                for room_id in room_ids:
                    try:
                        await self._process_room(room_id, now)
                    except asyncio.CancelledError:
                        raise
                    except Exception:
                        # Retried on the next tick; the cadence is the backoff.
                        self._log.exception("stage_tick_room_failed", room_id=room_id)
        finally:
            self._ticking = False
            self._inflight = None

    async def _process_room(self, room_id: str, now: int) -> None:
        last_touch = self._tracking.last_touch(room_id)
        if last_touch is None or now - last_touch > self.inactivity_window_ms:
            self._tracking.evict(room_id)
            self._log.debug("room_evicted_inactive", room_id=room_id)
            return

        room = await self._rooms.get_room(room_id)
        if room is None:
            self._tracking.evict(room_id)
            self._log.info("room_evicted_missing", room_id=room_id)
            return

        parsed = parse_stage(room.stage or INITIAL_STAGE.value)
        stage = parsed.value if parsed is not None else room.stage

        observed = self._tracking.observed_stage(room_id)
        if observed is None:
            # First sighting establishes the baseline; never a transition.
            self._tracking.record_stage(room_id, stage)
            self._log.debug("room_stage_baseline", room_id=room_id, stage=stage)
            return

        if stage != observed:
            self._tracking.record_stage(room_id, stage)
            self._log.info(
                "stage_change_observed",
                room_id=room_id,
                previous_stage=observed,
                stage=stage,
            )
            await self._notify(room)

        if parsed is not None and parsed.is_terminal():
            self._tracking.evict(room_id)
            self._log.info("room_evicted_terminal", room_id=room_id)
            return

        if parsed is not None and parsed.is_held():
            return

        if room.stage_ends_at is None:
            ends_at = now + self._machine.duration_for(stage)
            try:
                await self._rooms.update_room(
                    room_id,
                    {STAGE_ENDS_AT_FIELD: ends_at},
                    expected_stage=room.stage,
                    expected_version=room.version,
                )
            except ConcurrentStageModificationError as e:
                # Retried from a fresh read on the next tick.
                self._log_conflict("stage_deadline_conflict", e)
                return
            self._tracking.record_stage(room_id, stage)
            self._log.info(
                "stage_deadline_initialized",
                room_id=room_id,
                stage=stage,
                stage_ends_at=ends_at,
            )
            return

        if now < room.stage_ends_at:
            return

        next_stage = self._machine.advance(stage)
        if next_stage == stage:
            return

        await self._advance(room, stage, next_stage, now)

    async def _advance(
        self, room: RoomState, stage: str, next_stage: str, now: int
    ) -> None:
        ends_at = now + self._machine.duration_for(next_stage)
        try:
            updated = await self._rooms.update_room(
                room.room_id,
                {STAGE_FIELD: next_stage, STAGE_ENDS_AT_FIELD: ends_at},
                expected_stage=room.stage,
                expected_version=room.version,
            )
        except ConcurrentStageModificationError as e:
            # Someone else wrote the room; the next tick re-reads it.
            self._log_conflict("stage_advance_conflict", e)
            return

        self._tracking.record_stage(room.room_id, updated.stage)
        self._log.info(
            "stage_advanced",
            room_id=room.room_id,
            previous_stage=stage,
            stage=updated.stage,
            stage_ends_at=updated.stage_ends_at,
        )
        await self._notify(updated)

        reached = parse_stage(updated.stage)
        if reached is not None and reached.is_terminal():
            self._tracking.evict(room.room_id)

    async def _notify(self, room: RoomState) -> None:
        """Invoke the reactor, absorbing its failures.

        A failed reactor never rolls back the committed stage.
        """
        try:
            await self._reactor.on_stage_advanced(room)
        except asyncio.CancelledError:
            raise
        except Exception:
            self._log.exception(
                "stage_reactor_failed", room_id=room.room_id, stage=room.stage
            )

    def _log_conflict(self, event: str, error: ConcurrentStageModificationError) -> None:
        self._log.info(
            event,
            room_id=error.room_id,
            expected_stage=error.expected_stage,
            actual_stage=error.actual_stage,
            expected_version=error.expected_version,
            actual_version=error.actual_version,
        )
