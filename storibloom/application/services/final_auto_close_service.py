"""Final auto-close service.

FINAL is the one held stage: the stage engine never advances out of it, so
a room whose participants all walk away would sit in FINAL forever. This
service arms one deferred timer per room at the FINAL deadline and closes the
room when it fires, even if no client ever polls again.

The timer action re-validates the room at fire time. Presenter extensions
move the deadline; a close or stage change by another path makes the timer
a no-op.
"""

from __future__ import annotations

from collections.abc import Callable

from storibloom.application.ports.room_repository import RoomRepositoryProtocol
from storibloom.application.ports.time_authority import TimeAuthorityProtocol
from storibloom.application.ports.timer_scheduler import TimerSchedulerProtocol
from storibloom.application.services.base import LoggingMixin
from storibloom.application.services.deferred_scheduler import (
    DeferredOneShotScheduler,
)
from storibloom.domain.errors.stage import ConcurrentStageModificationError
from storibloom.domain.models.room import STAGE_ENDS_AT_FIELD, STAGE_FIELD, RoomState
from storibloom.domain.models.stage import TERMINAL_STAGE, Stage, parse_stage
from storibloom.domain.services.stage_machine import StageMachine

RoomActivityCallback = Callable[[str, str], None]


class FinalAutoCloseService(LoggingMixin):
    """Closes rooms whose FINAL deadline passes.

    After a successful close the room and the stage it left are reported
    through the room-activity callback (the stage engine's ``touch``), so the
    engine observes CLOSED on its next tick and the reactor fires exactly
    once for it, even for a room the engine had already evicted.

    Example:
        >>> closer = FinalAutoCloseService(rooms, timers, clock)
        >>> closer.bind_room_activity(engine.touch)
        >>> closer.arm(room)
    """

    def __init__(
        self,
        room_repository: RoomRepositoryProtocol,
        timer_scheduler: TimerSchedulerProtocol,
        time_authority: TimeAuthorityProtocol,
        stage_machine: StageMachine | None = None,
        room_activity: RoomActivityCallback | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            room_repository: Used to re-read and close rooms.
            timer_scheduler: Drives the per-room deferred timers.
            time_authority: Source of "now".
            stage_machine: FINAL budget for rooms without a deadline.
            room_activity: Called with the room id and the replaced stage
                after a close.
        """
        self._rooms = room_repository
        self._time = time_authority
        self._machine = stage_machine or StageMachine()
        self._room_activity = room_activity
        self._closer = DeferredOneShotScheduler(
            action=self._close_if_due,
            timer_scheduler=timer_scheduler,
            time_authority=time_authority,
            name="final_auto_close",
        )
        self._init_logger()

    def bind_room_activity(self, callback: RoomActivityCallback) -> None:
        """Set the callback told about closed rooms.

        The engine is built after its reactor, so the callback is usually
        bound once wiring is complete.
        """
        self._room_activity = callback

    def arm(self, room: RoomState) -> int:
        """Arm (or re-arm) the close timer for a room in FINAL.

        Replaces any timer already armed for the room.

        Args:
            room: Snapshot of the room. A missing deadline is taken as
                now + the FINAL budget.

        Returns:
            The fire time in epoch milliseconds.
        """
        when_ms = room.stage_ends_at
        if when_ms is None:
            when_ms = self._time.now_ms() + self._machine.duration_for(Stage.FINAL)
        self._closer.schedule(room.room_id, when_ms)
        self._log_operation("arm", room_id=room.room_id).info(
            "final_auto_close_armed", when_ms=when_ms
        )
        return when_ms

    def disarm(self, room_id: str) -> bool:
        """Cancel a room's close timer.

        Returns:
            True if a timer was armed.
        """
        return self._closer.cancel(room_id)

    def is_armed(self, room_id: str) -> bool:
        """Check whether a close timer is pending for a room."""
        return self._closer.is_scheduled(room_id)

    def armed_at(self, room_id: str) -> int | None:
        """Pending close time for a room in epoch milliseconds."""
        return self._closer.scheduled_at(room_id)

    def shutdown(self) -> int:
        """Cancel every pending close timer.

        Returns:
            Number of timers cancelled.
        """
        return self._closer.cancel_all()

    async def _close_if_due(self, room_id: str) -> None:
        log = self._log_operation("auto_close", room_id=room_id)
        room = await self._rooms.get_room(room_id)
        if room is None:
            log.warning("final_auto_close_room_missing")
            return

        if parse_stage(room.stage) is not Stage.FINAL:
            log.info("final_auto_close_skipped", stage=room.stage)
            return

        now = self._time.now_ms()
        if room.stage_ends_at is not None and room.stage_ends_at > now:
            # Deadline was extended after arming
            self._closer.schedule(room_id, room.stage_ends_at)
            log.info("final_auto_close_rearmed", when_ms=room.stage_ends_at)
            return

        try:
            await self._rooms.update_room(
                room_id,
                {STAGE_FIELD: TERMINAL_STAGE.value, STAGE_ENDS_AT_FIELD: now},
                expected_stage=room.stage,
                expected_version=room.version,
            )
        except ConcurrentStageModificationError as e:
            log.info(
                "final_auto_close_conflict",
                actual_stage=e.actual_stage,
                actual_version=e.actual_version,
            )
            return

        log.info("room_auto_closed", closed_at=now)
        if self._room_activity is not None:
            self._room_activity(room_id, room.stage)
