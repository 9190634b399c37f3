"""Presenter stage controls.

Request-driven manual overrides of a room's stage. Controls write the room,
keep the final auto-close timer in step with the new stage, and touch the
room in the stage engine; the engine observes the new stage on its next
tick and fires the reactor, so reactions never run twice.

Before writing, a control hands the engine the stage it is replacing. A room
the engine has never seen (new, evicted for inactivity, or lost in a
restart) therefore still registers the control's change as a transition.

All writes are compare-and-swap on the stage and version the control just
read, so a control racing the tick loop or the close timer fails cleanly
with ConcurrentStageModificationError instead of overwriting their write.
"""

from __future__ import annotations

from storibloom.application.ports.room_repository import RoomRepositoryProtocol
from storibloom.application.ports.time_authority import TimeAuthorityProtocol
from storibloom.application.services.base import LoggingMixin
from storibloom.application.services.final_auto_close_service import (
    FinalAutoCloseService,
)
from storibloom.application.services.stage_engine import StageEngine
from storibloom.domain.errors.stage import RoomNotFoundError
from storibloom.domain.models.room import (
    DRAFT_REDO_RESET,
    STAGE_ENDS_AT_FIELD,
    STAGE_FIELD,
    RoomState,
)
from storibloom.domain.models.stage import (
    INITIAL_STAGE,
    TERMINAL_STAGE,
    Stage,
    parse_stage,
)
from storibloom.domain.services.stage_machine import StageMachine

DEFAULT_EXTEND_SECONDS = 120


class StageControlService(LoggingMixin):
    """Manual next / jump / redo / extend / close for presenters.

    Raises:
        RoomNotFoundError: If the room does not exist.
        InvalidStageError: If set_stage names an unknown stage.
        ConcurrentStageModificationError: If the room changed between the
            read and the write.
    """

    def __init__(
        self,
        room_repository: RoomRepositoryProtocol,
        stage_engine: StageEngine,
        final_auto_close: FinalAutoCloseService,
        time_authority: TimeAuthorityProtocol,
        stage_machine: StageMachine | None = None,
    ) -> None:
        self._rooms = room_repository
        self._engine = stage_engine
        self._final_auto_close = final_auto_close
        self._time = time_authority
        self._machine = stage_machine or StageMachine()
        self._init_logger()

    async def _require(self, room_id: str) -> RoomState:
        room = await self._rooms.get_room(room_id)
        if room is None:
            raise RoomNotFoundError(room_id)
        return room

    async def _transition(
        self,
        room: RoomState,
        target: Stage,
        extra: dict[str, object] | None = None,
    ) -> RoomState:
        now = self._time.now_ms()
        if target.is_terminal():
            ends_at = now
        else:
            ends_at = now + self._machine.duration_for(target)
        patch: dict[str, object] = {STAGE_FIELD: target.value, STAGE_ENDS_AT_FIELD: ends_at}
        if extra:
            patch.update(extra)

        self._engine.touch(room.room_id, previous_stage=room.stage)
        updated = await self._rooms.update_room(
            room.room_id,
            patch,
            expected_stage=room.stage,
            expected_version=room.version,
        )
        if target is Stage.FINAL:
            self._final_auto_close.arm(updated)
        else:
            self._final_auto_close.disarm(room.room_id)
        self._log_operation("transition", room_id=room.room_id).info(
            "stage_set_manually",
            previous_stage=room.stage,
            stage=updated.stage,
            stage_ends_at=updated.stage_ends_at,
        )
        return updated

    async def advance_stage(self, room_id: str) -> RoomState:
        """Move a room to its next stage now.

        FINAL advances to CLOSED; a CLOSED room is returned unchanged.
        """
        room = await self._require(room_id)
        current = parse_stage(room.stage or INITIAL_STAGE.value)
        if current is None or current.is_terminal():
            return room
        target = parse_stage(self._machine.advance(current), strict=True)
        return await self._transition(room, target)

    async def set_stage(self, room_id: str, stage: object) -> RoomState:
        """Jump a room to an explicit stage with a fresh deadline."""
        target = parse_stage(stage, strict=True)
        room = await self._require(room_id)
        return await self._transition(room, target)

    async def redo_draft(self, room_id: str) -> RoomState:
        """Re-open drafting: back to ROUGH_DRAFT with a fresh draft to come.

        Clears the rough-draft and paste guards so the reactor regenerates
        the draft and pastes the new one in EDITING and FINAL.
        """
        room = await self._require(room_id)
        return await self._transition(
            room,
            Stage.ROUGH_DRAFT,
            extra=dict(DRAFT_REDO_RESET),
        )

    async def extend_stage(
        self, room_id: str, seconds: int = DEFAULT_EXTEND_SECONDS
    ) -> RoomState:
        """Push the current stage's deadline out.

        The extension is added to the existing deadline, or to now when the
        deadline already passed or was never set. In FINAL the close timer
        is re-armed for the new deadline.
        """
        if seconds <= 0:
            raise ValueError(f"seconds must be positive, got {seconds}")
        room = await self._require(room_id)
        now = self._time.now_ms()
        base = room.stage_ends_at if room.stage_ends_at and room.stage_ends_at > now else now
        updated = await self._rooms.update_room(
            room_id,
            {STAGE_ENDS_AT_FIELD: base + seconds * 1000},
            expected_stage=room.stage,
            expected_version=room.version,
        )
        if parse_stage(updated.stage) is Stage.FINAL:
            self._final_auto_close.arm(updated)
        self._engine.touch(room_id)
        self._log_operation("extend_stage", room_id=room_id).info(
            "stage_extended",
            stage=updated.stage,
            seconds=seconds,
            stage_ends_at=updated.stage_ends_at,
        )
        return updated

    async def close_room(self, room_id: str) -> RoomState:
        """Close a room now, whatever its stage."""
        room = await self._require(room_id)
        if parse_stage(room.stage) is TERMINAL_STAGE:
            return room
        return await self._transition(room, TERMINAL_STAGE)
