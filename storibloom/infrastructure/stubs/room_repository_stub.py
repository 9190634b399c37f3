"""Room repository stub implementation.

In-memory RoomRepositoryProtocol for development and testing. Writes are
applied atomically with respect to the event loop (no await between the
compare and the swap), which is the guarantee a real store provides with a
conditional update.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from storibloom.application.ports.room_repository import RoomRepositoryProtocol
from storibloom.domain.errors.stage import (
    ConcurrentStageModificationError,
    RoomNotFoundError,
)
from storibloom.domain.models.room import RoomState
from storibloom.domain.models.stage import INITIAL_STAGE, Stage


class RoomRepositoryStub(RoomRepositoryProtocol):
    """In-memory stub implementation of RoomRepositoryProtocol.

    NOT suitable for production use.

    Attributes:
        writes: Every successful patch in commit order, as (room_id, patch).
        failing_rooms: Room ids whose reads raise, for failure-isolation tests.
    """

    def __init__(self) -> None:
        """Initialize the stub with empty storage."""
        self._rooms: dict[str, RoomState] = {}
        self.writes: list[tuple[str, dict[str, Any]]] = []
        self.failing_rooms: set[str] = set()

    def create_room(
        self,
        room_id: str,
        stage: Stage | str = INITIAL_STAGE,
        stage_ends_at: int | None = None,
        **attributes: Any,
    ) -> RoomState:
        """Create or replace a room (for testing).

        Returns:
            The stored RoomState.
        """
        room = RoomState(
            room_id=room_id,
            stage=stage.value if isinstance(stage, Stage) else stage,
            stage_ends_at=stage_ends_at,
            attributes=attributes,
        )
        self._rooms[room_id] = room
        return room

    def put(self, room: RoomState) -> None:
        """Store a snapshot as-is (for testing)."""
        self._rooms[room.room_id] = room

    async def get_room(self, room_id: str) -> RoomState | None:
        if room_id in self.failing_rooms:
            raise ConnectionError(f"Simulated read failure for room {room_id}")
        return self._rooms.get(room_id)

    async def update_room(
        self,
        room_id: str,
        patch: Mapping[str, Any],
        *,
        expected_stage: str | None = None,
        expected_version: int | None = None,
    ) -> RoomState:
        current = self._rooms.get(room_id)
        if current is None:
            raise RoomNotFoundError(room_id)
        stage_moved = expected_stage is not None and current.stage != expected_stage
        version_moved = (
            expected_version is not None and current.version != expected_version
        )
        if stage_moved or version_moved:
            raise ConcurrentStageModificationError(
                room_id=room_id,
                expected_stage=expected_stage,
                actual_stage=current.stage,
                expected_version=expected_version,
                actual_version=current.version,
            )
        updated = current.with_patch(patch)
        self._rooms[room_id] = updated
        self.writes.append((room_id, dict(patch)))
        return updated

    def writes_for(self, room_id: str) -> list[dict[str, Any]]:
        """Patches committed for one room, oldest first."""
        return [patch for rid, patch in self.writes if rid == room_id]

    def clear(self) -> None:
        """Clear all stored data (for testing)."""
        self._rooms.clear()
        self.writes.clear()
        self.failing_rooms.clear()
