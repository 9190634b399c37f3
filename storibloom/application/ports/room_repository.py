"""Room repository port.

Storage of room records is an external collaborator. The stage engine only
needs to read a room and merge-and-persist a partial update.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from storibloom.domain.models.room import RoomState


class RoomRepositoryProtocol(Protocol):
    """Protocol for room persistence.

    Methods:
        get_room: Read the current persisted room
        update_room: Merge-and-persist a partial update
    """

    async def get_room(self, room_id: str) -> RoomState | None:
        """Read current persisted room state.

        Must be idempotent and side-effect-free.

        Args:
            room_id: Room identifier.

        Returns:
            RoomState if found, None otherwise.
        """
        ...

    async def update_room(
        self,
        room_id: str,
        patch: Mapping[str, Any],
        *,
        expected_stage: str | None = None,
        expected_version: int | None = None,
    ) -> RoomState:
        """Merge a partial update into the room and persist it.

        Must be safe to call with just ``{"stage": ..., "stage_ends_at": ...}``.

        Args:
            room_id: Room identifier.
            patch: Fields to set (shallow merge).
            expected_stage: When given, the write only succeeds if the stored
                stage still equals this value (compare-and-swap).
            expected_version: When given, the write only succeeds if the
                stored version still equals this value, so a write made from
                a stale read fails even when the stage is unchanged.

        Returns:
            The resulting full room state.

        Raises:
            RoomNotFoundError: If the room does not exist.
            ConcurrentStageModificationError: If expected_stage or
                expected_version no longer matches the stored room.
        """
        ...
