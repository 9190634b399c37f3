"""Stage and room errors.

ConcurrentStageModificationError backs the compare-and-swap on room writes:
a write that names the stage and version it read fails when another writer
(a presenter action, the close timer, or the tick loop) got there first.
"""

from __future__ import annotations

from storibloom.domain.exceptions import WorkshopError


class RoomNotFoundError(WorkshopError):
    """Raised when an update or control action targets a missing room.

    Reads return None for missing rooms; only writes raise.

    Attributes:
        room_id: Identifier of the missing room.
    """

    def __init__(self, room_id: str) -> None:
        self.room_id = room_id
        super().__init__(f"Room {room_id} not found")


class ConcurrentStageModificationError(WorkshopError):
    """Raised when a conditional write finds the room changed under it.

    The stored stage may differ from the expected stage, or the stage may
    match while the record version moved on (for example a deadline
    extension committed between the writer's read and its write).

    This is a recoverable error - the caller should re-read the room and
    decide whether its transition still applies.

    Attributes:
        room_id: Room that was being modified.
        expected_stage: Stage the writer expected to replace.
        actual_stage: Stage actually stored at write time.
        expected_version: Version the writer read, if it checked one.
        actual_version: Version actually stored at write time.
    """

    def __init__(
        self,
        room_id: str,
        expected_stage: str | None,
        actual_stage: str | None,
        expected_version: int | None = None,
        actual_version: int | None = None,
    ) -> None:
        self.room_id = room_id
        self.expected_stage = expected_stage
        self.actual_stage = actual_stage
        self.expected_version = expected_version
        self.actual_version = actual_version
        message = (
            f"Concurrent stage modification for room {room_id}: "
            f"expected {expected_stage}, found {actual_stage}"
        )
        if expected_version is not None:
            message += f" (version {expected_version}, found {actual_version})"
        super().__init__(message)


class InvalidStageError(WorkshopError):
    """Raised by explicit validation when a value is not a stage name.

    The tick path never raises this; it degrades to safe defaults instead.

    Attributes:
        value: The rejected value.
    """

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Invalid stage {value!r}")
