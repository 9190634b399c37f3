"""Stage transition reactor port.

The reactor performs stage-specific one-time side effects (posting
instructions, pasting the living draft, arming the final auto-close). The
stage engine only knows that a transition happened and calls the reactor
with the room snapshot reflecting the just-committed stage and deadline.
"""

from __future__ import annotations

from typing import Protocol

from storibloom.domain.models.room import RoomState


class StageReactorProtocol(Protocol):
    """Protocol for reacting to observed stage changes."""

    async def on_stage_advanced(self, room: RoomState) -> None:
        """React to a stage change.

        Invoked at most once per stage value change observed by the engine,
        after the new stage has been persisted. Failures are logged by the
        engine and never roll back the stage change.

        Args:
            room: Room snapshot with the new stage and deadline.
        """
        ...
