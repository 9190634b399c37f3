"""Stage tracking port: the engine's hot set and last-observed stages.

Both maps are ephemeral and owned by one engine instance. Entries appear on
touch or first observation and disappear on eviction or terminal stage.
"""

from __future__ import annotations

from typing import Protocol


class StageTrackingProtocol(Protocol):
    """Protocol for engine-local room tracking."""

    def touch(self, room_id: str, at_ms: int) -> None:
        """Mark a room as active at the given time."""
        ...

    def last_touch(self, room_id: str) -> int | None:
        """Get the last touch time in epoch milliseconds, None if not hot."""
        ...

    def is_hot(self, room_id: str) -> bool:
        """Check whether a room is in the hot set."""
        ...

    def hot_room_ids(self) -> list[str]:
        """Snapshot of hot room ids in touch-insertion order."""
        ...

    def observed_stage(self, room_id: str) -> str | None:
        """Get the last stage the engine observed for a room."""
        ...

    def record_stage(self, room_id: str, stage: str) -> None:
        """Record the stage the engine just observed or caused."""
        ...

    def evict(self, room_id: str) -> None:
        """Drop all tracking for a room. Unknown rooms are ignored."""
        ...
