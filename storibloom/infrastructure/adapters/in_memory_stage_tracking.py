"""In-memory hot set and observed-stage store for one stage engine.

Nothing here is persisted. After a restart the engine re-learns each room's
stage on its first tick, which by design is never treated as a transition.
"""

from __future__ import annotations

from storibloom.application.ports.stage_tracking import StageTrackingProtocol


class InMemoryStageTracking(StageTrackingProtocol):
    """Dict-backed implementation of StageTrackingProtocol.

    Hot-set iteration follows first-touch order. Eviction drops both the
    touch time and the observed stage so a room that comes back is treated
    as newly seen.
    """

    def __init__(self) -> None:
        self._last_touch: dict[str, int] = {}
        self._observed: dict[str, str] = {}

    def touch(self, room_id: str, at_ms: int) -> None:
        self._last_touch[room_id] = at_ms

    def last_touch(self, room_id: str) -> int | None:
        return self._last_touch.get(room_id)

    def is_hot(self, room_id: str) -> bool:
        return room_id in self._last_touch

    def hot_room_ids(self) -> list[str]:
        return list(self._last_touch)

    def observed_stage(self, room_id: str) -> str | None:
        return self._observed.get(room_id)

    def record_stage(self, room_id: str, stage: str) -> None:
        self._observed[room_id] = stage

    def evict(self, room_id: str) -> None:
        self._last_touch.pop(room_id, None)
        self._observed.pop(room_id, None)

    def clear(self) -> None:
        """Drop all tracking (for testing)."""
        self._last_touch.clear()
        self._observed.clear()
