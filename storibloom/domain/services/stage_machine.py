"""Room state machine: stage order, budgets, and the next-stage function.

Both operations accept raw stored values and never raise, so one malformed
room record cannot crash the tick loop for every other room.
"""

from __future__ import annotations

from collections.abc import Mapping

from storibloom.domain.models.stage import (
    DEFAULT_STAGE_DURATION_MS,
    DEFAULT_STAGE_DURATIONS_MS,
    STAGE_TRANSITION_MATRIX,
    Stage,
    parse_stage,
)


class StageMachine:
    """Defines legal stage order and per-stage durations.

    Attributes:
        default_duration_ms: Budget used for unknown stages.

    Example:
        >>> machine = StageMachine()
        >>> machine.advance("LOBBY")
        'DISCOVERY'
        >>> machine.duration_for("NOT_A_STAGE")
        360000
    """

    def __init__(
        self,
        durations_ms: Mapping[str, int] | None = None,
        default_duration_ms: int = DEFAULT_STAGE_DURATION_MS,
    ) -> None:
        """Initialize the state machine.

        Args:
            durations_ms: Stage name to budget in milliseconds. Uses the
                default table if not provided.
            default_duration_ms: Budget for unknown stage names.
        """
        self._durations = dict(
            DEFAULT_STAGE_DURATIONS_MS if durations_ms is None else durations_ms
        )
        self.default_duration_ms = default_duration_ms

    def duration_for(self, stage: object) -> int:
        """Get the configured budget for a stage.

        Args:
            stage: Stage member or raw stored name.

        Returns:
            Budget in milliseconds; the default budget for unrecognized input.
        """
        parsed = parse_stage(stage)
        if parsed is None:
            return self.default_duration_ms
        return self._durations.get(parsed.value, self.default_duration_ms)

    def advance(self, stage: object) -> str:
        """Get the stage after the given one in the configured order.

        FINAL advances to CLOSED because that is the sequence's own order;
        the tick loop never asks, since FINAL is held.

        Args:
            stage: Stage member or raw stored name.

        Returns:
            Name of the next stage. CLOSED and unrecognized input come back
            unchanged, so callers must detect the no-op and skip work.
        """
        parsed = parse_stage(stage)
        if parsed is None:
            return stage.value if isinstance(stage, Stage) else str(stage)
        following = STAGE_TRANSITION_MATRIX.get(parsed)
        if following is None:
            return parsed.value
        return following.value
