"""Workshop stage model.

A workshop room moves through a fixed forward sequence of stages:
LOBBY -> DISCOVERY -> IDEA_DUMP -> PLANNING -> ROUGH_DRAFT -> EDITING -> FINAL

CLOSED is appended as the absorbing terminal state. FINAL is time-bounded
but held: the tick loop never auto-advances out of it.
"""

from __future__ import annotations

from enum import Enum

from storibloom.domain.errors.stage import InvalidStageError


class Stage(Enum):
    """Named phase of the workshop lifecycle.

    Stages:
        LOBBY: Waiting room before the session starts
        DISCOVERY: Free conversation and topic choice
        IDEA_DUMP: Rapid capture of raw ideas
        PLANNING: Shaping ideas into a plan
        ROUGH_DRAFT: Facilitator drafts the abstract
        EDITING: Participants refine the living draft
        FINAL: Last tweaks before submission (held stage)
        CLOSED: Terminal - no further transitions
    """

    LOBBY = "LOBBY"
    DISCOVERY = "DISCOVERY"
    IDEA_DUMP = "IDEA_DUMP"
    PLANNING = "PLANNING"
    ROUGH_DRAFT = "ROUGH_DRAFT"
    EDITING = "EDITING"
    FINAL = "FINAL"
    CLOSED = "CLOSED"

    def is_terminal(self) -> bool:
        """Check if this is the absorbing CLOSED state."""
        return self is Stage.CLOSED

    def is_held(self) -> bool:
        """Check if the tick loop must leave this stage alone.

        Returns:
            True for FINAL, which is ended by the deferred close timer.
        """
        return self is Stage.FINAL


# Ordered forward path; CLOSED is reached only from FINAL.
STAGE_ORDER: tuple[Stage, ...] = (
    Stage.LOBBY,
    Stage.DISCOVERY,
    Stage.IDEA_DUMP,
    Stage.PLANNING,
    Stage.ROUGH_DRAFT,
    Stage.EDITING,
    Stage.FINAL,
)

TERMINAL_STAGE = Stage.CLOSED

# Stage assumed for records that carry no stage at all
INITIAL_STAGE = Stage.LOBBY

STAGE_TRANSITION_MATRIX: dict[Stage, Stage | None] = {
    Stage.LOBBY: Stage.DISCOVERY,
    Stage.DISCOVERY: Stage.IDEA_DUMP,
    Stage.IDEA_DUMP: Stage.PLANNING,
    Stage.PLANNING: Stage.ROUGH_DRAFT,
    Stage.ROUGH_DRAFT: Stage.EDITING,
    Stage.EDITING: Stage.FINAL,
    Stage.FINAL: Stage.CLOSED,
    Stage.CLOSED: None,  # Terminal
}

DEFAULT_STAGE_DURATION_MS = 6 * 60_000

DEFAULT_STAGE_DURATIONS_MS: dict[str, int] = {
    Stage.LOBBY.value: 60_000,
    Stage.DISCOVERY.value: 600_000,
    Stage.IDEA_DUMP.value: 180_000,
    Stage.PLANNING.value: 600_000,
    Stage.ROUGH_DRAFT.value: 240_000,
    Stage.EDITING.value: 600_000,
    Stage.FINAL.value: 360_000,
}


def parse_stage(value: object, *, strict: bool = False) -> Stage | None:
    """Parse a stored stage value into a Stage.

    Accepts Stage members and stage names in any letter case with
    surrounding whitespace.

    Args:
        value: Raw value read from a room record.
        strict: Raise instead of returning None for unknown values.

    Returns:
        The matching Stage, or None when the value is not a stage name.

    Raises:
        InvalidStageError: If strict and the value is not a stage name.
    """
    if isinstance(value, Stage):
        return value
    if isinstance(value, str):
        try:
            return Stage(value.strip().upper())
        except ValueError:
            pass
    if strict:
        raise InvalidStageError(value)
    return None


def is_valid_stage(value: object) -> bool:
    """Check whether a raw value names a stage (CLOSED included)."""
    return parse_stage(value) is not None
