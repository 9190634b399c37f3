"""Domain models for StoriBloom.

Contains value objects and domain models that represent core workshop
concepts. These models are immutable and contain no infrastructure
dependencies.
"""

from storibloom.domain.models.message import AuthorType, Message
from storibloom.domain.models.room import RoomState, parse_stage_ends_at
from storibloom.domain.models.stage import (
    DEFAULT_STAGE_DURATION_MS,
    DEFAULT_STAGE_DURATIONS_MS,
    INITIAL_STAGE,
    STAGE_ORDER,
    TERMINAL_STAGE,
    Stage,
    is_valid_stage,
    parse_stage,
)

__all__: list[str] = [
    "AuthorType",
    "DEFAULT_STAGE_DURATIONS_MS",
    "DEFAULT_STAGE_DURATION_MS",
    "INITIAL_STAGE",
    "Message",
    "RoomState",
    "STAGE_ORDER",
    "Stage",
    "TERMINAL_STAGE",
    "is_valid_stage",
    "parse_stage",
    "parse_stage_ends_at",
]
