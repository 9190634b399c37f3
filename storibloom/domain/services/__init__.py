"""Domain services: pure stage rules and facilitator texts."""

from storibloom.domain.services.facilitator_script import (
    CLOSING_NOTE,
    ISSUES,
    facilitator_system_prompt,
    idea_summary_prompt,
    parse_bullets,
    rough_draft_prompt,
    stage_greeting,
)
from storibloom.domain.services.stage_machine import StageMachine

__all__: list[str] = [
    "CLOSING_NOTE",
    "ISSUES",
    "StageMachine",
    "facilitator_system_prompt",
    "idea_summary_prompt",
    "parse_bullets",
    "rough_draft_prompt",
    "stage_greeting",
]
