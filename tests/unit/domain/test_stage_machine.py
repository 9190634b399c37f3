"""Unit tests for the room state machine."""

import pytest

from storibloom.domain.models.stage import Stage
from storibloom.domain.services.stage_machine import StageMachine


@pytest.fixture
def machine() -> StageMachine:
    """State machine with the default budgets."""
    return StageMachine()


class TestDurationFor:
    """Budget lookup never raises."""

    def test_known_stage(self, machine: StageMachine) -> None:
        assert machine.duration_for("LOBBY") == 60_000
        assert machine.duration_for(Stage.IDEA_DUMP) == 180_000

    def test_case_insensitive(self, machine: StageMachine) -> None:
        assert machine.duration_for("rough_draft") == 240_000

    @pytest.mark.parametrize("stage", ["NOT_A_STAGE", "", None, 17])
    def test_unknown_stage_uses_default(self, machine: StageMachine, stage: object) -> None:
        assert machine.duration_for(stage) == 6 * 60_000

    def test_closed_uses_default(self, machine: StageMachine) -> None:
        assert machine.duration_for("CLOSED") == 6 * 60_000

    def test_custom_table(self) -> None:
        machine = StageMachine(durations_ms={"LOBBY": 5_000}, default_duration_ms=1_000)
        assert machine.duration_for("LOBBY") == 5_000
        assert machine.duration_for("DISCOVERY") == 1_000


class TestAdvance:
    """Next-stage function."""

    @pytest.mark.parametrize(
        ("current", "expected"),
        [
            ("LOBBY", "DISCOVERY"),
            ("DISCOVERY", "IDEA_DUMP"),
            ("IDEA_DUMP", "PLANNING"),
            ("PLANNING", "ROUGH_DRAFT"),
            ("ROUGH_DRAFT", "EDITING"),
            ("EDITING", "FINAL"),
            ("FINAL", "CLOSED"),
        ],
    )
    def test_forward_sequence(self, machine: StageMachine, current: str, expected: str) -> None:
        assert machine.advance(current) == expected

    def test_closed_is_absorbing(self, machine: StageMachine) -> None:
        assert machine.advance("CLOSED") == "CLOSED"

    def test_unknown_stage_is_a_no_op(self, machine: StageMachine) -> None:
        assert machine.advance("VOTING") == "VOTING"

    def test_accepts_enum_members(self, machine: StageMachine) -> None:
        assert machine.advance(Stage.EDITING) == "FINAL"

    def test_walk_reaches_closed_in_seven_steps(self, machine: StageMachine) -> None:
        stage = "LOBBY"
        for _ in range(7):
            stage = machine.advance(stage)
        assert stage == "CLOSED"
