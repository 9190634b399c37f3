"""Unit tests for the Stage model and stage parsing."""

import pytest

from storibloom.domain.errors.stage import InvalidStageError
from storibloom.domain.models.stage import (
    DEFAULT_STAGE_DURATIONS_MS,
    INITIAL_STAGE,
    STAGE_ORDER,
    STAGE_TRANSITION_MATRIX,
    TERMINAL_STAGE,
    Stage,
    is_valid_stage,
    parse_stage,
)


class TestStageEnum:
    """Tests for Stage members and predicates."""

    def test_forward_order(self) -> None:
        assert [s.value for s in STAGE_ORDER] == [
            "LOBBY",
            "DISCOVERY",
            "IDEA_DUMP",
            "PLANNING",
            "ROUGH_DRAFT",
            "EDITING",
            "FINAL",
        ]

    def test_closed_is_terminal_only(self) -> None:
        assert Stage.CLOSED.is_terminal()
        assert TERMINAL_STAGE is Stage.CLOSED
        assert not any(s.is_terminal() for s in STAGE_ORDER)

    def test_final_is_the_only_held_stage(self) -> None:
        held = [s for s in Stage if s.is_held()]
        assert held == [Stage.FINAL]

    def test_initial_stage_is_lobby(self) -> None:
        assert INITIAL_STAGE is Stage.LOBBY

    def test_every_ordered_stage_has_a_budget(self) -> None:
        assert set(DEFAULT_STAGE_DURATIONS_MS) == {s.value for s in STAGE_ORDER}


class TestTransitionMatrix:
    """The matrix mirrors the forward order and ends in CLOSED."""

    def test_each_stage_points_to_its_successor(self) -> None:
        for current, following in zip(STAGE_ORDER, STAGE_ORDER[1:]):
            assert STAGE_TRANSITION_MATRIX[current] is following

    def test_final_leads_to_closed(self) -> None:
        assert STAGE_TRANSITION_MATRIX[Stage.FINAL] is Stage.CLOSED

    def test_closed_has_no_successor(self) -> None:
        assert STAGE_TRANSITION_MATRIX[Stage.CLOSED] is None


class TestParseStage:
    """Tests for parse_stage() and is_valid_stage()."""

    @pytest.mark.parametrize("raw", ["LOBBY", "lobby", "  Lobby  ", Stage.LOBBY])
    def test_accepts_names_in_any_case(self, raw: object) -> None:
        assert parse_stage(raw) is Stage.LOBBY

    @pytest.mark.parametrize("raw", ["", "NOT_A_STAGE", None, 3, ["LOBBY"]])
    def test_unknown_values_return_none(self, raw: object) -> None:
        assert parse_stage(raw) is None
        assert not is_valid_stage(raw)

    def test_strict_mode_raises(self) -> None:
        with pytest.raises(InvalidStageError) as exc_info:
            parse_stage("VOTING", strict=True)

        assert exc_info.value.value == "VOTING"

    def test_closed_is_valid(self) -> None:
        assert is_valid_stage("CLOSED")
