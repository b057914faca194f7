"""Unit tests for the pairing graph routing functions."""

from __future__ import annotations

import pytest

from src.models.pipeline import PipelineState, StageName, UserInput
from src.pipeline.graph import TERMINAL
from src.pipeline.routing import (
    ROUTING_TABLE,
    after_beverage_pairing,
    after_dish_recommender,
    next_stage,
)


def _state(**update) -> PipelineState:
    return PipelineState(user_input=UserInput(primary_items=["lemon"]), **update)


class TestAfterDishRecommender:
    def test_dishes_continue_to_pairing(self) -> None:
        state = _state(stage_a_output=[{"id": "d1"}])
        assert after_dish_recommender(state) == StageName.BEVERAGE_PAIRING.value

    @pytest.mark.parametrize(
        "update",
        [
            {},
            {"stage_a_output": []},
            {"stage_a_output": [{"id": "d1"}], "error": "boom"},
        ],
    )
    def test_terminates_without_usable_dishes(self, update: dict) -> None:
        assert after_dish_recommender(_state(**update)) == TERMINAL


class TestAfterBeveragePairing:
    def test_always_terminates(self) -> None:
        assert after_beverage_pairing(_state(stage_b_output={})) == TERMINAL
        assert after_beverage_pairing(_state(error="pairing failed")) == TERMINAL


class TestRoutingTable:
    def test_covers_every_stage(self) -> None:
        assert set(ROUTING_TABLE) == {name.value for name in StageName}

    def test_next_stage_for_unknown_stage_terminates(self) -> None:
        assert next_stage("unknown", _state()) == TERMINAL

    def test_next_stage_applies_table(self) -> None:
        state = _state(stage_a_output=[{"id": "d1"}])
        assert next_stage(StageName.DISH_RECOMMENDER.value, state) == "beverage_pairing"
