"""Unit tests for the StageGraph executor."""

from __future__ import annotations

import pytest

from src.models.pipeline import PipelineState, UserInput
from src.pipeline.graph import MAX_STEPS_EXCEEDED, TERMINAL, StageGraph
from src.utils.errors import GraphConfigurationError


def _state() -> PipelineState:
    return PipelineState(user_input=UserInput(primary_items=["lemon"]))


async def _produce_dishes(state: PipelineState) -> dict:
    return {"stage_a_output": [{"id": "d1"}], "warnings": ["defaulted cuisine"]}


async def _produce_pairing(state: PipelineState) -> dict:
    return {"stage_b_output": {"dishes": state.stage_a_output, "beverages": []}}


async def _fail(state: PipelineState) -> dict:
    return {"error": "provider down"}


async def _explode(state: PipelineState) -> dict:
    raise RuntimeError("boom")


class TestRegistration:
    def test_registration_is_chainable(self) -> None:
        graph = (
            StageGraph()
            .register_stage("a", _produce_dishes)
            .register_stage("b", _produce_pairing)
            .register_route("a", lambda s: "b")
            .set_entry("a")
        )

        assert graph.stage_names == ["a", "b"]
        assert graph.max_steps == 10

    def test_route_for_unknown_stage_is_rejected(self) -> None:
        with pytest.raises(GraphConfigurationError):
            StageGraph().register_route("missing", lambda s: TERMINAL)

    def test_entry_must_be_registered(self) -> None:
        with pytest.raises(GraphConfigurationError):
            StageGraph().set_entry("missing")

    def test_reserved_name_is_rejected(self) -> None:
        with pytest.raises(GraphConfigurationError):
            StageGraph().register_stage(TERMINAL, _fail)

    def test_max_steps_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            StageGraph(max_steps=0)


class TestInvoke:
    @pytest.mark.asyncio
    async def test_runs_stages_in_route_order(self) -> None:
        graph = (
            StageGraph()
            .register_stage("a", _produce_dishes)
            .register_stage("b", _produce_pairing)
            .register_route("a", lambda s: "b")
            .register_route("b", lambda s: TERMINAL)
            .set_entry("a")
        )
        initial = _state()

        final = await graph.invoke(initial)

        assert final.steps == ["a", "b"]
        assert final.stage_b_output == {"dishes": [{"id": "d1"}], "beverages": []}
        assert final.warnings == ["defaulted cuisine"]
        assert final.error is None
        # The initial state is never mutated.
        assert initial.steps == []
        assert initial.stage_a_output is None

    @pytest.mark.asyncio
    async def test_stage_without_route_terminates(self) -> None:
        graph = StageGraph().register_stage("a", _produce_dishes).set_entry("a")

        final = await graph.invoke(_state())

        assert final.steps == ["a"]

    @pytest.mark.asyncio
    async def test_error_halts_regardless_of_route(self) -> None:
        graph = (
            StageGraph()
            .register_stage("a", _fail)
            .register_stage("b", _produce_pairing)
            .register_route("a", lambda s: "b")
            .set_entry("a")
        )

        final = await graph.invoke(_state())

        assert final.error == "provider down"
        assert final.steps == ["a"]
        assert final.stage_b_output is None

    @pytest.mark.asyncio
    async def test_raising_stage_becomes_error_update(self) -> None:
        graph = StageGraph().register_stage("a", _explode).set_entry("a")

        final = await graph.invoke(_state())

        assert final.error == "stage 'a' failed: boom"
        assert final.steps == ["a"]

    @pytest.mark.asyncio
    async def test_cycle_is_cut_at_max_steps(self) -> None:
        graph = (
            StageGraph(max_steps=3)
            .register_stage("loop", _produce_dishes)
            .register_route("loop", lambda s: "loop")
            .set_entry("loop")
        )

        final = await graph.invoke(_state())

        assert final.error == MAX_STEPS_EXCEEDED
        assert final.steps == ["loop", "loop", "loop"]

    @pytest.mark.asyncio
    async def test_unknown_update_keys_are_dropped(self) -> None:
        async def noisy(state: PipelineState) -> dict:
            return {"stage_a_output": [], "not_a_field": 1}

        graph = StageGraph().register_stage("a", noisy).set_entry("a")

        final = await graph.invoke(_state())

        assert final.stage_a_output == []
        assert not hasattr(final, "not_a_field")

    @pytest.mark.asyncio
    async def test_route_to_unregistered_stage_raises(self) -> None:
        graph = (
            StageGraph()
            .register_stage("a", _produce_dishes)
            .register_route("a", lambda s: "ghost")
            .set_entry("a")
        )

        with pytest.raises(GraphConfigurationError):
            await graph.invoke(_state())

    @pytest.mark.asyncio
    async def test_missing_entry_raises(self) -> None:
        graph = StageGraph().register_stage("a", _produce_dishes)

        with pytest.raises(GraphConfigurationError):
            await graph.invoke(_state())
