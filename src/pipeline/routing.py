"""Routing decisions for the pairing graph.

Pure functions of the state, so they can be tested without running any
stage.  ``ROUTING_TABLE`` maps each stage to the function deciding what
runs after it.
"""

from __future__ import annotations

from src.models.pipeline import PipelineState, StageName
from src.pipeline.graph import TERMINAL, RouteFn


def after_dish_recommender(state: PipelineState) -> str:
    """Continue to pairing only with dishes and no error."""
    if state.error is not None or not state.stage_a_output:
        return TERMINAL
    return StageName.BEVERAGE_PAIRING.value


def after_beverage_pairing(state: PipelineState) -> str:
    """Pairing is the last stage; success and partial results both end here."""
    return TERMINAL


ROUTING_TABLE: dict[str, RouteFn] = {
    StageName.DISH_RECOMMENDER.value: after_dish_recommender,
    StageName.BEVERAGE_PAIRING.value: after_beverage_pairing,
}


def next_stage(stage: str, state: PipelineState) -> str:
    """Look up and apply the routing function for *stage*."""
    route = ROUTING_TABLE.get(stage)
    return route(state) if route is not None else TERMINAL
