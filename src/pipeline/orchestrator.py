"""Orchestrator for the two-stage food pairing pipeline.

Validates the request, builds the initial :class:`PipelineState`, runs it
through the :class:`StageGraph` and converts the final state into a typed
:class:`PairingRecommendation`.

    validate_input ──→ dish_recommender ──route──→ beverage_pairing ──→ end
                                   └── error / no dishes ──→ end

Each stage returns a partial update and the graph produces a new frozen
state with ``model_copy(update={...})``, so any intermediate state can be
logged or returned as-is.  The only exceptions raised from :meth:`run` are
:class:`InputValidationError` (before any provider call) and
:class:`GraphConfigurationError` (programmer error); everything else is
reported in ``state.error``.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog

from src.models.pairing import (
    BeverageRecommendation,
    DishRecommendation,
    PairingReason,
    PairingRecommendation,
    PairingResultMetadata,
)
from src.models.pipeline import PipelineState, StageName, UserInput
from src.models.recovery import RecoveryStatus
from src.pipeline.graph import StageGraph
from src.pipeline.routing import ROUTING_TABLE
from src.utils.errors import InputValidationError, PipelineError
from src.utils.logging import get_logger

if TYPE_CHECKING:
    from src.pipeline.graph import StageFn

PARTIAL_RESULT_SUGGESTION = (
    "Dish recommendations are ready, but no drink pairing could be generated."
)


def build_pairing_graph(
    recommender: StageFn,
    pairer: StageFn,
    max_steps: int = 10,
) -> StageGraph:
    """Register both stages and their routes; the recommender is the entry."""
    graph = StageGraph(max_steps=max_steps)
    graph.register_stage(StageName.DISH_RECOMMENDER.value, recommender)
    graph.register_stage(StageName.BEVERAGE_PAIRING.value, pairer)
    for stage_name, route_fn in ROUTING_TABLE.items():
        graph.register_route(stage_name, route_fn)
    return graph.set_entry(StageName.DISH_RECOMMENDER.value)


class FoodPairingPipeline:
    """Runs pairing requests through a prepared :class:`StageGraph`.

    The graph is injected, usually from :func:`build_pairing_graph`; tests
    pass graphs with fake stages.
    """

    def __init__(self, graph: StageGraph) -> None:
        self._graph = graph
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def graph(self) -> StageGraph:
        return self._graph

    # ------------------------------------------------------------------
    # Input validation
    # ------------------------------------------------------------------

    @staticmethod
    def validate_input(
        primary_items: Sequence[str] | str | None,
        primary_criteria: str | None = None,
        secondary_items: Sequence[str] | str | None = None,
    ) -> UserInput:
        """Normalize the request and reject it if no food ingredient remains.

        Raises
        ------
        InputValidationError
            If *primary_items* is empty or contains only blank entries.
        """
        request = UserInput(
            primary_criteria=primary_criteria,
            primary_items=primary_items,
            secondary_items=secondary_items,
        )
        if not request.primary_items:
            raise InputValidationError(
                message="At least one food ingredient is required",
            )
        return request

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def run(
        self,
        primary_items: Sequence[str] | str | None,
        primary_criteria: str | None = None,
        secondary_items: Sequence[str] | str | None = None,
    ) -> PipelineState:
        """Run one pairing request end to end.

        Returns
        -------
        PipelineState
            The final state.  ``state.error`` is set when a stage failed;
            ``stage_a_output`` is kept even if pairing failed.
        """
        request = self.validate_input(primary_items, primary_criteria, secondary_items)
        self._logger.info(
            "pairing_run_start",
            primary_items=request.primary_items,
            primary_criteria=request.primary_criteria,
            secondary_items=request.secondary_items,
        )

        started = time.monotonic()
        state = await self._graph.invoke(PipelineState(user_input=request))
        elapsed_ms = round((time.monotonic() - started) * 1000, 2)
        state = state.model_copy(
            update={"metadata": state.metadata.model_copy(update={"elapsed_ms": elapsed_ms})}
        )

        self._logger.info(
            "pairing_run_complete",
            steps=state.steps,
            error=state.error,
            dishes=len(state.stage_a_output or []),
            warnings=len(state.warnings),
            elapsed_ms=elapsed_ms,
        )
        return state

    # ------------------------------------------------------------------
    # Result conversion
    # ------------------------------------------------------------------

    @staticmethod
    def to_recommendation(state: PipelineState) -> PairingRecommendation:
        """Convert a finished state into a typed recommendation.

        When the dishes are available but pairing did not complete, the
        dishes are returned with no beverages, a partial-result suggestion
        and the stage error as a warning.

        Raises
        ------
        PipelineError
            If the run produced no dishes at all.
        """
        warnings = list(state.warnings)
        stage_b = state.stage_b_output

        if stage_b is not None:
            meta = stage_b.get("metadata", {})
            return PairingRecommendation(
                dishes=[DishRecommendation.model_validate(d) for d in stage_b.get("dishes", [])],
                beverages=[
                    BeverageRecommendation.model_validate(b) for b in stage_b.get("beverages", [])
                ],
                pairing_reasons=[
                    PairingReason.model_validate(r) for r in stage_b.get("pairingReasons", [])
                ],
                overall_suggestion=stage_b.get("overallSuggestion", ""),
                recovery_status=stage_b.get("recoveryStatus", RecoveryStatus.PARSED.value),
                warnings=warnings,
                metadata=PairingResultMetadata(
                    timestamp=meta.get("timestamp", state.metadata.timestamp),
                    model=meta.get("model", state.metadata.model_id),
                    dish_count=meta.get("dishCount", 0),
                    beverage_count=meta.get("beverageCount", 0),
                    pairing_count=meta.get("pairingCount", 0),
                    elapsed_ms=state.metadata.elapsed_ms,
                ),
            )

        dishes = state.stage_a_output or []
        if not dishes:
            raise PipelineError(message=state.error or "Pipeline produced no dishes")

        if state.error:
            warnings.append(f"beverage pairing failed: {state.error}")
        return PairingRecommendation(
            dishes=[DishRecommendation.model_validate(d) for d in dishes],
            overall_suggestion=PARTIAL_RESULT_SUGGESTION,
            recovery_status=RecoveryStatus.EMPTY.value,
            warnings=warnings,
            metadata=PairingResultMetadata(
                timestamp=state.metadata.timestamp,
                model=state.metadata.model_id,
                dish_count=len(dishes),
                elapsed_ms=state.metadata.elapsed_ms,
            ),
        )
