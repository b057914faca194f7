"""Generic stage-graph executor.

A :class:`StageGraph` holds named async stage functions and, per stage, a
routing function that picks the next stage (or :data:`TERMINAL`) from the
state the stage produced.

    entry ──run──→ merge update ──route──→ next stage ... ──→ TERMINAL

Stage functions take the current :class:`PipelineState` and return a
partial update dict; the executor merges it with ``model_copy`` and never
mutates a state in place.  Failure semantics:

- A stage is expected to catch its own errors and return ``{"error": ...}``.
  If one raises anyway, the exception is logged and turned into the same
  kind of update.
- Once ``error`` is set the run terminates, whatever the route says.
- More than ``max_steps`` stage executions ends the run with
  ``error="max steps exceeded"`` instead of looping forever.
- Only programmer errors raise: an unregistered stage name, or no entry
  stage (:class:`GraphConfigurationError`).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from src.models.pipeline import PipelineState
from src.utils.errors import GraphConfigurationError

logger = structlog.get_logger(logger_name=__name__)

TERMINAL = "__end__"
MAX_STEPS_EXCEEDED = "max steps exceeded"

StageFn = Callable[[PipelineState], Awaitable[dict[str, Any]]]
RouteFn = Callable[[PipelineState], str]


class StageGraph:
    """Runs registered stages in the order their routing functions choose.

    Parameters
    ----------
    max_steps:
        Upper bound on stage executions per :meth:`invoke` call.
    """

    def __init__(self, max_steps: int = 10) -> None:
        if max_steps < 1:
            raise ValueError("max_steps must be at least 1")
        self._max_steps = max_steps
        self._stages: dict[str, StageFn] = {}
        self._routes: dict[str, RouteFn] = {}
        self._entry: str | None = None

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_stage(self, name: str, fn: StageFn) -> StageGraph:
        if not name or name == TERMINAL:
            raise GraphConfigurationError(f"Invalid stage name: {name!r}")
        self._stages[name] = fn
        return self

    def register_route(self, stage_name: str, route_fn: RouteFn) -> StageGraph:
        """Attach the routing function evaluated after *stage_name* runs.

        A stage without a route terminates the run.
        """
        self._require_stage(stage_name)
        self._routes[stage_name] = route_fn
        return self

    def set_entry(self, name: str) -> StageGraph:
        self._require_stage(name)
        self._entry = name
        return self

    @property
    def stage_names(self) -> list[str]:
        return list(self._stages)

    @property
    def max_steps(self) -> int:
        return self._max_steps

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def invoke(self, initial_state: PipelineState) -> PipelineState:
        """Run the graph from the entry stage until it terminates.

        Returns
        -------
        PipelineState
            The final state.  Stage failures are reported in ``error``.

        Raises
        ------
        GraphConfigurationError
            If no entry stage is set or a route names an unregistered stage.
        """
        if self._entry is None:
            raise GraphConfigurationError("No entry stage has been set")

        state = initial_state
        current = self._entry
        executed = 0

        while current != TERMINAL:
            self._require_stage(current)
            if executed >= self._max_steps:
                logger.error("graph_max_steps_exceeded", max_steps=self._max_steps, next_stage=current)
                return state.model_copy(update={"error": MAX_STEPS_EXCEEDED})

            executed += 1
            state = await self._run_stage(current, state)

            if state.error is not None:
                logger.info("graph_halted_on_error", stage=current, error=state.error)
                break

            route = self._routes.get(current)
            next_stage = route(state) if route is not None else TERMINAL
            logger.debug("graph_route", stage=current, next_stage=next_stage)
            current = next_stage

        return state

    async def _run_stage(self, name: str, state: PipelineState) -> PipelineState:
        logger.info("stage_started", stage=name)
        try:
            update = await self._stages[name](state)
        except Exception as exc:  # noqa: BLE001
            logger.exception("stage_raised", stage=name, error=str(exc))
            update = {"error": f"stage '{name}' failed: {exc}"}

        update = dict(update or {})
        unknown = set(update) - set(PipelineState.model_fields)
        if unknown:
            logger.warning("stage_update_unknown_fields", stage=name, fields=sorted(unknown))
            for key in unknown:
                update.pop(key)

        update["steps"] = [*state.steps, name]
        new_state = state.model_copy(update=update)
        logger.info("stage_finished", stage=name, error=new_state.error)
        return new_state

    def _require_stage(self, name: str) -> None:
        if name not in self._stages:
            raise GraphConfigurationError(f"Stage '{name}' is not registered")
