"""Pipeline state models for the pairing workflow.

Defines Pydantic v2 models for the request, run metadata, and the state
object that flows through the stage graph.  All models use frozen config:
stages return partial updates (plain dicts) and the graph produces each new
state with ``model_copy(update={...})``.

Records produced by the stages are plain ``dict`` objects rather than typed
models because they come out of :mod:`src.services.output_recovery` with
best-effort defaults; see :mod:`src.models.pairing` for the typed views.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

Record = dict[str, Any]


class StageName(str, Enum):  # noqa: UP042
    """Names of the stages registered in the pairing graph."""

    DISH_RECOMMENDER = "dish_recommender"
    BEVERAGE_PAIRING = "beverage_pairing"


# ---------------------------------------------------------------------------
# UserInput - what the caller asked for.
# ---------------------------------------------------------------------------
class UserInput(BaseModel):
    """A pairing request.

    ``primary_items`` are the food ingredients the dishes must be built
    around; ``secondary_items`` are drink ingredients the user has on hand.
    Entries are stripped and blank entries dropped; an empty primary list is
    rejected by the orchestrator before any stage runs.
    """

    model_config = ConfigDict(frozen=True)

    primary_criteria: str | None = Field(
        default=None, description="Optional cuisine / classification hint, e.g. 'Sichuan'."
    )
    primary_items: list[str] = Field(default_factory=list, description="Food ingredients.")
    secondary_items: list[str] = Field(default_factory=list, description="Drink ingredients.")

    @field_validator("primary_items", "secondary_items", mode="before")
    @classmethod
    def _clean_items(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if isinstance(value, (list, tuple)):
            return [str(item).strip() for item in value if item is not None and str(item).strip()]
        return value

    @field_validator("primary_criteria", mode="before")
    @classmethod
    def _clean_criteria(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip() or None
        return value


# ---------------------------------------------------------------------------
# PipelineMetadata - timing and provenance for one run.
# ---------------------------------------------------------------------------
class PipelineMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))  # noqa: UP017
    elapsed_ms: float = Field(default=0.0, ge=0.0)
    model_id: str | None = None


# ---------------------------------------------------------------------------
# PipelineState - the snapshot passed between stages.
# ---------------------------------------------------------------------------
class PipelineState(BaseModel):
    """State of one pairing run.

    Once ``error`` is set the graph routes to the terminal state and no
    further stage executes.  ``stage_a_output`` is kept even when the
    pairing stage fails so callers can salvage the dish list.

    Immutable; use ``model_copy(update={...})`` to produce new states.
    """

    model_config = ConfigDict(frozen=True)

    user_input: UserInput
    # Dish records from the recommender stage.
    stage_a_output: list[Record] | None = None
    # Pairing result object from the beverage stage.
    stage_b_output: Record | None = None
    error: str | None = None
    # Recovery warnings (defaulted fields, fallback parsing) from any stage.
    warnings: list[str] = Field(default_factory=list)
    # Names of the stages executed so far, in order.
    steps: list[str] = Field(default_factory=list)
    metadata: PipelineMetadata = Field(default_factory=PipelineMetadata)

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.stage_b_output is not None
