"""Typed views over the records produced by the pairing stages.

The stages keep their output as plain dicts (see :mod:`src.models.pipeline`)
because generation output is recovered leniently.  Once a run finishes, the
orchestrator converts the final state into these models for callers that
want attribute access and JSON with the camelCase keys the prompts use.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DishRecommendation(BaseModel):
    """One dish suggested for the user's food ingredients."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str = ""
    description: str = ""
    cuisine: str = ""
    required_ingredients: list[str] = Field(default_factory=list, alias="requiredIngredients")
    cooking_time: int = Field(default=30, ge=0, alias="cookingTime", description="Minutes.")
    difficulty: int = Field(default=3, ge=1, le=5, description="1 = simple, 5 = expert.")
    steps: list[str] = Field(default_factory=list)
    source: str | None = None
    tags: list[str] = Field(default_factory=list)


class BeverageRecommendation(BaseModel):
    """One drink suggested to accompany the dishes."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str = ""
    description: str = ""
    ingredients: list[str] = Field(default_factory=list)
    steps: list[str] = Field(default_factory=list)
    category: str = ""
    glass_type: str = Field(default="", alias="glassType")
    technique: str = ""
    garnish: str = ""
    difficulty: int = Field(default=3, ge=1, le=5)
    estimated_time: int = Field(default=5, ge=0, alias="estimatedTime", description="Minutes.")


class PairingReason(BaseModel):
    """Why a given beverage goes with a given dish."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    dish_id: str = Field(default="", alias="dishId")
    beverage_id: str = Field(default="", alias="beverageId")
    reason: str = ""
    pairing_type: str = Field(
        default="", alias="pairingType", description="e.g. complement, contrast, bridge."
    )
    score: int = Field(default=5, ge=1, le=10)


class PairingResultMetadata(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))  # noqa: UP017
    model: str | None = None
    dish_count: int = Field(default=0, alias="dishCount")
    beverage_count: int = Field(default=0, alias="beverageCount")
    pairing_count: int = Field(default=0, alias="pairingCount")
    elapsed_ms: float = Field(default=0.0, alias="elapsedMs")


class PairingRecommendation(BaseModel):
    """The complete answer to a pairing request."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    dishes: list[DishRecommendation] = Field(default_factory=list)
    beverages: list[BeverageRecommendation] = Field(default_factory=list)
    pairing_reasons: list[PairingReason] = Field(default_factory=list, alias="pairingReasons")
    overall_suggestion: str = Field(default="", alias="overallSuggestion")
    # "parsed", "partially_parsed" or "empty"; see RecoveryStatus.
    recovery_status: str = Field(default="parsed", alias="recoveryStatus")
    warnings: list[str] = Field(default_factory=list)
    metadata: PairingResultMetadata = Field(default_factory=PairingResultMetadata)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
