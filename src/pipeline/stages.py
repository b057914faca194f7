"""The two pairing stages.

Each stage is a callable object ``async (PipelineState) -> dict`` that
builds a prompt, makes exactly one generation call and hands the raw text
to :class:`StructuredOutputRecovery`.  Stages never raise: provider
failures come back as ``{"error": ...}`` so the caller keeps whatever the
earlier stage produced.

When a :class:`RetrievalService` is injected, the top recipe chunks for the
request are added to the prompt as reference material.  Retrieval problems
are logged and the stage continues without context.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog

from src.models.pipeline import PipelineState, Record, StageName
from src.models.recovery import RecoveryStatus
from src.pipeline.prompts import (
    BEVERAGE_SYSTEM_PROMPT,
    DISH_SYSTEM_PROMPT,
    build_beverage_prompt,
    build_dish_prompt,
)
from src.pipeline.schemas import DISH_SCHEMA, PAIRING_RESULT_SCHEMA
from src.services.output_recovery import StructuredOutputRecovery
from src.utils.errors import ProviderError

if TYPE_CHECKING:
    from src.interfaces.llm_provider import ILLMProvider
    from src.services.retrieval_service import RetrievalService

logger = structlog.get_logger(logger_name=__name__)

NO_VALID_OUTPUT = "no valid output"
MISSING_STAGE_A_OUTPUT = "missing stage A output"

DEFAULT_CUISINE = "general"
DEFAULT_SUGGESTION = "Choose the pairing that best matches your taste."
UNPARSEABLE_PAIRING_SUGGESTION = "No drink pairing could be generated for these dishes."


class _GenerationStage:
    """Shared plumbing: provider call, optional retrieval context."""

    name: str = ""

    def __init__(
        self,
        llm: ILLMProvider,
        recovery: StructuredOutputRecovery | None = None,
        retrieval: RetrievalService | None = None,
        temperature: float = 0.7,
        max_tokens: int = 2000,
        context_chunks: int = 3,
    ) -> None:
        self._llm = llm
        self._recovery = recovery or StructuredOutputRecovery()
        self._retrieval = retrieval
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._context_chunks = context_chunks

    async def _retrieve_context(self, query: str) -> str:
        if self._retrieval is None or self._context_chunks <= 0 or not query.strip():
            return ""
        try:
            results = await self._retrieval.query(query, self._context_chunks)
        except Exception as exc:  # noqa: BLE001
            logger.warning("stage_retrieval_failed", stage=self.name, error=str(exc))
            return ""
        logger.debug("stage_retrieval_context", stage=self.name, chunks=len(results))
        return self._retrieval.format_context(results)

    async def _generate(self, system_prompt: str, user_prompt: str) -> str:
        return await self._llm.complete(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )

    def _metadata_update(self, state: PipelineState) -> Any:
        return state.metadata.model_copy(update={"model_id": self._llm.get_model_name()})


class DishRecommenderStage(_GenerationStage):
    """Recommends 3-5 dishes for the user's food ingredients."""

    name = StageName.DISH_RECOMMENDER.value

    async def __call__(self, state: PipelineState) -> dict[str, Any]:
        request = state.user_input
        context = await self._retrieve_context(" ".join(request.primary_items))
        prompt = build_dish_prompt(request.primary_items, request.primary_criteria, context)

        try:
            text = await self._generate(DISH_SYSTEM_PROMPT, prompt)
        except ProviderError as exc:
            logger.error("dish_recommender_provider_failed", error=str(exc))
            return {"error": str(exc), "stage_a_output": []}

        result = self._recovery.recover(text, "array", DISH_SCHEMA)
        warnings = [*state.warnings, *result.warnings]
        if result.is_empty:
            logger.warning("dish_recommender_no_output", response_chars=len(text))
            return {"error": NO_VALID_OUTPUT, "stage_a_output": [], "warnings": warnings}

        dishes: list[Record] = []
        for record in result.records:
            if not record.get("cuisine"):
                record["cuisine"] = request.primary_criteria or DEFAULT_CUISINE
            dishes.append(record)

        logger.info(
            "dish_recommender_complete",
            dishes=len(dishes),
            recovery_status=result.status.value,
        )
        return {
            "stage_a_output": dishes,
            "warnings": warnings,
            "metadata": self._metadata_update(state),
        }


class BeveragePairingStage(_GenerationStage):
    """Recommends drinks for the recommended dishes and explains each pairing.

    Malformed generation output is not an error: the stage returns empty
    beverage and reason lists, a fallback suggestion, ``recoveryStatus``
    ``"empty"`` and a warning, so callers can tell it apart from a clean
    result.
    """

    name = StageName.BEVERAGE_PAIRING.value

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("max_tokens", 3000)
        super().__init__(*args, **kwargs)

    async def __call__(self, state: PipelineState) -> dict[str, Any]:
        dishes = state.stage_a_output or []
        if not dishes:
            logger.warning("beverage_pairing_missing_dishes")
            return {"error": MISSING_STAGE_A_OUTPUT}

        drink_items = state.user_input.secondary_items
        context_query = " ".join([*drink_items, *(str(d.get("name", "")) for d in dishes)])
        context = await self._retrieve_context(context_query)
        prompt = build_beverage_prompt(dishes, drink_items, context)

        try:
            text = await self._generate(BEVERAGE_SYSTEM_PROMPT, prompt)
        except ProviderError as exc:
            logger.error("beverage_pairing_provider_failed", error=str(exc))
            return {"error": str(exc)}

        result = self._recovery.recover(text, "object", PAIRING_RESULT_SCHEMA)
        warnings = [*state.warnings, *result.warnings]

        if result.is_empty:
            warnings.append("pairing output could not be parsed; returning empty pairing")
            beverages: list[Record] = []
            reasons: list[Record] = []
            suggestion = UNPARSEABLE_PAIRING_SUGGESTION
            status = RecoveryStatus.EMPTY
        else:
            obj = result.first or {}
            beverages = obj.get("beverages", [])
            reasons = obj.get("pairingReasons", [])
            suggestion = obj.get("overallSuggestion") or DEFAULT_SUGGESTION
            status = result.status

        warnings.extend(_dangling_references(reasons, dishes, beverages))
        model_id = self._llm.get_model_name()
        output: Record = {
            "dishes": dishes,
            "beverages": beverages,
            "pairingReasons": reasons,
            "overallSuggestion": suggestion,
            "recoveryStatus": status.value,
            "metadata": {
                "timestamp": datetime.now(tz=timezone.utc).isoformat(),  # noqa: UP017
                "model": model_id,
                "dishCount": len(dishes),
                "beverageCount": len(beverages),
                "pairingCount": len(reasons),
            },
        }
        logger.info(
            "beverage_pairing_complete",
            beverages=len(beverages),
            pairing_reasons=len(reasons),
            recovery_status=status.value,
        )
        return {
            "stage_b_output": output,
            "warnings": warnings,
            "metadata": self._metadata_update(state),
        }


def _dangling_references(
    reasons: list[Record],
    dishes: list[Record],
    beverages: list[Record],
) -> list[str]:
    dish_ids = {str(d.get("id")) for d in dishes}
    beverage_ids = {str(b.get("id")) for b in beverages}
    warnings: list[str] = []
    for reason in reasons:
        if reason.get("dishId") and reason["dishId"] not in dish_ids:
            warnings.append(f"pairing reason {reason.get('id')} references unknown dish '{reason['dishId']}'")
        if reason.get("beverageId") and reason["beverageId"] not in beverage_ids:
            warnings.append(
                f"pairing reason {reason.get('id')} references unknown beverage '{reason['beverageId']}'"
            )
    return warnings
