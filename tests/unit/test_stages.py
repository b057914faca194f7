"""Unit tests for the dish recommender and beverage pairing stages."""

from __future__ import annotations

import copy
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.models.pipeline import PipelineState, UserInput
from src.models.rag import DocumentChunk, RetrievedChunk
from src.pipeline.stages import (
    DEFAULT_CUISINE,
    DEFAULT_SUGGESTION,
    MISSING_STAGE_A_OUTPUT,
    NO_VALID_OUTPUT,
    UNPARSEABLE_PAIRING_SUGGESTION,
    BeveragePairingStage,
    DishRecommenderStage,
)
from src.services.retrieval_service import RetrievalService
from src.utils.errors import LLMError, RateLimitError
from tests.conftest import DISHES, PAIRING


def _state(criteria: str | None = None, drinks: list[str] | None = None, **update) -> PipelineState:
    user_input = UserInput(
        primary_items=["chicken", "lemon"],
        primary_criteria=criteria,
        secondary_items=drinks or [],
    )
    return PipelineState(user_input=user_input, **update)


def _retrieval(results: list[RetrievedChunk] | None = None, error: Exception | None = None) -> MagicMock:
    retrieval = MagicMock(spec=RetrievalService)
    retrieval.query = AsyncMock(return_value=results or [], side_effect=error)
    retrieval.format_context = RetrievalService.format_context
    return retrieval


# ---------------------------------------------------------------------------
# DishRecommenderStage
# ---------------------------------------------------------------------------


class TestDishRecommender:
    @pytest.mark.asyncio
    async def test_parses_dishes(self, mock_llm_provider, dish_response) -> None:
        mock_llm_provider.complete.return_value = dish_response
        stage = DishRecommenderStage(mock_llm_provider, temperature=0.3, max_tokens=1500)

        update = await stage(_state())

        assert [d["id"] for d in update["stage_a_output"]] == ["dish-1", "dish-2"]
        assert update["metadata"].model_id == "mock-model"
        assert "error" not in update
        kwargs = mock_llm_provider.complete.await_args.kwargs
        assert kwargs["temperature"] == 0.3
        assert kwargs["max_tokens"] == 1500
        assert "chicken, lemon" in kwargs["user_prompt"]

    @pytest.mark.asyncio
    async def test_cuisine_hint_is_in_prompt(self, mock_llm_provider, dish_response) -> None:
        mock_llm_provider.complete.return_value = dish_response

        await DishRecommenderStage(mock_llm_provider)(_state(criteria="Sichuan"))

        assert "Cuisine: Sichuan" in mock_llm_provider.complete.await_args.kwargs["user_prompt"]

    @pytest.mark.asyncio
    async def test_missing_cuisine_is_filled_from_request(self, mock_llm_provider) -> None:
        dish = {k: v for k, v in DISHES[0].items() if k != "cuisine"}
        mock_llm_provider.complete.return_value = json.dumps([dish])

        with_hint = await DishRecommenderStage(mock_llm_provider)(_state(criteria="Cantonese"))
        without_hint = await DishRecommenderStage(mock_llm_provider)(_state())

        assert with_hint["stage_a_output"][0]["cuisine"] == "Cantonese"
        assert without_hint["stage_a_output"][0]["cuisine"] == DEFAULT_CUISINE

    @pytest.mark.asyncio
    async def test_unparseable_output_is_an_error(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = "I cannot suggest any dishes today."

        update = await DishRecommenderStage(mock_llm_provider)(_state())

        assert update["error"] == NO_VALID_OUTPUT
        assert update["stage_a_output"] == []

    @pytest.mark.asyncio
    async def test_provider_error_is_returned_not_raised(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.side_effect = RateLimitError(
            message="Too many requests", provider_name="openai"
        )

        update = await DishRecommenderStage(mock_llm_provider)(_state())

        assert update["error"] == "[openai] Too many requests"
        assert update["stage_a_output"] == []

    @pytest.mark.asyncio
    async def test_retrieval_context_is_added(self, mock_llm_provider, dish_response) -> None:
        chunk = DocumentChunk(id="book:0", content="Lemon chicken with thyme.", source_id="book", position=0)
        retrieval = _retrieval([RetrievedChunk(chunk=chunk, score=0.9)])
        mock_llm_provider.complete.return_value = dish_response

        await DishRecommenderStage(mock_llm_provider, retrieval=retrieval)(_state())

        retrieval.query.assert_awaited_once_with("chicken lemon", 3)
        assert "Lemon chicken with thyme." in mock_llm_provider.complete.await_args.kwargs["user_prompt"]

    @pytest.mark.asyncio
    async def test_retrieval_failure_is_ignored(self, mock_llm_provider, dish_response) -> None:
        retrieval = _retrieval(error=RuntimeError("index unavailable"))
        mock_llm_provider.complete.return_value = dish_response

        update = await DishRecommenderStage(mock_llm_provider, retrieval=retrieval)(_state())

        assert len(update["stage_a_output"]) == 2
        assert "Reference material" not in mock_llm_provider.complete.await_args.kwargs["user_prompt"]


# ---------------------------------------------------------------------------
# BeveragePairingStage
# ---------------------------------------------------------------------------


class TestBeveragePairing:
    @pytest.mark.asyncio
    async def test_builds_pairing_result(self, mock_llm_provider, pairing_response) -> None:
        mock_llm_provider.complete.return_value = pairing_response
        state = _state(drinks=["bourbon"], stage_a_output=copy.deepcopy(DISHES))

        update = await BeveragePairingStage(mock_llm_provider)(state)

        output = update["stage_b_output"]
        assert output["dishes"] == DISHES
        assert output["beverages"][0]["id"] == "bev-1"
        assert output["pairingReasons"][0]["dishId"] == "dish-1"
        assert output["overallSuggestion"] == PAIRING["overallSuggestion"]
        assert output["recoveryStatus"] == "parsed"
        assert output["metadata"]["model"] == "mock-model"
        assert output["metadata"]["dishCount"] == 2
        assert output["metadata"]["beverageCount"] == 1
        assert output["metadata"]["pairingCount"] == 1
        assert update["warnings"] == []

        kwargs = mock_llm_provider.complete.await_args.kwargs
        assert kwargs["max_tokens"] == 3000
        assert "[id: dish-1]" in kwargs["user_prompt"]
        assert "Drink ingredients available: bourbon" in kwargs["user_prompt"]

    @pytest.mark.asyncio
    async def test_missing_dishes_is_an_error(self, mock_llm_provider) -> None:
        update = await BeveragePairingStage(mock_llm_provider)(_state(stage_a_output=[]))

        assert update == {"error": MISSING_STAGE_A_OUTPUT}
        mock_llm_provider.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_provider_error_keeps_stage_a_untouched(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.side_effect = LLMError(message="timeout", provider_name="ollama")

        update = await BeveragePairingStage(mock_llm_provider)(_state(stage_a_output=DISHES))

        assert update == {"error": "[ollama] timeout"}

    @pytest.mark.asyncio
    async def test_malformed_output_is_empty_success(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = "Sorry, no drinks today."

        update = await BeveragePairingStage(mock_llm_provider)(_state(stage_a_output=DISHES))

        output = update["stage_b_output"]
        assert "error" not in update
        assert output["beverages"] == []
        assert output["pairingReasons"] == []
        assert output["overallSuggestion"] == UNPARSEABLE_PAIRING_SUGGESTION
        assert output["recoveryStatus"] == "empty"
        assert any("could not be parsed" in w for w in update["warnings"])

    @pytest.mark.asyncio
    async def test_blank_suggestion_gets_default(self, mock_llm_provider) -> None:
        payload = {**PAIRING, "overallSuggestion": ""}
        mock_llm_provider.complete.return_value = json.dumps(payload)

        update = await BeveragePairingStage(mock_llm_provider)(_state(stage_a_output=DISHES))

        assert update["stage_b_output"]["overallSuggestion"] == DEFAULT_SUGGESTION

    @pytest.mark.asyncio
    async def test_dangling_references_are_warned(self, mock_llm_provider) -> None:
        payload = copy.deepcopy(PAIRING)
        payload["pairingReasons"][0]["dishId"] = "dish-9"
        payload["pairingReasons"][0]["beverageId"] = "bev-9"
        mock_llm_provider.complete.return_value = json.dumps(payload)

        update = await BeveragePairingStage(mock_llm_provider)(_state(stage_a_output=DISHES))

        warnings = update["warnings"]
        assert any("unknown dish 'dish-9'" in w for w in warnings)
        assert any("unknown beverage 'bev-9'" in w for w in warnings)
        # The reference is reported but the reason is kept.
        assert len(update["stage_b_output"]["pairingReasons"]) == 1

    @pytest.mark.asyncio
    async def test_earlier_warnings_are_carried(self, mock_llm_provider, pairing_response) -> None:
        mock_llm_provider.complete.return_value = pairing_response
        state = _state(stage_a_output=DISHES, warnings=["dish 0: field 'cookingTime' missing"])

        update = await BeveragePairingStage(mock_llm_provider)(state)

        assert update["warnings"][0] == "dish 0: field 'cookingTime' missing"
