"""Unit tests for factory functions in src/main.py.

Tests LLM provider selection, the embedding provider order, pipeline
assembly from config, and build_components wiring, all without network
calls or real API keys.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from src.config.loader import load_config
from src.config.settings import Settings
from src.main import (
    build_components,
    build_embedding_providers,
    build_index,
    build_llm_provider,
    build_pipeline,
    run_pipeline,
)
from tests.conftest import PAIRING, make_settings


# ======================================================================
# Shared helpers
# ======================================================================


def _settings(**overrides) -> Settings:
    """Settings with every remote key empty unless overridden."""
    defaults = {"ollama_base_url": "http://localhost:11434", "rag_enabled": False, "app_env": "test"}
    defaults.update(overrides)
    return make_settings(**defaults)


def _config(tmp_path: Path, yaml_text: str = "") -> dict:
    path = tmp_path / "config.yaml"
    path.write_text(yaml_text, encoding="utf-8")
    return load_config(str(path), _settings())


# ======================================================================
# build_llm_provider
# ======================================================================


class TestBuildLLMProvider:
    def test_openai_priority(self) -> None:
        provider = build_llm_provider(_settings(openai_api_key="sk", anthropic_api_key="ant"))
        assert provider.get_provider_name() == "openai"

    def test_openai_compatible_base_url(self) -> None:
        provider = build_llm_provider(
            _settings(openai_api_key="sk", openai_base_url="https://api.deepseek.com/v1")
        )
        assert provider.get_provider_name() == "openai-compatible"

    def test_anthropic_second(self) -> None:
        provider = build_llm_provider(_settings(anthropic_api_key="ant"))
        assert provider.get_provider_name() == "anthropic"

    def test_ollama_fallback(self) -> None:
        provider = build_llm_provider(_settings())
        assert provider.get_provider_name() == "ollama"


# ======================================================================
# Embedding providers and index
# ======================================================================


class TestBuildEmbeddingProviders:
    def test_priority_order(self) -> None:
        providers = build_embedding_providers(_settings(local_embedding_model="all-mpnet-base-v2"))

        names = [p.get_provider_name() for p in providers]
        assert names == [
            "openai_embedding",
            "huggingface_embedding",
            "sentence_transformer_all-mpnet-base-v2",
        ]

    def test_remote_providers_unavailable_without_keys(self) -> None:
        providers = build_embedding_providers(_settings())

        assert providers[0].is_available() is False
        assert providers[1].is_available() is False

    def test_index_is_empty_cosine(self) -> None:
        index = build_index()

        assert index.is_empty()
        assert index.metric == "cosine"


# ======================================================================
# build_pipeline
# ======================================================================


class TestBuildPipeline:
    def test_graph_shape(self, mock_llm_provider, tmp_path: Path) -> None:
        pipeline = build_pipeline(mock_llm_provider, _config(tmp_path, "pipeline:\n  max_steps: 4\n"))

        assert pipeline.graph.stage_names == ["dish_recommender", "beverage_pairing"]
        assert pipeline.graph.max_steps == 4

    @pytest.mark.asyncio
    async def test_generation_settings_reach_the_provider(
        self, mock_llm_provider, dish_response, pairing_response, tmp_path: Path
    ) -> None:
        config = _config(
            tmp_path,
            "generation:\n"
            "  recommender:\n    temperature: 0.4\n    max_tokens: 1200\n"
            "  pairing:\n    temperature: 0.9\n",
        )
        mock_llm_provider.complete.side_effect = [dish_response, pairing_response]
        pipeline = build_pipeline(mock_llm_provider, config)

        state = await pipeline.run(["chicken"])

        first, second = mock_llm_provider.complete.await_args_list
        assert (first.kwargs["temperature"], first.kwargs["max_tokens"]) == (0.4, 1200)
        assert (second.kwargs["temperature"], second.kwargs["max_tokens"]) == (0.9, 3000)
        assert state.stage_b_output["overallSuggestion"] == PAIRING["overallSuggestion"]


# ======================================================================
# build_components / run_pipeline
# ======================================================================


class TestBuildComponents:
    def test_keys_and_shared_index(self, tmp_path: Path) -> None:
        components = build_components(
            _settings(documents_dir=str(tmp_path)), config_path=str(tmp_path / "absent.yaml")
        )

        assert set(components) == {
            "settings",
            "config",
            "llm",
            "embedding_providers",
            "index",
            "ingestion",
            "retrieval",
            "pipeline",
        }
        assert components["ingestion"].documents_dir == tmp_path
        assert components["retrieval"]._index is components["index"]

    def test_retrieval_only_wired_when_rag_enabled(self, tmp_path: Path) -> None:
        config_path = str(tmp_path / "absent.yaml")

        disabled = build_components(_settings(), config_path=config_path)
        enabled = build_components(_settings(rag_enabled=True), config_path=config_path)

        assert disabled["pipeline"].graph._stages["dish_recommender"]._retrieval is None
        assert (
            enabled["pipeline"].graph._stages["dish_recommender"]._retrieval
            is enabled["retrieval"]
        )

    @pytest.mark.asyncio
    async def test_run_pipeline_delegates(self) -> None:
        state_sentinel = object()
        with patch("src.main.build_components") as mock_build:
            mock_build.return_value = {"pipeline": AsyncMock()}
            mock_build.return_value["pipeline"].run = AsyncMock(return_value=state_sentinel)

            result = await run_pipeline(["lemon"], "Thai", ["rum"])

        assert result is state_sentinel
        mock_build.return_value["pipeline"].run.assert_awaited_once_with(["lemon"], "Thai", ["rum"])