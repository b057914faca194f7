"""Composition root for the food pairing engine.

Wires providers, services and the stage graph together via constructor
injection.  Configuration comes from ``.env`` / environment variables
(:class:`Settings`) and ``config/config.yaml`` (:func:`load_config`).

The CLI entry points (``src.cli.pair``, ``src.cli.ingest``) call
:func:`build_components` and use the pieces they need; nothing here runs at
import time.
"""

from __future__ import annotations

from typing import Any

import structlog

from src.config.loader import load_config
from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.vector_index import IVectorIndex
from src.models.pipeline import PipelineState
from src.pipeline.orchestrator import FoodPairingPipeline, build_pairing_graph
from src.pipeline.stages import BeveragePairingStage, DishRecommenderStage
from src.providers.embedding.huggingface_embedding_provider import HuggingFaceEmbeddingProvider
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from src.providers.embedding.sentence_transformer_embedding_provider import (
    SentenceTransformerEmbeddingProvider,
)
from src.providers.llm.anthropic_provider import AnthropicLLMProvider
from src.providers.llm.ollama_provider import OllamaLLMProvider
from src.providers.llm.openai_provider import OpenAILLMProvider
from src.providers.vector_store.memory_index import InMemoryVectorIndex
from src.services.ingestion.chunker import RecipeChunker
from src.services.ingestion.ingestion_service import IngestionService
from src.services.ingestion.metadata_extractor import RecipeMetadataExtractor
from src.services.output_recovery import StructuredOutputRecovery
from src.services.retrieval_service import RetrievalService
from src.utils.logging import configure_logging, get_logger
from src.utils.retry import BackoffPolicy

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def setup_logging(app_settings: Settings) -> None:
    """Console output in development, JSON lines in production."""
    configure_logging(
        log_level=app_settings.log_level,
        json_output=(app_settings.app_env == "production"),
    )


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def build_llm_provider(app_settings: Settings) -> ILLMProvider:
    """Select the first configured LLM provider.

    Priority order: OpenAI (or OpenAI-compatible) -> Anthropic -> Ollama
    (always constructed, availability checked at call time).
    """
    if app_settings.openai_api_key:
        return OpenAILLMProvider(settings=app_settings)
    if app_settings.anthropic_api_key:
        return AnthropicLLMProvider(settings=app_settings)
    return OllamaLLMProvider(settings=app_settings)


def build_embedding_providers(app_settings: Settings) -> list[IEmbeddingProvider]:
    """All embedding backends in priority order.

    Ingestion picks the first one whose ``is_available()`` is true at the
    start of each run: OpenAI -> HuggingFace Inference API -> local
    sentence-transformers.
    """
    return [
        OpenAIEmbeddingProvider(settings=app_settings),
        HuggingFaceEmbeddingProvider(settings=app_settings),
        SentenceTransformerEmbeddingProvider(model_name=app_settings.local_embedding_model),
    ]


def build_index() -> IVectorIndex:
    return InMemoryVectorIndex(metric="cosine")


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


def build_ingestion_service(
    app_settings: Settings,
    config: dict[str, Any],
    index: IVectorIndex,
    embedding_providers: list[IEmbeddingProvider],
) -> IngestionService:
    chunking = config.get("chunking", {})
    ingestion = config.get("ingestion", {})
    extractor = RecipeMetadataExtractor()
    return IngestionService(
        documents_dir=app_settings.documents_dir,
        index=index,
        embedding_providers=embedding_providers,
        chunker=RecipeChunker(
            max_size=chunking.get("max_size", 800),
            overlap=chunking.get("overlap", 150),
            metadata_extractor=extractor,
        ),
        metadata_extractor=extractor,
        retry_policy=BackoffPolicy(
            max_attempts=ingestion.get("max_attempts", 3),
            base_delay=ingestion.get("retry_delay", 2.0),
            jitter=ingestion.get("retry_jitter", 0.0),
        ),
    )


def build_retrieval_service(
    config: dict[str, Any],
    ingestion: IngestionService,
    index: IVectorIndex,
    embedding_providers: list[IEmbeddingProvider],
) -> RetrievalService:
    return RetrievalService(
        ingestion=ingestion,
        index=index,
        embedding_providers=embedding_providers,
        default_top_k=config.get("rag", {}).get("top_k", 5),
    )


def build_pipeline(
    llm: ILLMProvider,
    config: dict[str, Any],
    retrieval: RetrievalService | None = None,
) -> FoodPairingPipeline:
    """Assemble both stages and the graph into a :class:`FoodPairingPipeline`.

    When *retrieval* is given, both stages ground their prompts in the top
    recipe chunks for the request.
    """
    generation = config.get("generation", {})
    recommender_cfg = generation.get("recommender", {})
    pairing_cfg = generation.get("pairing", {})
    context_chunks = config.get("rag", {}).get("context_chunks", 3)
    recovery = StructuredOutputRecovery()

    recommender = DishRecommenderStage(
        llm,
        recovery,
        retrieval,
        temperature=recommender_cfg.get("temperature", 0.7),
        max_tokens=recommender_cfg.get("max_tokens", 2000),
        context_chunks=context_chunks,
    )
    pairer = BeveragePairingStage(
        llm,
        recovery,
        retrieval,
        temperature=pairing_cfg.get("temperature", 0.7),
        max_tokens=pairing_cfg.get("max_tokens", 3000),
        context_chunks=context_chunks,
    )
    graph = build_pairing_graph(
        recommender,
        pairer,
        max_steps=config.get("pipeline", {}).get("max_steps", 10),
    )
    return FoodPairingPipeline(graph)


def build_components(
    custom_settings: Settings | None = None,
    config_path: str = "config/config.yaml",
) -> dict[str, Any]:
    """Construct every provider and service with injected dependencies.

    Returns
    -------
    dict
        Components keyed by role name: ``settings``, ``config``, ``llm``,
        ``embedding_providers``, ``index``, ``ingestion``, ``retrieval``
        and ``pipeline``.  ``retrieval`` is always built (the ingest CLI
        needs it) but only handed to the stages when ``rag_enabled``.
    """
    s = custom_settings or Settings()
    config = load_config(config_path, settings=s)

    llm = build_llm_provider(s)
    embedding_providers = build_embedding_providers(s)
    index = build_index()
    ingestion = build_ingestion_service(s, config, index, embedding_providers)
    retrieval = build_retrieval_service(config, ingestion, index, embedding_providers)
    pipeline = build_pipeline(llm, config, retrieval if s.rag_enabled else None)

    _logger.info(
        "components_built",
        llm_provider=llm.get_provider_name(),
        llm_model=llm.get_model_name(),
        rag_enabled=s.rag_enabled,
        documents_dir=s.documents_dir,
    )
    return {
        "settings": s,
        "config": config,
        "llm": llm,
        "embedding_providers": embedding_providers,
        "index": index,
        "ingestion": ingestion,
        "retrieval": retrieval,
        "pipeline": pipeline,
    }


async def run_pipeline(
    primary_items: list[str],
    primary_criteria: str | None = None,
    secondary_items: list[str] | None = None,
    custom_settings: Settings | None = None,
) -> PipelineState:
    """Build the components and run one pairing request (scripting usage)."""
    components = build_components(custom_settings)
    pipeline: FoodPairingPipeline = components["pipeline"]
    return await pipeline.run(primary_items, primary_criteria, secondary_items)
