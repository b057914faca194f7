"""Embeddings through the OpenAI ``/embeddings`` endpoint.

First choice for ingestion and query embedding when ``OPENAI_API_KEY`` is
set. ``OPENAI_BASE_URL`` redirects it to any host speaking the same API.
"""

from __future__ import annotations

import openai
import structlog

from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.utils.errors import RAGError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_OPENAI_EMBEDDING_MODEL = "text-embedding-3-small"

# The endpoint rejects requests with more inputs than this.
MAX_INPUTS_PER_REQUEST = 2048

_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


def _batches(texts: list[str], size: int):
    for offset in range(0, len(texts), size):
        yield texts[offset : offset + size]


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None) -> None:
        self._api_key = settings.openai_api_key
        self._model = settings.openai_embedding_model or DEFAULT_OPENAI_EMBEDDING_MODEL
        self._dimension = _DIMENSIONS.get(self._model, 1536)
        self._client = client or openai.AsyncOpenAI(
            api_key=self._api_key or "missing",
            base_url=settings.openai_base_url or None,
        )

    async def embed(self, texts: list[str]) -> list[list[float]]:
        vectors: list[list[float]] = []
        for batch in _batches(texts, MAX_INPUTS_PER_REQUEST):
            try:
                response = await self._client.embeddings.create(input=batch, model=self._model)
            except openai.APIError as exc:
                raise RAGError(
                    message=f"Embedding request to {self._model} failed: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc
            vectors.extend(item.embedding for item in response.data)
            usage = getattr(response, "usage", None)
            logger.debug(
                "openai_embeddings_created",
                model=self._model,
                inputs=len(batch),
                tokens=getattr(usage, "total_tokens", None),
            )
        return vectors

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "openai_embedding"

    def is_available(self) -> bool:
        return bool(self._api_key)
