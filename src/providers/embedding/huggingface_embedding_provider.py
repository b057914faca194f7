"""HuggingFace Inference API embedding provider adapter.

Calls the hosted ``feature-extraction`` pipeline over ``httpx``.  This is
the secondary remote backend, used when no OpenAI key is configured but a
HuggingFace token is.  Sentence-transformers models return one pooled
vector per input; token-level outputs are mean-pooled here.
"""

from __future__ import annotations

from typing import Any

import httpx
import numpy as np
import structlog

from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.utils.errors import RAGError

logger = structlog.get_logger(logger_name=__name__)

_BATCH_LIMIT = 32
_TIMEOUT = 60.0

_MODEL_DIMENSIONS: dict[str, int] = {
    "sentence-transformers/all-MiniLM-L6-v2": 384,
    "sentence-transformers/all-mpnet-base-v2": 768,
    "BAAI/bge-small-en-v1.5": 384,
}


class HuggingFaceEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by the HuggingFace Inference API."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        self._api_key = settings.huggingface_api_key
        self._model = settings.huggingface_embedding_model
        self._url = (
            f"{settings.huggingface_base_url.rstrip('/')}"
            f"/pipeline/feature-extraction/{self._model}"
        )
        self._dimension = _MODEL_DIMENSIONS.get(self._model, 384)
        self._http = http_client

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        headers = {"Authorization": f"Bearer {self._api_key}"}
        all_embeddings: list[list[float]] = []
        client = self._http or httpx.AsyncClient(timeout=_TIMEOUT)
        try:
            for start in range(0, len(texts), _BATCH_LIMIT):
                batch = texts[start : start + _BATCH_LIMIT]
                response = await client.post(
                    self._url,
                    json={"inputs": batch, "options": {"wait_for_model": True}},
                    headers=headers,
                )
                response.raise_for_status()
                vectors = [_pool(item) for item in response.json()]
                all_embeddings.extend(vectors)
                logger.info(
                    "huggingface_embedding_batch",
                    model=self._model,
                    batch_size=len(batch),
                )
        except httpx.HTTPError as exc:
            raise RAGError(
                message=f"HuggingFace embedding request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except (TypeError, ValueError) as exc:
            raise RAGError(
                message=f"Unexpected HuggingFace embedding response: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        finally:
            if self._http is None:
                await client.aclose()

        if len(all_embeddings) != len(texts):
            raise RAGError(
                message=f"Expected {len(texts)} embeddings, got {len(all_embeddings)}",
                provider_name=self.get_provider_name(),
            )
        return all_embeddings

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "huggingface_embedding"

    def is_available(self) -> bool:
        """Return ``True`` if a HuggingFace token is configured."""
        return bool(self._api_key)


def _pool(item: Any) -> list[float]:
    """Collapse a ``[tokens][dim]`` matrix to its mean; pass vectors through."""
    if not isinstance(item, list) or not item:
        raise ValueError("embedding is not a non-empty list")
    matrix = np.asarray(item, dtype=float)
    if matrix.ndim == 2:
        return matrix.mean(axis=0).tolist()
    if matrix.ndim != 1:
        raise ValueError(f"unexpected embedding shape {matrix.shape}")
    return matrix.tolist()
