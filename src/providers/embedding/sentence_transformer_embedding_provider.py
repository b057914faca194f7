"""Local embedding backend using ``sentence-transformers``.

Last in the embedding priority order: needs no key, only the optional
``local`` extra (which pulls in PyTorch). The model is loaded lazily on the
first ``embed`` call because loading takes seconds and most runs never get
this far down the fallback list.
"""

from __future__ import annotations

import asyncio
import importlib.util

import structlog

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.utils.errors import RAGError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_LOCAL_MODEL = "all-MiniLM-L6-v2"

# Used until the model is loaded and reports its own dimension.
_KNOWN_DIMENSIONS = {
    "all-MiniLM-L6-v2": 384,
    "all-mpnet-base-v2": 768,
    "paraphrase-multilingual-MiniLM-L12-v2": 384,
    "multi-qa-MiniLM-L6-cos-v1": 384,
}

_ENCODE_BATCH = 64


class SentenceTransformerEmbeddingProvider(IEmbeddingProvider):
    """Embeds text with a local model; vectors come back L2-normalized."""

    def __init__(self, model_name: str | None = None) -> None:
        self._model_name = model_name or DEFAULT_LOCAL_MODEL
        self._short_name = self._model_name.rsplit("/", 1)[-1]
        self._dimension = _KNOWN_DIMENSIONS.get(self._short_name, 384)
        self._model = None

    def _load_model(self):
        if self._model is None:
            try:
                from sentence_transformers import SentenceTransformer

                model = SentenceTransformer(self._model_name)
            except Exception as exc:
                raise RAGError(
                    message=f"Could not load local model '{self._model_name}': {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc
            self._model = model
            self._dimension = int(model.get_sentence_embedding_dimension() or self._dimension)
            logger.info("local_embedding_model_loaded", model=self._model_name, dimension=self._dimension)
        return self._model

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        model = self._load_model()
        try:
            # encode() blocks for the whole batch.
            matrix = await asyncio.to_thread(
                model.encode,
                texts,
                batch_size=_ENCODE_BATCH,
                normalize_embeddings=True,
                show_progress_bar=False,
            )
        except Exception as exc:
            raise RAGError(
                message=f"Local embedding failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.debug("local_embedding_done", model=self._short_name, texts=len(texts))
        return [list(map(float, row)) for row in matrix]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return f"sentence_transformer_{self._short_name}"

    def is_available(self) -> bool:
        return importlib.util.find_spec("sentence_transformers") is not None
