"""Embedding backend contract shared by ingestion and retrieval.

Ingestion walks a priority list of these and uses the first whose
:meth:`IEmbeddingProvider.is_available` is true. Queries must then be
embedded by a backend with the same dimension as the index.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Literal

DistanceMetric = Literal["cosine", "dot", "euclidean"]


class IEmbeddingProvider(ABC):
    """Turns recipe chunks and query text into fixed-length vectors.

    Every vector from one provider has :meth:`get_dimension` components, so
    an index built with one provider can only be queried through a provider
    reporting the same dimension.
    """

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed ``texts``, returning one vector per input in the same order.

        Parameters
        ----------
        texts:
            Chunk or query strings.  Backends with a per-request input cap
            split the list themselves.

        Returns
        -------
        list[list[float]]
            Vectors aligned with *texts*.  An empty list returns an empty
            list without a backend call.

        Raises
        ------
        src.utils.errors.RAGError
            The backend failed or returned something other than vectors.
        """

    async def embed_single(self, text: str) -> list[float]:
        (vector,) = await self.embed([text])
        return vector

    @abstractmethod
    def get_dimension(self) -> int:
        """Vector length, e.g. 1536 for ``text-embedding-3-small``."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Identifier recorded in ingestion results and index metadata.

        Retrieval compares it against the name stored by the last
        ingestion run to pick the query embedder, so it must be stable
        for a given backend and model.

        Returns
        -------
        str
            e.g. ``"openai_embedding"`` or
            ``"sentence_transformer_all-MiniLM-L6-v2"``.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Whether this backend can be tried without making a request.

        Checks configuration only (an API key, an importable package);
        it never embeds anything.  Ingestion skips providers that
        return ``False``.
        """

    def get_distance_metric(self) -> DistanceMetric:
        return "cosine"
