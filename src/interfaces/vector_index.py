"""Abstract base class for the similarity index used by retrieval.

The index is an explicit object created by the composition root and passed
to both the ingestion service (writer) and the retrieval service (reader).
Tests build a fresh instance each time.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from src.interfaces.embedding_provider import DistanceMetric
from src.models.rag import RetrievedChunk, VectorRecord


# Concrete implementation: InMemoryVectorIndex (src/providers/vector_store/)
class IVectorIndex(ABC):
    """Contract for an in-process vector index.

    Mutations are all-or-nothing: a call that raises leaves the index
    exactly as it was.  Queries never mutate.
    """

    @abstractmethod
    def replace(self, records: Sequence[VectorRecord], metric: DistanceMetric = "cosine") -> int:
        """Swap the whole index contents for *records*.

        Returns
        -------
        int
            Number of records now stored.

        Raises
        ------
        src.utils.errors.RAGError
            If the records do not share one dimensionality.
        """

    @abstractmethod
    def add(self, records: Sequence[VectorRecord]) -> int:
        """Append *records*; their dimensionality must match the index."""

    @abstractmethod
    def query(self, vector: Sequence[float], top_k: int = 5) -> list[RetrievedChunk]:
        """Return the *top_k* closest chunks, best first."""

    @abstractmethod
    def count(self) -> int:
        """Return the number of stored records."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every record."""

    @property
    @abstractmethod
    def dimension(self) -> int | None:
        """Dimensionality of stored vectors, ``None`` while empty."""

    @property
    @abstractmethod
    def metric(self) -> DistanceMetric:
        """Metric used to rank query results."""

    def is_empty(self) -> bool:
        return self.count() == 0
