"""In-memory vector index backed by numpy.

Holds chunk/vector pairs for one process.  Every mutation builds new arrays
first and swaps them in at the end, so a failed ``replace`` or ``add``
leaves the previous contents untouched.

Scores are "higher is closer" for every metric:

- ``cosine``    -- cosine similarity in ``[-1, 1]``
- ``dot``       -- raw inner product
- ``euclidean`` -- ``1 / (1 + distance)``
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import structlog

from src.interfaces.embedding_provider import DistanceMetric
from src.interfaces.vector_index import IVectorIndex
from src.models.rag import DocumentChunk, RetrievedChunk, VectorRecord
from src.utils.errors import RAGError

logger = structlog.get_logger(logger_name=__name__)

_METRICS: frozenset[str] = frozenset({"cosine", "dot", "euclidean"})


class InMemoryVectorIndex(IVectorIndex):
    """Process-local :class:`IVectorIndex` implementation."""

    def __init__(self, metric: DistanceMetric = "cosine") -> None:
        _check_metric(metric)
        self._metric: DistanceMetric = metric
        self._chunks: list[DocumentChunk] = []
        self._matrix: np.ndarray | None = None

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def replace(self, records: Sequence[VectorRecord], metric: DistanceMetric | None = None) -> int:
        new_metric = metric or self._metric
        _check_metric(new_metric)
        chunks, matrix = _stack(records, expected_dimension=None)
        self._chunks, self._matrix, self._metric = chunks, matrix, new_metric
        logger.info(
            "vector_index_replaced",
            records=len(chunks),
            dimension=self.dimension,
            metric=new_metric,
        )
        return len(chunks)

    def add(self, records: Sequence[VectorRecord]) -> int:
        if not records:
            return self.count()
        chunks, matrix = _stack(records, expected_dimension=self.dimension)
        if self._matrix is None:
            combined = matrix
        else:
            combined = np.vstack([self._matrix, matrix])
        self._chunks, self._matrix = [*self._chunks, *chunks], combined
        logger.debug("vector_index_added", added=len(chunks), total=len(self._chunks))
        return len(self._chunks)

    def clear(self) -> None:
        self._chunks, self._matrix = [], None

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def query(self, vector: Sequence[float], top_k: int = 5) -> list[RetrievedChunk]:
        if self._matrix is None or top_k <= 0:
            return []
        query = np.asarray(vector, dtype=np.float32)
        if query.ndim != 1 or query.shape[0] != self._matrix.shape[1]:
            raise RAGError(
                message=(
                    f"Query vector has dimension {query.shape[-1] if query.ndim else 0}, "
                    f"index expects {self._matrix.shape[1]}"
                ),
                provider_name="memory_index",
            )

        scores = self._score(query)
        k = min(top_k, len(self._chunks))
        # argsort on the negated scores; stable so equal scores keep insertion order.
        order = np.argsort(-scores, kind="stable")[:k]
        return [
            RetrievedChunk(chunk=self._chunks[i], score=float(scores[i]))
            for i in order
        ]

    def _score(self, query: np.ndarray) -> np.ndarray:
        matrix = self._matrix
        assert matrix is not None
        if self._metric == "dot":
            return matrix @ query
        if self._metric == "euclidean":
            distances = np.linalg.norm(matrix - query, axis=1)
            return 1.0 / (1.0 + distances)
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        with np.errstate(divide="ignore", invalid="ignore"):
            similarities = np.where(norms > 0, (matrix @ query) / norms, 0.0)
        return similarities

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def count(self) -> int:
        return len(self._chunks)

    @property
    def dimension(self) -> int | None:
        return None if self._matrix is None else int(self._matrix.shape[1])

    @property
    def metric(self) -> DistanceMetric:
        return self._metric

    def chunks(self) -> list[DocumentChunk]:
        return list(self._chunks)


def _check_metric(metric: str) -> None:
    if metric not in _METRICS:
        raise RAGError(message=f"Unsupported distance metric: {metric}", provider_name="memory_index")


def _stack(
    records: Sequence[VectorRecord],
    expected_dimension: int | None,
) -> tuple[list[DocumentChunk], np.ndarray | None]:
    if not records:
        return [], None
    dimensions = {len(record.embedding) for record in records}
    if len(dimensions) != 1:
        raise RAGError(
            message=f"Embeddings have mixed dimensions: {sorted(dimensions)}",
            provider_name="memory_index",
        )
    dimension = dimensions.pop()
    if dimension == 0:
        raise RAGError(message="Embeddings are empty", provider_name="memory_index")
    if expected_dimension is not None and dimension != expected_dimension:
        raise RAGError(
            message=f"Embedding dimension {dimension} does not match index dimension {expected_dimension}",
            provider_name="memory_index",
        )
    matrix = np.asarray([record.embedding for record in records], dtype=np.float32)
    return [record.chunk for record in records], matrix
