"""Retrieval API over the recipe vector index.

:class:`RetrievalService` answers similarity queries against the shared
:class:`~src.interfaces.vector_index.IVectorIndex`.  The index is built
lazily: the first query triggers one ingestion run before it is answered.

Concurrent first queries share a single in-flight ingestion task, so
exactly one run happens and every waiting query sees its outcome.  If that
run raises, the flag stays unset, every caller that was waiting on it gets
the same error, and the next query starts a fresh run.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from src.models.rag import IngestionResult, RetrievedChunk

if TYPE_CHECKING:
    from src.interfaces.embedding_provider import IEmbeddingProvider
    from src.interfaces.vector_index import IVectorIndex
    from src.services.ingestion.ingestion_service import IngestionService

logger = structlog.get_logger(logger_name=__name__)

_CONTEXT_SNIPPET_CHARS = 600


class RetrievalService:
    """Lazy-initializing similarity search over ingested recipe chunks.

    Parameters
    ----------
    ingestion:
        Builds the index on first use or on explicit :meth:`run_ingestion`.
    index:
        The index shared with *ingestion*.
    embedding_providers:
        Candidates for embedding query text.  The provider the last
        ingestion run used is preferred so queries and chunks share a
        vector space.
    default_top_k:
        ``k`` used when :meth:`query` is called without one.
    """

    def __init__(
        self,
        ingestion: IngestionService,
        index: IVectorIndex,
        embedding_providers: list[IEmbeddingProvider] | None = None,
        default_top_k: int = 5,
    ) -> None:
        self._ingestion = ingestion
        self._index = index
        self._embedding_providers = list(embedding_providers or [])
        self._default_top_k = default_top_k
        self._lock = asyncio.Lock()
        self._built = False
        self._pending: asyncio.Task[None] | None = None
        self._ingestion_runs = 0
        self._last_result: IngestionResult | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run_ingestion(self) -> IngestionResult:
        """Build (or rebuild) the index now.

        Raises
        ------
        src.utils.errors.IngestionError
            Propagated from :meth:`IngestionService.run`.
        """
        async with self._lock:
            return await self._ingest()

    async def query(self, text: str, k: int | None = None) -> list[RetrievedChunk]:
        """Return the top-*k* chunks most similar to *text*, best first.

        Builds the index first if it was never built.  An index that was
        built from zero documents yields an empty list.
        """
        await self._ensure_built()
        top_k = self._default_top_k if k is None else k
        if not text or not text.strip() or self._index.is_empty() or top_k <= 0:
            return []

        embedder = self._query_embedder()
        if embedder is None:
            logger.warning("retrieval_no_query_embedder")
            return []
        vector = await embedder.embed_single(text)
        results = self._index.query(vector, top_k)
        logger.debug("retrieval_query", query=text[:80], top_k=top_k, results=len(results))
        return results

    def get_status(self) -> dict:
        """Ingestion progress plus index metadata."""
        return {
            "initialized": self._built,
            "ingestion_runs": self._ingestion_runs,
            "ingestion": self._ingestion.progress.get_status(),
            "index": {
                "count": self._index.count(),
                "dimension": self._index.dimension,
                "metric": self._index.metric,
            },
            **self._ingestion.get_stats(),
        }

    @staticmethod
    def format_context(results: list[RetrievedChunk]) -> str:
        """Render retrieved chunks as a numbered reference block for prompts."""
        parts: list[str] = []
        for number, result in enumerate(results, start=1):
            tags = result.chunk.tags
            heading = tags.title or result.chunk.source_id
            snippet = result.chunk.content.strip()[:_CONTEXT_SNIPPET_CHARS]
            parts.append(f"[{number}] {heading} ({tags.kind.value})\n{snippet}")
        return "\n\n".join(parts)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _ensure_built(self) -> None:
        if self._built:
            return
        if self._pending is None:
            logger.info("retrieval_lazy_ingestion")
            self._pending = asyncio.ensure_future(self._lazy_ingest())
        # A cancelled caller must not cancel the run others are waiting on.
        await asyncio.shield(self._pending)

    async def _lazy_ingest(self) -> None:
        try:
            async with self._lock:
                if not self._built:
                    await self._ingest()
        finally:
            self._pending = None

    async def _ingest(self) -> IngestionResult:
        self._ingestion_runs += 1
        result = await self._ingestion.run()
        self._last_result = result
        self._built = True
        return result

    def _query_embedder(self) -> IEmbeddingProvider | None:
        active = self._ingestion.get_stats().get("embedding_provider")
        for provider in self._embedding_providers:
            if provider.get_provider_name() == active:
                return provider
        for provider in self._embedding_providers:
            if provider.is_available():
                return provider
        return None
