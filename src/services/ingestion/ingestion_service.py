"""Orchestrator for the document ingestion pipeline.

Pipeline stages: **discover -> load -> enhance -> chunk -> embed -> index**.

:class:`IngestionService` coordinates its collaborators (source processors,
metadata extractor, chunker, embedding providers, vector index) without any
of them knowing about each other.  All dependencies are injected through the
constructor; ``src/main.py`` wires the production set.

The embed + index step runs under a :class:`~src.utils.retry.BackoffPolicy`
(3 attempts, 2 s apart by default).  The index is only touched by a single
``replace`` call at the end of a successful attempt, so when every attempt
fails the previous index contents survive and :class:`IngestionError` is
raised.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import structlog

from src.models.rag import (
    DocumentChunk,
    IngestionResult,
    IngestionState,
    SourceDocument,
    VectorRecord,
)
from src.services.ingestion.chunker import RecipeChunker
from src.services.ingestion.metadata_extractor import RecipeMetadataExtractor
from src.services.ingestion.progress_tracker import IngestionProgressTracker
from src.services.ingestion.source_processors import PDFProcessor, TextProcessor
from src.utils.errors import IngestionError, RAGError
from src.utils.retry import BackoffPolicy, RetryExhaustedError

if TYPE_CHECKING:
    from src.interfaces.embedding_provider import IEmbeddingProvider
    from src.interfaces.vector_index import IVectorIndex

logger = structlog.get_logger(logger_name=__name__)


class SourceProcessor(Protocol):
    supported_suffixes: tuple[str, ...]

    def load(self, file_path: str | Path) -> SourceDocument | None: ...


class IngestionService:
    """Builds the vector index from the documents directory.

    Parameters
    ----------
    documents_dir:
        Directory scanned (non-recursively) for supported files.
    index:
        The shared vector index to (re)build.
    embedding_providers:
        Candidate backends in priority order; the first whose
        ``is_available()`` is true is used for the whole run.
    chunker:
        Splits document text; defaults to 800 / 150.
    metadata_extractor:
        Enhances documents with title / key items / category.
    retry_policy:
        Governs the embed + index step.
    progress:
        Receives status updates; a private tracker is created when omitted.
    processors:
        Source processors; defaults to PDF and plain text.
    """

    def __init__(
        self,
        documents_dir: str | Path,
        index: IVectorIndex,
        embedding_providers: Sequence[IEmbeddingProvider],
        chunker: RecipeChunker | None = None,
        metadata_extractor: RecipeMetadataExtractor | None = None,
        retry_policy: BackoffPolicy | None = None,
        progress: IngestionProgressTracker | None = None,
        processors: Sequence[SourceProcessor] | None = None,
    ) -> None:
        self._documents_dir = Path(documents_dir)
        self._index = index
        self._embedding_providers = list(embedding_providers)
        self._metadata_extractor = metadata_extractor or RecipeMetadataExtractor()
        self._chunker = chunker or RecipeChunker(metadata_extractor=self._metadata_extractor)
        self._retry_policy = retry_policy or BackoffPolicy()
        self._progress = progress or IngestionProgressTracker()
        self._processors: dict[str, SourceProcessor] = {}
        for processor in processors or (PDFProcessor(), TextProcessor()):
            for suffix in processor.supported_suffixes:
                self._processors[suffix.lower()] = processor

        self._document_count = 0
        self._chunk_count = 0
        self._active_provider: str | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def progress(self) -> IngestionProgressTracker:
        return self._progress

    @property
    def documents_dir(self) -> Path:
        return self._documents_dir

    async def run(self) -> IngestionResult:
        """Run the whole pipeline and replace the index contents.

        Returns
        -------
        IngestionResult
            ``success=True`` with document / chunk counts.  An empty or
            missing documents directory is a success with zero counts and
            leaves the index as it was.

        Raises
        ------
        IngestionError
            If no embedding backend is available or every embed + index
            attempt failed.  The index is left unchanged.
        """
        started = time.monotonic()
        paths = self.discover()
        await self._progress.start(total_files=len(paths))

        documents = await self.load_documents(paths)
        await self._progress.update(state=IngestionState.PROCESSING, current_file=None)

        if not documents:
            await self._progress.update(state=IngestionState.COMPLETED, message="no documents found")
            logger.warning("ingestion_no_documents", documents_dir=str(self._documents_dir))
            return IngestionResult(
                success=True,
                document_count=0,
                chunk_count=0,
                elapsed_seconds=round(time.monotonic() - started, 3),
            )

        chunks = self.chunk_documents(documents)
        provider = await self._select_provider()

        async def embed_and_index() -> int:
            return await self._embed_and_index(provider, chunks)

        try:
            indexed = await self._retry_policy.run(embed_and_index, label="embed_and_index")
        except RetryExhaustedError as exc:
            message = (
                f"Failed to build vector index after {exc.attempts} attempts: {exc.last_error}"
            )
            await self._progress.fail(message)
            logger.error("ingestion_failed", attempts=exc.attempts, error=str(exc.last_error))
            raise IngestionError(message=message, provider_name=provider.get_provider_name()) from exc

        self._document_count = len(documents)
        self._chunk_count = indexed
        self._active_provider = provider.get_provider_name()
        await self._progress.update(
            state=IngestionState.COMPLETED,
            processed_files=len(paths),
            message=f"indexed {indexed} chunks from {len(documents)} documents",
        )

        elapsed = round(time.monotonic() - started, 3)
        logger.info(
            "ingestion_complete",
            documents=len(documents),
            chunks=indexed,
            provider=self._active_provider,
            elapsed_s=elapsed,
        )
        return IngestionResult(
            success=True,
            document_count=len(documents),
            chunk_count=indexed,
            elapsed_seconds=elapsed,
            embedding_provider=self._active_provider,
        )

    def discover(self) -> list[Path]:
        """Supported files directly inside the documents directory, sorted by name."""
        if not self._documents_dir.is_dir():
            logger.warning("documents_dir_missing", documents_dir=str(self._documents_dir))
            return []
        return sorted(
            path
            for path in self._documents_dir.iterdir()
            if path.is_file() and path.suffix.lower() in self._processors
        )

    async def load_documents(self, paths: Sequence[Path]) -> list[SourceDocument]:
        """Load and enhance each file; unreadable files are skipped."""
        documents: list[SourceDocument] = []
        for count, path in enumerate(paths, start=1):
            await self._progress.update(current_file=path.name)
            processor = self._processors[path.suffix.lower()]
            # PDF parsing is blocking; keep the loop free.
            document = await asyncio.to_thread(processor.load, path)
            if document is not None:
                documents.append(self._metadata_extractor.enhance(document))
            else:
                logger.warning("document_skipped", file_path=str(path))
            await self._progress.update(processed_files=count)
        return documents

    def chunk_documents(self, documents: Sequence[SourceDocument]) -> list[DocumentChunk]:
        chunks: list[DocumentChunk] = []
        for document in documents:
            chunks.extend(self._chunker.split(document.text, document.source_id, document))
        logger.info("documents_chunked", documents=len(documents), chunks=len(chunks))
        return chunks

    def get_stats(self) -> dict:
        return {
            "document_count": self._document_count,
            "chunk_count": self._chunk_count,
            "embedding_provider": self._active_provider,
            "documents_dir": str(self._documents_dir),
            "documents_dir_exists": self._documents_dir.is_dir(),
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _select_provider(self) -> IEmbeddingProvider:
        for provider in self._embedding_providers:
            if provider.is_available():
                logger.info("embedding_provider_selected", provider=provider.get_provider_name())
                return provider
            logger.debug("embedding_provider_unavailable", provider=provider.get_provider_name())
        message = "No embedding provider is available"
        await self._progress.fail(message)
        raise IngestionError(message=message)

    async def _embed_and_index(self, provider: IEmbeddingProvider, chunks: Sequence[DocumentChunk]) -> int:
        vectors = await provider.embed([chunk.content for chunk in chunks])
        if len(vectors) != len(chunks):
            raise RAGError(
                message=f"Expected {len(chunks)} embeddings, got {len(vectors)}",
                provider_name=provider.get_provider_name(),
            )
        records = [
            VectorRecord(chunk=chunk, embedding=list(vector))
            for chunk, vector in zip(chunks, vectors)
        ]
        return self._index.replace(records, provider.get_distance_metric())
