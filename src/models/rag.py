"""RAG data models for the recipe knowledge base.

Defines Pydantic v2 models for source documents, chunks, vector records,
retrieval results and ingestion progress.  All models except the mutable
status snapshot use frozen config.

RAG overview:
    1. INGESTION: recipe documents (PDF / text) are loaded from disk and
       split into overlapping chunks by src/services/ingestion/chunker.py.
    2. EMBEDDING: each chunk is turned into a vector by the first available
       embedding backend (OpenAI → HuggingFace → local).
    3. STORAGE: chunk + vector pairs go into an in-memory index
       (src/providers/vector_store/memory_index.py).
    4. RETRIEVAL: the pipeline stages query the index with the user's
       ingredients and add the best chunks to their prompts.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ChunkKind(str, Enum):  # noqa: UP042
    """What part of a recipe a chunk covers."""

    TITLE = "title"
    INGREDIENTS = "ingredients"
    INSTRUCTIONS = "instructions"
    TIPS = "tips"
    DESCRIPTION = "description"


# ---------------------------------------------------------------------------
# SourceDocument - one loaded file, before chunking.
# ---------------------------------------------------------------------------
class SourceDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_id: str = Field(description="Stable identifier derived from the file name.")
    file_name: str
    path: str
    text: str
    title: str | None = None
    key_items: list[str] = Field(default_factory=list, description="Ingredients found in the document.")
    category: str | None = None
    loaded_at: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))  # noqa: UP017


class ChunkTags(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str | None = None
    key_items: list[str] = Field(default_factory=list)
    category: str | None = None
    kind: ChunkKind = ChunkKind.DESCRIPTION


# ---------------------------------------------------------------------------
# DocumentChunk - the unit that is embedded and retrieved.
# ---------------------------------------------------------------------------
class DocumentChunk(BaseModel):
    """A bounded slice of a source document.

    ``content`` is an exact substring of the source text.  Its first
    ``overlap`` characters repeat the tail of the previous chunk; the rest
    starts at ``start_offset`` in the source.  Joining ``content[overlap:]``
    across a document's chunks therefore gives back the original text.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique chunk identifier, '<source_id>:<position>'.")
    content: str
    source_id: str
    position: int = Field(ge=0, description="Index of the chunk within its document.")
    start_offset: int = Field(default=0, ge=0, description="Offset of the non-overlap text.")
    overlap: int = Field(default=0, ge=0, description="Length of the carried-over prefix.")
    tags: ChunkTags = Field(default_factory=ChunkTags)

    @property
    def body(self) -> str:
        """The chunk text without the carried-over prefix."""
        return self.content[self.overlap:]


class VectorRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    chunk: DocumentChunk
    embedding: list[float]


class RetrievedChunk(BaseModel):
    model_config = ConfigDict(frozen=True)

    chunk: DocumentChunk
    score: float = Field(description="Similarity score, higher is closer.")


# ---------------------------------------------------------------------------
# Ingestion progress and results
# ---------------------------------------------------------------------------
class IngestionState(str, Enum):  # noqa: UP042
    IDLE = "idle"
    LOADING = "loading"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class IngestionStatus(BaseModel):
    """Snapshot of ingestion progress, published to listeners on each change."""

    model_config = ConfigDict(frozen=True)

    total_files: int = 0
    processed_files: int = 0
    current_file: str | None = None
    state: IngestionState = IngestionState.IDLE
    message: str | None = None

    @property
    def percentage(self) -> float:
        if self.total_files <= 0:
            return 0.0
        return round(self.processed_files / self.total_files * 100.0, 1)


class IngestionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    document_count: int = 0
    chunk_count: int = 0
    elapsed_seconds: float = 0.0
    embedding_provider: str | None = None
