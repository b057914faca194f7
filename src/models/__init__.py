"""Pairing engine domain models - re-exports all public model classes.

Other parts of the codebase can import from ``src.models`` directly
(e.g. ``from src.models import PipelineState``) instead of the individual
submodules:

    - pairing.py   - typed dish / beverage / pairing-reason views
    - pipeline.py  - request and stage-graph state
    - rag.py       - source documents, chunks, retrieval and ingestion results
    - recovery.py  - structured output recovery results
"""

from __future__ import annotations

from src.models.pairing import (
    BeverageRecommendation,
    DishRecommendation,
    PairingReason,
    PairingRecommendation,
    PairingResultMetadata,
)
from src.models.pipeline import (
    PipelineMetadata,
    PipelineState,
    Record,
    StageName,
    UserInput,
)
from src.models.rag import (
    ChunkKind,
    ChunkTags,
    DocumentChunk,
    IngestionResult,
    IngestionState,
    IngestionStatus,
    RetrievedChunk,
    SourceDocument,
    VectorRecord,
)
from src.models.recovery import RecoveryResult, RecoveryStatus

__all__ = [
    "BeverageRecommendation",
    "ChunkKind",
    "ChunkTags",
    "DishRecommendation",
    "DocumentChunk",
    "IngestionResult",
    "IngestionState",
    "IngestionStatus",
    "PairingReason",
    "PairingRecommendation",
    "PairingResultMetadata",
    "PipelineMetadata",
    "PipelineState",
    "Record",
    "RecoveryResult",
    "RecoveryStatus",
    "RetrievedChunk",
    "SourceDocument",
    "StageName",
    "UserInput",
]
