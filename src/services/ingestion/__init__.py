"""Document ingestion pipeline for the recipe knowledge base.

Orchestrates: **discover -> load -> enhance -> chunk -> embed -> index**.

1. **Load** (source_processors/) -- PDF and text readers produce one
   SourceDocument per file.
2. **Enhance** (metadata_extractor.py / RecipeMetadataExtractor) -- derives
   title, ingredient list and drink category heuristically.
3. **Chunk** (chunker.py / RecipeChunker) -- heading-aware split into
   bounded, overlapping, tagged chunks.
4. **Embed + index** (ingestion_service.py / IngestionService) -- first
   available embedding backend, then an atomic replace of the in-memory
   index under a retry policy.

Progress is published through progress_tracker.IngestionProgressTracker.
"""

from src.services.ingestion.chunker import RecipeChunker
from src.services.ingestion.ingestion_service import IngestionService
from src.services.ingestion.metadata_extractor import RecipeMetadataExtractor
from src.services.ingestion.progress_tracker import IngestionProgressTracker

__all__ = [
    "IngestionProgressTracker",
    "IngestionService",
    "RecipeChunker",
    "RecipeMetadataExtractor",
]
