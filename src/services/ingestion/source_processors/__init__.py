"""Source processors for the ingestion pipeline.

Each processor turns one file format into a
:class:`~src.models.rag.SourceDocument`, which is then enhanced with
recipe metadata and split by the RecipeChunker.

- **PDFProcessor**  -- PDF recipe books via PyMuPDF page extraction
- **TextProcessor** -- ``.txt`` / ``.md`` files
"""

from src.services.ingestion.source_processors.pdf_processor import PDFProcessor
from src.services.ingestion.source_processors.text_processor import TextProcessor

__all__ = [
    "PDFProcessor",
    "TextProcessor",
]
