"""PDF recipe books and cards, read with PyMuPDF.

The text layer of every page is concatenated into a single
:class:`~src.models.rag.SourceDocument`, pages separated by a blank line so
the chunker treats a page break like a paragraph break. Scanned PDFs without
a text layer yield nothing; OCR is out of scope.
"""

from __future__ import annotations

from pathlib import Path

import fitz
import structlog

from src.models.rag import SourceDocument
from src.services.ingestion.source_processors.base import make_source_id

logger = structlog.get_logger(logger_name=__name__)


class PDFProcessor:
    supported_suffixes: tuple[str, ...] = (".pdf",)

    def load(self, file_path: str | Path) -> SourceDocument | None:
        """Return the document, or ``None`` if it is unreadable or has no text."""
        path = Path(file_path)
        page_texts = self._page_texts(path)
        if not page_texts:
            return None

        text = "\n\n".join(page_texts)
        logger.info("pdf_loaded", file_path=str(path), pages=len(page_texts), characters=len(text))
        return SourceDocument(
            source_id=make_source_id(path),
            file_name=path.name,
            path=str(path),
            text=text,
        )

    @staticmethod
    def _page_texts(path: Path) -> list[str]:
        try:
            with fitz.open(str(path)) as doc:
                texts = [page.get_text("text").strip() for page in doc]
        except Exception as exc:  # noqa: BLE001 - fitz raises several unrelated types
            logger.error("pdf_open_failed", file_path=str(path), error=str(exc))
            return []

        texts = [text for text in texts if text]
        if not texts:
            logger.warning("pdf_has_no_text_layer", file_path=str(path))
        return texts
