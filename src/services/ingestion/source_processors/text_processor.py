"""Source processor for plain-text and Markdown recipe files."""

from __future__ import annotations

from pathlib import Path

import structlog

from src.models.rag import SourceDocument
from src.services.ingestion.source_processors.base import make_source_id

logger = structlog.get_logger(logger_name=__name__)


class TextProcessor:
    """Loads ``.txt`` / ``.md`` files as UTF-8, replacing undecodable bytes."""

    supported_suffixes: tuple[str, ...] = (".txt", ".md")

    def load(self, file_path: str | Path) -> SourceDocument | None:
        path = Path(file_path)
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            logger.error("text_file_read_failed", file_path=str(path), error=str(exc))
            return None

        if not text.strip():
            logger.warning("text_file_empty", file_path=str(path))
            return None

        logger.info("text_file_processed", file_path=str(path), characters=len(text))
        return SourceDocument(
            source_id=make_source_id(path),
            file_name=path.name,
            path=str(path),
            text=text,
        )
