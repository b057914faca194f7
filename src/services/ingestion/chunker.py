"""Recipe-aware text chunking with bounded size and overlap.

Splits document text into :class:`~src.models.rag.DocumentChunk` objects of
at most ``max_size`` characters plus an overlap prefix carried from the
previous chunk.

The algorithm has three passes:

1. **Heading pass** -- a short line (under 50 characters) with no
   ingredient/procedure marker, no list prefix and no closing punctuation
   starts a new section, provided the current section already has body
   text.  A title followed by a subtitle therefore stays together, while
   the next recipe in a cookbook starts a fresh section.

2. **Separator cascade** -- any section longer than ``max_size`` is split at
   the first separator level that yields a split point: paragraph break,
   line break, sentence end (``。！？`` or ``.!?`` before whitespace), clause
   punctuation, whitespace, and finally a fixed-width character cut.
   Separators stay attached to the piece on their left, so pieces are
   contiguous spans of the original text.

3. **Merge + overlap** -- adjacent pieces are merged greedily up to
   ``max_size``.  Every chunk after the first in a section is prefixed with
   up to ``overlap`` characters from the end of the previous chunk, trimmed
   forward to a word boundary when the tail contains whitespace.

Chunks are exact substrings of the source, so::

    "".join(chunk.content[chunk.overlap:] for chunk in chunks) == text
"""

from __future__ import annotations

import re

import structlog

from src.config.domain_knowledge import has_section_marker, is_list_item
from src.models.rag import DocumentChunk, SourceDocument
from src.services.ingestion.metadata_extractor import RecipeMetadataExtractor

logger = structlog.get_logger(logger_name=__name__)

_HEADING_MAX_CHARS = 50
_HEADING_TRAILING_PUNCTUATION = tuple("。！？；，、：.!?;,:")

# Ordered from coarsest to finest.  Each split point is the end of a match.
_SEPARATORS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\n[ \t]*\n\s*"),         # paragraph
    re.compile(r"\n"),                     # line
    re.compile(r"[。！？]+|[.!?]+(?=\s)"),  # sentence
    re.compile(r"[；，、;,]"),              # clause
    re.compile(r"\s+"),                    # word
)

Span = tuple[int, int]


class RecipeChunker:
    """Splits recipe documents into tagged, overlapping chunks.

    Parameters
    ----------
    max_size:
        Maximum characters per chunk, excluding the overlap prefix (default 800).
    overlap:
        Maximum characters carried over from the previous chunk (default 150).
    metadata_extractor:
        Tags each chunk; a default :class:`RecipeMetadataExtractor` is used
        when omitted.
    """

    def __init__(
        self,
        max_size: int = 800,
        overlap: int = 150,
        metadata_extractor: RecipeMetadataExtractor | None = None,
    ) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        if overlap < 0:
            raise ValueError("overlap must be non-negative")
        self._max_size = max_size
        self._overlap = overlap
        self._metadata = metadata_extractor or RecipeMetadataExtractor()

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def overlap(self) -> int:
        return self._overlap

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def split(
        self,
        text: str,
        source_id: str,
        document: SourceDocument | None = None,
    ) -> list[DocumentChunk]:
        """Split *text* into tagged :class:`DocumentChunk` objects.

        Parameters
        ----------
        text:
            Full document text.
        source_id:
            Identifier of the source document; chunk ids are
            ``"<source_id>:<position>"``.
        document:
            The enhanced source document, used as the fallback for chunk
            title and category tags.

        Returns
        -------
        list[DocumentChunk]
            Chunks in document order.  Whitespace-only input returns ``[]``.
        """
        if not text or not text.strip():
            return []

        chunks: list[DocumentChunk] = []
        for section_start, section_end in self._sections(text):
            spans = self._merge(self._split_span(text, section_start, section_end, 0))
            previous: Span | None = None
            for start, end in spans:
                overlap_start = self._overlap_start(text, previous, start)
                content = text[overlap_start:end]
                chunks.append(
                    DocumentChunk(
                        id=f"{source_id}:{len(chunks)}",
                        content=content,
                        source_id=source_id,
                        position=len(chunks),
                        start_offset=start,
                        overlap=start - overlap_start,
                        tags=self._metadata.tag_chunk(content, document),
                    )
                )
                previous = (start, end)

        logger.debug(
            "chunking_complete",
            source_id=source_id,
            num_chunks=len(chunks),
            text_length=len(text),
        )
        return chunks

    # ------------------------------------------------------------------
    # Heading pass
    # ------------------------------------------------------------------

    def _sections(self, text: str) -> list[Span]:
        boundaries = [0]
        has_body = False
        offset = 0
        for line in text.splitlines(keepends=True):
            stripped = line.strip()
            if stripped:
                if self._is_heading(stripped):
                    if has_body and offset > boundaries[-1]:
                        boundaries.append(offset)
                        has_body = False
                else:
                    has_body = True
            offset += len(line)
        boundaries.append(len(text))
        return [(boundaries[i], boundaries[i + 1]) for i in range(len(boundaries) - 1)]

    @staticmethod
    def _is_heading(line: str) -> bool:
        return (
            len(line) < _HEADING_MAX_CHARS
            and not has_section_marker(line)
            and not is_list_item(line)
            and not line.endswith(_HEADING_TRAILING_PUNCTUATION)
        )

    # ------------------------------------------------------------------
    # Separator cascade
    # ------------------------------------------------------------------

    def _split_span(self, text: str, start: int, end: int, level: int) -> list[Span]:
        if end - start <= self._max_size:
            return [(start, end)]

        if level >= len(_SEPARATORS):
            return [
                (cut, min(cut + self._max_size, end))
                for cut in range(start, end, self._max_size)
            ]

        points = [
            match.end()
            for match in _SEPARATORS[level].finditer(text, start, end)
            if start < match.end() < end
        ]
        if not points:
            return self._split_span(text, start, end, level + 1)

        spans: list[Span] = []
        bounds = [start, *sorted(set(points)), end]
        for piece_start, piece_end in zip(bounds, bounds[1:]):
            spans.extend(self._split_span(text, piece_start, piece_end, level + 1))
        return spans

    def _merge(self, pieces: list[Span]) -> list[Span]:
        merged: list[Span] = []
        for start, end in pieces:
            if merged and end - merged[-1][0] <= self._max_size:
                merged[-1] = (merged[-1][0], end)
            else:
                merged.append((start, end))
        return merged

    # ------------------------------------------------------------------
    # Overlap
    # ------------------------------------------------------------------

    def _overlap_start(self, text: str, previous: Span | None, start: int) -> int:
        """Start offset of the overlap prefix for a chunk beginning at *start*."""
        if previous is None or self._overlap == 0:
            return start
        candidate = max(previous[0], start - self._overlap)
        if candidate == previous[0]:
            return candidate
        tail = text[candidate:start]
        # Drop the partial word at the front of the tail.
        match = re.search(r"\s+", tail)
        if match and match.end() < len(tail):
            return candidate + match.end()
        return candidate
