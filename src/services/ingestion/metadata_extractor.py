"""Heuristic recipe metadata extraction for documents and chunks.

Recipe documents follow a loose layout: a short title line, an ingredient
block introduced by a marker ("原料" / "Ingredients"), then a procedure
block ("步骤" / "Method") and sometimes tips.  The same heuristics serve two
callers:

- document enhancement at load time (title, ingredient list, category
  for the whole file), and
- chunk tagging after splitting (kind, title, key items, category for a
  single chunk, falling back to the document-level values).

Everything here is pure string processing; no LLM calls are made during
ingestion.
"""

from __future__ import annotations

from pathlib import Path

from src.config.domain_knowledge import (
    DEFAULT_CATEGORY,
    detect_category,
    has_ingredient_marker,
    has_section_marker,
    has_step_marker,
    has_tip_marker,
    is_list_item,
    strip_list_prefix,
)
from src.models.rag import ChunkKind, ChunkTags, SourceDocument

_TITLE_MAX_CHARS = 50
_TITLE_SCAN_LINES = 10
_INGREDIENT_SCAN_LINES = 10
_SHORT_CHUNK_CHARS = 100
_INLINE_ITEM_SEPARATORS = ("、", "，", ",", "；", ";")


class RecipeMetadataExtractor:
    """Derives titles, ingredient lists, categories and chunk kinds from text."""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def enhance(self, document: SourceDocument) -> SourceDocument:
        """Return *document* with title, key items and category filled in.

        The title falls back to the file stem, the category to ``"other"``.
        """
        title = self.extract_title(document.text) or Path(document.file_name).stem
        return document.model_copy(
            update={
                "title": title,
                "key_items": self.extract_key_items(document.text),
                "category": self.extract_category(document.text) or DEFAULT_CATEGORY,
            }
        )

    def tag_chunk(self, text: str, document: SourceDocument | None = None) -> ChunkTags:
        """Build tags for one chunk, falling back to *document* values."""
        title = self.extract_title(text)
        category = self.extract_category(text)
        if document is not None:
            title = title or document.title
            category = category or document.category
        return ChunkTags(
            title=title,
            key_items=self.extract_key_items(text),
            category=category,
            kind=self.classify_kind(text),
        )

    # ------------------------------------------------------------------
    # Heuristics
    # ------------------------------------------------------------------

    @staticmethod
    def classify_kind(text: str) -> ChunkKind:
        if has_ingredient_marker(text):
            return ChunkKind.INGREDIENTS
        if has_step_marker(text):
            return ChunkKind.INSTRUCTIONS
        if has_tip_marker(text):
            return ChunkKind.TIPS
        if len(text.strip()) < _SHORT_CHUNK_CHARS:
            return ChunkKind.TITLE
        return ChunkKind.DESCRIPTION

    @staticmethod
    def extract_title(text: str) -> str | None:
        """First short, marker-free, non-list line among the first ten lines."""
        lines = [line.strip() for line in text.splitlines() if line.strip()]
        for line in lines[:_TITLE_SCAN_LINES]:
            candidate = line.lstrip("#").strip()
            if not candidate or len(candidate) >= _TITLE_MAX_CHARS:
                continue
            if has_section_marker(candidate) or has_tip_marker(candidate) or is_list_item(candidate):
                continue
            return candidate
        return None

    @staticmethod
    def extract_key_items(text: str) -> list[str]:
        """Ingredient lines following the first ingredient marker.

        Looks at up to ten lines after the marker, stopping at a procedure or
        tips marker, and keeps list items with their bullet / numeral prefix
        removed.  Items written inline after the marker ("原料：金酒、柠檬汁")
        are split on list punctuation.
        """
        lines = text.splitlines()
        for index, line in enumerate(lines):
            if not has_ingredient_marker(line):
                continue
            items = _inline_items(line)
            for following in lines[index + 1 : index + 1 + _INGREDIENT_SCAN_LINES]:
                if has_step_marker(following) or has_tip_marker(following):
                    break
                if is_list_item(following):
                    item = strip_list_prefix(following)
                    if item:
                        items.append(item)
            return items
        return []

    @staticmethod
    def extract_category(text: str) -> str | None:
        return detect_category(text)


def _inline_items(marker_line: str) -> list[str]:
    for colon in ("：", ":"):
        if colon in marker_line:
            tail = marker_line.split(colon, 1)[1]
            break
    else:
        return []
    for separator in _INLINE_ITEM_SEPARATORS:
        tail = tail.replace(separator, "\n")
    return [item.strip() for item in tail.splitlines() if item.strip()]
