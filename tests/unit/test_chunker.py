"""Unit tests for the RecipeChunker - heading-aware bounded chunking with overlap."""

from __future__ import annotations

import pytest

from src.models.rag import ChunkKind
from src.services.ingestion.chunker import RecipeChunker

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_COOKBOOK = (
    "Negroni\n"
    "A bittersweet Italian aperitivo.\n"
    "Ingredients:\n"
    "- 30ml gin\n"
    "- 30ml Campari\n"
    "- 30ml sweet vermouth\n"
    "Method:\n"
    "1. Stir everything over ice for thirty seconds.\n"
    "2. Strain over a large cube and garnish with orange peel.\n"
    "\n"
    "Daiquiri\n"
    "A classic Cuban sour with rum, lime and sugar.\n"
    "Ingredients:\n"
    "- 60ml white rum\n"
    "- 25ml lime juice\n"
    "- 15ml sugar syrup\n"
    "Method:\n"
    "1. Shake hard with ice.\n"
    "2. Double strain into a chilled coupe.\n"
)

_LONG_PROSE = " ".join(
    f"Sentence number {i} talks about balancing sweet and sour flavours in a drink."
    for i in range(60)
)

_CJK = "经典鸡尾酒\n" + "。".join(f"第{i}步把冰块放入摇酒壶中并用力摇匀" for i in range(80)) + "。"


def _reassemble(chunks) -> str:
    return "".join(chunk.content[chunk.overlap:] for chunk in chunks)


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestReassembly:
    """Dropping each chunk's overlap prefix and joining gives back the text."""

    @pytest.mark.parametrize("text", [_COOKBOOK, _LONG_PROSE, _CJK, "x" * 2500])
    @pytest.mark.parametrize("max_size,overlap", [(800, 150), (120, 30), (50, 0)])
    def test_round_trip(self, text: str, max_size: int, overlap: int) -> None:
        chunks = RecipeChunker(max_size=max_size, overlap=overlap).split(text, "src")

        assert _reassemble(chunks) == text

    @pytest.mark.parametrize("max_size,overlap", [(800, 150), (120, 30), (64, 16)])
    def test_size_bound(self, max_size: int, overlap: int) -> None:
        chunker = RecipeChunker(max_size=max_size, overlap=overlap)
        for text in (_COOKBOOK, _LONG_PROSE, _CJK):
            for chunk in chunker.split(text, "src"):
                assert len(chunk.content) <= max_size + overlap
                assert len(chunk.body) <= max_size
                assert chunk.overlap <= overlap


class TestStructure:
    def test_empty_or_blank_text_gives_no_chunks(self) -> None:
        chunker = RecipeChunker()
        assert chunker.split("", "src") == []
        assert chunker.split("  \n\n  ", "src") == []

    def test_short_text_is_single_chunk(self) -> None:
        chunks = RecipeChunker().split("Gin and tonic with a wedge of lime.", "src")

        assert len(chunks) == 1
        assert chunks[0].overlap == 0
        assert chunks[0].id == "src:0"

    def test_ids_and_positions_are_sequential(self) -> None:
        chunks = RecipeChunker(max_size=100, overlap=20).split(_LONG_PROSE, "book")

        assert [c.position for c in chunks] == list(range(len(chunks)))
        assert [c.id for c in chunks] == [f"book:{i}" for i in range(len(chunks))]
        assert all(c.source_id == "book" for c in chunks)

    def test_each_recipe_starts_its_own_section(self) -> None:
        chunks = RecipeChunker(max_size=800, overlap=150).split(_COOKBOOK, "book")

        assert len(chunks) == 2
        assert chunks[0].content.startswith("Negroni")
        assert chunks[1].content.startswith("Daiquiri")
        # No overlap is carried across a section boundary.
        assert chunks[1].overlap == 0

    def test_title_and_subtitle_stay_together(self) -> None:
        text = "Old Fashioned\nThe original cocktail\nStir bourbon, sugar and bitters over ice."

        chunks = RecipeChunker().split(text, "src")

        assert len(chunks) == 1

    def test_overlap_prefix_repeats_previous_tail(self) -> None:
        chunks = RecipeChunker(max_size=120, overlap=40).split(_LONG_PROSE, "src")

        assert len(chunks) > 2
        for previous, current in zip(chunks, chunks[1:]):
            if current.overlap:
                assert previous.content.endswith(current.content[: current.overlap])

    def test_overlap_starts_at_word_boundary(self) -> None:
        chunks = RecipeChunker(max_size=120, overlap=40).split(_LONG_PROSE, "src")

        for chunk in chunks[1:]:
            if chunk.overlap:
                assert chunk.start_offset - chunk.overlap == 0 or _LONG_PROSE[
                    chunk.start_offset - chunk.overlap - 1
                ].isspace()

    def test_larger_max_size_gives_fewer_chunks(self) -> None:
        small = RecipeChunker(max_size=100, overlap=10).split(_LONG_PROSE, "src")
        large = RecipeChunker(max_size=1000, overlap=10).split(_LONG_PROSE, "src")

        assert len(small) > len(large)

    def test_invalid_configuration(self) -> None:
        with pytest.raises(ValueError):
            RecipeChunker(max_size=0)
        with pytest.raises(ValueError):
            RecipeChunker(overlap=-1)


class TestTagging:
    def test_chunks_are_tagged(self, sample_recipe_text: str) -> None:
        chunks = RecipeChunker().split(sample_recipe_text, "sour")

        tags = chunks[0].tags
        assert tags.title == "Whiskey Sour"
        assert tags.kind == ChunkKind.INGREDIENTS
        assert "45ml bourbon" in tags.key_items
        assert tags.category == "classic"
