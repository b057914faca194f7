"""Unit tests for RecipeMetadataExtractor and the recipe vocabulary tables."""

from __future__ import annotations

import pytest

from src.config.domain_knowledge import (
    detect_category,
    has_ingredient_marker,
    has_step_marker,
    is_list_item,
    strip_list_prefix,
)
from src.models.rag import ChunkKind, SourceDocument
from src.services.ingestion.metadata_extractor import RecipeMetadataExtractor

_CHINESE_RECIPE = (
    "莫吉托\n"
    "一款清爽的古巴鸡尾酒。\n"
    "原料：白朗姆酒、青柠、薄荷叶\n"
    "制作步骤：\n"
    "1. 将薄荷叶和青柠捣碎\n"
    "2. 加入朗姆酒和冰块\n"
)


@pytest.fixture
def extractor() -> RecipeMetadataExtractor:
    return RecipeMetadataExtractor()


class TestVocabulary:
    @pytest.mark.parametrize(
        "line,expected",
        [
            ("- 45ml gin", True),
            ("• lemon", True),
            ("1. Shake", True),
            ("2、摇匀", True),
            ("(3) garnish", True),
            ("1.5oz rye whiskey", False),
            ("Negroni", False),
        ],
    )
    def test_is_list_item(self, line: str, expected: bool) -> None:
        assert is_list_item(line) is expected

    @pytest.mark.parametrize(
        "line,expected",
        [
            ("- 45ml bourbon", "45ml bourbon"),
            ("  • 2 dashes bitters ", "2 dashes bitters"),
            ("3. Strain into a coupe", "Strain into a coupe"),
            ("2、加入冰块", "加入冰块"),
        ],
    )
    def test_strip_list_prefix_keeps_quantities(self, line: str, expected: str) -> None:
        assert strip_list_prefix(line) == expected

    def test_markers_are_bilingual_and_case_insensitive(self) -> None:
        assert has_ingredient_marker("INGREDIENTS")
        assert has_ingredient_marker("原料：金酒")
        assert has_step_marker("Method:")
        assert has_step_marker("制作步骤")
        assert not has_step_marker("Negroni")

    def test_category_order_and_default(self) -> None:
        assert detect_category("A classic sour") == "classic"
        assert detect_category("热带风情") == "tropical"
        assert detect_category("Tonic water and gin") is None


class TestTitle:
    def test_first_short_plain_line(self, extractor, sample_recipe_text) -> None:
        assert extractor.extract_title(sample_recipe_text) == "Whiskey Sour"

    def test_markdown_heading_marks_are_removed(self, extractor) -> None:
        assert extractor.extract_title("# Paloma\nGrapefruit and tequila.") == "Paloma"

    def test_marker_and_list_lines_are_skipped(self, extractor) -> None:
        text = "Ingredients:\n- 50ml rum\nCuba Libre\n"
        assert extractor.extract_title(text) == "Cuba Libre"

    def test_no_title_when_every_line_is_long(self, extractor) -> None:
        text = "This line is definitely longer than fifty characters in total.\n" * 3
        assert extractor.extract_title(text) is None


class TestKeyItems:
    def test_list_lines_after_marker(self, extractor, sample_recipe_text) -> None:
        assert extractor.extract_key_items(sample_recipe_text) == [
            "45ml bourbon",
            "25ml fresh lemon juice",
            "15ml sugar syrup",
            "1 egg white",
        ]

    def test_inline_items_after_colon(self, extractor) -> None:
        assert extractor.extract_key_items(_CHINESE_RECIPE) == ["白朗姆酒", "青柠", "薄荷叶"]

    def test_no_marker_gives_empty_list(self, extractor) -> None:
        assert extractor.extract_key_items("Shake and strain.") == []

    def test_scan_stops_after_ten_lines(self, extractor) -> None:
        lines = ["Ingredients:"] + [f"- item {i}" for i in range(15)]
        assert len(extractor.extract_key_items("\n".join(lines))) == 10


class TestClassifyKind:
    @pytest.mark.parametrize(
        "text,kind",
        [
            ("Ingredients: gin, vermouth", ChunkKind.INGREDIENTS),
            ("Method: stir and strain", ChunkKind.INSTRUCTIONS),
            ("Tips: chill the glass first", ChunkKind.TIPS),
            ("Martini", ChunkKind.TITLE),
            ("A long description of the history of the drink. " * 4, ChunkKind.DESCRIPTION),
        ],
    )
    def test_kind(self, text: str, kind: ChunkKind) -> None:
        assert RecipeMetadataExtractor.classify_kind(text) == kind


class TestEnhance:
    def test_fills_document_fields(self, extractor, sample_recipe_text) -> None:
        doc = SourceDocument(
            source_id="sour", file_name="whiskey_sour.txt", path="/x/whiskey_sour.txt",
            text=sample_recipe_text,
        )

        enhanced = extractor.enhance(doc)

        assert enhanced.title == "Whiskey Sour"
        assert enhanced.category == "classic"
        assert "45ml bourbon" in enhanced.key_items
        assert doc.title is None  # original untouched

    def test_fallbacks(self, extractor) -> None:
        doc = SourceDocument(
            source_id="x", file_name="house_punch.md", path="/x/house_punch.md",
            text="This line is definitely longer than fifty characters in total, no title.",
        )

        enhanced = extractor.enhance(doc)

        assert enhanced.title == "house_punch"
        assert enhanced.category == "other"

    def test_chunk_tags_fall_back_to_document(self, extractor) -> None:
        doc = SourceDocument(
            source_id="x", file_name="a.txt", path="/a.txt", text="", title="Mojito", category="refreshing",
        )

        tags = extractor.tag_chunk(
            "Muddle the mint gently so the leaves release their oils without turning bitter.",
            doc,
        )

        assert tags.title == "Mojito"
        # Chunk text mentions "bitter", which wins over the document category.
        assert tags.category == "bitter"
