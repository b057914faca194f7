"""Static recipe vocabulary used by chunk tagging and document enhancement.

# ─── PURPOSE ──────────────────────────────────────────────────────────
#
# Recipe documents (cocktail books, cookbooks) are mostly Chinese in the
# source corpus, with some English material.  The tables here let the
# chunker and metadata extractor recognise, in either language:
#
#   - section markers ("原料" / "ingredients", "步骤" / "method", ...)
#   - list item prefixes ("- ", "• ", "1. ")
#   - drink style categories ("经典" / "classic", "清爽" / "refreshing")
#
# All functions are pure.  Tables are built once at import time.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import re


# ═════════════════════════════════════════════════════════════════════════
# 1. SECTION MARKERS
# ═════════════════════════════════════════════════════════════════════════

INGREDIENT_MARKERS: tuple[str, ...] = (
    "原料", "材料", "配料", "ingredients", "ingredient",
)

STEP_MARKERS: tuple[str, ...] = (
    "制作", "步骤", "做法", "instructions", "method", "directions", "steps",
)

TIP_MARKERS: tuple[str, ...] = (
    "技巧", "注意", "提示", "tips", "tip:", "note:",
)


def has_ingredient_marker(text: str) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in INGREDIENT_MARKERS)


def has_step_marker(text: str) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in STEP_MARKERS)


def has_tip_marker(text: str) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in TIP_MARKERS)


def has_section_marker(text: str) -> bool:
    """True when *text* mentions an ingredient or procedure marker."""
    return has_ingredient_marker(text) or has_step_marker(text)


# ═════════════════════════════════════════════════════════════════════════
# 2. LIST ITEMS
# ═════════════════════════════════════════════════════════════════════════
# "- 45ml gin", "• lemon", "1. shake", "2、stir", "(3) garnish"

LIST_ITEM_RE = re.compile(r"^\s*(?:[-•*·]\s*|\(?\d+[.)、](?!\d)\s*)")


def is_list_item(line: str) -> bool:
    return bool(LIST_ITEM_RE.match(line))


def strip_list_prefix(line: str) -> str:
    """Remove bullet / numeral prefixes and surrounding whitespace."""
    return LIST_ITEM_RE.sub("", line, count=1).strip()


# ═════════════════════════════════════════════════════════════════════════
# 3. DRINK CATEGORIES
# ═════════════════════════════════════════════════════════════════════════
# Ordered: the first category whose keyword appears in the text wins.

CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "classic": ("经典", "classic"),
    "modern": ("现代", "modern", "contemporary"),
    "tropical": ("热带", "tropical", "tiki"),
    "spirit-forward": ("烈酒", "spirit-forward", "spirituous"),
    "refreshing": ("清爽", "refreshing"),
    "sweet": ("甜味", "sweet"),
    "sour": ("酸味", "sour"),
    "bitter": ("苦味", "bitter"),
}

DEFAULT_CATEGORY = "other"


def detect_category(text: str) -> str | None:
    """Return the first matching category name, or None."""
    lowered = text.lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            return category
    return None
