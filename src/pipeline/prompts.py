"""Prompt templates for the two pairing stages.

Both prompts ask for JSON with camelCase keys matching
:mod:`src.pipeline.schemas`.  The models do not always comply, which is
why the stages pass the raw text through
:class:`~src.services.output_recovery.StructuredOutputRecovery`.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

DISH_SYSTEM_PROMPT = (
    "You are a professional chef and food consultant. You recommend dishes "
    "that can be cooked from the ingredients at hand, with accurate "
    "ingredient quantities and clear cooking steps."
)

BEVERAGE_SYSTEM_PROMPT = (
    "You are a professional bartender and food pairing consultant. You "
    "recommend drinks that suit specific dishes, with complete recipes and a "
    "clear explanation of why each pairing works."
)

_DISH_PROMPT = """\
Recommend 3-5 dishes based on the following ingredients.

Ingredients: {ingredients}
Cuisine: {cuisine}
{context}
Return a JSON array. Each element must have these fields:
{{
  "id": "unique identifier",
  "name": "dish name",
  "description": "short description",
  "cuisine": "cuisine the dish belongs to",
  "requiredIngredients": ["ingredient 1 with quantity", "ingredient 2 with quantity"],
  "cookingTime": minutes as a number,
  "difficulty": 1-5,
  "steps": ["step 1", "step 2"],
  "source": "where the recipe comes from (optional)",
  "tags": ["tag 1", "tag 2"]
}}

Requirements:
1. Use the provided ingredients as much as possible.
2. Difficulty scale: 1 = simple, 2 = easy, 3 = medium, 4 = hard, 5 = expert.
3. Cooking steps must be detailed and in order.
4. Return a valid JSON array only."""

_BEVERAGE_PROMPT = """\
Recommend 1-2 drinks for each of the following dishes.

Dishes:
{dishes}
{drink_ingredients}
{context}
Return a single JSON object with exactly these keys:
{{
  "beverages": [
    {{
      "id": "unique identifier",
      "name": "drink name",
      "description": "short description",
      "ingredients": ["ingredient 1 with quantity", "ingredient 2 with quantity"],
      "steps": ["step 1", "step 2"],
      "category": "drink category",
      "glassType": "glass to serve in",
      "technique": "mixing technique, e.g. shake, stir, build",
      "garnish": "garnish",
      "difficulty": 1-5,
      "estimatedTime": minutes as a number
    }}
  ],
  "pairingReasons": [
    {{
      "id": "unique identifier",
      "dishId": "id of the dish",
      "beverageId": "id of the drink",
      "reason": "detailed reason why the drink suits the dish",
      "pairingType": "relation, e.g. complement, contrast, balance",
      "score": 1-10
    }}
  ],
  "overallSuggestion": "overall pairing advice"
}}

Requirements:
1. Recommend at least one drink for every dish.
2. Reference dishes by the ids given above.
3. If drink ingredients were provided, use them where possible.
4. Return valid JSON only."""


def build_dish_prompt(
    ingredients: Sequence[str],
    cuisine: str | None,
    context: str = "",
) -> str:
    return _DISH_PROMPT.format(
        ingredients=", ".join(ingredients),
        cuisine=cuisine or "any; choose freely based on the ingredients",
        context=_context_block(context),
    )


def build_beverage_prompt(
    dishes: Sequence[dict[str, Any]],
    drink_ingredients: Sequence[str],
    context: str = "",
) -> str:
    dish_lines = "\n".join(
        f"{number}. [id: {dish.get('id', '')}] {dish.get('name', '')} "
        f"({dish.get('cuisine', '')}) - {dish.get('description', '')}"
        for number, dish in enumerate(dishes, start=1)
    )
    if drink_ingredients:
        drinks = f"Drink ingredients available: {', '.join(drink_ingredients)}"
    else:
        drinks = "No drink ingredients were provided; recommend freely."
    return _BEVERAGE_PROMPT.format(
        dishes=dish_lines,
        drink_ingredients=drinks,
        context=_context_block(context),
    )


def _context_block(context: str) -> str:
    if not context.strip():
        return ""
    return f"\nReference material from the recipe library:\n{context.strip()}\n"
