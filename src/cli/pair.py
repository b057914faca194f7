# =============================================================================
# src/cli/pair.py - CLI Pair Command (Run the Pairing Pipeline)
# =============================================================================
#
# Runs both pipeline stages from the command line:
#
#   Stage 1: Dish recommender  - 3-5 dishes built around the food ingredients
#   Stage 2: Beverage pairing  - drinks for those dishes, with reasons
#
# Typical usage:
#   python -m src.cli.pair --food chicken ginger --cuisine Sichuan
#   python -m src.cli.pair --food whiskey lemon --drink bourbon --json
#
# Output modes:
#   - Text (default): formatted report of dishes, drinks and pairing reasons
#   - JSON (--json): the camelCase recommendation document
#
# JSON mode implies --quiet so stdout carries only the result.  Progress
# messages always go to stderr.
#
# Exit codes: 0 on success (including a dishes-only partial result),
# 1 on invalid input or when no dishes could be produced.
# =============================================================================

"""Standalone CLI for running the food pairing pipeline.

Usage::

    python -m src.cli.pair --food chicken ginger --cuisine Sichuan
    python -m src.cli.pair --food salmon --drink gin tonic --json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import time
from pathlib import Path

from src.models.pairing import PairingRecommendation
from src.utils.errors import InputValidationError, PipelineError


def _format_text_output(result: PairingRecommendation) -> str:
    """Format a recommendation as a human-readable report."""
    lines: list[str] = []
    sep = "=" * 60

    lines.append(sep)
    lines.append("  Food & Drink Pairing")
    lines.append(sep)
    lines.append("")

    lines.append("DISHES")
    lines.append("-" * 40)
    for number, dish in enumerate(result.dishes, start=1):
        lines.append(f"  {number}. {dish.name}  [{dish.cuisine}]")
        lines.append(
            f"     {dish.cooking_time} min  |  difficulty {dish.difficulty}/5"
        )
        if dish.description:
            lines.append(f"     {dish.description}")
        if dish.required_ingredients:
            lines.append(f"     Ingredients: {', '.join(dish.required_ingredients)}")
        for step_no, step in enumerate(dish.steps, start=1):
            lines.append(f"       {step_no}) {step}")
        lines.append("")

    if result.beverages:
        lines.append("DRINKS")
        lines.append("-" * 40)
        for number, drink in enumerate(result.beverages, start=1):
            detail = ", ".join(p for p in (drink.category, drink.technique, drink.glass_type) if p)
            lines.append(f"  {number}. {drink.name}" + (f"  ({detail})" if detail else ""))
            if drink.description:
                lines.append(f"     {drink.description}")
            if drink.ingredients:
                lines.append(f"     Ingredients: {', '.join(drink.ingredients)}")
            if drink.garnish:
                lines.append(f"     Garnish: {drink.garnish}")
            lines.append("")

    if result.pairing_reasons:
        dish_names = {d.id: d.name for d in result.dishes}
        drink_names = {b.id: b.name for b in result.beverages}
        lines.append("PAIRINGS")
        lines.append("-" * 40)
        for reason in sorted(result.pairing_reasons, key=lambda r: r.score, reverse=True):
            dish = dish_names.get(reason.dish_id, reason.dish_id)
            drink = drink_names.get(reason.beverage_id, reason.beverage_id)
            kind = f" [{reason.pairing_type}]" if reason.pairing_type else ""
            lines.append(f"  {dish} + {drink}  ({reason.score}/10){kind}")
            if reason.reason:
                lines.append(f"     {reason.reason}")
        lines.append("")

    if result.overall_suggestion:
        lines.append("SUGGESTION")
        lines.append("-" * 40)
        lines.append(f"  {result.overall_suggestion}")
        lines.append("")

    if result.warnings:
        lines.append(f"Warnings ({len(result.warnings)}):")
        for warning in result.warnings:
            lines.append(f"  - {warning}")
        lines.append("")

    lines.append(sep)
    return "\n".join(lines)


def _format_json_output(result: PairingRecommendation) -> str:
    return json.dumps(result.to_json_dict(), indent=2, ensure_ascii=False, default=str)


def _suppress_logs() -> None:
    """Route structured logs to stderr at WARNING+ so stdout stays clean."""
    from src.utils.logging import configure_logging

    configure_logging(log_level="WARNING", json_output=False)


# ---------------------------------------------------------------------------
# Pipeline runner
# ---------------------------------------------------------------------------


async def _run(args: argparse.Namespace) -> int:
    """Build the components, run one request and print the result.

    Returns 0 on success (full or dishes-only), 1 otherwise.
    """
    # Deferred import: building the components constructs every provider.
    from src.config.settings import Settings
    from src.main import build_components, setup_logging

    app_settings = Settings()
    if not (args.quiet or args.json_output):
        setup_logging(app_settings)
    components = build_components(app_settings)
    pipeline = components["pipeline"]

    print(f"Pairing: {', '.join(args.food)}", file=sys.stderr)
    start = time.monotonic()
    try:
        state = await pipeline.run(args.food, args.cuisine, args.drink)
    except InputValidationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(f"Done in {time.monotonic() - start:.1f}s", file=sys.stderr)

    try:
        result = pipeline.to_recommendation(state)
    except PipelineError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    text = _format_json_output(result) if args.json_output else _format_text_output(result)
    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        print(f"Results written to: {args.output}", file=sys.stderr)
    else:
        print(text)
    return 0


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.pair",
        description="Recommend dishes for your ingredients and drinks to go with them.",
    )
    parser.add_argument(
        "--food",
        nargs="+",
        required=True,
        help="Food ingredients the dishes should be built around.",
    )
    parser.add_argument(
        "--cuisine",
        default=None,
        help="Optional cuisine or style, e.g. 'Sichuan' or 'Italian'.",
    )
    parser.add_argument(
        "--drink",
        nargs="*",
        default=[],
        help="Drink ingredients you have on hand.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output the result as JSON instead of formatted text.",
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Write results to a file instead of stdout.",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress log output (implied by --json).",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the pair tool; exits with the run's status code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.quiet or args.json_output:
        _suppress_logs()

    exit_code = asyncio.run(_run(args))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
