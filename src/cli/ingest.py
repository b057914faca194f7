# =============================================================================
# src/cli/ingest.py - recipe index maintenance
# =============================================================================
#
# The vector index is in-memory, so each invocation ingests DOCUMENTS_DIR
# (PDF, .txt and .md files, non-recursive) before doing anything with it.
# `query` relies on the lazy build in RetrievalService; `run` and
# `status --build` trigger it explicitly.
#
#   python -m src.cli.ingest run
#   python -m src.cli.ingest query "bourbon sour" --top-k 3
#   python -m src.cli.ingest status --build
# =============================================================================

"""Build, search and inspect the recipe index from the command line."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from src.models.rag import IngestionResult, RetrievedChunk
from src.utils.errors import IngestionError

_SNIPPET_CHARS = 200


def _print_ingestion(result: IngestionResult) -> None:
    rows = (
        ("Documents", result.document_count),
        ("Chunks", result.chunk_count),
        ("Embedding", result.embedding_provider or "-"),
        ("Time", f"{result.elapsed_seconds:.2f}s"),
    )
    print("\nIngestion complete:")
    for label, value in rows:
        print(f"  {label + ':':<11} {value}")


def _print_hit(number: int, hit: RetrievedChunk) -> None:
    chunk = hit.chunk
    heading = chunk.tags.title or chunk.source_id
    print(f"[{number}] score={hit.score:.4f}  {heading}")
    print(f"    kind={chunk.tags.kind.value}  category={chunk.tags.category or '-'}  id={chunk.id}")
    print(f"    {' '.join(chunk.content.split())[:_SNIPPET_CHARS]}")


async def _handle_run(args: argparse.Namespace, components: dict) -> int:  # noqa: ARG001
    print(f"Ingesting directory: {components['settings'].documents_dir}")
    try:
        result = await components["retrieval"].run_ingestion()
    except IngestionError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    _print_ingestion(result)
    return 0


async def _handle_query(args: argparse.Namespace, components: dict) -> int:
    try:
        hits = await components["retrieval"].query(args.text, args.top_k)
    except IngestionError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if not hits:
        print("No matching chunks.")
    for number, hit in enumerate(hits, start=1):
        _print_hit(number, hit)
    return 0


async def _handle_status(args: argparse.Namespace, components: dict) -> int:
    """Print status JSON; with ``--build`` a failed ingestion is reported but not fatal."""
    retrieval = components["retrieval"]
    if args.build:
        try:
            await retrieval.run_ingestion()
        except IngestionError as exc:
            print(f"Error: {exc}", file=sys.stderr)
    print(json.dumps(retrieval.get_status(), indent=2, default=str))
    return 0


_HANDLERS = {
    "run": _handle_run,
    "query": _handle_query,
    "status": _handle_status,
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.ingest",
        description="Build and query the recipe vector index.",
    )
    commands = parser.add_subparsers(dest="command")

    commands.add_parser("run", help="ingest the documents directory")

    query = commands.add_parser("query", help="similarity search over the index")
    query.add_argument("text", help="query text, e.g. 'whiskey lemon'")
    query.add_argument("--top-k", type=int, default=5, dest="top_k", help="chunks to return (default: 5)")

    status = commands.add_parser("status", help="show ingestion and index status")
    status.add_argument("--build", action="store_true", help="ingest first so the counts are populated")

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        sys.exit(1)

    from src.config.settings import Settings
    from src.main import build_components, setup_logging

    app_settings = Settings()
    setup_logging(app_settings)
    components = build_components(app_settings)
    sys.exit(asyncio.run(_HANDLERS[args.command](args, components)))


if __name__ == "__main__":
    main()
