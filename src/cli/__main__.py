# =============================================================================
# src/cli/__main__.py - Package Entry Point
# =============================================================================
#
# Running the package itself (`python -m src.cli`) runs the pairing CLI,
# the everyday operation.  Index management has its own module:
#     python -m src.cli.ingest status
# =============================================================================

"""Allow ``python -m src.cli`` execution."""

from src.cli.pair import main

main()
