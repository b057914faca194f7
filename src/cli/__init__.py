"""Command-line entry points.

``python -m src.cli.pair``
    Dish ideas and drink pairings for a list of ingredients.
``python -m src.cli.ingest``
    Build, search and inspect the recipe index.

Both defer importing ``src.main`` until after argument parsing so ``--help``
does not load the provider SDKs.
"""
