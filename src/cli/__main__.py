# =============================================================================
# src/cli/__main__.py -- Package Entry Point
# =============================================================================
#
# Enables `python -m src.cli FILE ...`, delegating to the ingestion CLI.
# =============================================================================

"""Allow ``python -m src.cli`` execution."""

from src.cli.ingest import main

main()
