# =============================================================================
# src/cli/__init__.py -- CLI Module Overview
# =============================================================================
#
# Command-line tools for the course-document RAG index, run via
# `python -m src.cli.<module>`.
#
#   INGESTION (ingest.py)
#      Indexes one local PDF or PPTX through the same pipeline the API uses
#      and prints the top chunks for an optional query.
#
# Architecture Notes:
#   - argparse for argument parsing (not Click/Typer).
#   - Heavy imports (embedding SDKs, services) are deferred inside functions
#     to keep `--help` fast.
# =============================================================================

"""CLI tools for the course-document RAG index.

- ``python -m src.cli.ingest`` -- index a document and query it.
"""
