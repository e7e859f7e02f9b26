# =============================================================================
# src/cli/ingest.py -- CLI Ingest Command (index one course document)
# =============================================================================
#
# Standalone CLI that runs the same pipeline as POST /api/v1/documents on a
# local file, then optionally answers one retrieval query against it.  Handy
# for checking how a deck or PDF chunks before wiring it into the app.
#
# The pipeline for the document:
#   1. Extract per-page text (PyMuPDF for PDF, OOXML text runs for PPTX)
#   2. Chunk each page into 1000-character windows with 200 characters overlap
#   3. Trim to the 20,000-character budget
#   4. Embed in batches of 16 (OpenAI, Gemini or Nomic/Ollama) with retry
#   5. Upsert into the in-memory vector store
#
# Without an embedding key the document is still chunked and the query is
# answered with keyword (Jaccard) similarity.
#
# Usage examples:
#   python -m src.cli.ingest lecture01.pdf
#   python -m src.cli.ingest week3.pptx --query "gradient descent" --top-k 3
#   python -m src.cli.ingest notes.pdf --provider none --query "entropy"
# =============================================================================

"""Standalone CLI for indexing a course document and querying it.

Usage::

    python -m src.cli.ingest lecture01.pdf --query "what is backpropagation"

No extra dependencies beyond the core project requirements.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from src.config.settings import Settings

_PREVIEW_CHARS = 160


def _build_document_service(app_settings: Settings, provider_name: str | None):  # noqa: ANN202
    """Build a document service the same way the web app does.

    Imports are deferred so ``--help`` stays fast.
    """
    from src.providers.embedding.factory import build_embedding_provider
    from src.providers.vector_store.memory_vector_store import InMemoryVectorStore
    from src.services.document_service import DocumentService

    embedding_provider = build_embedding_provider(app_settings, name=provider_name)
    vector_store = (
        InMemoryVectorStore(strict_dimensions=app_settings.vector_store_strict_dimensions)
        if embedding_provider is not None
        else None
    )
    service = DocumentService.from_settings(
        app_settings,
        embedding_provider=embedding_provider,
        vector_store=vector_store,
    )
    if embedding_provider is None:
        status_msg = "keyword search only (no embedding provider configured)"
    else:
        status_msg = f"embeddings={embedding_provider.get_provider_name()}, vector_store=in_memory"
    return service, status_msg


async def _handle_ingest(args: argparse.Namespace, service) -> int:  # noqa: ANN001
    """Index the file and, when asked, print the top chunks for a query."""
    from src.utils.errors import CourseRAGError, IndexingError, user_message

    path = Path(args.file)
    if not path.is_file():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1

    print(f"Indexing: {path.name}")
    try:
        result = await service.upload_document_and_index(path.read_bytes(), path.name)
    except IndexingError as exc:
        print(f"Warning: {user_message(exc)}", file=sys.stderr)
        print(f"  Chunks indexed before failure: {exc.chunks_indexed}", file=sys.stderr)
        result = None
    except CourseRAGError as exc:
        print(f"Error: {user_message(exc)}", file=sys.stderr)
        return 1

    if result is not None:
        print("\nIndexing complete:")
        print(f"  Pages with text: {result.pages_extracted}")
        print(f"  Chunks created:  {result.chunks_created}")
        print(f"  Chunks dropped:  {result.chunks_dropped}")
        print(f"  Total chars:     {result.total_chars}")
        print(f"  Vector indexed:  {result.vector_indexed} ({result.chunks_indexed} vectors)")
        print(f"  Time:            {result.ingestion_time:.2f}s")

    if not args.query:
        return 0

    chunks = await service.retrieve_relevant_chunks(args.query, top_k=args.top_k)
    print(f"\nTop {len(chunks)} chunk(s) for: {args.query!r}")
    for rank, chunk in enumerate(chunks, start=1):
        preview = chunk.content[:_PREVIEW_CHARS]
        if len(chunk.content) > _PREVIEW_CHARS:
            preview += "..."
        print(f"\n  [{rank}] page {chunk.page_number}, chunk {chunk.chunk_index}")
        print(f"      {preview}")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ingestion CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.ingest",
        description="Index a PDF or PPTX course document and optionally query it.",
    )
    parser.add_argument("file", help="Path to the .pdf or .pptx file")
    parser.add_argument("--query", "-q", default=None, help="Topic or question to retrieve chunks for")
    parser.add_argument("--top-k", type=int, default=5, dest="top_k", help="Number of chunks to show (default: 5)")
    parser.add_argument(
        "--provider",
        default=None,
        help="Embedding provider: openai, gemini, nomic, auto or none (default: EMBEDDING_PROVIDER)",
    )
    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ingestion tool."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.top_k < 1:
        parser.error("--top-k must be at least 1")

    from src.utils.errors import ConfigurationError
    from src.utils.logging import configure_logging

    # Load all configuration from environment variables and .env file.
    app_settings = Settings()
    configure_logging(log_level="WARNING")

    try:
        service, status_msg = _build_document_service(app_settings, args.provider)
    except ConfigurationError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        sys.exit(1)

    print(f"Providers: {status_msg}")
    print()

    exit_code = asyncio.run(_handle_ingest(args, service))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
