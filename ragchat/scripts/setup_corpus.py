"""
RagChat - Corpus Ingestion Check
=================================
CLI entry point that builds the in-memory corpus exactly as the server
does at startup, prints an execution summary, and optionally runs a
retrieval query against it.

    1. Validate that ``GOOGLE_API_KEY`` is set (fail-fast).
    2. Initialise the embedder.
    3. Ingest the seed corpus (unless ``--no-seed``) and the directory.
    4. Print loaded / skipped entries with timing.
    5. ``--query`` → print the chunks the chatbot would inject.

Usage:
    python -m ragchat.scripts.setup_corpus
    python -m ragchat.scripts.setup_corpus --source ./docs --no-seed
    python -m ragchat.scripts.setup_corpus --query "What are your skills?"
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
from pathlib import Path


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="setup_corpus", description="RagChat — Build the in-memory corpus and verify retrieval.")
    parser.add_argument("--source", type=Path, default=None, help="Corpus directory (defaults to settings.DATA_RAW_DIR).")
    parser.add_argument("--no-seed", action="store_true", default=False, help="Skip the built-in seed corpus.")
    parser.add_argument("--query", default=None, help="Run a similarity search for this text after ingestion.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    t_start = time.perf_counter()

    # ── 0. Load settings + .env ────────────────────────────────────────
    try:
        from ragchat.config.settings import settings
    except Exception as exc:
        print("\n[FATAL] Configuration error — check your .env file:\n")
        print(f"  {exc}")
        print()
        return 1

    from ragchat.src.utils.logger import get_logger
    logger = get_logger(__name__)

    source = args.source or settings.DATA_RAW_DIR
    _print_header(settings, source, not args.no_seed)

    # ── 1. Initialise embedder ─────────────────────────────────────────
    t_embedder = time.perf_counter()
    try:
        from ragchat.src.providers.gemini import build_embedder

        embedder = build_embedder()
    except Exception:
        logger.exception("Failed to initialise embedding model.")
        return 1
    embedder_ms = (time.perf_counter() - t_embedder) * 1000

    # ── 2. Ingest ──────────────────────────────────────────────────────
    from ragchat.config.seed_corpus import SEED_CHUNKS
    from ragchat.src.core.ingestor import IngestionPipeline, IngestionReport
    from ragchat.src.database.corpus_store import CorpusStore

    store = CorpusStore()
    pipeline = IngestionPipeline(store, embedder, source_dir=source)
    report = IngestionReport()
    if not args.no_seed:
        report.merge(pipeline.ingest_records(SEED_CHUNKS))
    report.merge(pipeline.run())

    _print_footer(report, store, embedder_ms, time.perf_counter() - t_start)

    # ── 3. Optional retrieval check ────────────────────────────────────
    if args.query:
        from ragchat.src.core.retriever import SimilaritySearch

        chunks = asyncio.run(SimilaritySearch(store, embedder).find_relevant(args.query))
        print(f"Query: {args.query}")
        print("=" * 60)
        if not chunks:
            print("  (no chunk above the similarity threshold)")
        for i, chunk in enumerate(chunks, 1):
            preview = chunk.text.replace("\n", " ")[:120]
            print(f"  [{i}] {chunk.id}: {preview}")
        print()

    return 0


# ── Pretty-print helpers ──────────────────────────────────────────────

def _print_header(settings: object, source: Path, seed: bool) -> None:
    api_key_val = settings.GOOGLE_API_KEY.get_secret_value()  # type: ignore[attr-defined]
    masked = f"****{api_key_val[-4:]}" if len(api_key_val) > 4 else "****"

    print()
    print("=" * 60)
    print("  RAGCHAT — Corpus Ingestion")
    print("=" * 60)
    print(f"  Environment  : {settings.ENV}")                   # type: ignore[attr-defined]
    print(f"  Embedding    : {settings.EMBEDDING_MODEL}")       # type: ignore[attr-defined]
    print(f"  Source dir   : {source}")
    print(f"  Seed corpus  : {'yes' if seed else 'no'}")
    print(f"  Threshold    : {settings.SIMILARITY_THRESHOLD} (top {settings.SEARCH_RESULTS_LIMIT})")  # type: ignore[attr-defined]
    print(f"  Workers      : {settings.MAX_WORKERS}")           # type: ignore[attr-defined]
    print(f"  API Key      : {masked}")
    print("=" * 60)
    print()


def _print_footer(report: object, store: object, embedder_ms: float, elapsed: float) -> None:
    summary = report.summary()  # type: ignore[attr-defined]

    print()
    print("=" * 60)
    print("  EXECUTION SUMMARY")
    print("-" * 60)
    print(f"  Entries scanned      : {summary['total_entries']}")
    print(f"  Chunks embedded      : {summary['chunks_loaded']}")
    print(f"  Entries skipped      : {summary['entries_skipped']}")
    for source, reason in report.skipped:  # type: ignore[attr-defined]
        print(f"    - {source}: {reason}")
    print(f"  Corpus size          : {len(store)} ({store.embedded_count()} searchable, D={store.dimension})")  # type: ignore[arg-type, attr-defined]
    print("-" * 60)
    print(f"  Embedder init        : {embedder_ms:>8.1f}ms")
    print(f"  Ingestion            : {summary['elapsed_seconds']:>8.2f}s")
    print(f"  Total elapsed        : {elapsed:>8.2f}s")
    print("=" * 60)
    print()


# ── Entry point ────────────────────────────────────────────────────────

if __name__ == "__main__":
    sys.exit(main())
