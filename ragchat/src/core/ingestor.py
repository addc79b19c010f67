"""
RagChat - IngestionPipeline
============================
One-shot batch pipeline that reads source documents, extracts their
text, embeds each document as a single chunk, and appends it to the
``CorpusStore``.

Key design decisions:
    • **Dependency Injection** – receives ``CorpusStore`` + embedder.
    • **Format dispatch** – markdown / plain text read verbatim,
      JSON pretty-printed (raw-text fallback on parse errors), PDF text
      extracted with ``pypdf``; anything else is skipped silently.
    • **Tagged outcomes** – every entry yields an ``IngestOutcome``
      (loaded / skipped + reason).  Nothing is swallowed ad hoc, the
      ``IngestionReport`` is an auditable list of what was skipped.
    • **Concurrency** – extraction + embedding run in a
      ``ThreadPoolExecutor`` (Gemini calls are I/O-bound), but chunks
      are appended in sorted filename order so corpus order, and with
      it search tie-breaking, is deterministic.
    • **Never fatal** – an unreadable directory or an unexpected error
      is logged and leaves a partial (possibly empty) corpus.

Usage:
    from ragchat.src.core.ingestor import IngestionPipeline
    pipeline = IngestionPipeline(store, embedder)
    report   = pipeline.run()
"""

from __future__ import annotations

import json
import time
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
from pypdf import PdfReader

from ragchat.config.settings import settings
from ragchat.src.database.corpus_store import Chunk, CorpusStore
from ragchat.src.providers.gemini import Embedder
from ragchat.src.utils.logger import get_logger
from ragchat.src.utils.text_utils import normalize_text, pretty_json, to_vector

logger = get_logger(__name__)

_TEXT_EXTENSIONS = {".md", ".markdown", ".txt"}
_JSON_EXTENSIONS = {".json"}
_PDF_EXTENSIONS = {".pdf"}

# Skip reasons recorded in the report
SKIP_UNSUPPORTED = "unsupported file type"
SKIP_UNREADABLE = "unreadable file"
SKIP_PDF_EXTRACTION = "pdf extraction failed"
SKIP_EMPTY = "empty content"
SKIP_EMBEDDING = "embedding failed"
SKIP_DUPLICATE = "duplicate id"


# ══════════════════════════════════════════════════════════════════════
#  OUTCOMES
# ══════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class IngestOutcome:
    """Result of ingesting one source entry: either a chunk or a skip reason."""

    source: str
    chunk: Chunk | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.chunk is not None and self.chunk.is_embedded


@dataclass
class IngestionReport:
    """Auditable summary of one ingestion run."""

    loaded: list[str] = field(default_factory=list)
    skipped: list[tuple[str, str]] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    def record(self, outcome: IngestOutcome) -> None:
        if outcome.ok:
            self.loaded.append(outcome.source)
        else:
            self.skipped.append((outcome.source, outcome.reason or "unknown"))

    def merge(self, other: IngestionReport) -> None:
        self.loaded.extend(other.loaded)
        self.skipped.extend(other.skipped)
        self.elapsed_seconds += other.elapsed_seconds

    def summary(self) -> dict[str, Any]:
        return {
            "total_entries": len(self.loaded) + len(self.skipped),
            "chunks_loaded": len(self.loaded),
            "entries_skipped": len(self.skipped),
            "elapsed_seconds": round(self.elapsed_seconds, 2),
        }


# ══════════════════════════════════════════════════════════════════════
#  PIPELINE
# ══════════════════════════════════════════════════════════════════════


class IngestionPipeline:
    """
    End-to-end document ingestion: read → extract → trim → embed → store.

    Parameters
    ----------
    store
        The ``CorpusStore`` to populate (injected).
    embedder
        An ``Embedder`` (e.g. ``GoogleGenerativeAIEmbeddings``).
    source_dir
        Override the source directory. Defaults to ``settings.DATA_RAW_DIR``.
    max_workers
        Number of parallel threads for extraction + embedding.
    timeout
        Seconds allowed per embedding call; defaults to
        ``settings.EMBED_TIMEOUT_SECONDS``.
    """

    def __init__(self, store: CorpusStore, embedder: Embedder, source_dir: Path | None = None, max_workers: int | None = None, timeout: float | None = None) -> None:
        self._store = store
        self._embedder = embedder
        self._source_dir = source_dir or settings.DATA_RAW_DIR
        self._max_workers = settings.MAX_WORKERS if max_workers is None else max_workers
        self._timeout = settings.EMBED_TIMEOUT_SECONDS if timeout is None else timeout

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC ENTRY POINTS
    # ══════════════════════════════════════════════════════════════════

    def run(self, source_dir: Path | None = None) -> IngestionReport:
        """
        Ingest every entry of *source_dir* (default: the configured one).

        Never raises: directory-level failures are logged and the
        returned report reflects whatever was stored before the failure.
        """
        t_start = time.perf_counter()
        source = Path(source_dir or self._source_dir)
        report = IngestionReport()

        try:
            if not source.is_dir():
                logger.warning("[INGEST] Source directory does not exist: %s", source)
                return report

            files = sorted(p for p in source.iterdir() if p.is_file())
            logger.info("[INGEST] Starting ingestion — %d file(s) found in %s", len(files), source)

            with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
                # map() yields in submission order, keeping the corpus sorted
                for outcome in pool.map(self._prepare_file, files):
                    self._commit(outcome, report)

        except Exception:
            logger.exception("[INGEST] Ingestion of %s aborted; corpus left partially populated.", source)

        report.elapsed_seconds = time.perf_counter() - t_start
        logger.info("[INGEST] Ingestion complete — %d chunk(s) stored, %d skipped in %.2fs.", len(report.loaded), len(report.skipped), report.elapsed_seconds)
        return report


    def ingest_records(self, records: Iterable[tuple[str, str]]) -> IngestionReport:
        """
        Ingest static ``(chunk_id, text)`` records (e.g. the seed corpus)
        through the same trim → embed → store path as files.
        """
        t_start = time.perf_counter()
        report = IngestionReport()

        try:
            for chunk_id, text in records:
                self._commit(self._prepare_text(chunk_id, text), report)
        except Exception:
            logger.exception("[INGEST] Record ingestion aborted; corpus left partially populated.")

        report.elapsed_seconds = time.perf_counter() - t_start
        logger.info("[INGEST] Records ingested — %d stored, %d skipped.", len(report.loaded), len(report.skipped))
        return report

    # ══════════════════════════════════════════════════════════════════
    #  PER-ENTRY PROCESSING (worker threads)
    # ══════════════════════════════════════════════════════════════════

    def _prepare_file(self, filepath: Path) -> IngestOutcome:
        """Extract and embed one file.  Runs in a worker thread."""
        try:
            text = self._read_file(filepath)
        except _Skip as skip:
            return IngestOutcome(filepath.name, reason=skip.reason)
        return self._prepare_text(filepath.name, text)


    def _prepare_text(self, chunk_id: str, text: str) -> IngestOutcome:
        text = normalize_text(text)
        if not text:
            logger.warning("[INGEST] Skipping empty content: %s", chunk_id)
            return IngestOutcome(chunk_id, reason=SKIP_EMPTY)

        t_embed = time.perf_counter()
        vector = self._embed(chunk_id, text)
        embed_ms = (time.perf_counter() - t_embed) * 1000

        if vector is None:
            return IngestOutcome(chunk_id, chunk=Chunk(id=chunk_id, text=text), reason=SKIP_EMBEDDING)

        logger.info("[INGEST] Embedded '%s' (%d chars, D=%d) in %.1fms.", chunk_id, len(text), vector.shape[0], embed_ms)
        return IngestOutcome(chunk_id, chunk=Chunk(id=chunk_id, text=text, embedding=vector))


    def _embed(self, chunk_id: str, text: str) -> np.ndarray | None:
        """Embed *text* once; ``None`` on provider failure, timeout or a malformed result."""
        # A hung call must not hold the pool; its thread is abandoned, not joined.
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="embed")
        try:
            vectors = executor.submit(self._embedder.embed_documents, [text]).result(timeout=self._timeout)
        except FuturesTimeoutError:
            logger.error("[INGEST] Embedding timed out for '%s' after %.1fs.", chunk_id, self._timeout)
            return None
        except Exception as exc:
            logger.error("[INGEST] Embedding failed for '%s': %s", chunk_id, exc)
            return None
        finally:
            executor.shutdown(wait=False)

        vector = to_vector(vectors[0]) if vectors else None
        if vector is None:
            logger.warning("[INGEST] Empty or malformed embedding for '%s'; excluded from search.", chunk_id)
        return vector

    # ══════════════════════════════════════════════════════════════════
    #  STORE COMMIT (caller thread, in order)
    # ══════════════════════════════════════════════════════════════════

    def _commit(self, outcome: IngestOutcome, report: IngestionReport) -> None:
        if outcome.chunk is not None:
            try:
                self._store.add(outcome.chunk)
            except ValueError as exc:
                reason = SKIP_DUPLICATE if outcome.chunk.id in self._store else SKIP_EMBEDDING
                logger.warning("[INGEST] Rejected '%s' by store: %s", outcome.source, exc)
                if reason == SKIP_EMBEDDING:
                    # Dimension mismatch: keep the text for diagnostics, unsearchable
                    self._store.add(Chunk(id=outcome.chunk.id, text=outcome.chunk.text))
                outcome = IngestOutcome(outcome.source, reason=reason)
        report.record(outcome)

    # ══════════════════════════════════════════════════════════════════
    #  FILE READING
    # ══════════════════════════════════════════════════════════════════

    @staticmethod
    def _read_file(filepath: Path) -> str:
        """
        Return the text content of *filepath* by extension.

        Raises ``_Skip`` for unsupported types, unreadable files, and
        PDFs whose text cannot be extracted.
        """
        suffix = filepath.suffix.lower()

        if suffix in _PDF_EXTENSIONS:
            try:
                reader = PdfReader(filepath)
                text = "\n".join(page.extract_text() or "" for page in reader.pages)
            except Exception as exc:
                logger.error("[INGEST] Error parsing PDF file %s: %s", filepath.name, exc)
                raise _Skip(SKIP_PDF_EXTRACTION) from exc
            logger.info("[INGEST] Extracted text from PDF: %s", filepath.name)
            return text

        if suffix not in _TEXT_EXTENSIONS and suffix not in _JSON_EXTENSIONS:
            logger.debug("[INGEST] Skipping unsupported file type: %s", filepath.name)
            raise _Skip(SKIP_UNSUPPORTED)

        try:
            raw = filepath.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("[INGEST] Could not read %s: %s", filepath.name, exc)
            raise _Skip(SKIP_UNREADABLE) from exc

        if suffix in _JSON_EXTENSIONS:
            try:
                return pretty_json(raw)
            except json.JSONDecodeError as exc:
                logger.warning("[INGEST] Could not parse JSON file %s (%s); using raw text.", filepath.name, exc)
        return raw


class _Skip(Exception):
    """Internal signal: the entry produces no chunk."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason
