"""
RagChat - Similarity Search
============================
Ranks corpus chunks against a query by cosine similarity.

Algorithm
---------
1. No embedded chunks → return ``[]`` without calling the embedder.
2. Embed the query (bounded by ``EMBED_TIMEOUT_SECONDS``).  Failure,
   timeout, or an empty vector → ``[]`` (retrieval degrades, the
   conversation proceeds without context).
3. Score every embedded chunk: a full linear scan, fine for a small
   in-memory corpus.  A chunk whose dimension differs from the query is
   logged and skipped.
4. Stable sort by score descending (ties keep corpus order).
5. Drop everything at or below the similarity floor, keep ``top_n``.

The engine only needs ``store.embedded()``; any index exposing the same
snapshot can replace ``CorpusStore`` without touching callers.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass

import numpy as np

from ragchat.config.settings import settings
from ragchat.src.database.corpus_store import Chunk, CorpusStore
from ragchat.src.providers.gemini import Embedder
from ragchat.src.utils.logger import get_logger
from ragchat.src.utils.text_utils import to_vector

logger = get_logger(__name__)


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """
    ``dot(a, b) / (‖a‖ · ‖b‖)``, or ``0.0`` when either magnitude is zero.

    Raises
    ------
    ValueError
        If the vectors differ in length.
    """
    if a.shape != b.shape:
        raise ValueError(f"Vectors must be of the same length, got {a.shape[0]} and {b.shape[0]}.")

    norm_a = float(np.linalg.norm(a))
    norm_b = float(np.linalg.norm(b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return float(np.dot(a, b)) / (norm_a * norm_b)


@dataclass(frozen=True)
class ScoredChunk:
    chunk: Chunk
    similarity: float


class SimilaritySearch:
    """
    Thresholded top-K retrieval over a ``CorpusStore``.

    Parameters
    ----------
    store
        The corpus to search.
    embedder
        ``Embedder`` used for the query vector.
    threshold
        Similarity floor; defaults to ``settings.SIMILARITY_THRESHOLD``.
    top_n
        Default result count; defaults to ``settings.SEARCH_RESULTS_LIMIT``.
    timeout
        Seconds allowed for the query embedding call.
    """

    __slots__ = ("_store", "_embedder", "_threshold", "_top_n", "_timeout")

    def __init__(self, store: CorpusStore, embedder: Embedder, threshold: float | None = None, top_n: int | None = None, timeout: float | None = None) -> None:
        self._store = store
        self._embedder = embedder
        self._threshold = settings.SIMILARITY_THRESHOLD if threshold is None else threshold
        self._top_n = settings.SEARCH_RESULTS_LIMIT if top_n is None else top_n
        self._timeout = settings.EMBED_TIMEOUT_SECONDS if timeout is None else timeout


    @property
    def store(self) -> CorpusStore:
        return self._store


    async def find_relevant(self, query_text: str, top_n: int | None = None) -> list[Chunk]:
        """Return up to *top_n* chunks strictly above the similarity floor, best first."""
        limit = self._top_n if top_n is None else top_n
        if limit <= 0:
            return []

        candidates = self._store.embedded()
        if not candidates:
            logger.warning("[SEARCH] Corpus has no embedded chunks; skipping retrieval.")
            return []

        t_embed = time.perf_counter()
        query_vector = await self._embed_query(query_text)
        if query_vector is None:
            return []
        embed_ms = (time.perf_counter() - t_embed) * 1000

        ranked = self.rank(query_vector, candidates)
        above = [scored.chunk for scored in ranked if scored.similarity > self._threshold]
        relevant = above[:limit]

        logger.info("[SEARCH] %d/%d chunk(s) above %.2f, returning %d (embed %.1fms).", len(above), len(candidates), self._threshold, len(relevant), embed_ms)
        return relevant


    @staticmethod
    def rank(query_vector: np.ndarray, candidates: tuple[Chunk, ...] | list[Chunk]) -> list[ScoredChunk]:
        """Score *candidates* against *query_vector*, best first, ties in input order."""
        scored: list[ScoredChunk] = []
        for chunk in candidates:
            try:
                similarity = cosine_similarity(query_vector, chunk.embedding)  # type: ignore[arg-type]
            except ValueError as exc:
                logger.error("[SEARCH] Inconsistent embedding for '%s', skipped: %s", chunk.id, exc)
                continue
            scored.append(ScoredChunk(chunk, similarity))

        # sorted() is stable
        return sorted(scored, key=lambda s: s.similarity, reverse=True)


    async def _embed_query(self, query_text: str) -> np.ndarray | None:
        try:
            raw = await asyncio.wait_for(asyncio.to_thread(self._embedder.embed_query, query_text), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.error("[SEARCH] Query embedding timed out after %.1fs.", self._timeout)
            return None
        except Exception as exc:
            logger.error("[SEARCH] Query embedding failed: %s", exc)
            return None

        vector = to_vector(raw)
        if vector is None:
            logger.error("[SEARCH] Failed to generate embedding for the query.")
        return vector
