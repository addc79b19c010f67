"""
RagChat - CorpusStore
======================
Process-wide, in-memory store of retrievable chunks.

Design decisions:
  • **Owned object, not a module global** — built once at startup and
    injected into the ingestion pipeline and the similarity search, so
    tests can use fixture corpora and a real index can replace it later.
  • **Append-only** — chunks are immutable; there is no update or
    delete path.  Re-ingestion means restarting the process.
  • **Snapshot reads** — ``chunks()`` / ``embedded()`` return tuples
    taken under the append lock, so a request that arrives while
    ingestion is still running sees a consistent (possibly partial)
    corpus instead of blocking.
  • **Dimension guard** — the first embedded chunk fixes ``D``; any
    later vector of another length is rejected.

Usage:
    from ragchat.src.database.corpus_store import Chunk, CorpusStore

    store = CorpusStore()
    store.add(Chunk(id="bio.md", text="...", embedding=vector))
    for chunk in store.embedded():
        ...
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

import numpy as np

from ragchat.src.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, eq=False)
class Chunk:
    """A unit of retrievable knowledge.

    ``embedding`` is ``None`` when the provider could not embed the
    text; such chunks stay in the store for diagnostics only.
    """

    id: str
    text: str
    embedding: np.ndarray | None = None

    @property
    def is_embedded(self) -> bool:
        return self.embedding is not None

    def __repr__(self) -> str:
        dim = self.embedding.shape[0] if self.embedding is not None else None
        return f"Chunk(id={self.id!r}, chars={len(self.text)}, dim={dim})"


class CorpusStore:
    """
    Append-only chunk store with snapshot reads.

    Parameters
    ----------
    chunks
        Optional initial chunks, added in order (handy for fixtures).
    """

    __slots__ = ("_chunks", "_ids", "_dimension", "_lock")

    def __init__(self, chunks: list[Chunk] | None = None) -> None:
        self._chunks: list[Chunk] = []
        self._ids: set[str] = set()
        self._dimension: int | None = None
        self._lock = threading.Lock()
        for chunk in chunks or []:
            self.add(chunk)


    def add(self, chunk: Chunk) -> None:
        """
        Append *chunk* to the corpus.

        Raises
        ------
        ValueError
            If the id is already present, the text is empty, or the
            embedding length differs from the corpus dimension.
        """
        if not chunk.text.strip():
            raise ValueError(f"Chunk '{chunk.id}' has empty text.")

        with self._lock:
            if chunk.id in self._ids:
                raise ValueError(f"Duplicate chunk id '{chunk.id}'.")

            if chunk.is_embedded:
                dim = int(chunk.embedding.shape[0])
                if self._dimension is None:
                    self._dimension = dim
                    logger.info("[STORE] Embedding dimension fixed at D=%d.", dim)
                elif dim != self._dimension:
                    raise ValueError(f"Chunk '{chunk.id}' has dimension {dim}, corpus uses {self._dimension}.")

            self._chunks.append(chunk)
            self._ids.add(chunk.id)

        logger.debug("[STORE] Added %r (corpus size %d).", chunk, len(self._chunks))


    def chunks(self) -> tuple[Chunk, ...]:
        """Snapshot of every chunk in insertion order."""
        with self._lock:
            return tuple(self._chunks)


    def embedded(self) -> tuple[Chunk, ...]:
        """Snapshot of searchable chunks (non-null embedding) in insertion order."""
        with self._lock:
            return tuple(c for c in self._chunks if c.is_embedded)


    def get(self, chunk_id: str) -> Chunk | None:
        with self._lock:
            for chunk in self._chunks:
                if chunk.id == chunk_id:
                    return chunk
        return None


    @property
    def dimension(self) -> int | None:
        """Embedding dimension ``D`` or ``None`` before the first embedded chunk."""
        return self._dimension


    def embedded_count(self) -> int:
        return len(self.embedded())


    def __contains__(self, chunk_id: object) -> bool:
        with self._lock:
            return chunk_id in self._ids


    def __len__(self) -> int:
        with self._lock:
            return len(self._chunks)


    def __repr__(self) -> str:
        return f"CorpusStore(chunks={len(self)}, embedded={self.embedded_count()}, dim={self._dimension})"
