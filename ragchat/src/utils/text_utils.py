"""
RagChat - Text Utilities
=========================
Helpers for normalising extracted document text and validating raw
embedding vectors.

These utilities are consumed by the ``IngestionPipeline`` and the
``SimilaritySearch`` engine and stay stateless and side-effect-free.
"""

from __future__ import annotations

import json
from collections.abc import Sequence

import numpy as np

_BOM = "\ufeff"


def normalize_text(text: str) -> str:
    """
    Prepare extracted text for storage and embedding.

    Drops a leading byte-order mark and trims outer whitespace.  Everything
    else is kept verbatim: inner layout, joiners (ZWJ / ZWNJ) and the
    source's Unicode normal form all carry meaning.
    """
    return text.removeprefix(_BOM).strip()


def pretty_json(raw: str) -> str:
    """Re-serialise a JSON document with 2-space indentation.

    Raises ``json.JSONDecodeError`` when *raw* is not valid JSON.
    """
    return json.dumps(json.loads(raw), indent=2, ensure_ascii=False)


def to_vector(raw: Sequence[float] | None) -> np.ndarray | None:
    """
    Convert a provider embedding into a float64 vector.

    Returns ``None`` for anything unusable: missing, empty, non-numeric,
    multi-dimensional, or containing NaN / infinity.
    """
    if raw is None:
        return None
    try:
        vector = np.asarray(raw, dtype=np.float64)
    except (TypeError, ValueError):
        return None
    if vector.ndim != 1 or vector.size == 0:
        return None
    if not np.isfinite(vector).all():
        return None
    return vector
