"""Similarity measures used for retrieval.

- :func:`cosine_similarity` ranks stored embedding vectors against a query.
- :func:`jaccard_similarity` is the keyword fallback used when no embedding
  backend is configured (or the vector path fails).
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
import structlog

logger = structlog.get_logger(logger_name=__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return ``dot(a, b) / (|a| * |b|)`` in ``[-1, 1]``.

    Vectors of different length are compared over their common prefix
    (callers are expected to log the mismatch).  A zero-norm vector on
    either side yields ``0.0``.
    """
    n = min(len(a), len(b))
    if n == 0:
        return 0.0
    va = np.asarray(a[:n], dtype=np.float64)
    vb = np.asarray(b[:n], dtype=np.float64)
    norm_a = float(np.dot(va, va))
    norm_b = float(np.dot(vb, vb))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    score = float(np.dot(va, vb)) / (np.sqrt(norm_a) * np.sqrt(norm_b))
    # Clamp floating-point overshoot (e.g. 1.0000000002 for self-similarity).
    return max(-1.0, min(1.0, score))


def tokenize(text: str) -> set[str]:
    """Lowercase *text* and split it into a set of whitespace-separated tokens."""
    return set(text.lower().split())


def jaccard_similarity(a: set[str], b: set[str]) -> float:
    """Return ``|a ∩ b| / |a ∪ b|``, or ``0.0`` when either set is empty."""
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)
