"""Cosine similarity helpers shared by the index backends."""

from __future__ import annotations

import heapq
from collections.abc import Sequence

import numpy as np

from docbot.errors import DimensionMismatch


def check_dimension(embedding: Sequence[float], expected: int | None) -> None:
    """Raise ``DimensionMismatch`` unless ``embedding`` has ``expected`` entries."""
    if expected is not None and len(embedding) != expected:
        raise DimensionMismatch(expected=expected, actual=len(embedding))


def to_unit_vector(embedding: Sequence[float]) -> np.ndarray:
    """L2-normalise ``embedding`` as float64.

    A zero vector stays zero, so it scores 0.0 against everything.
    """
    vec = np.asarray(embedding, dtype=np.float64)
    if vec.ndim != 1:
        raise ValueError(f"Embedding must be one-dimensional, got shape {vec.shape}")
    norm = np.linalg.norm(vec)
    if norm == 0.0:
        return vec
    return vec / norm


def clamp(score: float) -> float:
    """Keep rounding noise from pushing a cosine outside [-1, 1]."""
    return max(-1.0, min(1.0, float(score)))


def select_top_k(
    scores: np.ndarray,
    seqs: Sequence[int],
    k: int,
) -> list[tuple[int, float]]:
    """Pick the ``k`` best candidates with a bounded heap.

    Args:
        scores: Similarity per candidate.
        seqs: Insertion sequence number per candidate; lower wins ties.
        k: Maximum number of results.

    Returns:
        ``(position, score)`` pairs, best first.
    """
    if k <= 0:
        return []

    # Min-heap of the k best seen so far, keyed (score, -seq)
    heap: list[tuple[float, int, int]] = []
    for pos, (score, seq) in enumerate(zip(scores.tolist(), seqs, strict=True)):
        item = (score, -seq, pos)
        if len(heap) < k:
            heapq.heappush(heap, item)
        elif item > heap[0]:
            heapq.heapreplace(heap, item)

    heap.sort(reverse=True)
    return [(pos, score) for score, _, pos in heap]
