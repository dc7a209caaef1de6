"""Cosine-similarity ranking of chunks against a query vector."""

from __future__ import annotations

from typing import List, Sequence

import numpy as np

from claimcheck.errors import DimensionMismatchError
from claimcheck.models import Chunk, ScoredChunk


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine of the angle between ``a`` and ``b``; 0.0 when either is all zeros."""
    left = np.asarray(a, dtype="float64").ravel()
    right = np.asarray(b, dtype="float64").ravel()
    if left.shape != right.shape:
        raise DimensionMismatchError(
            f"Cannot compare vectors of dimension {left.shape[0]} and {right.shape[0]}"
        )
    norm = float(np.linalg.norm(left)) * float(np.linalg.norm(right))
    if norm == 0.0:
        return 0.0
    return float(np.clip(np.dot(left, right) / norm, -1.0, 1.0))


class Ranker:
    """Scores chunks against a query and keeps the best ``top_k``."""

    def __init__(self, *, top_k: int = 6) -> None:
        if top_k < 1:
            raise ValueError("top_k must be at least 1")
        self.top_k = top_k

    def score(self, query: np.ndarray, chunks: Sequence[Chunk]) -> List[ScoredChunk]:
        scored: List[ScoredChunk] = []
        for chunk in chunks:
            if chunk.embedding is None:
                raise ValueError(
                    f"Chunk {chunk.document_index}:{chunk.chunk_index} has no embedding"
                )
            scored.append(ScoredChunk(chunk=chunk, similarity=cosine_similarity(query, chunk.embedding)))
        return scored

    def rank(
        self, query: np.ndarray, chunks: Sequence[Chunk], *, top_k: int | None = None
    ) -> List[ScoredChunk]:
        """Return the top ``min(top_k, len(chunks))`` chunks, best first.

        Ties keep document order, then chunk order.
        """
        limit = min(top_k or self.top_k, len(chunks))
        scored = self.score(query, chunks)
        scored.sort(key=lambda item: (-item.similarity, item.document_index, item.chunk_index))
        return scored[:limit]
