"""Cosine-similarity search over stored knowledge chunks."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Sequence, Tuple

import numpy as np

from .embeddings import from_bytes
from .models import Match
from .sql.repositories import DocumentsRepo

logger = logging.getLogger(__name__)


def rank_matches(
    query: np.ndarray,
    rows: Sequence[Tuple[int, str, bytes]],
    *,
    k: int,
    threshold: float,
) -> List[Match]:
    """
    Score ``rows`` against ``query`` and keep the best ``k`` at or above ``threshold``.

    Results are ordered by score descending, then by chunk id ascending.
    Rows whose stored dimension differs from the query are skipped.
    """
    if k <= 0 or not rows:
        return []

    q = np.asarray(query, dtype=np.float32)
    q_norm = float(np.linalg.norm(q))
    if q_norm == 0.0:
        return []

    ids: list[int] = []
    contents: list[str] = []
    vectors: list[np.ndarray] = []
    for rid, content, blob in rows:
        vec = from_bytes(blob)
        if vec.size != q.size:
            logger.warning(
                "Skipping document %d: embedding dim %d != query dim %d", rid, vec.size, q.size
            )
            continue
        ids.append(rid)
        contents.append(content)
        vectors.append(vec)

    if not vectors:
        return []

    matrix = np.vstack(vectors)
    norms = np.linalg.norm(matrix, axis=1)
    # Zero-norm rows score 0 instead of dividing by zero.
    safe = np.where(norms == 0.0, 1.0, norms)
    scores = (matrix @ q) / (safe * q_norm)
    scores = np.where(norms == 0.0, 0.0, scores)

    ranked = sorted(
        (
            (float(score), rid, content)
            for score, rid, content in zip(scores, ids, contents)
            if score >= threshold
        ),
        key=lambda item: (-item[0], item[1]),
    )
    return [Match(id=rid, content=content, score=score) for score, rid, content in ranked[:k]]


async def similarity_search(
    repo: DocumentsRepo,
    query: np.ndarray,
    *,
    k: int,
    threshold: float,
) -> List[Match]:
    """Load stored embeddings and rank them against ``query`` off the event loop."""

    rows = await repo.fetch_embeddings()
    if not rows:
        return []
    return await asyncio.to_thread(rank_matches, query, rows, k=k, threshold=threshold)


__all__ = ["rank_matches", "similarity_search"]
