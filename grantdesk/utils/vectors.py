"""Vector math for chunk retrieval.

Pure-Python on purpose: a grant has tens of chunks, not millions, so the
ranking is a handful of dot products per question.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import TypeVar

from grantdesk.utils.errors import VectorLengthMismatchError

_T = TypeVar("_T")


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the cosine similarity of *a* and *b*, in ``[-1, 1]``.

    Returns ``0.0`` when either vector has zero magnitude.

    Raises
    ------
    VectorLengthMismatchError
        If the vectors have different lengths.
    """
    if len(a) != len(b):
        raise VectorLengthMismatchError(
            message=f"Cannot compare vectors of length {len(a)} and {len(b)}"
        )

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y

    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    similarity = dot / (math.sqrt(norm_a) * math.sqrt(norm_b))
    # Floating-point rounding can push identical vectors to 1.0000000000000002.
    return max(-1.0, min(1.0, similarity))


def rank_by_similarity(
    query: Sequence[float],
    candidates: Sequence[tuple[_T, Sequence[float]]],
    top_k: int,
) -> list[tuple[_T, float]]:
    """Rank ``(item, vector)`` pairs by descending similarity to *query*.

    Python's sort is stable, so equal scores keep their original (chunk)
    order.  Returns at most *top_k* ``(item, score)`` pairs.
    """
    scored = [(item, cosine_similarity(query, vector)) for item, vector in candidates]
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored[:top_k]


def ensure_uniform_dimension(
    vectors: Sequence[Sequence[float]],
    expected: int | None = None,
) -> int | None:
    """Check every vector has the same length (and *expected*, if given).

    Returns the common dimension, or ``None`` for an empty sequence.
    """
    dimension = expected
    for index, vector in enumerate(vectors):
        if dimension is None:
            dimension = len(vector)
        elif len(vector) != dimension:
            raise VectorLengthMismatchError(
                message=(
                    f"Vector {index} has dimension {len(vector)}, expected {dimension}; "
                    "the embedding model may have changed"
                )
            )
    return dimension if vectors else None
