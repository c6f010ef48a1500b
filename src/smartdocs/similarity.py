"""
Vector similarity scoring.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from .errors import DimensionMismatch


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Return the cosine similarity of two equal-length vectors.

    A zero-magnitude vector has no direction, so the score is 0.0 rather
    than an error.
    """
    if len(a) != len(b):
        raise DimensionMismatch(
            f"Embeddings must have same dimensions (got {len(a)} and {len(b)})"
        )

    dot_product = 0.0
    magnitude_a = 0.0
    magnitude_b = 0.0
    for x, y in zip(a, b):
        dot_product += x * y
        magnitude_a += x * x
        magnitude_b += y * y

    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0

    return dot_product / (math.sqrt(magnitude_a) * math.sqrt(magnitude_b))
