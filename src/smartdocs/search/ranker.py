"""
Ranking helpers for scored search results.
"""

from __future__ import annotations

from collections.abc import Iterable

from ..models import SearchResult


def _sort_key(result: SearchResult) -> tuple[float, float, str]:
    return (
        -result.score,
        -result.document.uploaded_at.timestamp(),
        result.document.id,
    )


def rank_results(
    results: Iterable[SearchResult],
    *,
    limit: int,
    min_score: float | None = None,
) -> list[SearchResult]:
    """
    Sort scored results and apply the relevance floor and limit.

    Order is score descending, then most recent upload first, then document
    id, so equal scores always come back in the same order.
    """
    if limit < 1:
        raise ValueError("limit must be >= 1")
    candidates = [
        result for result in results if min_score is None or result.score >= min_score
    ]
    return sorted(candidates, key=_sort_key)[:limit]
