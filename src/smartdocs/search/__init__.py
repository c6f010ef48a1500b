"""Search helpers for user document collections."""

from .ranker import rank_results
from .semantic import SemanticSearchEngine

__all__ = [
    "rank_results",
    "SemanticSearchEngine",
]
