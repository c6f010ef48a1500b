"""
Vector-based semantic search engine.

Embeds a query and ranks one user's completed documents by cosine
similarity against their stored embeddings. This is a linear scan over the
user's documents; there is no index and no cross-user search.
"""

from __future__ import annotations

import logging

from ..embeddings import EmbeddingProvider
from ..errors import DimensionMismatch, EmbeddingProviderError, SearchUnavailable
from ..models import Document, DocumentStatus, SearchResult
from ..similarity import cosine_similarity
from ..storage import DocumentStore
from .ranker import rank_results


logger = logging.getLogger(__name__)

_RELEVANT_CHUNK_CHARS = 500


class SemanticSearchEngine:
    """Embed a query and rank a user's stored document embeddings."""

    def __init__(
        self,
        store: DocumentStore,
        embedding_provider: EmbeddingProvider,
        *,
        min_score: float | None = None,
    ) -> None:
        self.store = store
        self.embedding_provider = embedding_provider
        self.min_score = min_score

    async def search(
        self,
        *,
        user_id: str,
        query: str,
        limit: int = 5,
        min_score: float | None = None,
        document_ids: set[str] | None = None,
    ) -> list[SearchResult]:
        """Return the top *limit* documents for *query*, best match first."""
        if limit < 1:
            raise ValueError("limit must be >= 1")

        candidates = [
            doc
            for doc in self.store.list_completed_with_embedding(user_id)
            if doc.user_id == user_id
            and doc.status == DocumentStatus.COMPLETED
            and doc.embedding is not None
            and (document_ids is None or doc.id in document_ids)
        ]
        if not candidates:
            return []

        try:
            query_embedding = await self.embedding_provider.embed_query(query)
        except EmbeddingProviderError as e:
            raise SearchUnavailable(f"Search is unavailable: {e}") from e

        scored = [
            result
            for result in (
                self._score(document, query_embedding) for document in candidates
            )
            if result is not None
        ]
        floor = min_score if min_score is not None else self.min_score
        ranked = rank_results(scored, limit=limit, min_score=floor)
        logger.info(
            f"Search for user {user_id} scored {len(scored)} documents, "
            f"returning {len(ranked)}"
        )
        return ranked

    @staticmethod
    def _score(document: Document, query_embedding: list[float]) -> SearchResult | None:
        try:
            score = cosine_similarity(query_embedding, document.embedding or [])
        except DimensionMismatch:
            logger.warning(
                f"Skipping document {document.id}: embedding has "
                f"{len(document.embedding or [])} dimensions, query has {len(query_embedding)}"
            )
            return None
        relevant_chunk = (
            document.summary[:_RELEVANT_CHUNK_CHARS] if document.summary else None
        )
        return SearchResult(document=document, score=score, relevant_chunk=relevant_chunk)
