"""
Embedding provider for vector-based semantic search.

Wraps the Google GenAI embedding API for document and query embedding
with configurable model, dimensions, input budget and timeout.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any

from google.genai import Client as GenAIClient

from .errors import EmbeddingProviderError


logger = logging.getLogger(__name__)

_DEFAULT_MODEL = "gemini-embedding-001"
_DEFAULT_DIM = 768
_DEFAULT_MAX_CHARS = 8000
_DEFAULT_TIMEOUT = 30.0


def truncate_text(text: str, max_chars: int) -> str:
    """Return the deterministic prefix of *text* that fits in *max_chars*."""
    return text[:max_chars]


class EmbeddingProvider:
    """Generate text embeddings via Google GenAI."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        dim: int | None = None,
        max_chars: int | None = None,
        timeout: float | None = None,
        client: Any | None = None,
    ) -> None:
        self.model = model or os.getenv("SMARTDOCS_EMBEDDING_MODEL", _DEFAULT_MODEL)
        self.dim = dim or int(os.getenv("SMARTDOCS_EMBEDDING_DIM", str(_DEFAULT_DIM)))
        self.max_chars = max_chars or int(
            os.getenv("SMARTDOCS_EMBEDDING_MAX_CHARS", str(_DEFAULT_MAX_CHARS))
        )
        self.timeout = timeout or float(
            os.getenv("SMARTDOCS_REQUEST_TIMEOUT", str(_DEFAULT_TIMEOUT))
        )

        if client is not None:
            self._client = client
        else:
            resolved_key = api_key or os.getenv("GOOGLE_API_KEY")
            if resolved_key is None:
                raise ValueError(
                    "GOOGLE_API_KEY not found. "
                    "Provide api_key or set the environment variable."
                )
            self._client = GenAIClient(api_key=resolved_key)

    async def embed(
        self,
        text: str,
        *,
        task_type: str = "RETRIEVAL_DOCUMENT",
    ) -> list[float]:
        """Embed a single text, truncated to the configured character budget."""
        truncated = truncate_text(text, self.max_chars)
        try:
            result = await asyncio.wait_for(
                self._client.aio.models.embed_content(
                    model=self.model,
                    contents=[truncated],
                    config={
                        "task_type": task_type,
                        "output_dimensionality": self.dim,
                    },
                ),
                timeout=self.timeout,
            )
            embedding = [float(v) for v in result.embeddings[0].values]
        except asyncio.TimeoutError as e:
            logger.error(f"Embedding request timed out after {self.timeout}s")
            raise EmbeddingProviderError(
                f"Embedding request timed out after {self.timeout}s"
            ) from e
        except Exception as e:
            logger.error(f"Generate embedding failed: {e}")
            raise EmbeddingProviderError(f"Failed to generate embedding: {e}") from e

        logger.info(f"Generated embedding ({len(embedding)} dimensions)")
        return embedding

    async def embed_query(self, query: str) -> list[float]:
        """Embed a single query text for retrieval."""
        return await self.embed(query, task_type="RETRIEVAL_QUERY")
