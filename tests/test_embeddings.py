"""Tests for the embedding provider."""

from __future__ import annotations

import os

import pytest

from smartdocs.embeddings import EmbeddingProvider, truncate_text
from smartdocs.errors import EmbeddingProviderError

from conftest import FakeGenAIClient, FakeModels


# ---------------------------------------------------------------------------
# Unit tests (mock-based, no API key needed)
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_embed_returns_vector() -> None:
    client = FakeGenAIClient(FakeModels(embed=lambda text: [0.1, 0.2, 0.3]))
    provider = EmbeddingProvider(client=client, dim=3)

    embedding = await provider.embed("hello")

    assert embedding == [0.1, 0.2, 0.3]


@pytest.mark.asyncio
async def test_embed_uses_document_task_type() -> None:
    client = FakeGenAIClient()
    provider = EmbeddingProvider(client=client, dim=4)

    await provider.embed("test")

    call = client.models.embed_calls[0]
    assert call["config"]["task_type"] == "RETRIEVAL_DOCUMENT"
    assert call["config"]["output_dimensionality"] == 4


@pytest.mark.asyncio
async def test_embed_query_uses_query_task_type() -> None:
    client = FakeGenAIClient()
    provider = EmbeddingProvider(client=client, dim=4)

    await provider.embed_query("search query")

    call = client.models.embed_calls[0]
    assert call["config"]["task_type"] == "RETRIEVAL_QUERY"
    assert call["contents"] == ["search query"]


@pytest.mark.asyncio
async def test_long_text_is_truncated_to_prefix() -> None:
    client = FakeGenAIClient()
    provider = EmbeddingProvider(client=client, max_chars=10)

    await provider.embed("abcdefghijKLMNOP")
    await provider.embed("abcdefghijXYZ")

    first = client.models.embed_calls[0]["contents"][0]
    second = client.models.embed_calls[1]["contents"][0]
    assert first == "abcdefghij"
    assert first == second


def test_truncate_text_keeps_short_text() -> None:
    assert truncate_text("short", 8000) == "short"


@pytest.mark.asyncio
async def test_upstream_failure_raises_provider_error() -> None:
    client = FakeGenAIClient(FakeModels(embed_error=RuntimeError("429 rate limited")))
    provider = EmbeddingProvider(client=client)

    with pytest.raises(EmbeddingProviderError, match="rate limited"):
        await provider.embed("text")


@pytest.mark.asyncio
async def test_timeout_raises_provider_error() -> None:
    client = FakeGenAIClient(FakeModels(delay=0.5))
    provider = EmbeddingProvider(client=client, timeout=0.05)

    with pytest.raises(EmbeddingProviderError, match="timed out"):
        await provider.embed("text")


def test_env_overrides(monkeypatch) -> None:
    client = FakeGenAIClient()
    monkeypatch.setenv("SMARTDOCS_EMBEDDING_MODEL", "custom-model-001")
    monkeypatch.setenv("SMARTDOCS_EMBEDDING_DIM", "256")
    monkeypatch.setenv("SMARTDOCS_EMBEDDING_MAX_CHARS", "100")
    monkeypatch.setenv("SMARTDOCS_REQUEST_TIMEOUT", "5")

    provider = EmbeddingProvider(client=client)

    assert provider.model == "custom-model-001"
    assert provider.dim == 256
    assert provider.max_chars == 100
    assert provider.timeout == 5.0


def test_missing_api_key_raises(monkeypatch) -> None:
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    with pytest.raises(ValueError, match="GOOGLE_API_KEY"):
        EmbeddingProvider(api_key=None, client=None)


# ---------------------------------------------------------------------------
# Real API integration test (skipped unless GOOGLE_API_KEY is set)
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.skipif(
    not os.getenv("GOOGLE_API_KEY"),
    reason="GOOGLE_API_KEY not set — skipping real embedding test",
)
async def test_real_embedding_api() -> None:
    provider = EmbeddingProvider(dim=128)

    embedding = await provider.embed("The purchase price is $45 million.")
    query_emb = await provider.embed_query("purchase price")

    assert len(embedding) == 128
    assert len(query_emb) == 128
    assert all(isinstance(v, float) for v in embedding)
