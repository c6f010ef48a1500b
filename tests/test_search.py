"""Tests for semantic search and result ranking."""

from __future__ import annotations

import pytest

from smartdocs.embeddings import EmbeddingProvider
from smartdocs.errors import SearchUnavailable
from smartdocs.models import DocumentStatus, SearchResult
from smartdocs.search import SemanticSearchEngine, rank_results
from smartdocs.storage import DuckDBDocumentStore

from conftest import FakeGenAIClient, FakeModels, make_document


def _engine(
    store: DuckDBDocumentStore,
    query_embedding: list[float] | None = None,
    **model_kwargs,
) -> tuple[SemanticSearchEngine, FakeGenAIClient]:
    vector = query_embedding or [1.0, 0.0]
    client = FakeGenAIClient(FakeModels(embed=lambda text: vector, **model_kwargs))
    return SemanticSearchEngine(store, EmbeddingProvider(client=client)), client


def test_rank_results_breaks_ties_by_most_recent_upload() -> None:
    older = make_document(file_name="older.txt", embedding=[1.0], minutes=0)
    newer = make_document(file_name="newer.txt", embedding=[1.0], minutes=5)
    best = make_document(file_name="best.txt", embedding=[1.0], minutes=-10)

    ranked = rank_results(
        [
            SearchResult(document=older, score=0.5),
            SearchResult(document=best, score=0.9),
            SearchResult(document=newer, score=0.5),
        ],
        limit=10,
    )

    assert [r.document.file_name for r in ranked] == ["best.txt", "newer.txt", "older.txt"]


def test_rank_results_applies_floor_before_limit() -> None:
    results = [
        SearchResult(document=make_document(embedding=[1.0]), score=score)
        for score in (0.9, 0.4, 0.2)
    ]

    ranked = rank_results(results, limit=3, min_score=0.3)

    assert [r.score for r in ranked] == [0.9, 0.4]


def test_rank_results_rejects_non_positive_limit() -> None:
    with pytest.raises(ValueError):
        rank_results([], limit=0)


@pytest.mark.asyncio
async def test_search_scenario_returns_top_two(store: DuckDBDocumentStore) -> None:
    first = store.create_document(make_document(file_name="first.txt", embedding=[1.0, 0.0]))
    store.create_document(make_document(file_name="second.txt", embedding=[0.0, 1.0]))
    third = store.create_document(make_document(file_name="third.txt", embedding=[0.9, 0.1]))
    engine, _ = _engine(store, [1.0, 0.0])

    results = await engine.search(user_id="U1", query="query", limit=2)

    assert [r.document.id for r in results] == [first.id, third.id]
    assert results[0].score == pytest.approx(1.0)
    assert results[1].score == pytest.approx(0.994, abs=1e-3)


@pytest.mark.asyncio
async def test_search_returns_at_most_k_sorted_for_owner_only(
    store: DuckDBDocumentStore,
) -> None:
    for i in range(6):
        store.create_document(
            make_document(file_name=f"u1_{i}.txt", embedding=[1.0, i / 5], minutes=i)
        )
    store.create_document(make_document(user_id="U2", file_name="other.txt", embedding=[1.0, 0.0]))
    engine, _ = _engine(store, [1.0, 0.0])

    results = await engine.search(user_id="U1", query="query", limit=4)

    assert len(results) == 4
    assert all(r.document.user_id == "U1" for r in results)
    assert all(r.document.status == DocumentStatus.COMPLETED for r in results)
    scores = [r.score for r in results]
    assert scores == sorted(scores, reverse=True)


@pytest.mark.asyncio
async def test_search_excludes_documents_without_embedding(
    store: DuckDBDocumentStore,
) -> None:
    store.create_document(
        make_document(file_name="query match.txt", status=DocumentStatus.FAILED)
    )
    store.create_document(
        make_document(file_name="query pending.txt", status=DocumentStatus.PROCESSING)
    )
    store.create_document(make_document(file_name="no-vector.txt", embedding=None))
    ok = store.create_document(make_document(file_name="ok.txt", embedding=[0.0, 1.0]))
    engine, _ = _engine(store)

    results = await engine.search(user_id="U1", query="query match", limit=5)

    assert [r.document.id for r in results] == [ok.id]


@pytest.mark.asyncio
async def test_search_returns_fewer_than_k_when_few_candidates(
    store: DuckDBDocumentStore,
) -> None:
    store.create_document(make_document(embedding=[1.0, 0.0]))
    engine, _ = _engine(store)

    results = await engine.search(user_id="U1", query="q", limit=10)

    assert len(results) == 1


@pytest.mark.asyncio
async def test_search_with_no_completed_documents_is_empty(
    store: DuckDBDocumentStore,
) -> None:
    store.create_document(make_document(status=DocumentStatus.PROCESSING))
    engine, client = _engine(store)

    results = await engine.search(user_id="U1", query="anything", limit=3)

    assert results == []
    assert client.models.embed_calls == []


@pytest.mark.asyncio
async def test_search_embedding_failure_is_unavailable(store: DuckDBDocumentStore) -> None:
    store.create_document(make_document(embedding=[1.0, 0.0]))
    engine, _ = _engine(store, embed_error=RuntimeError("503 upstream"))

    with pytest.raises(SearchUnavailable) as exc_info:
        await engine.search(user_id="U1", query="q", limit=3)

    assert exc_info.value.__cause__ is not None


@pytest.mark.asyncio
async def test_search_relevance_floor(store: DuckDBDocumentStore) -> None:
    store.create_document(make_document(file_name="close.txt", embedding=[1.0, 0.0]))
    store.create_document(make_document(file_name="far.txt", embedding=[0.0, 1.0]))
    engine, _ = _engine(store)

    results = await engine.search(user_id="U1", query="q", limit=5, min_score=0.5)

    assert [r.document.file_name for r in results] == ["close.txt"]


@pytest.mark.asyncio
async def test_search_default_floor_from_engine(store: DuckDBDocumentStore) -> None:
    store.create_document(make_document(file_name="close.txt", embedding=[1.0, 0.0]))
    store.create_document(make_document(file_name="far.txt", embedding=[0.0, 1.0]))
    client = FakeGenAIClient(FakeModels(embed=lambda text: [1.0, 0.0]))
    engine = SemanticSearchEngine(store, EmbeddingProvider(client=client), min_score=0.5)

    results = await engine.search(user_id="U1", query="q", limit=5)

    assert len(results) == 1


@pytest.mark.asyncio
async def test_search_skips_stale_dimension_embeddings(store: DuckDBDocumentStore) -> None:
    store.create_document(make_document(file_name="stale.txt", embedding=[1.0, 0.0, 0.0]))
    fresh = store.create_document(make_document(file_name="fresh.txt", embedding=[1.0, 0.0]))
    engine, _ = _engine(store)

    results = await engine.search(user_id="U1", query="q", limit=5)

    assert [r.document.id for r in results] == [fresh.id]


@pytest.mark.asyncio
async def test_search_restricted_to_document_ids(store: DuckDBDocumentStore) -> None:
    store.create_document(make_document(file_name="a.txt", embedding=[1.0, 0.0]))
    b = store.create_document(make_document(file_name="b.txt", embedding=[0.0, 1.0]))
    engine, _ = _engine(store)

    results = await engine.search(user_id="U1", query="q", limit=5, document_ids={b.id})

    assert [r.document.id for r in results] == [b.id]


@pytest.mark.asyncio
async def test_search_rejects_non_positive_limit(store: DuckDBDocumentStore) -> None:
    engine, _ = _engine(store)

    with pytest.raises(ValueError):
        await engine.search(user_id="U1", query="q", limit=0)
