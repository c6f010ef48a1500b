from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable

import pytest

from smartdocs.config import Settings
from smartdocs.models import Document, DocumentStatus, User
from smartdocs.services import Services, build_services
from smartdocs.storage import DuckDBDocumentStore, LocalBlobStore


@dataclass
class FakeEmbedding:
    values: list[float]


@dataclass
class FakeEmbedResult:
    embeddings: list[FakeEmbedding]


@dataclass
class FakeResponse:
    text: str | None


@dataclass
class FakeModels:
    """Records calls and returns canned embeddings and generations."""

    embed: Callable[[str], list[float]] = lambda text: [1.0, 0.0]
    response_text: str | None = '{"summary": "A summary.", "keyPoints": ["one"], "themes": ["t"]}'
    embed_error: Exception | None = None
    generate_error: Exception | None = None
    delay: float = 0.0
    embed_calls: list[dict[str, Any]] = field(default_factory=list)
    generate_calls: list[dict[str, Any]] = field(default_factory=list)

    async def embed_content(
        self, *, model: str, contents: list[str], config: dict
    ) -> FakeEmbedResult:
        self.embed_calls.append({"model": model, "contents": contents, "config": config})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.embed_error is not None:
            raise self.embed_error
        return FakeEmbedResult(
            embeddings=[FakeEmbedding(values=self.embed(text)) for text in contents]
        )

    async def generate_content(self, *, model: str, contents: Any, config: dict) -> FakeResponse:
        self.generate_calls.append({"model": model, "contents": contents, "config": config})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.generate_error is not None:
            raise self.generate_error
        return FakeResponse(text=self.response_text)


class FakeAio:
    def __init__(self, models: FakeModels) -> None:
        self.models = models


class FakeGenAIClient:
    def __init__(self, models: FakeModels | None = None) -> None:
        self.models = models or FakeModels()
        self.aio = FakeAio(self.models)


BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


def make_document(
    *,
    user_id: str = "U1",
    file_name: str = "doc.txt",
    embedding: list[float] | None = None,
    status: DocumentStatus = DocumentStatus.COMPLETED,
    minutes: int = 0,
    summary: str | None = "summary",
    **kwargs: Any,
) -> Document:
    if status != DocumentStatus.COMPLETED:
        embedding = None
    return Document(
        user_id=user_id,
        file_name=file_name,
        file_type="text/plain",
        file_size=10,
        uploaded_at=BASE_TIME + timedelta(minutes=minutes),
        status=status,
        blob_url=f"file:///blobs/{user_id}/{file_name}",
        summary=summary,
        embedding=embedding,
        error="boom" if status == DocumentStatus.FAILED else None,
        **kwargs,
    )


@pytest.fixture()
def genai_client() -> FakeGenAIClient:
    return FakeGenAIClient()


@pytest.fixture()
def store(tmp_path: Path):
    store = DuckDBDocumentStore(str(tmp_path / "smartdocs.duckdb"))
    yield store
    store.close()


@pytest.fixture()
def blobs(tmp_path: Path) -> LocalBlobStore:
    return LocalBlobStore(str(tmp_path / "blobs"))


@pytest.fixture()
def services(tmp_path: Path, genai_client: FakeGenAIClient):
    settings = Settings(
        google_api_key="test-api-key",
        db_path=str(tmp_path / "smartdocs.duckdb"),
        blob_root=str(tmp_path / "blobs"),
    )
    services: Services = build_services(settings, genai_client=genai_client)
    yield services
    services.close()


@pytest.fixture()
def user(store: DuckDBDocumentStore) -> User:
    return store.create_user(User(id="U1", email="u1@example.com", name="User One"))
