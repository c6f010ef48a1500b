"""
Construction of the long-lived service objects shared by the API and CLI.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .answering import AnswerGenerator
from .chat import ChatService
from .config import Settings, resolve_blob_root, resolve_db_path, validate_settings
from .embeddings import EmbeddingProvider
from .errors import ConfigurationError
from .processing import DocumentProcessor
from .search import SemanticSearchEngine
from .storage import DuckDBDocumentStore, LocalBlobStore
from .summarizer import Summarizer


@dataclass
class Services:
    """Everything a request handler needs, built once per process."""

    settings: Settings
    store: DuckDBDocumentStore
    blobs: LocalBlobStore
    embeddings: EmbeddingProvider
    summarizer: Summarizer
    answers: AnswerGenerator
    search: SemanticSearchEngine
    processor: DocumentProcessor
    chat: ChatService

    def close(self) -> None:
        self.store.close()


def build_services(
    settings: Settings | None = None,
    *,
    genai_client: Any | None = None,
) -> Services:
    """
    Wire storage, model providers and the orchestrators together.

    *genai_client* replaces the Google GenAI client for all providers.
    Without one, a missing API key raises ``ConfigurationError`` before
    anything is opened.
    """
    settings = settings or Settings.from_env()
    if genai_client is None:
        missing = validate_settings(settings)
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}"
            )
    store = DuckDBDocumentStore(resolve_db_path(settings.db_path))
    blobs = LocalBlobStore(resolve_blob_root(settings.blob_root))

    embeddings = EmbeddingProvider(api_key=settings.google_api_key, client=genai_client)
    summarizer = Summarizer(api_key=settings.google_api_key, client=genai_client)
    answers = AnswerGenerator(api_key=settings.google_api_key, client=genai_client)

    search = SemanticSearchEngine(store, embeddings, min_score=settings.min_score)
    processor = DocumentProcessor(
        store,
        blobs,
        summarizer,
        embeddings,
        max_file_size=settings.max_file_size,
        allowed_file_types=settings.allowed_file_types,
    )
    chat = ChatService(search, answers, context_max_chars=settings.context_max_chars)
    return Services(
        settings=settings,
        store=store,
        blobs=blobs,
        embeddings=embeddings,
        summarizer=summarizer,
        answers=answers,
        search=search,
        processor=processor,
        chat=chat,
    )
