"""
SmartDocs - document storage with AI summaries, semantic search and Q&A.

Documents are stored as raw blobs plus metadata, summarized and embedded
with Google GenAI, and ranked per user by cosine similarity against a
query embedding.

Example usage:
    >>> from smartdocs import build_services
    >>> services = build_services()
    >>> results = await services.search.search(user_id="u1", query="purchase price")
"""

from .answering import AnswerGenerator, build_context
from .chat import ChatService
from .embeddings import EmbeddingProvider
from .errors import (
    AnswerGenerationError,
    ConfigurationError,
    DimensionMismatch,
    EmbeddingProviderError,
    SearchUnavailable,
    SmartDocsError,
    SummarizationError,
)
from .models import (
    ChatMessage,
    ChatResponse,
    Document,
    DocumentStatus,
    DocumentSummary,
    SearchResult,
    User,
)
from .search import SemanticSearchEngine, rank_results
from .services import Services, build_services
from .similarity import cosine_similarity
from .summarizer import Summarizer, parse_summary

__all__ = [
    # Core
    "cosine_similarity",
    "rank_results",
    "SemanticSearchEngine",
    "EmbeddingProvider",
    "Summarizer",
    "parse_summary",
    "AnswerGenerator",
    "build_context",
    "ChatService",
    # Wiring
    "Services",
    "build_services",
    # Models
    "ChatMessage",
    "ChatResponse",
    "Document",
    "DocumentStatus",
    "DocumentSummary",
    "SearchResult",
    "User",
    # Errors
    "SmartDocsError",
    "DimensionMismatch",
    "EmbeddingProviderError",
    "SummarizationError",
    "AnswerGenerationError",
    "SearchUnavailable",
    "ConfigurationError",
]
