"""
Exception hierarchy for SmartDocs services.
"""

from __future__ import annotations


class SmartDocsError(Exception):
    """Base class for all SmartDocs errors."""


class DimensionMismatch(SmartDocsError, ValueError):
    """Raised when two vectors of unequal length are compared."""


class ProviderError(SmartDocsError):
    """Raised when an upstream model provider call fails."""


class EmbeddingProviderError(ProviderError):
    """Raised when the embedding API fails (network, auth, rate limit, timeout)."""


class SummarizationError(ProviderError):
    """Raised when the summary generation call fails."""


class AnswerGenerationError(ProviderError):
    """Raised when the answer generation call fails."""


class SearchUnavailable(SmartDocsError):
    """Raised when semantic search cannot run because the query could not be embedded."""


class DocumentNotFound(SmartDocsError):
    """Raised when a document does not exist for the requesting user."""


class BlobNotFound(SmartDocsError):
    """Raised when a blob URL does not resolve to a stored file."""


class DuplicateUser(SmartDocsError):
    """Raised when a user with the same id or email already exists."""


class QuotaExceeded(SmartDocsError):
    """Raised when an upload would exceed the user's storage quota or size limit."""


class UnsupportedFileType(SmartDocsError):
    """Raised when a file type cannot be stored or parsed."""


class UserNotFound(SmartDocsError):
    """Raised when a user id does not exist."""


class ConfigurationError(SmartDocsError):
    """Raised when required settings such as the API key are missing."""
