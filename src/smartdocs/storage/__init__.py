"""Storage backends for SmartDocs metadata and raw files."""

from .base import BlobStore, DocumentStore
from .blob import LocalBlobStore, content_type
from .duckdb import DuckDBDocumentStore

__all__ = [
    "BlobStore",
    "DocumentStore",
    "LocalBlobStore",
    "content_type",
    "DuckDBDocumentStore",
]
