"""
Storage interfaces for document metadata and raw file bytes.
"""

from __future__ import annotations

from typing import Protocol

from ..models import Document, User


class DocumentStore(Protocol):
    """Protocol for document and user metadata persistence, partitioned by user."""

    def initialize(self) -> None:
        """Initialize required tables/indexes."""

    def create_document(self, document: Document) -> Document:
        """Insert a new document record."""

    def get_document(self, document_id: str, user_id: str) -> Document | None:
        """Fetch a document owned by *user_id*."""

    def list_user_documents(self, user_id: str) -> list[Document]:
        """List a user's documents, newest upload first."""

    def list_completed_with_embedding(self, user_id: str) -> list[Document]:
        """List a user's completed documents that carry an embedding."""

    def update_document(self, document: Document) -> Document:
        """Replace a stored document record."""

    def delete_document(self, document_id: str, user_id: str) -> bool:
        """Delete a document. Return True when a row was removed."""

    def search_documents(self, user_id: str, term: str) -> list[Document]:
        """Case-insensitive substring match over file name and summary."""

    def create_user(self, user: User) -> User:
        """Insert a new user."""

    def get_user(self, user_id: str) -> User | None:
        """Fetch a user by id."""

    def get_user_by_email(self, email: str) -> User | None:
        """Fetch a user by email."""

    def update_user(self, user: User) -> User:
        """Replace a stored user record."""

    def delete_user(self, user_id: str) -> bool:
        """Delete a user. Return True when a row was removed."""

    def adjust_storage_used(self, user_id: str, delta: int) -> User | None:
        """Add *delta* bytes to a user's storage counter, never below zero."""


class BlobStore(Protocol):
    """Protocol for raw file persistence."""

    def upload(self, user_id: str, file_name: str, data: bytes) -> str:
        """Store bytes and return the blob URL."""

    def download(self, blob_url: str) -> bytes:
        """Return the bytes stored at *blob_url*."""

    def delete(self, blob_url: str) -> None:
        """Remove the blob at *blob_url*."""

    def exists(self, blob_url: str) -> bool:
        """Return True if *blob_url* resolves to a stored blob."""

    def list_user_files(self, user_id: str) -> list[str]:
        """List blob URLs stored for a user."""
