"""
Document processing pipeline: upload, extract, summarize, embed.
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath

from .config import DEFAULT_ALLOWED_FILE_TYPES, DEFAULT_MAX_FILE_SIZE
from .embeddings import EmbeddingProvider
from .errors import DocumentNotFound, QuotaExceeded, UnsupportedFileType, UserNotFound
from .extract import extract_text
from .models import Document, DocumentStatus, new_id
from .storage import BlobStore, DocumentStore, content_type
from .summarizer import Summarizer


logger = logging.getLogger(__name__)


class DocumentProcessor:
    """Move an uploaded file from raw bytes to a searchable document."""

    def __init__(
        self,
        store: DocumentStore,
        blobs: BlobStore,
        summarizer: Summarizer,
        embedding_provider: EmbeddingProvider,
        *,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        allowed_file_types: tuple[str, ...] = DEFAULT_ALLOWED_FILE_TYPES,
    ) -> None:
        self.store = store
        self.blobs = blobs
        self.summarizer = summarizer
        self.embedding_provider = embedding_provider
        self.max_file_size = max_file_size
        self.allowed_file_types = tuple(t.lower() for t in allowed_file_types)

    def validate_upload(self, user_id: str, file_name: str, size: int) -> None:
        extension = PurePosixPath(file_name).suffix.lower().lstrip(".")
        if extension not in self.allowed_file_types:
            raise UnsupportedFileType(
                f"File type '.{extension}' is not allowed. "
                f"Allowed types: {', '.join(self.allowed_file_types)}"
            )
        if size > self.max_file_size:
            raise QuotaExceeded(
                f"File is {size} bytes, the limit is {self.max_file_size} bytes"
            )
        user = self.store.get_user(user_id)
        if user is None:
            raise UserNotFound(f"Unknown user: {user_id}")
        if size > user.storage_remaining:
            raise QuotaExceeded(
                f"Upload of {size} bytes exceeds remaining quota "
                f"of {user.storage_remaining} bytes"
            )

    def upload(self, user_id: str, file_name: str, data: bytes) -> Document:
        """Store the raw bytes and record the document as PROCESSING."""
        self.validate_upload(user_id, file_name, len(data))

        document_id = new_id()
        base_name = PurePosixPath(file_name.replace("\\", "/")).name
        # Keyed by document id so re-uploading a file name never shares a blob.
        blob_url = self.blobs.upload(user_id, f"{document_id}-{base_name}", data)
        document = Document(
            id=document_id,
            user_id=user_id,
            file_name=base_name,
            file_type=content_type(file_name),
            file_size=len(data),
            status=DocumentStatus.PROCESSING,
            blob_url=blob_url,
        )
        self.store.create_document(document)
        self.store.adjust_storage_used(user_id, len(data))
        return document

    async def process(self, document: Document) -> Document:
        """
        Summarize and embed a stored document.

        Failures are recorded on the document as FAILED with the error
        message; the returned document always reflects the stored state.
        """
        document = document.mark_processing()
        self.store.update_document(document)
        try:
            data = self.blobs.download(document.blob_url)
            text = extract_text(data, document.file_type)
            if not text.strip():
                raise ValueError("No text content extracted from file")

            summary = await self.summarizer.summarize(text)
            embedding = await self.embedding_provider.embed(text)
            document = document.mark_completed(summary, embedding)
            logger.info(f"Document {document.id} processed")
        except Exception as e:
            logger.error(f"Error processing document {document.id}: {e}")
            document = document.mark_failed(str(e))

        return self.store.update_document(document)

    async def upload_and_process(
        self, user_id: str, file_name: str, data: bytes
    ) -> Document:
        document = self.upload(user_id, file_name, data)
        return await self.process(document)

    def delete(self, user_id: str, document_id: str) -> Document:
        """Remove a document's blob and metadata and release its storage."""
        document = self.store.get_document(document_id, user_id)
        if document is None:
            raise DocumentNotFound(f"Document {document_id} not found")

        if self.blobs.exists(document.blob_url):
            self.blobs.delete(document.blob_url)
        else:
            logger.warning(f"Blob already missing for document {document_id}")
        self.store.delete_document(document_id, user_id)
        self.store.adjust_storage_used(user_id, -document.file_size)
        return document
