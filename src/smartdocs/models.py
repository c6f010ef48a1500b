from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Literal, TypeAlias

from pydantic import BaseModel, Field, model_validator

Plan: TypeAlias = Literal["free", "pro"]
Role: TypeAlias = Literal["user", "assistant", "system"]

DEFAULT_STORAGE_QUOTA = 5 * 1024 * 1024 * 1024


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class DocumentStatus(str, Enum):
    UPLOADING = "uploading"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Document(BaseModel):
    """Metadata for a stored user document"""

    id: str = Field(default_factory=new_id)
    user_id: str = Field(description="Owner of the document")
    file_name: str
    file_type: str = Field(description="MIME type of the raw file")
    file_size: int = Field(ge=0, description="Size of the raw file in bytes")
    uploaded_at: datetime = Field(default_factory=utcnow)
    status: DocumentStatus = DocumentStatus.UPLOADING
    blob_url: str = Field(description="Reference to the raw bytes in the blob store")
    summary: str | None = None
    key_points: list[str] = Field(default_factory=list)
    themes: list[str] = Field(default_factory=list)
    embedding: list[float] | None = None
    error: str | None = None

    @model_validator(mode="after")
    def _check_status_fields(self) -> "Document":
        if self.embedding is not None and self.status != DocumentStatus.COMPLETED:
            raise ValueError("embedding is only allowed on completed documents")
        if self.error is not None and self.status != DocumentStatus.FAILED:
            raise ValueError("error is only allowed on failed documents")
        return self

    def mark_processing(self) -> "Document":
        return self.model_copy(
            update={"status": DocumentStatus.PROCESSING, "embedding": None, "error": None}
        )

    def mark_completed(
        self, summary: "DocumentSummary", embedding: list[float]
    ) -> "Document":
        return self.model_copy(
            update={
                "status": DocumentStatus.COMPLETED,
                "summary": summary.summary,
                "key_points": list(summary.key_points),
                "themes": list(summary.themes),
                "embedding": list(embedding),
                "error": None,
            }
        )

    def mark_failed(self, error: str) -> "Document":
        return self.model_copy(
            update={"status": DocumentStatus.FAILED, "embedding": None, "error": error}
        )


class User(BaseModel):
    """A SmartDocs account"""

    id: str = Field(default_factory=new_id)
    email: str
    name: str
    created_at: datetime = Field(default_factory=utcnow)
    storage_used: int = Field(default=0, ge=0)
    storage_quota: int = Field(default=DEFAULT_STORAGE_QUOTA, ge=0)
    plan: Plan = "free"

    @property
    def storage_remaining(self) -> int:
        return max(self.storage_quota - self.storage_used, 0)


class DocumentSummary(BaseModel):
    """Structured summary produced for a document"""

    summary: str = Field(description="A brief 2-3 sentence summary")
    key_points: list[str] = Field(default_factory=list)
    themes: list[str] = Field(default_factory=list)


class SearchResult(BaseModel):
    """A ranked document match"""

    document: Document
    score: float = Field(description="Cosine similarity in [-1, 1]")
    relevant_chunk: str | None = None


class ChatMessage(BaseModel):
    """A single role-tagged conversation turn"""

    role: Role
    content: str
    timestamp: datetime | None = None


class AnswerContext(BaseModel):
    """Context text assembled from ranked results within a length budget"""

    text: str
    sources: list[str] = Field(default_factory=list)


class ChatResponse(BaseModel):
    """Grounded answer and the documents it was drawn from"""

    message: str
    sources: list[str] = Field(default_factory=list)
