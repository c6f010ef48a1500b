"""
DuckDB storage backend for document and user metadata.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import duckdb

from ..errors import DuplicateUser
from ..models import Document, DocumentStatus, User


logger = logging.getLogger(__name__)

_DOCUMENT_COLUMNS = """
    id, user_id, file_name, file_type, file_size, uploaded_at, status,
    blob_url, summary, key_points_json, themes_json, embedding_json, error
"""

_USER_COLUMNS = "id, email, name, created_at, storage_used, storage_quota, plan"


def _to_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _from_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value)


class DuckDBDocumentStore:
    """DuckDB-backed persistence for documents and users, keyed by user id."""

    def __init__(
        self,
        db_path: str,
        *,
        read_only: bool = False,
        initialize: bool = True,
    ) -> None:
        if db_path == ":memory:":
            self.db_path = db_path
        else:
            self.db_path = str(Path(db_path).expanduser().resolve())
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.read_only = read_only
        self._conn = duckdb.connect(self.db_path, read_only=read_only)
        if initialize and not read_only:
            self.initialize()

    def close(self) -> None:
        """Close the underlying DuckDB connection."""
        self._conn.close()

    def initialize(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                id VARCHAR PRIMARY KEY,
                email VARCHAR NOT NULL,
                name VARCHAR NOT NULL,
                created_at VARCHAR NOT NULL,
                storage_used BIGINT NOT NULL DEFAULT 0,
                storage_quota BIGINT NOT NULL,
                plan VARCHAR NOT NULL DEFAULT 'free'
            );
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS documents (
                id VARCHAR PRIMARY KEY,
                user_id VARCHAR NOT NULL,
                file_name VARCHAR NOT NULL,
                file_type VARCHAR NOT NULL,
                file_size BIGINT NOT NULL,
                uploaded_at VARCHAR NOT NULL,
                status VARCHAR NOT NULL,
                blob_url VARCHAR NOT NULL,
                summary VARCHAR,
                key_points_json VARCHAR NOT NULL DEFAULT '[]',
                themes_json VARCHAR NOT NULL DEFAULT '[]',
                embedding_json VARCHAR,
                error VARCHAR
            );
            """
        )
        self._conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_documents_user_id ON documents(user_id);"
        )

    # ==================== DOCUMENT OPERATIONS ====================

    def create_document(self, document: Document) -> Document:
        self._conn.execute(
            f"INSERT INTO documents ({_DOCUMENT_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            self._document_params(document),
        )
        logger.info(f"Created document: {document.id}")
        return document

    def get_document(self, document_id: str, user_id: str) -> Document | None:
        row = self._conn.execute(
            f"""
            SELECT {_DOCUMENT_COLUMNS}
            FROM documents
            WHERE id = ? AND user_id = ?
            LIMIT 1
            """,
            [document_id, user_id],
        ).fetchone()
        if row is None:
            return None
        return self._row_to_document(row)

    def list_user_documents(self, user_id: str) -> list[Document]:
        rows = self._conn.execute(
            f"""
            SELECT {_DOCUMENT_COLUMNS}
            FROM documents
            WHERE user_id = ?
            ORDER BY uploaded_at DESC, id ASC
            """,
            [user_id],
        ).fetchall()
        return [self._row_to_document(row) for row in rows]

    def list_completed_with_embedding(self, user_id: str) -> list[Document]:
        rows = self._conn.execute(
            f"""
            SELECT {_DOCUMENT_COLUMNS}
            FROM documents
            WHERE user_id = ?
              AND status = ?
              AND embedding_json IS NOT NULL
            ORDER BY uploaded_at DESC, id ASC
            """,
            [user_id, DocumentStatus.COMPLETED.value],
        ).fetchall()
        return [self._row_to_document(row) for row in rows]

    def update_document(self, document: Document) -> Document:
        params = self._document_params(document)
        self._conn.execute(
            """
            UPDATE documents SET
                file_name = ?,
                file_type = ?,
                file_size = ?,
                uploaded_at = ?,
                status = ?,
                blob_url = ?,
                summary = ?,
                key_points_json = ?,
                themes_json = ?,
                embedding_json = ?,
                error = ?
            WHERE id = ? AND user_id = ?
            """,
            [*params[2:], params[0], params[1]],
        )
        logger.info(f"Updated document: {document.id}")
        return document

    def delete_document(self, document_id: str, user_id: str) -> bool:
        if self.get_document(document_id, user_id) is None:
            return False
        self._conn.execute(
            "DELETE FROM documents WHERE id = ? AND user_id = ?",
            [document_id, user_id],
        )
        logger.info(f"Deleted document: {document_id}")
        return True

    def search_documents(self, user_id: str, term: str) -> list[Document]:
        needle = term.strip().lower()
        if not needle:
            return []
        rows = self._conn.execute(
            f"""
            SELECT {_DOCUMENT_COLUMNS}
            FROM documents
            WHERE user_id = ?
              AND (
                contains(lower(file_name), ?)
                OR contains(lower(coalesce(summary, '')), ?)
              )
            ORDER BY uploaded_at DESC, id ASC
            """,
            [user_id, needle, needle],
        ).fetchall()
        return [self._row_to_document(row) for row in rows]

    # ==================== USER OPERATIONS ====================

    def create_user(self, user: User) -> User:
        if self.get_user(user.id) is not None:
            raise DuplicateUser(f"User already exists: {user.id}")
        if self.get_user_by_email(user.email) is not None:
            raise DuplicateUser(f"Email already registered: {user.email}")
        try:
            self._conn.execute(
                f"INSERT INTO users ({_USER_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                self._user_params(user),
            )
        except duckdb.ConstraintException as e:
            raise DuplicateUser(f"Failed to create user {user.id}: {e}") from e
        logger.info(f"Created user: {user.id}")
        return user

    def get_user(self, user_id: str) -> User | None:
        row = self._conn.execute(
            f"SELECT {_USER_COLUMNS} FROM users WHERE id = ? LIMIT 1",
            [user_id],
        ).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def get_user_by_email(self, email: str) -> User | None:
        row = self._conn.execute(
            f"SELECT {_USER_COLUMNS} FROM users WHERE lower(email) = lower(?) LIMIT 1",
            [email],
        ).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def update_user(self, user: User) -> User:
        existing = self.get_user_by_email(user.email)
        if existing is not None and existing.id != user.id:
            raise DuplicateUser(f"Email already registered: {user.email}")
        params = self._user_params(user)
        self._conn.execute(
            """
            UPDATE users SET
                email = ?,
                name = ?,
                created_at = ?,
                storage_used = ?,
                storage_quota = ?,
                plan = ?
            WHERE id = ?
            """,
            [*params[1:], params[0]],
        )
        logger.info(f"Updated user: {user.id}")
        return user

    def delete_user(self, user_id: str) -> bool:
        if self.get_user(user_id) is None:
            return False
        self._conn.execute("DELETE FROM users WHERE id = ?", [user_id])
        logger.info(f"Deleted user: {user_id}")
        return True

    def adjust_storage_used(self, user_id: str, delta: int) -> User | None:
        self._conn.execute(
            "UPDATE users SET storage_used = greatest(storage_used + ?, 0) WHERE id = ?",
            [delta, user_id],
        )
        return self.get_user(user_id)

    # ==================== ROW MAPPING ====================

    @staticmethod
    def _document_params(document: Document) -> list[Any]:
        return [
            document.id,
            document.user_id,
            document.file_name,
            document.file_type,
            document.file_size,
            _to_timestamp(document.uploaded_at),
            document.status.value,
            document.blob_url,
            document.summary,
            json.dumps(document.key_points),
            json.dumps(document.themes),
            json.dumps(document.embedding) if document.embedding is not None else None,
            document.error,
        ]

    @staticmethod
    def _row_to_document(row: tuple[Any, ...]) -> Document:
        return Document(
            id=str(row[0]),
            user_id=str(row[1]),
            file_name=str(row[2]),
            file_type=str(row[3]),
            file_size=int(row[4]),
            uploaded_at=_from_timestamp(str(row[5])),
            status=DocumentStatus(str(row[6])),
            blob_url=str(row[7]),
            summary=str(row[8]) if row[8] is not None else None,
            key_points=json.loads(str(row[9])),
            themes=json.loads(str(row[10])),
            embedding=json.loads(str(row[11])) if row[11] is not None else None,
            error=str(row[12]) if row[12] is not None else None,
        )

    @staticmethod
    def _user_params(user: User) -> list[Any]:
        return [
            user.id,
            user.email,
            user.name,
            _to_timestamp(user.created_at),
            user.storage_used,
            user.storage_quota,
            user.plan,
        ]

    @staticmethod
    def _row_to_user(row: tuple[Any, ...]) -> User:
        return User(
            id=str(row[0]),
            email=str(row[1]),
            name=str(row[2]),
            created_at=_from_timestamp(str(row[3])),
            storage_used=int(row[4]),
            storage_quota=int(row[5]),
            plan=str(row[6]),  # type: ignore[arg-type]
        )
