"""
Local filesystem blob store.

Blobs are laid out as ``users/{user_id}/documents/{file_name}`` under a root
directory and addressed by ``file://`` URLs.
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from urllib.parse import unquote, urlparse

from ..errors import BlobNotFound


logger = logging.getLogger(__name__)

CONTENT_TYPES: dict[str, str] = {
    "pdf": "application/pdf",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "doc": "application/msword",
    "txt": "text/plain",
    "md": "text/markdown",
}


def content_type(file_name: str) -> str:
    """Return the MIME type for a file name based on its extension."""
    extension = PurePosixPath(file_name).suffix.lower().lstrip(".")
    return CONTENT_TYPES.get(extension, "application/octet-stream")


def blob_name(user_id: str, file_name: str) -> str:
    safe_user = PurePosixPath(user_id).name
    safe_file = PurePosixPath(file_name.replace("\\", "/")).name
    if not safe_user or not safe_file or safe_file in {".", ".."}:
        raise ValueError(f"Invalid blob name for user {user_id!r}: {file_name!r}")
    return f"users/{safe_user}/documents/{safe_file}"


class LocalBlobStore:
    """Store raw file bytes on the local filesystem."""

    def __init__(self, root: str) -> None:
        self.root = Path(root).expanduser().resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def upload(self, user_id: str, file_name: str, data: bytes) -> str:
        path = self.root / blob_name(user_id, file_name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info(f"Uploaded: {path.relative_to(self.root)}")
        return path.as_uri()

    def download(self, blob_url: str) -> bytes:
        path = self._path_from_url(blob_url)
        if not path.is_file():
            raise BlobNotFound(f"No such blob: {blob_url}")
        data = path.read_bytes()
        logger.info(f"Downloaded: {path.relative_to(self.root)}")
        return data

    def delete(self, blob_url: str) -> None:
        path = self._path_from_url(blob_url)
        if not path.is_file():
            raise BlobNotFound(f"No such blob: {blob_url}")
        path.unlink()
        logger.info(f"Deleted: {path.relative_to(self.root)}")

    def exists(self, blob_url: str) -> bool:
        try:
            return self._path_from_url(blob_url).is_file()
        except BlobNotFound:
            return False

    def list_user_files(self, user_id: str) -> list[str]:
        prefix = self.root / "users" / PurePosixPath(user_id).name / "documents"
        if not prefix.is_dir():
            return []
        return [path.as_uri() for path in sorted(prefix.iterdir()) if path.is_file()]

    def _path_from_url(self, blob_url: str) -> Path:
        parsed = urlparse(blob_url)
        if parsed.scheme != "file":
            raise BlobNotFound(f"Unsupported blob URL: {blob_url}")
        path = Path(unquote(parsed.path)).resolve()
        if not path.is_relative_to(self.root):
            raise BlobNotFound(f"Blob URL outside store root: {blob_url}")
        return path
