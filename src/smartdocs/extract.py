"""
Plain-text extraction for uploaded files.
"""

from __future__ import annotations

import io

from pypdf import PdfReader

from .errors import UnsupportedFileType

_TEXT_TYPES = {"text/plain", "text/markdown"}


def _extract_text_pypdf(file_bytes: bytes) -> str:
    """Extract text from PDF using pypdf."""
    reader = PdfReader(io.BytesIO(file_bytes))
    pages = [page.extract_text() or "" for page in reader.pages]
    return "\n\n".join(pages)


def extract_text(file_bytes: bytes, mime_type: str) -> str:
    """
    Convert raw file bytes into text.

    - TXT / MD: UTF-8 decode, undecodable bytes replaced
    - PDF: pypdf page text joined by blank lines
    """
    if mime_type in _TEXT_TYPES:
        return file_bytes.decode("utf-8", errors="replace")
    if mime_type == "application/pdf":
        try:
            return _extract_text_pypdf(file_bytes)
        except Exception as e:
            raise UnsupportedFileType(f"Could not read PDF: {e}") from e
    raise UnsupportedFileType(f"Cannot extract text from {mime_type}")
