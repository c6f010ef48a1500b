"""
Document summarization via Google GenAI.

The model is asked for a JSON object, but its shape is not guaranteed, so
the response goes through ``parse_summary`` which substitutes defaults for
anything missing or malformed instead of failing.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any

from google.genai import Client as GenAIClient

from .embeddings import truncate_text
from .errors import SummarizationError
from .models import DocumentSummary


logger = logging.getLogger(__name__)

_DEFAULT_MODEL = "gemini-2.5-flash"
_DEFAULT_MAX_CHARS = 16000
_DEFAULT_TIMEOUT = 60.0

NO_SUMMARY = "No summary available"

SYSTEM_PROMPT = """
You are a helpful assistant that summarizes documents.
Provide a concise summary, key points, and main themes.
"""

USER_PROMPT = """
Please analyze this document and provide:
1. A brief 2-3 sentence summary
2. 3-5 key points
3. 2-5 main themes or topics

Document text:
{text}

Format your response as JSON:
{{
  "summary": "...",
  "keyPoints": ["...", "..."],
  "themes": ["...", "..."]
}}
"""


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _strip_code_fence(raw: str) -> str:
    text = raw.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def parse_summary(raw: str | None) -> DocumentSummary:
    """
    Decode a model response into a ``DocumentSummary``.

    Never raises: unparseable text, a non-object payload or a missing or
    mistyped field each fall back to the empty default for that field.
    """
    payload: Any = {}
    if raw:
        try:
            payload = json.loads(_strip_code_fence(raw))
        except ValueError:
            logger.warning("Summary response was not valid JSON, using defaults")
            payload = {}
    if not isinstance(payload, dict):
        payload = {}

    summary = payload.get("summary")
    if not isinstance(summary, str) or not summary.strip():
        summary = NO_SUMMARY

    key_points = payload.get("keyPoints", payload.get("key_points"))
    return DocumentSummary(
        summary=summary.strip(),
        key_points=_string_list(key_points),
        themes=_string_list(payload.get("themes")),
    )


class Summarizer:
    """Produce structured summaries for document text."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        max_chars: int | None = None,
        timeout: float | None = None,
        temperature: float = 0.7,
        max_output_tokens: int = 2000,
        client: Any | None = None,
    ) -> None:
        self.model = model or os.getenv("SMARTDOCS_GENERATION_MODEL", _DEFAULT_MODEL)
        self.max_chars = max_chars or int(
            os.getenv("SMARTDOCS_SUMMARY_MAX_CHARS", str(_DEFAULT_MAX_CHARS))
        )
        self.timeout = timeout or float(
            os.getenv("SMARTDOCS_GENERATION_TIMEOUT", str(_DEFAULT_TIMEOUT))
        )
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

        if client is not None:
            self._client = client
        else:
            resolved_key = api_key or os.getenv("GOOGLE_API_KEY")
            if resolved_key is None:
                raise ValueError(
                    "GOOGLE_API_KEY not found. "
                    "Provide api_key or set the environment variable."
                )
            self._client = GenAIClient(api_key=resolved_key)

    async def summarize(self, text: str) -> DocumentSummary:
        truncated = truncate_text(text, self.max_chars)
        try:
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(
                    model=self.model,
                    contents=USER_PROMPT.format(text=truncated),
                    config={
                        "system_instruction": SYSTEM_PROMPT,
                        "response_mime_type": "application/json",
                        "temperature": self.temperature,
                        "max_output_tokens": self.max_output_tokens,
                    },
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Summary request timed out after {self.timeout}s")
            raise SummarizationError(
                f"Summary request timed out after {self.timeout}s"
            ) from e
        except Exception as e:
            logger.error(f"Generate summary failed: {e}")
            raise SummarizationError(f"Failed to generate summary: {e}") from e

        logger.info("Generated summary")
        return parse_summary(response.text)
