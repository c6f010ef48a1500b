"""
Grounded question answering over ranked document context.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Sequence
from typing import Any

from google.genai import Client as GenAIClient
from google.genai.types import Content, Part

from .errors import AnswerGenerationError
from .models import AnswerContext, ChatMessage, SearchResult


logger = logging.getLogger(__name__)

_DEFAULT_MODEL = "gemini-2.5-flash"
_DEFAULT_TIMEOUT = 60.0
_DEFAULT_CONTEXT_MAX_CHARS = 12000

NO_ANSWER = "No answer generated"
NO_CONTEXT = "No relevant documents were found for this question."

SYSTEM_PROMPT = """
You are a helpful assistant that answers questions based on provided document context.
Always cite which document or section your answer comes from.
If the context doesn't contain relevant information, say so clearly instead of guessing.
"""

QUESTION_PROMPT = """
Context from documents:
{context}

Question: {question}

Please answer based on the context provided. Include source references.
"""

# The GenAI contents list only accepts "user" and "model" turns.
_ROLE_MAP: dict[str, str] = {
    "user": "user",
    "assistant": "model",
    "system": "user",
}


def format_passage(rank: int, result: SearchResult) -> str:
    """Render one ranked document as a citable context passage."""
    document = result.document
    lines = [f"[Source {rank}: {document.file_name}]"]
    lines.append(f"Summary: {document.summary or 'No summary available'}")
    if document.key_points:
        lines.append("Key points:")
        lines.extend(f"- {point}" for point in document.key_points)
    if document.themes:
        lines.append(f"Themes: {', '.join(document.themes)}")
    return "\n".join(lines)


def build_context(
    results: Sequence[SearchResult],
    *,
    max_chars: int = _DEFAULT_CONTEXT_MAX_CHARS,
) -> AnswerContext:
    """
    Concatenate passages in rank order within a total length budget.

    Once a passage no longer fits, it and every lower-ranked passage are
    dropped. The top passage is truncated rather than dropped so a
    non-empty result set always yields some context.
    """
    if max_chars <= 0:
        raise ValueError("max_chars must be > 0")

    separator = "\n\n"
    passages: list[str] = []
    sources: list[str] = []
    used = 0

    for rank, result in enumerate(results, start=1):
        passage = format_passage(rank, result)
        cost = len(passage) + (len(separator) if passages else 0)
        if used + cost > max_chars:
            if not passages:
                passages.append(passage[:max_chars])
                sources.append(result.document.file_name)
            break
        passages.append(passage)
        sources.append(result.document.file_name)
        used += cost

    if not passages:
        return AnswerContext(text=NO_CONTEXT, sources=[])
    return AnswerContext(text=separator.join(passages), sources=sources)


def history_to_contents(history: Sequence[ChatMessage]) -> list[Content]:
    """Replay conversation turns in their original order."""
    contents: list[Content] = []
    for message in history:
        text = message.content
        if message.role == "system":
            text = f"[system] {text}"
        contents.append(
            Content(role=_ROLE_MAP[message.role], parts=[Part.from_text(text=text)])
        )
    return contents


class AnswerGenerator:
    """Answer questions from assembled document context."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        temperature: float = 0.7,
        max_output_tokens: int = 1000,
        client: Any | None = None,
    ) -> None:
        self.model = model or os.getenv("SMARTDOCS_GENERATION_MODEL", _DEFAULT_MODEL)
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

    def build_contents(
        self,
        question: str,
        context: str,
        history: Sequence[ChatMessage] = (),
    ) -> list[Content]:
        contents = history_to_contents(history)
        contents.append(
            Content(
                role="user",
                parts=[
                    Part.from_text(
                        text=QUESTION_PROMPT.format(context=context, question=question)
                    )
                ],
            )
        )
        return contents

    async def generate(
        self,
        question: str,
        context: str,
        history: Sequence[ChatMessage] = (),
    ) -> str:
        contents = self.build_contents(question, context, history)
        try:
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(
                    model=self.model,
                    contents=contents,
                    config={
                        "system_instruction": SYSTEM_PROMPT,
                        "temperature": self.temperature,
                        "max_output_tokens": self.max_output_tokens,
                    },
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Answer request timed out after {self.timeout}s")
            raise AnswerGenerationError(
                f"Answer request timed out after {self.timeout}s"
            ) from e
        except Exception as e:
            logger.error(f"Generate answer failed: {e}")
            raise AnswerGenerationError(f"Failed to generate answer: {e}") from e

        answer = response.text
        logger.info("Generated answer")
        return answer.strip() if answer and answer.strip() else NO_ANSWER
