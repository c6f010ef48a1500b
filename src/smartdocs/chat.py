"""
Question answering over a user's documents: search, assemble, answer.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .answering import AnswerGenerator, build_context
from .models import ChatMessage, ChatResponse
from .search import SemanticSearchEngine


logger = logging.getLogger(__name__)


class ChatService:
    """Answer a user's question from their most relevant documents."""

    def __init__(
        self,
        search_engine: SemanticSearchEngine,
        answer_generator: AnswerGenerator,
        *,
        context_max_chars: int = 12000,
    ) -> None:
        self.search_engine = search_engine
        self.answer_generator = answer_generator
        self.context_max_chars = context_max_chars

    async def ask(
        self,
        *,
        user_id: str,
        message: str,
        history: Sequence[ChatMessage] = (),
        document_ids: Sequence[str] | None = None,
        limit: int = 5,
        min_score: float | None = None,
    ) -> ChatResponse:
        results = await self.search_engine.search(
            user_id=user_id,
            query=message,
            limit=limit,
            min_score=min_score,
            document_ids=set(document_ids) if document_ids is not None else None,
        )
        context = build_context(results, max_chars=self.context_max_chars)
        answer = await self.answer_generator.generate(message, context.text, history)
        logger.info(
            f"Answered question for user {user_id} using {len(context.sources)} sources"
        )
        return ChatResponse(message=answer, sources=context.sources)
