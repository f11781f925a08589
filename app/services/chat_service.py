"""Chat turns: answer a query and record it in the session history."""

from collections.abc import AsyncGenerator

import structlog

from app.core.exceptions import AnswerGenerationError, AppException
from app.schemas.chat_schema import ChatReplyResponse, StreamEvent
from app.schemas.session_schema import ChatMessage
from app.services.answer_service import AnswerService
from app.services.session_store import SessionStore

logger = structlog.get_logger()


class ChatService:
    """Coordinates answer generation with the ephemeral session store."""

    def __init__(
        self,
        store: SessionStore,
        answer_service: AnswerService,
        max_history_length: int = 10,
    ) -> None:
        self._store = store
        self._answer_service = answer_service
        self._max_history = max_history_length

    async def _context(self, session_id: str) -> list[ChatMessage]:
        if self._max_history == 0:
            return []
        history = await self._store.read(session_id)
        return history[-self._max_history :]

    async def reply(self, session_id: str, query: str) -> ChatReplyResponse:
        """Generate a full answer and append the turn."""
        context = await self._context(session_id)
        try:
            answer = await self._answer_service.generate(query, context)
        except AppException:
            raise
        except Exception as exc:
            logger.exception("Answer generation failed", session_id=session_id)
            raise AnswerGenerationError() from exc

        message = await self._store.append(session_id, query, answer)
        return ChatReplyResponse(
            session_id=session_id,
            message_id=message.id,
            user_query=query,
            bot_response=answer,
            timestamp=message.timestamp,
        )

    async def stream_reply(
        self, session_id: str, query: str
    ) -> AsyncGenerator[StreamEvent | ChatMessage, None]:
        """Yield answer chunks, then the stored message once the answer completes."""
        context = await self._context(session_id)
        full_answer: str | None = None
        try:
            async for event in self._answer_service.stream(query, context):
                if event.event == "complete":
                    full_answer = event.data
                    break
                yield event
        except AppException:
            raise
        except Exception as exc:
            logger.exception("Answer streaming failed", session_id=session_id)
            raise AnswerGenerationError() from exc

        if full_answer is None:
            raise AnswerGenerationError(message="Answer stream ended without completing")

        yield await self._store.append(session_id, query, full_answer)
