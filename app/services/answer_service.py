"""Grounded answer generation from retrieved news passages."""

from collections.abc import AsyncGenerator, Sequence

import structlog
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from app.schemas.chat_schema import StreamEvent
from app.schemas.retriever_schema import RetrievedPassage
from app.schemas.session_schema import ChatMessage
from app.services.retriever_service import NewsRetriever

logger = structlog.get_logger()

NO_CONTEXT_ANSWER = "I did not find relevant information"

SYSTEM_PROMPT = (
    "You are an assistant that answers questions based on retrieved news articles.\n"
    "Use the provided context to answer the query. If the answer is not in the "
    f'context, say "{NO_CONTEXT_ANSWER}".'
)

QUERY_TEMPLATE = "Query: {query}\n\nContext:\n{context}\n\nAnswer:"


def build_context(passages: Sequence[RetrievedPassage]) -> str:
    """Render retrieved passages as numbered sources."""
    blocks = []
    for index, passage in enumerate(passages, start=1):
        text = passage.metadata.get("textContent") or passage.chunk or ""
        link = passage.metadata.get("link", "")
        blocks.append(f"Source {index}:\n{text}\nRead more: {link}")
    return "\n\n".join(blocks)


class AnswerService:
    """Retrieves context for a query and asks the LLM for an answer."""

    def __init__(self, llm: BaseChatModel, retriever: NewsRetriever) -> None:
        self._llm = llm
        self._retriever = retriever

    async def _build_messages(
        self, query: str, history: Sequence[ChatMessage]
    ) -> list[BaseMessage] | None:
        passages = await self._retriever.search(query)
        if not passages:
            return None
        messages: list[BaseMessage] = [SystemMessage(content=SYSTEM_PROMPT)]
        for turn in history:
            messages.append(HumanMessage(content=turn.user_query))
            messages.append(AIMessage(content=turn.bot_response))
        messages.append(
            HumanMessage(
                content=QUERY_TEMPLATE.format(
                    query=query, context=build_context(passages)
                )
            )
        )
        return messages

    async def generate(self, query: str, history: Sequence[ChatMessage] = ()) -> str:
        """Return a complete answer for ``query``."""
        messages = await self._build_messages(query, history)
        if messages is None:
            return NO_CONTEXT_ANSWER
        response = await self._llm.ainvoke(messages)
        return str(response.content)

    async def stream(
        self, query: str, history: Sequence[ChatMessage] = ()
    ) -> AsyncGenerator[StreamEvent, None]:
        """Yield answer fragments, then a ``complete`` event with the full text."""
        messages = await self._build_messages(query, history)
        if messages is None:
            yield StreamEvent(event="complete", data=NO_CONTEXT_ANSWER)
            return

        parts: list[str] = []
        async for chunk in self._llm.astream(messages):
            text = str(chunk.content)
            if text:
                parts.append(text)
                yield StreamEvent(event="chunk", data=text)

        full = "".join(parts)
        logger.debug("Answer stream finished", chunks=len(parts), length=len(full))
        yield StreamEvent(event="complete", data=full)
