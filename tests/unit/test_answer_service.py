"""Unit tests for AnswerService."""

from collections.abc import AsyncGenerator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.messages import AIMessage, AIMessageChunk, HumanMessage, SystemMessage

from app.schemas.retriever_schema import RetrievedPassage
from app.schemas.session_schema import ChatMessage
from app.services.answer_service import (
    NO_CONTEXT_ANSWER,
    AnswerService,
    build_context,
)

PASSAGE = RetrievedPassage(
    id="p1",
    score=0.9,
    chunk="fallback chunk",
    metadata={"textContent": "Markets rallied today.", "link": "https://news/1"},
)


def _astream(*parts: str):  # type: ignore[no-untyped-def]
    async def _gen(messages: Any, **kwargs: Any) -> AsyncGenerator[AIMessageChunk, None]:
        for part in parts:
            yield AIMessageChunk(content=part)

    return _gen


class TestBuildContext:
    """Tests for build_context."""

    def test_numbers_sources(self) -> None:
        second = RetrievedPassage(id="p2", score=0.5, chunk="raw text", metadata={})
        context = build_context([PASSAGE, second])

        assert "Source 1:\nMarkets rallied today.\nRead more: https://news/1" in context
        assert "Source 2:\nraw text" in context

    def test_empty(self) -> None:
        assert build_context([]) == ""


class TestGenerate:
    """Tests for AnswerService.generate."""

    @pytest.mark.asyncio
    async def test_no_passages_skips_llm(
        self, mock_llm: MagicMock, mock_retriever: MagicMock
    ) -> None:
        service = AnswerService(mock_llm, mock_retriever)

        answer = await service.generate("anything?")

        assert answer == NO_CONTEXT_ANSWER
        mock_llm.ainvoke.assert_not_called()

    @pytest.mark.asyncio
    async def test_includes_context_and_history(
        self, mock_llm: MagicMock, mock_retriever: MagicMock
    ) -> None:
        mock_retriever.search = AsyncMock(return_value=[PASSAGE])
        service = AnswerService(mock_llm, mock_retriever)
        history = [ChatMessage(id="m1", user_query="hi", bot_response="hello!", timestamp=1)]

        answer = await service.generate("What happened?", history)

        assert answer == "Test response"
        messages = mock_llm.ainvoke.await_args.args[0]
        assert isinstance(messages[0], SystemMessage)
        assert isinstance(messages[1], HumanMessage)
        assert messages[1].content == "hi"
        assert isinstance(messages[2], AIMessage)
        assert messages[2].content == "hello!"
        assert "Query: What happened?" in messages[-1].content
        assert "Markets rallied today." in messages[-1].content
        mock_retriever.search.assert_awaited_once_with("What happened?")


class TestStream:
    """Tests for AnswerService.stream."""

    @pytest.mark.asyncio
    async def test_chunks_then_complete(
        self, mock_llm: MagicMock, mock_retriever: MagicMock
    ) -> None:
        mock_retriever.search = AsyncMock(return_value=[PASSAGE])
        mock_llm.astream = _astream("Markets ", "", "rallied.")
        service = AnswerService(mock_llm, mock_retriever)

        events = [event async for event in service.stream("What happened?")]

        assert [(e.event, e.data) for e in events] == [
            ("chunk", "Markets "),
            ("chunk", "rallied."),
            ("complete", "Markets rallied."),
        ]

    @pytest.mark.asyncio
    async def test_no_passages_yields_only_complete(
        self, mock_llm: MagicMock, mock_retriever: MagicMock
    ) -> None:
        service = AnswerService(mock_llm, mock_retriever)

        events = [event async for event in service.stream("anything?")]

        assert len(events) == 1
        assert events[0].event == "complete"
        assert events[0].data == NO_CONTEXT_ANSWER
