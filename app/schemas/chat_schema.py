"""Chat request and response schemas."""

from typing import Literal

from pydantic import BaseModel, Field

from app.schemas.base_schema import CamelModel


class ChatRequest(BaseModel):
    """Chat API request schema."""

    query: str = Field(..., min_length=1, max_length=4000)


class ChatReplyResponse(CamelModel):
    """Answer produced for one chat turn."""

    session_id: str
    message_id: str
    user_query: str
    bot_response: str
    timestamp: int


class StreamEvent(BaseModel):
    """Fragment of a streamed answer.

    ``chunk`` events carry incremental text; the final ``complete`` event
    carries the accumulated answer.
    """

    event: Literal["chunk", "complete"]
    data: str


class AnswerResponse(CamelModel):
    """Answer to a one-off question asked outside any session."""

    query: str
    answer: str
