"""Ephemeral session schemas."""

from datetime import datetime

from app.schemas.base_schema import CamelModel


class ChatMessage(CamelModel):
    """One question/answer turn held in the session store."""

    id: str
    user_query: str
    bot_response: str
    timestamp: int


class SessionCreatedResponse(CamelModel):
    """Newly allocated session id."""

    session_id: str


class ActiveSessionsResponse(CamelModel):
    """Best-effort snapshot of live sessions."""

    sessions: list[str]
    count: int


class SessionHistoryResponse(CamelModel):
    """Chronological history of a live session."""

    session_id: str
    messages: list[ChatMessage]
    count: int


class TerminationOutcome(CamelModel):
    """Result of ending a session's ephemeral lifecycle."""

    session_id: str
    transcript_saved: bool
    message_count: int
    transcript_id: str | None = None
    duration_seconds: int | None = None
    total_characters: int | None = None
    saved_at: datetime | None = None
    clear_error: str | None = None


class TerminationFailureInfo(CamelModel):
    """A session whose termination failed during bulk cleanup."""

    session_id: str
    error: str


class BulkCleanupReport(CamelModel):
    """Per-session results of a bulk cleanup request."""

    reason: str | None = None
    outcomes: list[TerminationOutcome]
    failures: list[TerminationFailureInfo]
