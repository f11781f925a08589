"""Transcript archive schemas."""

from datetime import datetime

from app.schemas.base_schema import CamelModel


class TranscriptSummary(CamelModel):
    """Statistics of one archived transcript without message bodies."""

    transcript_id: str
    session_id: str
    message_count: int
    total_characters: int
    duration_seconds: int
    started_at: datetime
    ended_at: datetime
    saved_at: datetime


class TranscriptDetail(CamelModel):
    """Full archived transcript."""

    transcript_id: str
    session_id: str
    user_messages: list[str]
    bot_responses: list[str]
    message_count: int
    started_at: datetime
    ended_at: datetime
    duration_seconds: int
    total_characters: int
    created_at: datetime | None = None


class TranscriptListResponse(CamelModel):
    """A page of transcript summaries, newest first."""

    transcripts: list[TranscriptSummary]
    count: int
    limit: int
    offset: int


class TranscriptStats(CamelModel):
    """Aggregates over every stored transcript."""

    total_sessions: int = 0
    total_messages: int = 0
    total_characters: int = 0
    avg_duration_seconds: float = 0.0
    avg_messages_per_session: float = 0.0
    last_session_date: datetime | None = None


class PurgeResponse(CamelModel):
    """Outcome of a retention purge."""

    deleted: int
    older_than_days: int
