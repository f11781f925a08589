"""Chat transcript database model."""

from datetime import datetime

from sqlalchemy import JSON, DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class Transcript(Base):
    """Durable archive of a terminated chat session.

    Rows are insert-only. A session id that is reused after termination
    produces a new row rather than updating the previous one.
    """

    __tablename__ = "chat_transcripts"
    __table_args__ = (
        Index("ix_chat_transcripts_session_id_ended_at", "session_id", "ended_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    session_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    user_messages: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    bot_responses: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    message_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ended_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    duration_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_characters: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
