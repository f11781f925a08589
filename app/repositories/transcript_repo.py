"""Transcript repository for archive database operations."""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.transcript import Transcript


@dataclass(frozen=True)
class TranscriptAggregate:
    """Immutable result object for aggregate statistics."""

    total_sessions: int
    total_messages: int
    total_characters: int
    avg_duration_seconds: float
    avg_messages_per_session: float
    last_session_date: datetime | None


class TranscriptRepository:
    """Encapsulates chat transcript database queries."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_transcript(self, transcript: Transcript) -> Transcript:
        """Insert a single transcript row."""
        self._session.add(transcript)
        await self._session.flush()
        return transcript

    async def find_latest_by_session_id(self, session_id: str) -> Transcript | None:
        """Find the most recently ended transcript for a session id."""
        result = await self._session.execute(
            select(Transcript)
            .where(Transcript.session_id == session_id)
            .order_by(Transcript.ended_at.desc(), Transcript.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def find_recent(self, limit: int, offset: int) -> list[Transcript]:
        """Fetch transcripts ordered by ended_at DESC with offset pagination."""
        result = await self._session.execute(
            select(Transcript)
            .order_by(Transcript.ended_at.desc(), Transcript.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def aggregate(self) -> TranscriptAggregate:
        """Compute totals and averages over all transcripts."""
        result = await self._session.execute(
            select(
                func.count(Transcript.id).label("total_sessions"),
                func.sum(Transcript.message_count).label("total_messages"),
                func.sum(Transcript.total_characters).label("total_characters"),
                func.avg(Transcript.duration_seconds).label("avg_duration_seconds"),
                func.avg(Transcript.message_count).label("avg_messages_per_session"),
                func.max(Transcript.ended_at).label("last_session_date"),
            )
        )
        row = result.one()
        return TranscriptAggregate(
            total_sessions=int(row.total_sessions or 0),
            total_messages=int(row.total_messages or 0),
            total_characters=int(row.total_characters or 0),
            avg_duration_seconds=float(row.avg_duration_seconds or 0),
            avg_messages_per_session=float(row.avg_messages_per_session or 0),
            last_session_date=row.last_session_date,
        )

    async def delete_ended_before(self, cutoff: datetime) -> int:
        """Hard-delete transcripts whose ended_at precedes ``cutoff``."""
        result = await self._session.execute(
            delete(Transcript).where(Transcript.ended_at < cutoff)
        )
        return int(result.rowcount or 0)
