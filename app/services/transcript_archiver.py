"""Durable archive of terminated chat sessions."""

import asyncio
import math
import uuid
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TypeVar

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import (
    ArchiveWriteFailedError,
    InvalidArgumentError,
    TranscriptStoreError,
)
from app.models.transcript import Transcript
from app.repositories.transcript_repo import TranscriptRepository
from app.schemas.session_schema import ChatMessage
from app.schemas.transcript_schema import (
    TranscriptDetail,
    TranscriptStats,
    TranscriptSummary,
)

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class TranscriptMetrics:
    """Derived statistics for a batch of messages."""

    user_messages: list[str]
    bot_responses: list[str]
    message_count: int
    total_characters: int
    started_at: datetime
    ended_at: datetime
    duration_seconds: int


def millis_to_datetime(timestamp: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(timestamp / 1000, tz=UTC)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (e.g. from SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def compute_metrics(
    messages: Sequence[ChatMessage],
    started_at: datetime | None,
    ended_at: datetime,
) -> TranscriptMetrics:
    """Derive transcript statistics; a missing start defaults to the end."""
    ended_at = as_utc(ended_at)
    started_at = as_utc(started_at) if started_at is not None else ended_at
    elapsed = (ended_at - started_at).total_seconds()
    return TranscriptMetrics(
        user_messages=[m.user_query for m in messages],
        bot_responses=[m.bot_response for m in messages],
        message_count=len(messages),
        total_characters=sum(len(m.user_query) + len(m.bot_response) for m in messages),
        started_at=started_at,
        ended_at=ended_at,
        duration_seconds=max(0, math.floor(elapsed)),
    )


def to_summary(transcript: Transcript) -> TranscriptSummary:
    """Map an ORM row to its summary schema."""
    return TranscriptSummary(
        transcript_id=transcript.id,
        session_id=transcript.session_id,
        message_count=transcript.message_count,
        total_characters=transcript.total_characters,
        duration_seconds=transcript.duration_seconds,
        started_at=as_utc(transcript.started_at),
        ended_at=as_utc(transcript.ended_at),
        saved_at=as_utc(transcript.ended_at),
    )


def to_detail(transcript: Transcript) -> TranscriptDetail:
    """Map an ORM row to its full schema."""
    return TranscriptDetail(
        transcript_id=transcript.id,
        session_id=transcript.session_id,
        user_messages=list(transcript.user_messages),
        bot_responses=list(transcript.bot_responses),
        message_count=transcript.message_count,
        started_at=as_utc(transcript.started_at),
        ended_at=as_utc(transcript.ended_at),
        duration_seconds=transcript.duration_seconds,
        total_characters=transcript.total_characters,
        created_at=as_utc(transcript.created_at) if transcript.created_at else None,
    )


class TranscriptArchiver:
    """Writes and queries archived transcripts.

    Every operation runs in its own database session so the archiver can be
    shared by HTTP handlers, WebSocket connections and background jobs.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        timeout_seconds: float = 5.0,
        page_limit_max: int = 100,
    ) -> None:
        self._session_factory = session_factory
        self._timeout = timeout_seconds
        self._page_limit_max = page_limit_max

    async def _run(
        self,
        work: Callable[[TranscriptRepository], Awaitable[T]],
        commit: bool = False,
    ) -> T:
        async with asyncio.timeout(self._timeout):
            async with self._session_factory() as session:
                try:
                    result = await work(TranscriptRepository(session))
                    if commit:
                        await session.commit()
                    return result
                except Exception:
                    await session.rollback()
                    raise

    async def archive(
        self,
        session_id: str,
        messages: Sequence[ChatMessage],
        started_at: datetime | None = None,
        ended_at: datetime | None = None,
    ) -> TranscriptSummary:
        """Insert one transcript row for a terminated session."""
        if not messages:
            raise InvalidArgumentError(message="Cannot archive an empty session")

        metrics = compute_metrics(messages, started_at, ended_at or datetime.now(UTC))
        transcript = Transcript(
            id=str(uuid.uuid4()),
            session_id=session_id,
            user_messages=metrics.user_messages,
            bot_responses=metrics.bot_responses,
            message_count=metrics.message_count,
            started_at=metrics.started_at,
            ended_at=metrics.ended_at,
            duration_seconds=metrics.duration_seconds,
            total_characters=metrics.total_characters,
        )

        try:
            await self._run(
                lambda repo: repo.create_transcript(transcript), commit=True
            )
        except (SQLAlchemyError, TimeoutError) as exc:
            logger.error(
                "Transcript archive failed",
                session_id=session_id,
                message_count=metrics.message_count,
                error=repr(exc),
            )
            raise ArchiveWriteFailedError() from exc

        logger.info(
            "Transcript saved",
            session_id=session_id,
            transcript_id=transcript.id,
            message_count=metrics.message_count,
        )
        return TranscriptSummary(
            transcript_id=transcript.id,
            session_id=session_id,
            message_count=metrics.message_count,
            total_characters=metrics.total_characters,
            duration_seconds=metrics.duration_seconds,
            started_at=metrics.started_at,
            ended_at=metrics.ended_at,
            saved_at=metrics.ended_at,
        )

    async def _query(
        self, operation: str, work: Callable[[TranscriptRepository], Awaitable[T]]
    ) -> T:
        try:
            return await self._run(work)
        except (SQLAlchemyError, TimeoutError) as exc:
            logger.error("Transcript query failed", operation=operation, error=repr(exc))
            raise TranscriptStoreError() from exc

    async def fetch_latest(self, session_id: str) -> TranscriptDetail | None:
        """Most recent transcript for ``session_id``, or None."""

        async def _work(repo: TranscriptRepository) -> TranscriptDetail | None:
            row = await repo.find_latest_by_session_id(session_id)
            return to_detail(row) if row else None

        return await self._query("fetch_latest", _work)

    async def list_recent(self, limit: int, offset: int = 0) -> list[TranscriptSummary]:
        """Page through transcripts newest first."""
        if limit < 1 or limit > self._page_limit_max:
            raise InvalidArgumentError(
                message=f"Limit must be between 1 and {self._page_limit_max}"
            )
        if offset < 0:
            raise InvalidArgumentError(message="Offset cannot be negative")

        async def _work(repo: TranscriptRepository) -> list[TranscriptSummary]:
            return [to_summary(row) for row in await repo.find_recent(limit, offset)]

        return await self._query("list_recent", _work)

    async def aggregate_stats(self) -> TranscriptStats:
        """Totals and averages across every stored transcript."""

        async def _work(repo: TranscriptRepository) -> TranscriptStats:
            agg = await repo.aggregate()
            return TranscriptStats(
                total_sessions=agg.total_sessions,
                total_messages=agg.total_messages,
                total_characters=agg.total_characters,
                avg_duration_seconds=agg.avg_duration_seconds,
                avg_messages_per_session=agg.avg_messages_per_session,
                last_session_date=(
                    as_utc(agg.last_session_date) if agg.last_session_date else None
                ),
            )

        return await self._query("aggregate_stats", _work)

    async def purge_older_than(self, days: int) -> int:
        """Delete transcripts that ended more than ``days`` ago."""
        if days < 0:
            raise InvalidArgumentError(message="Days cannot be negative")
        cutoff = datetime.now(UTC) - timedelta(days=days)

        async def _work(repo: TranscriptRepository) -> int:
            return await repo.delete_ended_before(cutoff)

        try:
            deleted = await self._run(_work, commit=True)
        except (SQLAlchemyError, TimeoutError) as exc:
            logger.error("Transcript purge failed", days=days, error=repr(exc))
            raise TranscriptStoreError() from exc

        logger.info("Old transcripts purged", days=days, deleted=deleted)
        return deleted
