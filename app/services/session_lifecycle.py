"""Session termination: archive live history, then clear it.

Termination is requested from three places (an explicit clear, a bulk
cleanup request and a dropped connection). All of them run the same
sequence through ``SessionLifecycleCoordinator``:

    read history
      empty     -> clear                           (CLEARED_EMPTY)
      non-empty -> archive -> clear                (DONE)
                   archive fails -> stop, history kept   (ARCHIVE_FAILED)
                   clear fails   -> report archive + error (CLEAR_FAILED)

The archive always happens before the clear so a failed write never loses
history. A per-session lock serializes concurrent terminations of the same
id inside this process; the loser of the race finds an empty history and
archives nothing.
"""

import asyncio
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Protocol

import structlog

from app.core.exceptions import AppException, TerminationFailedError
from app.schemas.session_schema import (
    BulkCleanupReport,
    TerminationFailureInfo,
    TerminationOutcome,
)
from app.services.session_store import SessionStore
from app.services.transcript_archiver import TranscriptArchiver, millis_to_datetime

logger = structlog.get_logger()


class TerminationTrigger(StrEnum):
    """Where a termination request originated."""

    EXPLICIT = "explicit"
    BULK = "bulk"
    DISCONNECT = "disconnect"


class ExecutionMode(StrEnum):
    """How failures are reported back to the trigger."""

    STRICT = "strict"
    BEST_EFFORT = "best_effort"


class TerminationState(StrEnum):
    """Terminal states of one termination attempt."""

    CLEARED_EMPTY = "cleared_empty"
    DONE = "done"
    CLEAR_FAILED = "clear_failed"
    ARCHIVE_FAILED = "archive_failed"
    READ_FAILED = "read_failed"


@dataclass(frozen=True)
class TerminationFailure:
    """A termination that failed in best-effort mode."""

    session_id: str
    trigger: TerminationTrigger
    state: TerminationState
    error: AppException


class TerminationErrorSink(Protocol):
    """Receives failures that best-effort terminations cannot report."""

    def record(self, failure: TerminationFailure) -> None: ...


@dataclass
class CollectingErrorSink:
    """Keeps the most recent best-effort failures in memory."""

    max_items: int = 1000
    failures: list[TerminationFailure] = field(default_factory=list)

    def record(self, failure: TerminationFailure) -> None:
        self.failures.append(failure)
        if len(self.failures) > self.max_items:
            del self.failures[: len(self.failures) - self.max_items]


class KeyedLock:
    """asyncio locks keyed by string, dropped once nobody holds or awaits them."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class TerminationError(AppException):
    """Wraps a strict-mode failure with the state it stopped in."""

    def __init__(self, state: TerminationState, cause: AppException) -> None:
        self.state = state
        self.cause = cause
        super().__init__(
            message=cause.message, code=cause.code, status_code=cause.status_code
        )

    @classmethod
    def wrap(cls, state: TerminationState, exc: Exception) -> "TerminationError":
        """Attach ``state`` to ``exc``; non-application errors become TerminationFailedError."""
        cause = exc if isinstance(exc, AppException) else TerminationFailedError()
        return cls(state, cause)


class SessionLifecycleCoordinator:
    """Ends sessions by archiving their history and clearing the live copy."""

    def __init__(
        self,
        store: SessionStore,
        archiver: TranscriptArchiver,
        error_sink: TerminationErrorSink | None = None,
        locks: KeyedLock | None = None,
    ) -> None:
        self._store = store
        self._archiver = archiver
        self._error_sink = error_sink or CollectingErrorSink()
        self._locks = locks or KeyedLock()

    @property
    def error_sink(self) -> TerminationErrorSink:
        return self._error_sink

    async def terminate(
        self,
        session_id: str,
        trigger: TerminationTrigger = TerminationTrigger.EXPLICIT,
        mode: ExecutionMode = ExecutionMode.STRICT,
    ) -> TerminationOutcome | None:
        """Run the termination sequence for one session.

        In STRICT mode read and archive failures raise TerminationError.
        In BEST_EFFORT mode they are logged, handed to the error sink and
        ``None`` is returned.
        """
        try:
            async with self._locks.hold(session_id):
                return await self._terminate_locked(session_id, trigger)
        except TerminationError as exc:
            if mode is ExecutionMode.STRICT:
                raise
            logger.exception(
                "Best-effort session termination failed",
                session_id=session_id,
                trigger=trigger.value,
                state=exc.state.value,
            )
            self._error_sink.record(
                TerminationFailure(
                    session_id=session_id,
                    trigger=trigger,
                    state=exc.state,
                    error=exc.cause,
                )
            )
            return None

    async def _terminate_locked(
        self, session_id: str, trigger: TerminationTrigger
    ) -> TerminationOutcome:
        try:
            history = await self._store.read(session_id)
        except Exception as exc:
            raise TerminationError.wrap(TerminationState.READ_FAILED, exc) from exc

        if not history:
            try:
                await self._store.clear(session_id)
            except Exception as exc:
                raise TerminationError.wrap(TerminationState.CLEAR_FAILED, exc) from exc
            logger.info(
                "Empty session cleared",
                session_id=session_id,
                trigger=trigger.value,
                state=TerminationState.CLEARED_EMPTY.value,
            )
            return TerminationOutcome(
                session_id=session_id, transcript_saved=False, message_count=0
            )

        try:
            summary = await self._archiver.archive(
                session_id,
                history,
                started_at=millis_to_datetime(history[0].timestamp),
                ended_at=datetime.now(UTC),
            )
        except Exception as exc:
            raise TerminationError.wrap(TerminationState.ARCHIVE_FAILED, exc) from exc

        clear_error: str | None = None
        state = TerminationState.DONE
        try:
            await self._store.clear(session_id)
        except Exception as exc:
            clear_error = TerminationError.wrap(
                TerminationState.CLEAR_FAILED, exc
            ).message
            state = TerminationState.CLEAR_FAILED
            logger.warning(
                "Transcript archived but session clear failed",
                session_id=session_id,
                trigger=trigger.value,
                transcript_id=summary.transcript_id,
                error=clear_error,
            )

        logger.info(
            "Session terminated",
            session_id=session_id,
            trigger=trigger.value,
            state=state.value,
            transcript_id=summary.transcript_id,
            message_count=summary.message_count,
        )
        return TerminationOutcome(
            session_id=session_id,
            transcript_saved=True,
            transcript_id=summary.transcript_id,
            message_count=summary.message_count,
            duration_seconds=summary.duration_seconds,
            total_characters=summary.total_characters,
            saved_at=summary.saved_at,
            clear_error=clear_error,
        )

    async def terminate_many(
        self, session_ids: Iterable[str], reason: str | None = None
    ) -> BulkCleanupReport:
        """Terminate each session independently; failures never stop the rest."""
        unique_ids = list(dict.fromkeys(session_ids))
        logger.info(
            "Bulk session cleanup started", count=len(unique_ids), reason=reason
        )

        outcomes: list[TerminationOutcome] = []
        failures: list[TerminationFailureInfo] = []
        for session_id in unique_ids:
            try:
                outcome = await self.terminate(
                    session_id, trigger=TerminationTrigger.BULK
                )
            except TerminationError as exc:
                logger.error(
                    "Bulk cleanup failed for session",
                    session_id=session_id,
                    state=exc.state.value,
                    error=exc.message,
                )
                self._error_sink.record(
                    TerminationFailure(
                        session_id=session_id,
                        trigger=TerminationTrigger.BULK,
                        state=exc.state,
                        error=exc.cause,
                    )
                )
                failures.append(
                    TerminationFailureInfo(session_id=session_id, error=exc.message)
                )
                continue
            if outcome is not None:
                outcomes.append(outcome)

        logger.info(
            "Bulk session cleanup completed",
            reason=reason,
            processed=len(outcomes),
            failed=len(failures),
        )
        return BulkCleanupReport(reason=reason, outcomes=outcomes, failures=failures)
