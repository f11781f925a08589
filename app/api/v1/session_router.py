"""Session API router: live history, chat turns and termination."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Request

from app.core.config import settings
from app.core.exceptions import TranscriptNotFoundError
from app.core.rate_limit import limiter
from app.dependencies import (
    get_archiver,
    get_chat_service,
    get_coordinator,
    get_session_store,
)
from app.schemas.chat_schema import ChatReplyResponse, ChatRequest
from app.schemas.response_schema import ApiResponse, error_responses, success_response
from app.schemas.session_schema import (
    ActiveSessionsResponse,
    SessionCreatedResponse,
    SessionHistoryResponse,
    TerminationOutcome,
)
from app.schemas.transcript_schema import TranscriptDetail
from app.services.chat_service import ChatService
from app.services.session_lifecycle import (
    SessionLifecycleCoordinator,
    TerminationTrigger,
)
from app.services.session_store import SESSION_ID_PATTERN, SessionStore
from app.services.transcript_archiver import TranscriptArchiver

router = APIRouter(
    prefix="/api/v1/sessions",
    tags=["sessions"],
    responses=error_responses(400, 404, 429, 502, 503),
)

SessionStoreDep = Annotated[SessionStore, Depends(get_session_store)]
ArchiverDep = Annotated[TranscriptArchiver, Depends(get_archiver)]
CoordinatorDep = Annotated[SessionLifecycleCoordinator, Depends(get_coordinator)]
ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]
SessionId = Annotated[str, Path(pattern=SESSION_ID_PATTERN.pattern)]


@router.post(
    "", status_code=201, response_model=ApiResponse[SessionCreatedResponse]
)
async def create_session(store: SessionStoreDep) -> dict:
    """Allocate a new session id."""
    result = SessionCreatedResponse(session_id=store.create_session_id())
    return success_response(result, status=201, message="Session created successfully")


@router.get("", response_model=ApiResponse[ActiveSessionsResponse])
async def list_sessions(store: SessionStoreDep) -> dict:
    """List sessions that currently hold live history."""
    sessions = sorted(await store.list_active())
    return success_response(
        ActiveSessionsResponse(sessions=sessions, count=len(sessions))
    )


@router.get("/{session_id}/history", response_model=ApiResponse[SessionHistoryResponse])
async def get_history(session_id: SessionId, store: SessionStoreDep) -> dict:
    """Return the live history of a session."""
    messages = await store.read(session_id)
    return success_response(
        SessionHistoryResponse(
            session_id=session_id, messages=messages, count=len(messages)
        )
    )


@router.delete("/{session_id}", response_model=ApiResponse[TerminationOutcome])
async def terminate_session(
    session_id: SessionId, coordinator: CoordinatorDep
) -> dict:
    """Archive the session's history and clear it."""
    outcome = await coordinator.terminate(
        session_id, trigger=TerminationTrigger.EXPLICIT
    )
    return success_response(outcome, message="Session cleared successfully")


@router.post("/{session_id}/chat", response_model=ApiResponse[ChatReplyResponse])
@limiter.limit(settings.session.chat_rate_limit)
async def chat(
    request: Request,
    session_id: SessionId,
    body: ChatRequest,
    chat_service: ChatServiceDep,
) -> dict:
    """Answer a query and append the turn to the session."""
    result = await chat_service.reply(session_id, body.query)
    return success_response(result, message="Chat response generated successfully")


@router.get("/{session_id}/transcript", response_model=ApiResponse[TranscriptDetail])
async def get_transcript(session_id: SessionId, archiver: ArchiverDep) -> dict:
    """Return the most recent archived transcript of a session."""
    transcript = await archiver.fetch_latest(session_id)
    if transcript is None:
        raise TranscriptNotFoundError()
    return success_response(transcript)
