"""Transcript archive API router."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.core.config import settings
from app.dependencies import get_archiver
from app.schemas.response_schema import ApiResponse, error_responses, success_response
from app.schemas.transcript_schema import (
    PurgeResponse,
    TranscriptListResponse,
    TranscriptStats,
)
from app.services.transcript_archiver import TranscriptArchiver

router = APIRouter(
    prefix="/api/v1/transcripts",
    tags=["transcripts"],
    responses=error_responses(400, 503),
)

ArchiverDep = Annotated[TranscriptArchiver, Depends(get_archiver)]


@router.get("", response_model=ApiResponse[TranscriptListResponse])
async def list_transcripts(
    archiver: ArchiverDep,
    limit: int = Query(default=settings.transcript.page_limit_default, ge=1),
    offset: int = Query(default=0, ge=0),
) -> dict:
    """List archived transcripts, most recently ended first."""
    transcripts = await archiver.list_recent(limit=limit, offset=offset)
    return success_response(
        TranscriptListResponse(
            transcripts=transcripts,
            count=len(transcripts),
            limit=limit,
            offset=offset,
        )
    )


@router.get("/stats", response_model=ApiResponse[TranscriptStats])
async def transcript_stats(archiver: ArchiverDep) -> dict:
    """Aggregate statistics across all transcripts."""
    return success_response(await archiver.aggregate_stats())


@router.delete("", response_model=ApiResponse[PurgeResponse])
async def purge_transcripts(
    archiver: ArchiverDep,
    older_than_days: int = Query(default=settings.transcript.retention_days, ge=0),
) -> dict:
    """Delete transcripts that ended more than ``older_than_days`` ago."""
    deleted = await archiver.purge_older_than(older_than_days)
    return success_response(
        PurgeResponse(deleted=deleted, older_than_days=older_than_days)
    )
