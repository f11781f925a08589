"""Retrieval and stateless answer API router."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from app.core.config import settings
from app.core.exceptions import AnswerGenerationError, AppException
from app.core.rate_limit import limiter
from app.dependencies import get_answer_service, get_retriever
from app.schemas.chat_schema import AnswerResponse, ChatRequest
from app.schemas.response_schema import ApiResponse, error_responses, success_response
from app.schemas.retriever_schema import RetrievedPassage, RetrieveRequest
from app.services.answer_service import AnswerService
from app.services.retriever_service import NewsRetriever

router = APIRouter(
    prefix="/api/v1", tags=["retrieval"], responses=error_responses(400, 429, 502)
)

RetrieverDep = Annotated[NewsRetriever, Depends(get_retriever)]
AnswerServiceDep = Annotated[AnswerService, Depends(get_answer_service)]


@router.post("/retrieve", response_model=ApiResponse[list[RetrievedPassage]])
async def retrieve(request: RetrieveRequest, retriever: RetrieverDep) -> dict:
    """Return the passages closest to the query."""
    try:
        passages = await retriever.search(request.query)
    except Exception as exc:
        raise AnswerGenerationError(message="Error retrieving top chunks") from exc
    return success_response(passages, message="Top K chunks retrieved successfully")


@router.post("/chat", response_model=ApiResponse[AnswerResponse])
@limiter.limit(settings.session.chat_rate_limit)
async def chat(
    request: Request, body: ChatRequest, answer_service: AnswerServiceDep
) -> dict:
    """Answer a query without reading or writing any session history."""
    try:
        answer = await answer_service.generate(body.query)
    except AppException:
        raise
    except Exception as exc:
        raise AnswerGenerationError(message="Error generating answer") from exc
    return success_response(
        AnswerResponse(query=body.query, answer=answer),
        message="Answer generated successfully",
    )
