"""Retrieval request and response schemas."""

from typing import Any

from pydantic import BaseModel, Field

from app.schemas.base_schema import CamelModel


class RetrieveRequest(BaseModel):
    """Retrieval API request schema."""

    query: str = Field(..., min_length=1, max_length=4000)


class RetrievedPassage(CamelModel):
    """News passage returned by vector search."""

    id: str
    score: float
    chunk: str | None = None
    metadata: dict[str, Any]
