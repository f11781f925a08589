"""Transcript archive configuration."""

from pydantic import BaseModel


class TranscriptConfig(BaseModel, frozen=True):
    """Transcript listing and retention settings."""

    page_limit_max: int
    page_limit_default: int
    retention_days: int
