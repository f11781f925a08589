"""Chat session configuration."""

from pydantic import BaseModel


class SessionConfig(BaseModel, frozen=True):
    """Ephemeral chat session settings."""

    ttl_seconds: int
    max_history_length: int
    chat_rate_limit: str
