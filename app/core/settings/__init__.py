"""Domain-specific configuration models."""

from app.core.settings.app_config import AppConfig
from app.core.settings.database_config import DatabaseConfig
from app.core.settings.llm_config import LLMConfig
from app.core.settings.redis_config import RedisConfig
from app.core.settings.server_config import ServerConfig
from app.core.settings.session_config import SessionConfig
from app.core.settings.transcript_config import TranscriptConfig
from app.core.settings.vector_store_config import VectorStoreConfig

__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "LLMConfig",
    "RedisConfig",
    "ServerConfig",
    "SessionConfig",
    "TranscriptConfig",
    "VectorStoreConfig",
]
