"""Application configuration using Pydantic Settings V2."""

from functools import cached_property
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.settings import (
    AppConfig,
    DatabaseConfig,
    LLMConfig,
    RedisConfig,
    ServerConfig,
    SessionConfig,
    TranscriptConfig,
    VectorStoreConfig,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Flat fields are loaded directly from environment variables.
    Domain properties provide grouped access (e.g. settings.session.ttl_seconds).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # LLM Provider
    llm_provider: Literal["openai", "anthropic"] = Field(
        default="openai",
        description="LLM provider to use",
    )

    # OpenAI
    openai_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="OpenAI API key",
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="OpenAI model name",
    )
    openai_embedding_model: str = Field(
        default="text-embedding-3-small",
        description="OpenAI embedding model used for retrieval queries",
    )

    # Anthropic
    anthropic_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Anthropic API key",
    )
    anthropic_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Anthropic model name",
    )

    # App
    app_name: str = Field(
        default="news-rag-chat",
        description="Application name",
    )
    app_version: str = Field(
        default="0.1.0",
        description="Version reported by the API",
    )
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    debug: bool = Field(
        default=True,
        description="Debug mode",
    )

    # Vector Store
    qdrant_url: str = Field(
        default="http://localhost:6333",
        description="Qdrant server URL",
    )
    qdrant_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Qdrant API key",
    )
    qdrant_collection_name: str = Field(
        default="news",
        description="Qdrant collection holding news article chunks",
    )
    retrieval_top_k: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Number of passages retrieved per query",
    )

    # Sessions
    session_ttl_seconds: int = Field(
        default=3600,
        ge=1,
        description="Inactivity expiry window for ephemeral chat history",
    )
    max_history_length: int = Field(
        default=10,
        ge=0,
        le=100,
        description="Number of previous turns passed to the LLM as context",
    )
    chat_rate_limit: str = Field(
        default="20/minute",
        description="Chat endpoint rate limit",
    )

    # Transcripts
    transcript_page_limit_max: int = Field(
        default=100,
        ge=1,
        description="Maximum page size when listing transcripts",
    )
    transcript_page_limit_default: int = Field(
        default=50,
        ge=1,
        description="Default page size when listing transcripts",
    )
    transcript_retention_days: int = Field(
        default=90,
        ge=0,
        description="Transcripts older than this are removed by the purge job",
    )

    # Server
    host: str = Field(
        default="0.0.0.0",
        description="Server host",
    )
    port: int = Field(
        default=5000,
        ge=1,
        le=65535,
        description="Server port",
    )
    frontend_url: str = Field(
        default="http://localhost:5173",
        description="Allowed CORS origin outside development",
    )

    # Database
    database_url: SecretStr = Field(
        default=SecretStr("postgresql+asyncpg://postgres@localhost:5432/newsrag"),
        description="Async database URL (postgresql+asyncpg://...)",
    )
    database_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Upper bound for a single transcript database call",
    )

    # Redis
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )
    redis_timeout_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Upper bound for a single session store call",
    )

    # --- Domain properties ---

    @cached_property
    def llm(self) -> LLMConfig:
        """LLM provider configuration."""
        return LLMConfig(
            provider=self.llm_provider,
            openai_api_key=self.openai_api_key,
            openai_model=self.openai_model,
            openai_embedding_model=self.openai_embedding_model,
            anthropic_api_key=self.anthropic_api_key,
            anthropic_model=self.anthropic_model,
        )

    @cached_property
    def app(self) -> AppConfig:
        """Application environment configuration."""
        return AppConfig(
            name=self.app_name,
            version=self.app_version,
            env=self.app_env,
            debug=self.debug,
            frontend_url=self.frontend_url,
        )

    @cached_property
    def vector_store(self) -> VectorStoreConfig:
        """Vector store configuration."""
        return VectorStoreConfig(
            url=self.qdrant_url,
            api_key=self.qdrant_api_key,
            collection_name=self.qdrant_collection_name,
            top_k=self.retrieval_top_k,
        )

    @cached_property
    def session(self) -> SessionConfig:
        """Ephemeral session configuration."""
        return SessionConfig(
            ttl_seconds=self.session_ttl_seconds,
            max_history_length=self.max_history_length,
            chat_rate_limit=self.chat_rate_limit,
        )

    @cached_property
    def transcript(self) -> TranscriptConfig:
        """Transcript archive configuration."""
        return TranscriptConfig(
            page_limit_max=self.transcript_page_limit_max,
            page_limit_default=self.transcript_page_limit_default,
            retention_days=self.transcript_retention_days,
        )

    @cached_property
    def server(self) -> ServerConfig:
        """Server configuration."""
        return ServerConfig(
            host=self.host,
            port=self.port,
        )

    @cached_property
    def database(self) -> DatabaseConfig:
        """Database connection configuration."""
        return DatabaseConfig(
            url=self.database_url,
            timeout_seconds=self.database_timeout_seconds,
        )

    @cached_property
    def redis(self) -> RedisConfig:
        """Redis connection configuration."""
        return RedisConfig(
            url=self.redis_url,
            timeout_seconds=self.redis_timeout_seconds,
        )

    # --- Convenience properties (delegate to domain configs) ---

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app.is_development


# Global settings instance
settings = Settings()
