"""Async database engine and session factory construction."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.settings import AppConfig, DatabaseConfig


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


def create_engine(config: DatabaseConfig, app_config: AppConfig) -> AsyncEngine:
    """Create the process-wide async engine."""
    url = config.async_url
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=app_config.is_development)
    return create_async_engine(
        url,
        pool_size=10,
        max_overflow=20,
        pool_recycle=3600,
        pool_pre_ping=True,
        echo=app_config.is_development,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build the session factory bound to ``engine``."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
