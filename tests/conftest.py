"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import fakeredis.aioredis
import pytest
from httpx import ASGITransport, AsyncClient
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from app.core.database import Base
from app.models.transcript import Transcript  # noqa: F401
from app.services.answer_service import AnswerService
from app.services.chat_service import ChatService
from app.services.retriever_service import NewsRetriever
from app.services.session_lifecycle import (
    CollectingErrorSink,
    SessionLifecycleCoordinator,
)
from app.services.session_store import SessionStore
from app.services.transcript_archiver import TranscriptArchiver

# --- Test DB (SQLite in-memory) ---

test_engine = create_async_engine(
    "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool
)
test_session_factory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)


@pytest.fixture(autouse=True)
async def setup_db() -> AsyncGenerator[None, None]:
    """Create all tables before each test, drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


# --- Test Redis (fakeredis) ---


@pytest.fixture
def fake_redis() -> fakeredis.aioredis.FakeRedis:
    """Create a fresh fake Redis client."""
    return fakeredis.aioredis.FakeRedis(
        server=fakeredis.FakeServer(), decode_responses=True
    )


# --- Core services ---


@pytest.fixture
def session_store(fake_redis: fakeredis.aioredis.FakeRedis) -> SessionStore:
    """SessionStore backed by fake Redis."""
    return SessionStore(fake_redis, ttl_seconds=3600, timeout_seconds=1.0)


@pytest.fixture
def archiver() -> TranscriptArchiver:
    """TranscriptArchiver backed by the in-memory database."""
    return TranscriptArchiver(test_session_factory, timeout_seconds=5.0)


@pytest.fixture
def error_sink() -> CollectingErrorSink:
    """Collects best-effort termination failures."""
    return CollectingErrorSink()


@pytest.fixture
def coordinator(
    session_store: SessionStore,
    archiver: TranscriptArchiver,
    error_sink: CollectingErrorSink,
) -> SessionLifecycleCoordinator:
    """Coordinator wired to the fake stores."""
    return SessionLifecycleCoordinator(session_store, archiver, error_sink=error_sink)


# --- Mocks for external collaborators ---


@pytest.fixture
def mock_llm() -> MagicMock:
    """Create a mock LLM for testing."""
    mock = MagicMock(spec=BaseChatModel)
    mock.ainvoke = AsyncMock(return_value=AIMessage(content="Test response"))
    return mock


@pytest.fixture
def mock_chat_service() -> MagicMock:
    """Create a mock ChatService."""
    return MagicMock(spec=ChatService)


@pytest.fixture
def mock_retriever() -> MagicMock:
    """Create a mock NewsRetriever."""
    mock = MagicMock(spec=NewsRetriever)
    mock.search = AsyncMock(return_value=[])
    return mock


@pytest.fixture
def mock_answer_service() -> MagicMock:
    """Create a mock AnswerService."""
    mock = MagicMock(spec=AnswerService)
    mock.generate = AsyncMock(return_value="Test response")
    return mock


# --- App override & client fixtures ---


@pytest.fixture
async def async_client(
    session_store: SessionStore,
    archiver: TranscriptArchiver,
    coordinator: SessionLifecycleCoordinator,
    mock_chat_service: MagicMock,
    mock_retriever: MagicMock,
    mock_answer_service: MagicMock,
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with stores and collaborators overridden."""
    from app.core.rate_limit import limiter
    from app.dependencies import (
        get_answer_service,
        get_archiver,
        get_chat_service,
        get_coordinator,
        get_retriever,
        get_session_store,
    )
    from app.main import app

    limiter.reset()
    app.dependency_overrides[get_session_store] = lambda: session_store
    app.dependency_overrides[get_archiver] = lambda: archiver
    app.dependency_overrides[get_coordinator] = lambda: coordinator
    app.dependency_overrides[get_chat_service] = lambda: mock_chat_service
    app.dependency_overrides[get_retriever] = lambda: mock_retriever
    app.dependency_overrides[get_answer_service] = lambda: mock_answer_service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
