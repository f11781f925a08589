"""Process-wide clients and services, built once at startup."""

from dataclasses import dataclass

import redis.asyncio as redis
from langchain_anthropic import ChatAnthropic
from langchain_core.embeddings import Embeddings
from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI, OpenAIEmbeddings
from qdrant_client import AsyncQdrantClient
from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.config import Settings
from app.core.database import Base, create_engine, create_session_factory
from app.core.redis import close_redis, init_redis
from app.core.settings import LLMConfig, VectorStoreConfig
from app.services.answer_service import AnswerService
from app.services.chat_service import ChatService
from app.services.retriever_service import NewsRetriever
from app.services.session_lifecycle import (
    CollectingErrorSink,
    SessionLifecycleCoordinator,
)
from app.services.session_store import SessionStore
from app.services.transcript_archiver import TranscriptArchiver


def build_llm(llm_config: LLMConfig) -> BaseChatModel:
    """Get the LLM instance based on the configured provider."""
    match llm_config.provider:
        case "openai":
            return ChatOpenAI(
                model=llm_config.openai_model,
                api_key=llm_config.openai_api_key,
                streaming=True,
            )
        case "anthropic":
            return ChatAnthropic(  # type: ignore[call-arg]
                model_name=llm_config.anthropic_model,
                api_key=llm_config.anthropic_api_key,
                streaming=True,
            )
        case _:
            raise ValueError(f"Unsupported LLM provider: {llm_config.provider}")


def build_embeddings(llm_config: LLMConfig) -> Embeddings:
    """Get the embeddings model used for query vectors."""
    return OpenAIEmbeddings(
        model=llm_config.openai_embedding_model,
        api_key=llm_config.openai_api_key,
    )


def build_qdrant(config: VectorStoreConfig) -> AsyncQdrantClient:
    """Create the async Qdrant client."""
    api_key = config.api_key.get_secret_value() or None
    return AsyncQdrantClient(url=config.url, api_key=api_key)


@dataclass
class ServiceContainer:
    """Explicitly wired dependencies shared by routers and WebSocket handlers."""

    redis: redis.Redis  # type: ignore[type-arg]
    engine: AsyncEngine
    qdrant: AsyncQdrantClient
    session_store: SessionStore
    archiver: TranscriptArchiver
    coordinator: SessionLifecycleCoordinator
    retriever: NewsRetriever
    answer_service: AnswerService
    chat_service: ChatService

    async def aclose(self) -> None:
        """Release external connections."""
        await close_redis(self.redis)
        await self.qdrant.close()
        await self.engine.dispose()


async def build_container(settings: Settings) -> ServiceContainer:
    """Open connections and wire services from ``settings``."""
    redis_client = await init_redis(settings.redis)
    engine = create_engine(settings.database, settings.app)
    if settings.app.is_development:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    qdrant = build_qdrant(settings.vector_store)

    session_store = SessionStore(
        redis_client,
        ttl_seconds=settings.session.ttl_seconds,
        timeout_seconds=settings.redis.timeout_seconds,
    )
    archiver = TranscriptArchiver(
        create_session_factory(engine),
        timeout_seconds=settings.database.timeout_seconds,
        page_limit_max=settings.transcript.page_limit_max,
    )
    coordinator = SessionLifecycleCoordinator(
        session_store, archiver, error_sink=CollectingErrorSink()
    )
    retriever = NewsRetriever(
        qdrant,
        build_embeddings(settings.llm),
        collection_name=settings.vector_store.collection_name,
        top_k=settings.vector_store.top_k,
    )
    answer_service = AnswerService(build_llm(settings.llm), retriever)
    chat_service = ChatService(
        session_store,
        answer_service,
        max_history_length=settings.session.max_history_length,
    )
    return ServiceContainer(
        redis=redis_client,
        engine=engine,
        qdrant=qdrant,
        session_store=session_store,
        archiver=archiver,
        coordinator=coordinator,
        retriever=retriever,
        answer_service=answer_service,
        chat_service=chat_service,
    )
