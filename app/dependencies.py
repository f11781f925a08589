"""Global dependencies for the application."""

from starlette.requests import HTTPConnection

from app.core.container import ServiceContainer
from app.services.answer_service import AnswerService
from app.services.chat_service import ChatService
from app.services.retriever_service import NewsRetriever
from app.services.session_lifecycle import SessionLifecycleCoordinator
from app.services.session_store import SessionStore
from app.services.transcript_archiver import TranscriptArchiver


def get_container(connection: HTTPConnection) -> ServiceContainer:
    """Get the service container built during application startup."""
    container = getattr(connection.app.state, "container", None)
    if container is None:
        raise RuntimeError("Service container not initialized")
    return container


def get_session_store(connection: HTTPConnection) -> SessionStore:
    """Get the Redis-backed session store."""
    return get_container(connection).session_store


def get_archiver(connection: HTTPConnection) -> TranscriptArchiver:
    """Get the transcript archiver."""
    return get_container(connection).archiver


def get_coordinator(connection: HTTPConnection) -> SessionLifecycleCoordinator:
    """Get the session lifecycle coordinator."""
    return get_container(connection).coordinator


def get_chat_service(connection: HTTPConnection) -> ChatService:
    """Get the chat service."""
    return get_container(connection).chat_service


def get_retriever(connection: HTTPConnection) -> NewsRetriever:
    """Get the news retriever."""
    return get_container(connection).retriever


def get_answer_service(connection: HTTPConnection) -> AnswerService:
    """Get the grounded answer service."""
    return get_container(connection).answer_service
