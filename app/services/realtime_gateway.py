"""Per-connection realtime chat protocol.

A gateway is created for each WebSocket connection. It binds at most one
session id at a time and maps inbound events onto the session store, the
chat service and the lifecycle coordinator. Losing the connection ends the
bound session in best-effort mode since nobody is left to receive an error.
"""

import time
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from app.core.exceptions import AppException, InvalidArgumentError
from app.schemas.session_schema import ChatMessage
from app.services.chat_service import ChatService
from app.services.session_lifecycle import (
    ExecutionMode,
    SessionLifecycleCoordinator,
    TerminationTrigger,
)
from app.services.session_store import SessionStore, validate_session_id

logger = structlog.get_logger()

EmitFn = Callable[[str, dict[str, Any]], Awaitable[None]]


def _dump(model: Any) -> dict[str, Any]:
    return model.model_dump(by_alias=True, mode="json", exclude_none=True)


class RealtimeGateway:
    """Handles inbound events for one connection."""

    def __init__(
        self,
        emit: EmitFn,
        store: SessionStore,
        chat_service: ChatService,
        coordinator: SessionLifecycleCoordinator,
        connection_id: str,
    ) -> None:
        self._emit = emit
        self._store = store
        self._chat_service = chat_service
        self._coordinator = coordinator
        self._connection_id = connection_id
        self._session_id: str | None = None
        self._handlers: dict[str, Callable[[dict[str, Any]], Awaitable[None]]] = {
            "join-session": self._join_session,
            "chat-message": self._chat_message,
            "get-history": self._get_history,
            "clear-session": self._clear_session,
            "cleanup-sessions": self._cleanup_sessions,
        }
        self._failure_messages = {
            "join-session": "Failed to join session",
            "chat-message": "Failed to generate response. Please try again.",
            "get-history": "Failed to retrieve session history",
            "clear-session": "Failed to clear session",
            "cleanup-sessions": "Failed to clean up sessions",
        }

    @property
    def session_id(self) -> str | None:
        """Session currently bound to this connection."""
        return self._session_id

    async def on_connect(self) -> None:
        await self._emit(
            "connected",
            {
                "message": "Connected to news chat server",
                "connectionId": self._connection_id,
            },
        )

    async def dispatch(self, event: str, data: dict[str, Any] | None) -> None:
        """Route one inbound event; failures become ``error`` events."""
        handler = self._handlers.get(event)
        if handler is None:
            await self._error(f"Unknown event: {event}")
            return
        try:
            await handler(data or {})
        except InvalidArgumentError as exc:
            await self._error(exc.message)
        except AppException as exc:
            logger.error(
                "Realtime event failed",
                event_name=event,
                connection_id=self._connection_id,
                session_id=self._session_id,
                code=exc.code,
                error=exc.message,
            )
            await self._error(self._failure_messages[event])
        except Exception:
            logger.exception(
                "Unexpected realtime event failure",
                event_name=event,
                connection_id=self._connection_id,
                session_id=self._session_id,
            )
            await self._error(self._failure_messages[event])

    async def on_disconnect(self) -> None:
        """End the bound session without reporting back to the client."""
        session_id = self._session_id
        self._session_id = None
        if session_id is None:
            return
        logger.info(
            "Auto-cleaning session on disconnect",
            session_id=session_id,
            connection_id=self._connection_id,
        )
        await self._coordinator.terminate(
            session_id,
            trigger=TerminationTrigger.DISCONNECT,
            mode=ExecutionMode.BEST_EFFORT,
        )

    async def _error(self, message: str) -> None:
        await self._emit("error", {"message": message})

    async def _join_session(self, data: dict[str, Any]) -> None:
        requested = data.get("sessionId")
        if requested:
            session_id = validate_session_id(requested)
            await self._store.refresh(session_id)
        else:
            session_id = self._store.create_session_id()

        self._session_id = session_id
        await self._emit(
            "session-joined",
            {"sessionId": session_id, "message": "Successfully joined session"},
        )

        history = await self._store.read(session_id)
        if history:
            await self._emit(
                "session-history", {"history": [_dump(m) for m in history]}
            )
        logger.info(
            "Connection joined session",
            connection_id=self._connection_id,
            session_id=session_id,
        )

    async def _chat_message(self, data: dict[str, Any]) -> None:
        query = data.get("query")
        if not query or not isinstance(query, str):
            await self._error("Query is required")
            return
        if self._session_id is None:
            await self._error("No active session. Please join a session first.")
            return

        session_id = self._session_id
        await self._emit("bot-typing", {"typing": True})
        try:
            if data.get("streaming", True):
                await self._stream_answer(session_id, query)
            else:
                reply = await self._chat_service.reply(session_id, query)
                await self._emit("bot-typing", {"typing": False})
                await self._emit(
                    "chat-response",
                    {
                        "messageId": reply.message_id,
                        "userQuery": query,
                        "botResponse": reply.bot_response,
                        "timestamp": reply.timestamp,
                    },
                )
        except Exception:
            await self._emit("bot-typing", {"typing": False})
            raise

    async def _stream_answer(self, session_id: str, query: str) -> None:
        message_id = str(int(time.time() * 1000))
        started = False

        async def _start() -> None:
            nonlocal started
            started = True
            await self._emit(
                "chat-response-start",
                {"messageId": message_id, "timestamp": int(time.time() * 1000)},
            )

        async for item in self._chat_service.stream_reply(session_id, query):
            if isinstance(item, ChatMessage):
                if not started:
                    await _start()
                    await self._emit(
                        "chat-response-chunk",
                        {"messageId": message_id, "chunk": item.bot_response},
                    )
                await self._emit(
                    "chat-response-complete",
                    {
                        "messageId": message_id,
                        "userQuery": query,
                        "botResponse": item.bot_response,
                        "timestamp": item.timestamp,
                        "storedMessageId": item.id,
                    },
                )
                continue
            if not started:
                await _start()
            await self._emit(
                "chat-response-chunk", {"messageId": message_id, "chunk": item.data}
            )

    async def _get_history(self, data: dict[str, Any]) -> None:
        if self._session_id is None:
            await self._error("No active session")
            return
        history = await self._store.read(self._session_id)
        await self._emit("session-history", {"history": [_dump(m) for m in history]})

    async def _clear_session(self, data: dict[str, Any]) -> None:
        if self._session_id is None:
            await self._error("No active session")
            return
        outcome = await self._coordinator.terminate(
            self._session_id, trigger=TerminationTrigger.EXPLICIT
        )
        payload = {"message": "Session cleared successfully"}
        if outcome is not None:
            payload.update(_dump(outcome))
        await self._emit("session-cleared", payload)

    async def _cleanup_sessions(self, data: dict[str, Any]) -> None:
        sessions = data.get("sessions") or []
        if not isinstance(sessions, list) or not all(
            isinstance(s, str) for s in sessions
        ):
            raise InvalidArgumentError(message="sessions must be a list of ids")
        valid = [s for s in sessions if s and _is_valid_session_id(s)]
        report = await self._coordinator.terminate_many(
            valid, reason=data.get("reason")
        )
        await self._emit(
            "sessions-cleaned",
            {
                "reason": report.reason,
                "processed": len(report.outcomes),
                "failed": len(report.failures),
            },
        )


def _is_valid_session_id(session_id: str) -> bool:
    try:
        validate_session_id(session_id)
    except InvalidArgumentError:
        return False
    return True
