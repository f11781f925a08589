"""Redis-backed ephemeral chat history with an inactivity TTL."""

import asyncio
import re
import time
import uuid
from collections.abc import Awaitable
from typing import TypeVar

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

from app.core.exceptions import InvalidArgumentError, StoreUnavailableError
from app.schemas.session_schema import ChatMessage

logger = structlog.get_logger()

SESSION_PREFIX = "session:"
SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.:-]{1,128}$")

T = TypeVar("T")


def validate_session_id(session_id: str | None) -> str:
    """Return ``session_id`` unchanged or raise InvalidArgumentError."""
    if not session_id or not SESSION_ID_PATTERN.match(session_id):
        raise InvalidArgumentError(message="Invalid session id")
    return session_id


def now_millis() -> int:
    """Current wall-clock time as epoch milliseconds."""
    return int(time.time() * 1000)


class SessionStore:
    """Live chat history keyed by session id.

    Each session is a Redis list of JSON-encoded messages in append order.
    Every append resets the expiry window. Redis failures and timeouts are
    raised as StoreUnavailableError; retrying is left to the caller.
    """

    def __init__(
        self,
        redis_client: redis.Redis,  # type: ignore[type-arg]
        ttl_seconds: int = 3600,
        timeout_seconds: float = 2.0,
    ) -> None:
        self._redis = redis_client
        self._ttl = ttl_seconds
        self._timeout = timeout_seconds

    @staticmethod
    def create_session_id() -> str:
        """Generate a new random session id."""
        return str(uuid.uuid4())

    @staticmethod
    def _key(session_id: str) -> str:
        return f"{SESSION_PREFIX}{session_id}"

    async def _call(self, operation: str, session_id: str | None, coro: Awaitable[T]) -> T:
        try:
            async with asyncio.timeout(self._timeout):
                return await coro
        except TimeoutError as exc:
            logger.error(
                "Session store call timed out",
                operation=operation,
                session_id=session_id,
            )
            raise StoreUnavailableError(
                message=f"Session store timed out during {operation}"
            ) from exc
        except RedisError as exc:
            logger.error(
                "Session store call failed",
                operation=operation,
                session_id=session_id,
                error=str(exc),
            )
            raise StoreUnavailableError(
                message=f"Session store unavailable during {operation}"
            ) from exc

    async def append(
        self,
        session_id: str,
        user_query: str,
        bot_response: str,
        timestamp: int | None = None,
    ) -> ChatMessage:
        """Append one turn and reset the session's expiry window."""
        message = ChatMessage(
            id=str(uuid.uuid4()),
            user_query=user_query,
            bot_response=bot_response,
            timestamp=timestamp if timestamp is not None else now_millis(),
        )
        key = self._key(session_id)

        async def _write() -> None:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.rpush(key, message.model_dump_json(by_alias=True))
                pipe.expire(key, self._ttl)
                await pipe.execute()

        await self._call("append", session_id, _write())
        return message

    async def read(self, session_id: str) -> list[ChatMessage]:
        """Return the session's messages oldest first; empty when absent."""
        raw = await self._call(
            "read", session_id, self._redis.lrange(self._key(session_id), 0, -1)
        )
        return [ChatMessage.model_validate_json(item) for item in raw]

    async def clear(self, session_id: str) -> None:
        """Delete the session's history. Missing sessions are not an error."""
        await self._call("clear", session_id, self._redis.delete(self._key(session_id)))

    async def refresh(self, session_id: str) -> None:
        """Reset the expiry window without touching the history."""
        await self._call(
            "refresh", session_id, self._redis.expire(self._key(session_id), self._ttl)
        )

    async def list_active(self) -> set[str]:
        """Snapshot of session ids that currently hold history."""

        async def _scan() -> set[str]:
            return {
                key[len(SESSION_PREFIX) :]
                async for key in self._redis.scan_iter(match=f"{SESSION_PREFIX}*")
            }

        return await self._call("list_active", None, _scan())
