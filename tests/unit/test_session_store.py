"""Unit tests for SessionStore."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import fakeredis.aioredis
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core.exceptions import InvalidArgumentError, StoreUnavailableError
from app.services.session_store import (
    SessionStore,
    now_millis,
    validate_session_id,
)


class TestAppend:
    """Tests for SessionStore.append."""

    @pytest.mark.asyncio
    async def test_append_returns_message(self, session_store: SessionStore) -> None:
        message = await session_store.append("S1", "hi", "hello!", timestamp=1000)

        assert message.user_query == "hi"
        assert message.bot_response == "hello!"
        assert message.timestamp == 1000
        assert message.id

    @pytest.mark.asyncio
    async def test_append_defaults_timestamp_to_now(
        self, session_store: SessionStore
    ) -> None:
        before = now_millis()
        message = await session_store.append("S1", "hi", "hello!")
        assert before <= message.timestamp <= now_millis()

    @pytest.mark.asyncio
    async def test_append_sets_ttl(
        self,
        session_store: SessionStore,
        fake_redis: fakeredis.aioredis.FakeRedis,
    ) -> None:
        await session_store.append("S1", "hi", "hello!")
        ttl = await fake_redis.ttl("session:S1")
        assert 0 < ttl <= 3600

    @pytest.mark.asyncio
    async def test_append_resets_ttl(
        self,
        session_store: SessionStore,
        fake_redis: fakeredis.aioredis.FakeRedis,
    ) -> None:
        await session_store.append("S1", "hi", "hello!")
        await fake_redis.expire("session:S1", 10)
        await session_store.append("S1", "bye", "goodbye!")
        assert await fake_redis.ttl("session:S1") > 10

    @pytest.mark.asyncio
    async def test_messages_stored_with_camel_case_keys(
        self,
        session_store: SessionStore,
        fake_redis: fakeredis.aioredis.FakeRedis,
    ) -> None:
        await session_store.append("S1", "hi", "hello!", timestamp=5)
        raw = await fake_redis.lrange("session:S1", 0, -1)
        assert '"userQuery":"hi"' in raw[0]
        assert '"botResponse":"hello!"' in raw[0]


class TestRead:
    """Tests for SessionStore.read."""

    @pytest.mark.asyncio
    async def test_read_missing_session_is_empty(
        self, session_store: SessionStore
    ) -> None:
        assert await session_store.read("nope") == []

    @pytest.mark.asyncio
    async def test_read_returns_append_order(self, session_store: SessionStore) -> None:
        for i in range(7):
            await session_store.append("S1", f"q{i}", f"a{i}", timestamp=i)

        history = await session_store.read("S1")

        assert [m.user_query for m in history] == [f"q{i}" for i in range(7)]
        assert [m.timestamp for m in history] == list(range(7))

    @pytest.mark.asyncio
    async def test_read_does_not_touch_ttl(
        self,
        session_store: SessionStore,
        fake_redis: fakeredis.aioredis.FakeRedis,
    ) -> None:
        await session_store.append("S1", "hi", "hello!")
        await fake_redis.expire("session:S1", 50)
        await session_store.read("S1")
        assert await fake_redis.ttl("session:S1") <= 50

    @pytest.mark.asyncio
    async def test_sessions_are_isolated(self, session_store: SessionStore) -> None:
        await session_store.append("S1", "a", "b")
        await session_store.append("S2", "c", "d")
        assert [m.user_query for m in await session_store.read("S1")] == ["a"]
        assert [m.user_query for m in await session_store.read("S2")] == ["c"]


class TestClearAndRefresh:
    """Tests for SessionStore.clear and refresh."""

    @pytest.mark.asyncio
    async def test_clear_then_read_is_empty(self, session_store: SessionStore) -> None:
        await session_store.append("S1", "hi", "hello!")
        await session_store.clear("S1")
        assert await session_store.read("S1") == []

    @pytest.mark.asyncio
    async def test_clear_is_idempotent(self, session_store: SessionStore) -> None:
        await session_store.clear("never-existed")
        await session_store.clear("never-existed")
        assert await session_store.read("never-existed") == []

    @pytest.mark.asyncio
    async def test_refresh_extends_ttl(
        self,
        session_store: SessionStore,
        fake_redis: fakeredis.aioredis.FakeRedis,
    ) -> None:
        await session_store.append("S1", "hi", "hello!")
        await fake_redis.expire("session:S1", 10)
        await session_store.refresh("S1")
        assert await fake_redis.ttl("session:S1") > 10
        assert len(await session_store.read("S1")) == 1


class TestListActive:
    """Tests for SessionStore.list_active."""

    @pytest.mark.asyncio
    async def test_lists_sessions_with_history(
        self,
        session_store: SessionStore,
        fake_redis: fakeredis.aioredis.FakeRedis,
    ) -> None:
        await session_store.append("S1", "a", "b")
        await session_store.append("S2", "c", "d")
        await fake_redis.set("other:key", "x")

        assert await session_store.list_active() == {"S1", "S2"}

    @pytest.mark.asyncio
    async def test_empty_store(self, session_store: SessionStore) -> None:
        assert await session_store.list_active() == set()


class TestFailures:
    """Redis failures surface as StoreUnavailableError."""

    @pytest.mark.asyncio
    async def test_connection_error_on_read(self) -> None:
        redis_mock = MagicMock()
        redis_mock.lrange = AsyncMock(side_effect=RedisConnectionError("down"))
        store = SessionStore(redis_mock)

        with pytest.raises(StoreUnavailableError) as exc_info:
            await store.read("S1")
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_connection_error_on_clear(self) -> None:
        redis_mock = MagicMock()
        redis_mock.delete = AsyncMock(side_effect=RedisConnectionError("down"))
        store = SessionStore(redis_mock)

        with pytest.raises(StoreUnavailableError):
            await store.clear("S1")

    @pytest.mark.asyncio
    async def test_timeout_is_store_unavailable(self) -> None:
        async def slow(*args: object, **kwargs: object) -> list[str]:
            await asyncio.sleep(1)
            return []

        redis_mock = MagicMock()
        redis_mock.lrange = slow
        store = SessionStore(redis_mock, timeout_seconds=0.01)

        with pytest.raises(StoreUnavailableError) as exc_info:
            await store.read("S1")
        assert "timed out" in exc_info.value.message


class TestSessionIds:
    """Tests for session id generation and validation."""

    def test_create_session_id_is_unique(self) -> None:
        ids = {SessionStore.create_session_id() for _ in range(50)}
        assert len(ids) == 50
        for session_id in ids:
            assert validate_session_id(session_id) == session_id

    @pytest.mark.parametrize("session_id", ["", None, "has space", "x" * 129, "a/b"])
    def test_invalid_session_ids(self, session_id: str | None) -> None:
        with pytest.raises(InvalidArgumentError):
            validate_session_id(session_id)

    @pytest.mark.parametrize("session_id", ["S1", "abc-123", "user:42", "a.b_c"])
    def test_valid_session_ids(self, session_id: str) -> None:
        assert validate_session_id(session_id) == session_id
