"""Redis client lifecycle management."""

import redis.asyncio as redis

from app.core.settings import RedisConfig


async def init_redis(config: RedisConfig) -> redis.Redis:  # type: ignore[type-arg]
    """Open a Redis connection and verify it responds."""
    client = redis.from_url(
        config.url,
        decode_responses=True,
        socket_timeout=config.timeout_seconds,
        socket_connect_timeout=config.timeout_seconds,
    )
    await client.ping()
    return client


async def close_redis(client: redis.Redis | None) -> None:  # type: ignore[type-arg]
    """Close the Redis connection."""
    if client is not None:
        await client.aclose()
