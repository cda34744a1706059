"""Redis connection factory."""

from __future__ import annotations

from redis.asyncio import Redis

from sandbox_bridge.config import settings


class RedisFactory:
    """Provide a process-wide Redis asyncio client."""

    _client: Redis | None = None

    @classmethod
    def client(cls) -> Redis:
        if cls._client is None:
            cls._client = Redis.from_url(settings.redis_url, decode_responses=False)
        return cls._client

    @classmethod
    async def close(cls) -> None:
        if cls._client is not None:
            await cls._client.aclose()
            cls._client = None
