from __future__ import annotations

from redis.asyncio import Redis

from saferoutes.core.config import get_settings

_bookmark_redis: Redis | None = None


def get_redis(url: str | None = None) -> Redis:
    """Shared client for the Redis bookmark backend; created on first use."""
    global _bookmark_redis
    if _bookmark_redis is None:
        _bookmark_redis = Redis.from_url(url or get_settings().redis_url, encoding="utf-8", decode_responses=True)
    return _bookmark_redis


async def close_redis() -> None:
    global _bookmark_redis
    if _bookmark_redis is None:
        return
    await _bookmark_redis.aclose()
    _bookmark_redis = None
