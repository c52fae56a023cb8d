from __future__ import annotations

import redis.asyncio as redis

from quantum_jobs.settings import Settings, get_settings

try:
    import fakeredis.aioredis as fakeredis
except ImportError:  # pragma: no cover - optional
    fakeredis = None

_redis_cache: redis.Redis | None = None


def create_redis(settings: Settings) -> redis.Redis:
    """Build the emulator's Redis client; ``FAKE_REDIS`` swaps in fakeredis."""
    if settings.use_fake_redis:
        if fakeredis is None:
            raise RuntimeError("FAKE_REDIS is set but fakeredis is not installed")
        return fakeredis.FakeRedis(decode_responses=True)
    return redis.from_url(settings.redis_url, decode_responses=True)


def get_redis() -> redis.Redis:
    global _redis_cache
    if _redis_cache is None:
        _redis_cache = create_redis(get_settings())
    return _redis_cache
