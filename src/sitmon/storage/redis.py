"""Redis client connection."""

from redis.asyncio import Redis
from redis.exceptions import RedisError

from sitmon.core.exceptions import RedisConnectionError
from sitmon.core.logging import get_logger

logger = get_logger(__name__)

# Global Redis instance (initialized in lifespan)
_redis: Redis | None = None


def get_redis() -> Redis:
    """Get the global Redis instance."""
    if _redis is None:
        raise RuntimeError("Redis not initialized")
    return _redis


async def init_redis(redis_url: str) -> Redis:
    """Initialize the global Redis instance.

    Raises:
        RedisConnectionError: If the server does not answer a ping
    """
    global _redis
    _redis = Redis.from_url(redis_url, decode_responses=False)
    try:
        pong = _redis.ping()
        if hasattr(pong, "__await__"):
            await pong
    except RedisError as e:
        await _redis.aclose()
        _redis = None
        raise RedisConnectionError(f"Redis unreachable at {redis_url}: {e}") from e
    logger.info("Redis connected")
    return _redis


async def close_redis() -> None:
    """Close the global Redis instance."""
    global _redis
    if _redis:
        await _redis.aclose()
        logger.info("Redis disconnected")
        _redis = None
