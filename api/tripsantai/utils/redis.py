"""
Redis Connection & TTL Store Utilities
"""
import redis.asyncio as redis
from typing import Optional, Any
import json
import logging

from tripsantai.config import settings

logger = logging.getLogger(__name__)

# Redis client instance
redis_client: Optional[redis.Redis] = None


async def init_redis():
    """Initialize Redis connection"""
    global redis_client
    logger.info("Initializing Redis connection...")
    redis_client = redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,  # 5 second connection timeout
        socket_timeout=5,  # 5 second operation timeout
        retry_on_timeout=True,
    )
    # Test connection
    try:
        await redis_client.ping()
        logger.info("Redis connection established")
    except Exception as e:
        logger.warning(f"Redis connection failed: {e}. TTL store will be disabled.")


async def close_redis():
    """Close Redis connection"""
    global redis_client
    if redis_client:
        logger.info("Closing Redis connection...")
        await redis_client.aclose()
        logger.info("Redis connection closed")


class NoOpCache:
    """
    Stand-in used when Redis is unavailable.

    Reads miss and counters stay at zero, so lockouts and rate limits are
    not enforced and one-time tickets can never be redeemed.
    """
    async def ping(self) -> bool:
        return False

    async def getdel(self, key: str) -> None:
        return None

    async def setex(self, key: str, ttl: int, value: Any) -> bool:
        return True

    async def delete(self, *keys: str) -> int:
        return 0

    async def incrby(self, key: str, amount: int = 1) -> int:
        return 0

    async def expire(self, key: str, ttl: int) -> bool:
        return False

    async def ttl(self, key: str) -> int:
        return -2


_noop_cache = NoOpCache()


async def get_redis() -> redis.Redis:
    """
    Dependency that provides Redis client
    Usage: cache: redis.Redis = Depends(get_redis)

    Returns a no-op cache if Redis is unavailable (graceful degradation)
    """
    if redis_client is None:
        logger.warning("Redis client not initialized, using no-op cache")
        return _noop_cache

    # Quick health check
    try:
        await redis_client.ping()
        return redis_client
    except Exception as e:
        logger.warning(f"Redis ping failed: {e}, using no-op cache")
        return _noop_cache


class CacheService:
    """
    Key-value store with TTL, injected into handlers instead of
    process-wide dictionaries
    """

    def __init__(self, client: redis.Redis):
        self.client = client

    async def pop(self, key: str) -> Optional[Any]:
        """Atomically read and delete (single-use values)"""
        value = await self.client.getdel(key)
        if value:
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                return value
        return None

    async def set(self, key: str, value: Any, ttl: int) -> bool:
        """Set value in cache with TTL"""
        if isinstance(value, (dict, list)):
            value = json.dumps(value, default=str)
        return await self.client.setex(key, ttl, value)

    async def delete(self, key: str) -> bool:
        """Delete key from cache"""
        return await self.client.delete(key) > 0

    async def incr(self, key: str, amount: int = 1) -> int:
        """Increment counter"""
        return await self.client.incrby(key, amount)

    async def incr_window(self, key: str, window: int) -> int:
        """Increment a counter that expires `window` seconds after its first hit"""
        count = await self.incr(key)
        if count == 1:
            await self.client.expire(key, window)
        return count

    async def ttl(self, key: str) -> int:
        """Seconds until expiry (negative when missing or persistent)"""
        return await self.client.ttl(key)


async def get_cache() -> CacheService:
    """
    Dependency that provides the TTL store
    Usage: cache: CacheService = Depends(get_cache)
    """
    return CacheService(await get_redis())
