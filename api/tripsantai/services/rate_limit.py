"""
Rate Limiting - Fixed-window counters in the TTL store
"""
from fastapi import Depends, HTTPException, Request, status
import logging
import redis.asyncio as redis

from tripsantai.config import settings
from tripsantai.utils.redis import CacheService, get_cache

logger = logging.getLogger(__name__)


def client_ip(request: Request, trusted_hops: int = None) -> str:
    """
    Address of the caller as seen by the outermost trusted proxy.

    Each trusted proxy appends the peer it saw to X-Forwarded-For, so the
    entry ``trusted_hops`` from the right was written by our own proxy.
    With no trusted proxies the header is ignored.
    """
    hops = settings.TRUSTED_PROXY_HOPS if trusted_hops is None else trusted_hops
    peer = request.client.host if request.client else "unknown"
    if hops <= 0:
        return peer
    entries = [e.strip() for e in request.headers.get("x-forwarded-for", "").split(",") if e.strip()]
    if not entries:
        return peer
    return entries[-min(hops, len(entries))]


class RateLimiter:
    """
    Per-client fixed window.

    Redis errors let the request through; a broken cache should not take
    the booking form down with it.
    """

    def __init__(self, scope: str, limit: int = None, window: int = None):
        self.scope = scope
        self.limit = limit or settings.RATE_LIMIT_REQUESTS
        self.window = window or settings.RATE_LIMIT_WINDOW

    async def hit(self, cache: CacheService, client: str) -> bool:
        """Count one request; False when the client is over the limit"""
        key = f"ratelimit:{self.scope}:{client}"
        try:
            count = await cache.incr_window(key, self.window)
        except redis.RedisError as e:
            logger.warning(f"Rate limiter for {self.scope} skipped: {e}")
            return True
        return count <= self.limit

    async def __call__(self, request: Request, cache: CacheService = Depends(get_cache)):
        ip = client_ip(request)
        if not await self.hit(cache, ip):
            logger.info(f"Rate limit exceeded for {ip} on {self.scope}")
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests, please try again later",
                headers={"Retry-After": str(self.window)},
            )


order_rate_limit = RateLimiter("orders")
review_rate_limit = RateLimiter("reviews")
