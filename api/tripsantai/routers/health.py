"""
Health Check Endpoints
"""
from fastapi import APIRouter, Depends
import redis.asyncio as redis

from tripsantai.services.data_store import DataStoreClient
from tripsantai.utils.database import get_db
from tripsantai.utils.redis import get_redis

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check"""
    return {"status": "healthy", "service": "tripsantai-api"}


@router.get("/health/ready")
async def readiness_check(
    db: DataStoreClient = Depends(get_db),
    cache: redis.Redis = Depends(get_redis),
):
    """
    Readiness check - verifies the data API and the TTL store are available
    """
    checks = {
        "data_api": False,
        "redis": False,
    }

    # Check data API
    checks["data_api"] = await db.ping()

    # Check Redis (the no-op fallback answers False)
    try:
        checks["redis"] = bool(await cache.ping())
    except redis.RedisError as e:
        checks["redis_error"] = str(e)

    # Overall status
    all_healthy = all([checks["data_api"], checks["redis"]])

    return {
        "status": "ready" if all_healthy else "degraded",
        "checks": checks
    }


@router.get("/health/live")
async def liveness_check():
    """Liveness check - is the service running"""
    return {"status": "alive"}
