"""
Hosted Postgres Connection - Data API client lifecycle
"""
from fastapi import HTTPException, status
from typing import Optional
import logging

from tripsantai.config import settings
from tripsantai.services.data_store import DataStoreClient, DataStoreError

logger = logging.getLogger(__name__)

# Shared HTTP connection pool to the data API
data_store: Optional[DataStoreClient] = None


async def init_db():
    """Initialize the data API client"""
    global data_store
    if not settings.DATA_CONFIGURED:
        logger.warning("SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not set, data API disabled")
        return
    logger.info("Initializing data API client...")
    data_store = DataStoreClient(
        settings.DATA_API_URL,
        settings.SERVICE_ROLE_KEY,
        timeout=settings.HTTP_TIMEOUT,
    )
    if await data_store.ping():
        logger.info("Data API reachable")
    else:
        logger.warning("Data API did not answer the startup ping")


async def close_db():
    """Close data API client"""
    global data_store
    if data_store:
        logger.info("Closing data API client...")
        await data_store.close()
        data_store = None
        logger.info("Data API client closed")


async def get_db() -> DataStoreClient:
    """
    Dependency that provides the data API client
    Usage: db: DataStoreClient = Depends(get_db)
    """
    if data_store is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server misconfiguration: missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY",
        )
    return data_store


def upstream_error(e: DataStoreError, message: str = None) -> HTTPException:
    """HTTP 502 for a failed data API call, carrying the API's own detail"""
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail={"error": message or e.message, "detail": e.detail},
    )
