"""
Admin Dashboard Endpoints
"""
from collections import Counter
from fastapi import APIRouter, Depends
import logging

from tripsantai.models.order import OrderStatus
from tripsantai.schemas.order import OrderCountsResponse
from tripsantai.services.auth import AdminUser, require_admin
from tripsantai.services.data_store import DataStoreClient, DataStoreError
from tripsantai.utils.database import get_db, upstream_error

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=OrderCountsResponse)
async def dashboard_summary(
    db: DataStoreClient = Depends(get_db),
    admin: AdminUser = Depends(require_admin),
):
    """
    Headline counts for the admin home page
    """
    try:
        destinations = await db.select("destinations", columns="id")
        posts = await db.select("blog_posts", columns="id")
        orders = await db.select("orders", columns="id,status")
    except DataStoreError as e:
        raise upstream_error(e)

    by_status = Counter(row.get("status") or OrderStatus.NEW.value for row in orders)
    return OrderCountsResponse(
        destination_count=len(destinations),
        blog_post_count=len(posts),
        total_orders=len(orders),
        new_orders=by_status.get(OrderStatus.NEW.value, 0),
        by_status={s.value: by_status.get(s.value, 0) for s in OrderStatus},
    )
