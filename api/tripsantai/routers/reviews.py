"""
Review Endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Optional
import logging

from tripsantai.schemas.content import ReviewCreate
from tripsantai.services.catalog import ReviewValidationError, prepare_review_row
from tripsantai.services.data_store import DataStoreClient, DataStoreError
from tripsantai.services.field_mapping import REVIEW_FIELDS
from tripsantai.services.rate_limit import review_rate_limit
from tripsantai.utils.database import get_db, upstream_error

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
async def list_reviews(
    limit: Optional[int] = Query(None, ge=1, le=100),
    db: DataStoreClient = Depends(get_db),
):
    try:
        rows = await db.select("reviews", order="created_at.desc", limit=limit)
    except DataStoreError as e:
        raise upstream_error(e)
    return {"data": [REVIEW_FIELDS.from_row(row) for row in rows]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_review(
    review: ReviewCreate,
    db: DataStoreClient = Depends(get_db),
    _: None = Depends(review_rate_limit),
):
    """
    Public review form
    """
    try:
        row = prepare_review_row(review.name, review.content, review.rating)
    except ReviewValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        rows = await db.insert("reviews", [row])
    except DataStoreError as e:
        raise upstream_error(e, "Insert failed")

    logger.info(f"Review received ({row['rating']} stars)")
    return {"data": REVIEW_FIELDS.from_row(rows[0] if rows else row)}
