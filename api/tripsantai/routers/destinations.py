"""
Destination Endpoints - Public catalog, group quotes and admin management
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Any, Dict, Optional
import logging

from tripsantai.schemas.destination import DestinationPayload, QuoteResponse
from tripsantai.services import pricing
from tripsantai.services.auth import AdminUser, require_admin
from tripsantai.services.catalog import destination_asset_ids, prepare_destination_row
from tripsantai.services.data_store import DataStoreClient, DataStoreError
from tripsantai.services.field_mapping import (
    DESTINATION_FIELDS,
    UnknownFieldError,
    destination_from_row,
)
from tripsantai.services.media import MediaService, get_media
from tripsantai.utils.database import get_db, upstream_error

router = APIRouter()
logger = logging.getLogger(__name__)


def _lookup_filters(id_or_slug: str) -> Dict[str, Any]:
    return {"id": int(id_or_slug)} if id_or_slug.isdigit() else {"slug": id_or_slug}


@router.get("")
async def list_destinations(
    category: Optional[str] = Query(None, description="Only destinations in this category"),
    limit: Optional[int] = Query(None, ge=1, le=200),
    db: DataStoreClient = Depends(get_db),
):
    """
    Public destination catalog
    """
    try:
        rows = await db.select("destinations", order="id.desc", limit=limit)
    except DataStoreError as e:
        raise upstream_error(e)

    destinations = [DESTINATION_FIELDS.from_row(row) for row in rows]
    if category:
        destinations = [d for d in destinations if category in (d.get("categories") or [])]
    return {"data": destinations}


@router.get("/{id_or_slug}")
async def get_destination(
    id_or_slug: str,
    db: DataStoreClient = Depends(get_db),
):
    """
    Get a destination by numeric id or slug
    """
    try:
        row = await db.select_one("destinations", _lookup_filters(id_or_slug))
    except DataStoreError as e:
        raise upstream_error(e)
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Destination not found")
    return {"data": DESTINATION_FIELDS.from_row(row)}


@router.get("/{destination_id}/quote", response_model=QuoteResponse)
async def quote_destination(
    destination_id: int,
    participants: int = Query(..., ge=1, le=500, description="Group size"),
    db: DataStoreClient = Depends(get_db),
):
    """
    Price per person and total for a group, as shown on the booking form
    """
    try:
        row = await db.select_one("destinations", {"id": destination_id})
    except DataStoreError as e:
        raise upstream_error(e)
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Destination not found")

    destination = destination_from_row(row)
    result = pricing.quote(destination.price_tiers, participants)
    return QuoteResponse(
        destination_id=destination.id,
        participants=participants,
        min_people=destination.min_people,
        price_per_person=result.price_per_person,
        total_price=result.total_price,
        discount_percent=result.discount_percent,
        meets_minimum=participants >= destination.min_people,
    )


@router.post("")
async def upsert_destination(
    payload: DestinationPayload,
    db: DataStoreClient = Depends(get_db),
    media: MediaService = Depends(get_media),
    admin: AdminUser = Depends(require_admin),
):
    """
    Create or update a destination.

    Assets listed in removedPublicIds are deleted from the CDN before the
    row is written; cleanup failures are reported, never fatal.
    """
    try:
        row = prepare_destination_row(payload.model_dump(by_alias=True, exclude_unset=True))
    except UnknownFieldError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    cloud_results = await media.destroy(payload.removed_public_ids)

    try:
        rows = await db.upsert("destinations", [row])
    except DataStoreError as e:
        raise upstream_error(e, "Upsert failed")

    logger.info(f"Destination {row['id']} saved by admin {admin.uid}")
    return {
        "data": DESTINATION_FIELDS.from_row(rows[0] if rows else row),
        "cloudResults": cloud_results.as_dict(),
    }


@router.delete("/{destination_id}")
async def delete_destination(
    destination_id: int,
    db: DataStoreClient = Depends(get_db),
    media: MediaService = Depends(get_media),
    admin: AdminUser = Depends(require_admin),
):
    """
    Delete a destination together with its cover and gallery images
    """
    try:
        row = await db.select_one(
            "destinations",
            {"id": destination_id},
            columns="id,image_public_id,gallery_public_ids",
        )
    except DataStoreError as e:
        raise upstream_error(e, "Failed to fetch destination")
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Destination not found")

    cloud_results = await media.destroy(destination_asset_ids(row))

    try:
        deleted = await db.delete("destinations", {"id": destination_id})
    except DataStoreError as e:
        raise upstream_error(e, "Delete failed")

    logger.info(f"Destination {destination_id} deleted by admin {admin.uid}")
    return {
        "data": [DESTINATION_FIELDS.from_row(r) for r in deleted],
        "cloudResults": cloud_results.as_dict(),
    }
