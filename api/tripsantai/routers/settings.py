"""
Site Settings Endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, status
import logging

from tripsantai.schemas.content import AppSettingsPayload
from tripsantai.services.auth import AdminUser, require_admin
from tripsantai.services.catalog import SETTINGS_ROW_ID, prepare_settings_row
from tripsantai.services.data_store import DataStoreClient, DataStoreError
from tripsantai.services.field_mapping import APP_SETTINGS_FIELDS, UnknownFieldError
from tripsantai.services.media import MediaService, get_media
from tripsantai.utils.database import get_db, upstream_error

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
async def get_app_settings(db: DataStoreClient = Depends(get_db)):
    """Branding, contact and bank details shown across the site"""
    try:
        row = await db.select_one("app_settings", {"id": SETTINGS_ROW_ID})
    except DataStoreError as e:
        raise upstream_error(e)
    return {"data": APP_SETTINGS_FIELDS.from_row(row) if row else None}


@router.put("")
async def update_app_settings(
    payload: AppSettingsPayload,
    db: DataStoreClient = Depends(get_db),
    media: MediaService = Depends(get_media),
    admin: AdminUser = Depends(require_admin),
):
    """
    Upsert the settings row; replaced logos and hero images listed in
    removedPublicIds are deleted from the CDN
    """
    try:
        row = prepare_settings_row(payload.model_dump(by_alias=True, exclude_unset=True))
    except UnknownFieldError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    cloud_results = await media.destroy(payload.removed_public_ids)

    try:
        rows = await db.upsert("app_settings", [row])
    except DataStoreError as e:
        raise upstream_error(e, "Upsert failed")

    logger.info(f"Site settings updated by admin {admin.uid}")
    return {
        "data": APP_SETTINGS_FIELDS.from_row(rows[0] if rows else row),
        "cloudResults": cloud_results.as_dict(),
    }
