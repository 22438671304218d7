"""
Blog Endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Optional
import logging

from tripsantai.schemas.content import BlogPostPayload
from tripsantai.services.auth import AdminUser, require_admin
from tripsantai.services.catalog import prepare_blog_post_row
from tripsantai.services.data_store import DataStoreClient, DataStoreError
from tripsantai.services.field_mapping import BLOG_POST_FIELDS, UnknownFieldError
from tripsantai.services.media import MediaService, get_media
from tripsantai.utils.database import get_db, upstream_error

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
async def list_posts(
    category: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=100),
    db: DataStoreClient = Depends(get_db),
):
    """
    Published posts, newest first
    """
    filters = {"category": category} if category else None
    try:
        rows = await db.select("blog_posts", filters, order="date.desc", limit=limit)
    except DataStoreError as e:
        raise upstream_error(e)
    return {"data": [BLOG_POST_FIELDS.from_row(row) for row in rows]}


@router.get("/{id_or_slug}")
async def get_post(
    id_or_slug: str,
    db: DataStoreClient = Depends(get_db),
):
    filters = {"id": int(id_or_slug)} if id_or_slug.isdigit() else {"slug": id_or_slug}
    try:
        row = await db.select_one("blog_posts", filters)
    except DataStoreError as e:
        raise upstream_error(e)
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blog post not found")
    return {"data": BLOG_POST_FIELDS.from_row(row)}


@router.post("")
async def upsert_post(
    payload: BlogPostPayload,
    db: DataStoreClient = Depends(get_db),
    media: MediaService = Depends(get_media),
    admin: AdminUser = Depends(require_admin),
):
    """
    Create or update a blog post
    """
    try:
        row = prepare_blog_post_row(payload.model_dump(by_alias=True, exclude_unset=True))
    except UnknownFieldError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    cloud_results = await media.destroy(payload.removed_public_ids)

    try:
        rows = await db.upsert("blog_posts", [row])
    except DataStoreError as e:
        raise upstream_error(e, "Upsert failed")

    logger.info(f"Blog post {row['id']} saved by admin {admin.uid}")
    return {
        "data": BLOG_POST_FIELDS.from_row(rows[0] if rows else row),
        "cloudResults": cloud_results.as_dict(),
    }


@router.delete("/{post_id}")
async def delete_post(
    post_id: int,
    db: DataStoreClient = Depends(get_db),
    media: MediaService = Depends(get_media),
    admin: AdminUser = Depends(require_admin),
):
    """
    Delete a blog post and its cover image
    """
    try:
        row = await db.select_one("blog_posts", {"id": post_id}, columns="id,image_public_id")
    except DataStoreError as e:
        raise upstream_error(e, "Failed to fetch blog post")
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blog post not found")

    cloud_results = await media.destroy([row.get("image_public_id")])

    try:
        deleted = await db.delete("blog_posts", {"id": post_id})
    except DataStoreError as e:
        raise upstream_error(e, "Delete failed")

    logger.info(f"Blog post {post_id} deleted by admin {admin.uid}")
    return {
        "data": [BLOG_POST_FIELDS.from_row(r) for r in deleted],
        "cloudResults": cloud_results.as_dict(),
    }
