"""
Catalog Service - Row preparation for destinations, blog posts, reviews and site settings
"""
from typing import Any, Dict, List, Mapping, Optional
import logging
import math
import random
import re
import time

from tripsantai.services.field_mapping import (
    APP_SETTINGS_FIELDS,
    BLOG_POST_FIELDS,
    DESTINATION_FIELDS,
    REVIEW_FIELDS,
)
from tripsantai.services.media import extract_public_id

logger = logging.getLogger(__name__)

SETTINGS_ROW_ID = 1
REVIEW_MAX_LENGTH = 120
NAME_MAX_LENGTH = 255

_TAGS = re.compile(r"<[^>]*>")
_NON_SLUG = re.compile(r"[^a-z0-9]+")


class ReviewValidationError(ValueError):
    """Visitor review rejected before it reaches the data API"""


def slugify(title: str) -> str:
    return _NON_SLUG.sub("-", str(title).lower().strip()).strip("-")


def new_destination_id() -> int:
    """Millisecond timestamp widened with a random suffix"""
    return int(time.time() * 1000) * 1000 + random.randint(0, 999)


def new_blog_post_id() -> int:
    return int(time.time() * 1000)


def _needs_id(row: Mapping[str, Any]) -> bool:
    value = row.get("id")
    try:
        return value is None or int(value) == 0
    except (TypeError, ValueError):
        return True


def prepare_destination_row(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """
    camelCase destination payload -> upsert row.

    Assigns an id and slug when missing and derives CDN public ids from the
    image URLs when the client did not send them.
    """
    row = DESTINATION_FIELDS.to_row(payload)
    if _needs_id(row):
        row["id"] = new_destination_id()
    if not row.get("slug") and row.get("title"):
        row["slug"] = slugify(row["title"])

    if row.get("image_public_id") is None and row.get("imageurl"):
        derived = extract_public_id(row["imageurl"])
        if derived:
            row["image_public_id"] = derived

    gallery = row.get("galleryimages")
    if isinstance(gallery, list):
        current = row.get("gallery_public_ids")
        if not isinstance(current, list) or any(not pid for pid in current):
            derived_ids = [extract_public_id(url if isinstance(url, str) else "") for url in gallery]
            if any(derived_ids):
                row["gallery_public_ids"] = [pid or "" for pid in derived_ids]

    if "pricetiers" in row and row["pricetiers"] is not None:
        row["pricetiers"] = [
            {"minPeople": tier.get("minPeople", tier.get("min_people")), "price": tier.get("price")}
            for tier in row["pricetiers"]
        ]
    return row


def destination_asset_ids(row: Mapping[str, Any]) -> List[str]:
    """Every CDN asset a stored destination row references"""
    ids = []
    if row.get("image_public_id"):
        ids.append(row["image_public_id"])
    ids.extend(pid for pid in row.get("gallery_public_ids") or [] if pid)
    return ids


def prepare_blog_post_row(payload: Mapping[str, Any]) -> Dict[str, Any]:
    row = BLOG_POST_FIELDS.to_row(payload)
    if _needs_id(row):
        row["id"] = new_blog_post_id()
    if not row.get("slug") and row.get("title"):
        row["slug"] = slugify(row["title"])
    if row.get("image_public_id") is None and row.get("imageurl"):
        derived = extract_public_id(row["imageurl"])
        if derived:
            row["image_public_id"] = derived
    return row


def prepare_settings_row(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """The site has exactly one settings row"""
    row = APP_SETTINGS_FIELDS.to_row(payload)
    row["id"] = SETTINGS_ROW_ID
    return row


def strip_tags(value: str) -> str:
    return _TAGS.sub("", str(value))


def compute_initials(name: str) -> str:
    parts = str(name).split()
    if not parts:
        return ""
    if len(parts) == 1:
        return parts[0][0].upper()
    return (parts[0][0] + parts[-1][0]).upper()


def _coerce_rating(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return math.floor(number)


def prepare_review_row(name: Any, content: Any, rating: Any) -> Dict[str, Any]:
    """
    Validate and sanitize a visitor review.

    Initials are always computed here, never taken from the client.
    """
    name = strip_tags(str(name or "")).strip()[:NAME_MAX_LENGTH]
    content = str(content or "").strip()
    if not name:
        raise ReviewValidationError("Missing name")
    if not content:
        raise ReviewValidationError("Missing content")

    score = _coerce_rating(rating)
    if score is None or score < 1 or score > 5:
        raise ReviewValidationError("Rating must be an integer between 1 and 5")
    if len(content) > REVIEW_MAX_LENGTH:
        raise ReviewValidationError(
            f"Content exceeds maximum length of {REVIEW_MAX_LENGTH} characters"
        )

    return REVIEW_FIELDS.to_row({
        "name": name,
        "initials": compute_initials(name),
        "content": strip_tags(content)[:REVIEW_MAX_LENGTH],
        "rating": score,
    })
