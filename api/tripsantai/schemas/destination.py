"""
Destination Schemas
"""
from pydantic import Field
from typing import Optional, List, Any

from tripsantai.schemas.common import CamelModel


class PriceTierSchema(CamelModel):
    """Per-person price once the group reaches min_people"""
    min_people: int = Field(..., ge=1)
    price: float = Field(..., ge=0)


class DestinationPayload(CamelModel):
    """
    Admin create/update payload.

    A missing or zero id creates a new destination; removed_public_ids lists
    CDN assets dropped from the gallery in this edit.
    """
    id: Optional[int] = None
    title: Optional[str] = Field(None, max_length=255)
    slug: Optional[str] = None
    short_description: Optional[str] = None
    long_description: Optional[str] = None
    image_url: Optional[str] = None
    gallery_images: Optional[List[str]] = None
    image_public_id: Optional[str] = None
    gallery_public_ids: Optional[List[str]] = None
    price_tiers: Optional[List[PriceTierSchema]] = None
    duration: Optional[str] = None
    min_people: Optional[int] = Field(None, ge=1)
    itinerary: Optional[Any] = None
    facilities: Optional[Any] = None
    categories: Optional[List[str]] = None
    map_coordinates: Optional[Any] = None
    removed_public_ids: List[str] = []

    class Config:
        extra = "forbid"


class QuoteResponse(CamelModel):
    """Price for a group of a given size"""
    destination_id: int
    participants: int
    min_people: int
    price_per_person: float
    total_price: float
    discount_percent: int
    meets_minimum: bool
