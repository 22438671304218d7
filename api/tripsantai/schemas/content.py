"""
Blog, Review & Site Settings Schemas
"""
from pydantic import Field, field_validator
from typing import Optional, List, Any
import json

from tripsantai.schemas.common import CamelModel


class BlogPostPayload(CamelModel):
    """Admin create/update payload for a blog post"""
    id: Optional[int] = None
    slug: Optional[str] = None
    title: Optional[str] = Field(None, max_length=255)
    image_url: Optional[str] = None
    image_public_id: Optional[str] = None
    category: Optional[str] = None
    author: Optional[str] = None
    date: Optional[str] = None
    content: Optional[str] = None
    removed_public_ids: List[str] = []

    class Config:
        extra = "forbid"


class ReviewCreate(CamelModel):
    """Visitor review; validated and sanitized in the handler"""
    name: Optional[str] = None
    content: Optional[str] = None
    rating: Optional[Any] = None


class AppSettingsPayload(CamelModel):
    """Single-row site settings (always stored with id 1)"""
    theme: Optional[str] = None
    accent_color: Optional[str] = None
    brand_name: Optional[str] = None
    tagline: Optional[str] = None
    logo_light_url: Optional[str] = None
    logo_dark_url: Optional[str] = None
    favicon16_url: Optional[str] = Field(None, alias="favicon16Url")
    favicon192_url: Optional[str] = Field(None, alias="favicon192Url")
    favicon512_url: Optional[str] = Field(None, alias="favicon512Url")
    email: Optional[str] = None
    address: Optional[str] = None
    whatsapp_number: Optional[str] = None
    facebook_url: Optional[str] = None
    instagram_url: Optional[str] = None
    twitter_url: Optional[str] = None
    bank_name: Optional[str] = None
    bank_account_number: Optional[str] = None
    bank_account_holder: Optional[str] = None
    hero_slides: Optional[Any] = None
    removed_public_ids: List[str] = []

    class Config:
        extra = "forbid"

    @field_validator("hero_slides", mode="before")
    @classmethod
    def parse_hero_slides(cls, value):
        # the settings form may send the slides as a JSON string
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                return value
        return value
