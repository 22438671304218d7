"""
Destination Model
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class PriceTier:
    """Per-person price unlocked once a group reaches min_people"""
    min_people: int
    price: float


@dataclass
class Destination:
    id: int
    title: str
    price_tiers: List[PriceTier] = field(default_factory=list)
    min_people: int = 1
    slug: Optional[str] = None
    image_public_id: Optional[str] = None
    gallery_public_ids: List[str] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)  # descriptive columns passed through untouched

    def __repr__(self):
        return f"<Destination {self.id} {self.title!r}>"
