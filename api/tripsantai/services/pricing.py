"""
Pricing Resolver - Group price tiers for destinations
"""
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Union
import logging

from tripsantai.models.destination import PriceTier

logger = logging.getLogger(__name__)

Number = Union[int, float]

DEFAULT_TIER = PriceTier(min_people=1, price=0)


@dataclass(frozen=True)
class PriceQuote:
    """Price breakdown shown to a customer for a given group size"""
    participants: int
    price_per_person: Number
    total_price: Number
    discount_percent: int


def _coerce_number(value: Any, default: Number = 0) -> Number:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def normalize_tiers(tiers: Optional[Iterable[Any]]) -> List[PriceTier]:
    """
    Accept PriceTier objects or raw ``{"minPeople", "price"}`` mappings.

    A missing or empty list becomes a single free tier so callers always
    have something to price against.
    """
    normalized = []
    for tier in tiers or []:
        if isinstance(tier, PriceTier):
            normalized.append(tier)
            continue
        if not isinstance(tier, dict):
            logger.warning(f"Ignoring malformed price tier: {tier!r}")
            continue
        min_people = tier.get("minPeople", tier.get("min_people", 1))
        normalized.append(PriceTier(
            min_people=int(_coerce_number(min_people, 1)),
            price=_coerce_number(tier.get("price")),
        ))
    return normalized or [DEFAULT_TIER]


def resolve_price_per_person(tiers: Optional[Iterable[Any]], participants: int) -> Number:
    """
    Pick the tier with the highest threshold the group still satisfies.

    Falls back to the cheapest tier when the group is smaller than every
    threshold.
    """
    safe_tiers = normalize_tiers(tiers)
    for tier in sorted(safe_tiers, key=lambda t: t.min_people, reverse=True):
        if tier.min_people <= participants:
            return tier.price
    return min(t.price for t in safe_tiers) or 0


def total_price(tiers: Optional[Iterable[Any]], participants: int) -> Number:
    return resolve_price_per_person(tiers, participants) * participants


def discount_percent(tiers: Optional[Iterable[Any]], price_per_person: Number) -> int:
    """Percentage saved against the most expensive tier (display only)"""
    max_price = max(t.price for t in normalize_tiers(tiers))
    if max_price > 0 and price_per_person < max_price:
        return round((max_price - price_per_person) / max_price * 100)
    return 0


def quote(tiers: Optional[Iterable[Any]], participants: int) -> PriceQuote:
    safe_tiers = normalize_tiers(tiers)
    per_person = resolve_price_per_person(safe_tiers, participants)
    return PriceQuote(
        participants=participants,
        price_per_person=per_person,
        total_price=per_person * participants,
        discount_percent=discount_percent(safe_tiers, per_person),
    )
