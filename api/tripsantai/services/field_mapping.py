"""
Field Mapping - One explicit camelCase <-> column table per resource

Payloads from the website use camelCase keys while the hosted tables use
lower-case or snake_case columns. Every translation goes through a FieldMap
so an unexpected key is rejected at the boundary instead of silently
becoming a new column name.
"""
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional
import logging

from tripsantai.models.destination import Destination
from tripsantai.models.order import Order, OrderStatus, PaymentRecord, PaymentStatus
from tripsantai.services.pricing import normalize_tiers

logger = logging.getLogger(__name__)


class UnknownFieldError(ValueError):
    """Payload key with no column in the resource's field table"""
    def __init__(self, table: str, keys: Iterable[str]):
        self.table = table
        self.keys = sorted(keys)
        super().__init__(f"{table}: unknown field(s) {', '.join(self.keys)}")


class FieldMap:
    """
    Bidirectional mapping between API field names and table columns.

    ``transient`` keys are accepted in payloads but never written
    (e.g. the list of image ids to remove from the CDN).
    """

    def __init__(self, table: str, fields: Mapping[str, str], transient: Iterable[str] = ()):
        self.table = table
        self.fields = dict(fields)
        self.columns = {column: name for name, column in self.fields.items()}
        self.transient = frozenset(transient)

    def column(self, name: str) -> str:
        return self.fields[name]

    def to_row(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """camelCase payload -> row. Already-mapped column names pass through."""
        row = {}
        unknown = []
        for key, value in payload.items():
            if key in self.transient:
                continue
            if key in self.fields:
                row[self.fields[key]] = value
            elif key in self.columns:
                row[key] = value
            else:
                unknown.append(key)
        if unknown:
            raise UnknownFieldError(self.table, unknown)
        return row

    def from_row(self, row: Mapping[str, Any]) -> Dict[str, Any]:
        """row -> camelCase payload. Columns outside the table are dropped."""
        payload = {}
        for column, value in row.items():
            name = self.columns.get(column)
            if name is None:
                logger.debug(f"{self.table}: dropping unmapped column {column}")
                continue
            payload[name] = value
        return payload


ORDER_FIELDS = FieldMap("orders", {
    "id": "id",
    "customerName": "customer_name",
    "customerPhone": "customer_phone",
    "destinationId": "destination_id",
    "destinationTitle": "destination_title",
    "participants": "participants",
    "orderDate": "order_date",
    "departureDate": "departure_date",
    "totalPrice": "total_price",
    "status": "status",
    "paymentStatus": "payment_status",
    "paymentHistory": "payment_history",
    "notes": "notes",
})

DESTINATION_FIELDS = FieldMap("destinations", {
    "id": "id",
    "title": "title",
    "slug": "slug",
    "shortDescription": "shortdescription",
    "longDescription": "longdescription",
    "imageUrl": "imageurl",
    "galleryImages": "galleryimages",
    "imagePublicId": "image_public_id",
    "galleryPublicIds": "gallery_public_ids",
    "priceTiers": "pricetiers",
    "duration": "duration",
    "minPeople": "minpeople",
    "itinerary": "itinerary",
    "facilities": "facilities",
    "categories": "categories",
    "mapCoordinates": "mapcoordinates",
}, transient=("removedPublicIds", "removed_public_ids"))

BLOG_POST_FIELDS = FieldMap("blog_posts", {
    "id": "id",
    "slug": "slug",
    "title": "title",
    "imageUrl": "imageurl",
    "imagePublicId": "image_public_id",
    "category": "category",
    "author": "author",
    "date": "date",
    "content": "content",
}, transient=("removedPublicIds", "removed_public_ids"))

REVIEW_FIELDS = FieldMap("reviews", {
    "id": "id",
    "name": "name",
    "initials": "initials",
    "content": "content",
    "rating": "rating",
    "createdAt": "created_at",
})

APP_SETTINGS_FIELDS = FieldMap("app_settings", {
    "id": "id",
    "theme": "theme",
    "accentColor": "accentcolor",
    "brandName": "brandname",
    "tagline": "tagline",
    "logoLightUrl": "logolighturl",
    "logoDarkUrl": "logodarkurl",
    "favicon16Url": "favicon16url",
    "favicon192Url": "favicon192url",
    "favicon512Url": "favicon512url",
    "email": "email",
    "address": "address",
    "whatsappNumber": "whatsappnumber",
    "facebookUrl": "facebookurl",
    "instagramUrl": "instagramurl",
    "twitterUrl": "twitterurl",
    "bankName": "bankname",
    "bankAccountNumber": "bankaccountnumber",
    "bankAccountHolder": "bankaccountholder",
    "heroSlides": "heroslides",
}, transient=("removedPublicIds", "removed_public_ids"))

INVOICE_FIELDS = FieldMap("invoices", {
    "id": "id",
    "orderId": "order_id",
    "total": "total",
    "metadata": "metadata",
    "shareToken": "share_token",
    "createdAt": "created_at",
})


# --------------------------------------------------------------------------
# Row <-> domain conversions
# --------------------------------------------------------------------------

def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _parse_date(value: Any) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _payment_from_row(entry: Mapping[str, Any]) -> PaymentRecord:
    return PaymentRecord(
        amount=entry.get("amount") or 0,
        date=_parse_datetime(entry.get("date")),
        notes=entry.get("notes") or None,
    )


def order_from_row(row: Mapping[str, Any]) -> Order:
    payment_status = row.get("payment_status")
    return Order(
        id=int(row["id"]),
        customer_name=row.get("customer_name") or "",
        customer_phone=row.get("customer_phone") or "",
        destination_id=row.get("destination_id"),
        destination_title=row.get("destination_title") or "",
        participants=int(row.get("participants") or 0),
        order_date=_parse_datetime(row.get("order_date")),
        departure_date=_parse_date(row.get("departure_date")),
        total_price=row.get("total_price") or 0,
        status=OrderStatus(row.get("status") or OrderStatus.NEW.value),
        payment_status=PaymentStatus(payment_status) if payment_status else None,
        payment_history=tuple(_payment_from_row(p) for p in row.get("payment_history") or []),
        notes=row.get("notes"),
    )


def payment_history_to_row(history: Iterable[PaymentRecord]) -> Optional[List[Dict[str, Any]]]:
    entries = [
        {"amount": p.amount, "date": p.date.isoformat(), "notes": p.notes}
        for p in history
    ]
    return entries or None


def order_to_row(order: Order) -> Dict[str, Any]:
    return ORDER_FIELDS.to_row({
        "id": order.id,
        "customerName": order.customer_name,
        "customerPhone": order.customer_phone,
        "destinationId": order.destination_id,
        "destinationTitle": order.destination_title,
        "participants": order.participants,
        "orderDate": order.order_date.isoformat() if order.order_date else None,
        "departureDate": order.departure_date.isoformat() if order.departure_date else None,
        "totalPrice": order.total_price,
        "status": order.status.value,
        "paymentStatus": order.payment_status.value if order.payment_status else None,
        "paymentHistory": payment_history_to_row(order.payment_history),
        "notes": order.notes,
    })


def changed_columns(before: Order, after: Order) -> Dict[str, Any]:
    """Only the columns that differ, for a minimal PATCH"""
    old_row = order_to_row(before)
    return {
        column: value
        for column, value in order_to_row(after).items()
        if old_row.get(column) != value
    }


def destination_from_row(row: Mapping[str, Any]) -> Destination:
    payload = DESTINATION_FIELDS.from_row(row)
    core = {"id", "title", "slug", "priceTiers", "minPeople", "imagePublicId", "galleryPublicIds"}
    return Destination(
        id=int(payload["id"]),
        title=payload.get("title") or "",
        slug=payload.get("slug"),
        price_tiers=normalize_tiers(payload.get("priceTiers")),
        min_people=int(payload.get("minPeople") or 1),
        image_public_id=payload.get("imagePublicId"),
        gallery_public_ids=[p for p in payload.get("galleryPublicIds") or [] if p],
        extra={k: v for k, v in payload.items() if k not in core},
    )
