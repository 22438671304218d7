"""
Order Service - Runs state-machine events against stored orders
"""
from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional
from urllib.parse import quote as url_quote
import logging
import re

from tripsantai.config import settings
from tripsantai.models.destination import Destination
from tripsantai.models.order import Order, OrderStatus
from tripsantai.services import order_state
from tripsantai.services.data_store import DataStoreClient, DataStoreError
from tripsantai.services.field_mapping import (
    changed_columns,
    destination_from_row,
    order_from_row,
    order_to_row,
)

logger = logging.getLogger(__name__)

MONTHS_ID = [
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
]


class NotFoundError(Exception):
    def __init__(self, resource: str, key: Any):
        self.resource = resource
        self.key = key
        super().__init__(f"{resource} {key} not found")


class OrderPersistenceError(Exception):
    """
    The event was valid but the data API write failed.

    ``previous`` is the stored order before the event and ``attempted`` the
    order the event produced; callers revert to ``previous`` and may retry
    with ``attempted``.
    """
    def __init__(self, previous: Optional[Order], attempted: Order, cause: DataStoreError):
        self.previous = previous
        self.attempted = attempted
        self.cause = cause
        super().__init__(f"failed to persist order {attempted.id}: {cause}")


class OrderService:
    """
    Loads orders, applies one event at a time and writes back only the
    changed columns.
    """

    def __init__(self, db: DataStoreClient):
        self.db = db

    async def list_orders(self, status: Optional[OrderStatus] = None) -> List[Order]:
        filters = {"status": status.value} if status else None
        rows = await self.db.select("orders", filters, order="order_date.desc")
        return [order_from_row(row) for row in rows]

    async def get_order(self, order_id: int) -> Order:
        row = await self.db.select_one("orders", {"id": order_id})
        if not row:
            raise NotFoundError("Order", order_id)
        return order_from_row(row)

    async def get_destination(self, destination_id: int) -> Destination:
        row = await self.db.select_one("destinations", {"id": destination_id})
        if not row:
            raise NotFoundError("Destination", destination_id)
        return destination_from_row(row)

    async def place_order(
        self,
        destination_id: int,
        customer_name: str,
        customer_phone: str,
        participants: int,
        departure_date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> Order:
        """Public booking: price is computed here, never taken from the client"""
        destination = await self.get_destination(destination_id)
        order = order_state.create_order(
            destination,
            customer_name=customer_name,
            customer_phone=customer_phone,
            participants=participants,
            departure_date=departure_date,
            notes=notes,
        )
        try:
            rows = await self.db.insert("orders", [order_to_row(order)])
        except DataStoreError as e:
            logger.error(f"create-order: insert failed for {order.id}: {e}")
            raise OrderPersistenceError(None, order, e) from e
        logger.info(f"Order created: {order.id} for destination {destination.id} ({participants} pax)")
        return order_from_row(rows[0]) if rows else order

    async def apply(
        self,
        order_id: int,
        event: Callable[[Order], Order],
        previous: Optional[Order] = None,
    ) -> Order:
        """Run one event against the stored order, or against `previous` when already loaded"""
        if previous is None:
            previous = await self.get_order(order_id)
        attempted = event(previous)
        patch = changed_columns(previous, attempted)
        if not patch:
            return attempted
        try:
            rows = await self.db.update("orders", {"id": order_id}, patch)
        except DataStoreError as e:
            logger.error(f"Order {order_id}: update of {sorted(patch)} failed: {e}")
            raise OrderPersistenceError(previous, attempted, e) from e
        logger.info(f"Order {order_id}: {previous.status.value} -> {attempted.status.value}")
        return order_from_row(rows[0]) if rows else attempted

    async def contact(self, order_id: int) -> Order:
        return await self.apply(order_id, order_state.contact_customer)

    async def record_payment(self, order_id: int, amount: float, notes: Optional[str] = None) -> Order:
        return await self.apply(order_id, lambda o: order_state.record_payment(o, amount, notes))

    async def complete(self, order_id: int) -> Order:
        return await self.apply(order_id, order_state.mark_complete)

    async def cancel(self, order_id: int) -> Order:
        return await self.apply(order_id, order_state.cancel)

    async def update_participants(self, order_id: int, participants: int) -> Order:
        current = await self.get_order(order_id)
        destination = await self.get_destination(current.destination_id)
        return await self.apply(
            order_id,
            lambda o: order_state.edit_participants(o, destination, participants),
            previous=current,
        )

    async def update_departure_date(self, order_id: int, departure_date: Optional[date]) -> Order:
        return await self.apply(order_id, lambda o: order_state.edit_departure_date(o, departure_date))

    async def delete(self, order_id: int) -> None:
        deleted = await self.db.delete("orders", {"id": order_id})
        if not deleted:
            raise NotFoundError("Order", order_id)
        logger.info(f"Order deleted: {order_id}")


# --------------------------------------------------------------------------
# First-contact message
# --------------------------------------------------------------------------

def format_rupiah(amount: float) -> str:
    return "Rp " + f"{round(amount):,}".replace(",", ".")


def format_date_id(value: Optional[date]) -> str:
    if value is None:
        return "-"
    return f"{value.day:02d} {MONTHS_ID[value.month - 1]} {value.year}"


def whatsapp_number(phone: str) -> str:
    """Digits only, local 0-prefix rewritten to the 62 country code"""
    digits = re.sub(r"\D", "", phone or "")
    if digits.startswith("0"):
        digits = "62" + digits[1:]
    return digits


def compose_contact_message(order: Order, app_settings: Mapping[str, Any]) -> Dict[str, str]:
    brand = app_settings.get("brandName") or settings.BRAND_NAME
    message = (
        f"Halo Bapak/Ibu {order.customer_name},\n\n"
        f"Terima kasih telah memilih {brand}!\n"
        f"Pesanan Anda kami konfirmasi:\n\n"
        f"Destinasi: {order.destination_title}\n\n"
        f"Jumlah Peserta: {order.participants} orang\n\n"
        f"Tanggal Keberangkatan: {format_date_id(order.departure_date)}\n\n"
        f"Total Tagihan: {format_rupiah(order.total_price)}\n\n"
        f"Konfirmasi segera agar tim {brand} dapat menindaklanjuti pesanan Anda."
    )
    return {
        "message": message,
        "whatsappUrl": f"https://wa.me/{whatsapp_number(order.customer_phone)}?text={url_quote(message)}",
    }
