"""
Invoice Service - Shareable invoices for confirmed orders
"""
from typing import Any, Dict, Mapping, Optional, Tuple
import logging
import secrets

from tripsantai.models.order import Order
from tripsantai.services.data_store import DataStoreClient, DataStoreError
from tripsantai.services.field_mapping import INVOICE_FIELDS, order_from_row
from tripsantai.services.orders import NotFoundError

logger = logging.getLogger(__name__)

SHARE_TOKEN_LENGTH = 18


def make_share_token(length: int = SHARE_TOKEN_LENGTH) -> str:
    """URL-safe random token used in the public invoice link"""
    return secrets.token_urlsafe(length)[:length]


class InvoiceService:
    """
    One invoice per order.

    Issuing twice for the same order returns the first invoice instead of
    failing, so the admin "share invoice" button can be pressed repeatedly.
    """

    def __init__(self, db: DataStoreClient):
        self.db = db

    async def issue(
        self,
        order_id: int,
        total: Optional[float] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        share_token: Optional[str] = None,
    ) -> Tuple[Dict[str, Any], bool]:
        """Returns (invoice row, created)"""
        order_row = await self.db.select_one("orders", {"id": order_id})
        if not order_row:
            raise NotFoundError("Order", order_id)

        # the stored order total is authoritative
        stored_total = order_row.get("total_price")
        final_total = float(stored_total) if stored_total is not None else float(total or 0)

        row = INVOICE_FIELDS.to_row({
            "orderId": order_id,
            "total": final_total,
            "metadata": dict(metadata or {}),
            "shareToken": share_token or make_share_token(),
        })
        try:
            inserted = await self.db.insert("invoices", [row])
        except DataStoreError as e:
            existing = await self.db.select_one("invoices", {"order_id": order_id})
            if existing:
                logger.info(f"Invoice for order {order_id} already exists ({e.status_code}), returning it")
                return existing, False
            raise
        logger.info(f"Invoice issued for order {order_id}")
        return (inserted[0] if inserted else row), True

    async def fetch_by_token(self, share_token: str) -> Tuple[Dict[str, Any], Order]:
        result = await self.db.rpc("fetch_invoice_by_token_with_order", {"p_token": share_token})
        row = (result[0] if result else None) if isinstance(result, list) else result
        if not row:
            raise NotFoundError("Invoice", share_token)

        invoice = {
            "id": row.get("invoice_id", row.get("id")),
            "orderId": row.get("order_id"),
            "total": row.get("total"),
            "metadata": row.get("metadata"),
            "shareToken": row.get("share_token"),
            "createdAt": row.get("created_at"),
        }
        order = order_from_row({**row, "id": row.get("order_id")})
        return invoice, order
