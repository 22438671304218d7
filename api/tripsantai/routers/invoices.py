"""
Invoice Endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import ORJSONResponse
import logging

from tripsantai.schemas.invoice import InvoiceCreate
from tripsantai.schemas.order import OrderResponse
from tripsantai.services.auth import AdminUser, require_admin
from tripsantai.services.data_store import DataStoreClient, DataStoreError
from tripsantai.services.field_mapping import INVOICE_FIELDS
from tripsantai.services.invoices import InvoiceService
from tripsantai.services.orders import NotFoundError
from tripsantai.utils.database import get_db, upstream_error

router = APIRouter()
logger = logging.getLogger(__name__)


async def get_invoice_service(db: DataStoreClient = Depends(get_db)) -> InvoiceService:
    return InvoiceService(db)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_invoice(
    invoice_data: InvoiceCreate,
    invoices: InvoiceService = Depends(get_invoice_service),
    admin: AdminUser = Depends(require_admin),
):
    """
    Issue the shareable invoice for an order (idempotent per order)
    """
    try:
        row, created = await invoices.issue(
            invoice_data.order_id,
            total=invoice_data.total,
            metadata=invoice_data.metadata,
            share_token=invoice_data.share_token,
        )
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    except DataStoreError as e:
        raise upstream_error(e, "Insert failed")

    invoice = INVOICE_FIELDS.from_row(row)
    if not created:
        return ORJSONResponse(status_code=status.HTTP_200_OK, content={"invoice": invoice, "note": "existing"})
    logger.info(f"Invoice for order {invoice_data.order_id} issued by admin {admin.uid}")
    return {"invoice": invoice}


@router.get("/{share_token}")
async def get_invoice(
    share_token: str,
    invoices: InvoiceService = Depends(get_invoice_service),
):
    """
    Public invoice page data, looked up by its share token
    """
    try:
        invoice, order = await invoices.fetch_by_token(share_token)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    except DataStoreError as e:
        raise upstream_error(e)
    return {
        "invoice": invoice,
        "order": OrderResponse.from_order(order).model_dump(mode="json", by_alias=True),
    }
