"""
Order Endpoints - Public booking form and admin order management
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from typing import Awaitable, List, Optional
import logging

from tripsantai.models.order import Order, OrderStatus
from tripsantai.schemas.order import (
    OrderCreate,
    OrderResponse,
    PaymentCreate,
    ParticipantsUpdate,
    DepartureDateUpdate,
    ContactResponse,
)
from tripsantai.services.auth import AdminUser, require_admin
from tripsantai.services.data_store import DataStoreClient, DataStoreError
from tripsantai.services.field_mapping import APP_SETTINGS_FIELDS
from tripsantai.services.order_state import OrderStateConflict, OrderValidationError
from tripsantai.services.orders import (
    NotFoundError,
    OrderPersistenceError,
    OrderService,
    compose_contact_message,
)
from tripsantai.services.rate_limit import client_ip, order_rate_limit
from tripsantai.services.recaptcha import RecaptchaVerifier, get_recaptcha
from tripsantai.utils.database import get_db, upstream_error

router = APIRouter()
logger = logging.getLogger(__name__)


async def get_order_service(db: DataStoreClient = Depends(get_db)) -> OrderService:
    return OrderService(db)


async def _run(operation: Awaitable[Order]) -> Order:
    """Await an order operation and translate its errors to HTTP responses"""
    try:
        return await operation
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except OrderValidationError as e:
        raise HTTPException(status_code=422, detail=e.reason)
    except OrderStateConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.reason)
    except OrderPersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "error": "Failed to save order",
                "detail": e.cause.detail or e.cause.message,
                "previous": OrderResponse.from_order(e.previous).model_dump(mode="json", by_alias=True)
                if e.previous else None,
            },
        )
    except DataStoreError as e:
        raise upstream_error(e)


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreate,
    request: Request,
    orders: OrderService = Depends(get_order_service),
    recaptcha: RecaptchaVerifier = Depends(get_recaptcha),
    _: None = Depends(order_rate_limit),
):
    """
    Public booking form.

    The total is computed from the destination's price tiers; any price the
    browser shows is informational only.
    """
    if not await recaptcha.verify(order_data.recaptcha_token, client_ip(request)):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="reCAPTCHA verification failed")

    order = await _run(orders.place_order(
        destination_id=order_data.destination_id,
        customer_name=order_data.customer_name.strip(),
        customer_phone=order_data.customer_phone.strip(),
        participants=order_data.participants,
        departure_date=order_data.departure_date,
        notes=order_data.notes or None,
    ))
    return OrderResponse.from_order(order)


@router.get("", response_model=List[OrderResponse])
async def list_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status", description="Filter by status"),
    orders: OrderService = Depends(get_order_service),
    admin: AdminUser = Depends(require_admin),
):
    """
    List orders, newest first
    """
    try:
        result = await orders.list_orders(status_filter)
    except DataStoreError as e:
        raise upstream_error(e)
    return [OrderResponse.from_order(order) for order in result]


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    orders: OrderService = Depends(get_order_service),
    admin: AdminUser = Depends(require_admin),
):
    order = await _run(orders.get_order(order_id))
    return OrderResponse.from_order(order)


@router.post("/{order_id}/contact", response_model=ContactResponse)
async def contact_customer(
    order_id: int,
    orders: OrderService = Depends(get_order_service),
    db: DataStoreClient = Depends(get_db),
    admin: AdminUser = Depends(require_admin),
):
    """
    First contact: moves a new order to awaiting payment and returns the
    WhatsApp confirmation message for the admin to send.
    """
    order = await _run(orders.contact(order_id))

    try:
        settings_row = await db.select_one("app_settings", {"id": 1})
    except DataStoreError as e:
        logger.warning(f"Settings lookup for contact message failed: {e}")
        settings_row = None
    app_settings = APP_SETTINGS_FIELDS.from_row(settings_row or {})

    contact = compose_contact_message(order, app_settings)
    logger.info(f"Order {order_id} contacted by admin {admin.uid}")
    return ContactResponse(
        order=OrderResponse.from_order(order),
        message=contact["message"],
        whatsapp_url=contact["whatsappUrl"],
    )


@router.post("/{order_id}/payments", response_model=OrderResponse)
async def record_payment(
    order_id: int,
    payment: PaymentCreate,
    orders: OrderService = Depends(get_order_service),
    admin: AdminUser = Depends(require_admin),
):
    """
    Confirm a received payment (down payment or settlement)
    """
    order = await _run(orders.record_payment(order_id, payment.amount, payment.notes))
    logger.info(f"Payment of {payment.amount} recorded on order {order_id} by admin {admin.uid}")
    return OrderResponse.from_order(order)


@router.post("/{order_id}/complete", response_model=OrderResponse)
async def complete_order(
    order_id: int,
    orders: OrderService = Depends(get_order_service),
    admin: AdminUser = Depends(require_admin),
):
    order = await _run(orders.complete(order_id))
    return OrderResponse.from_order(order)


@router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: int,
    orders: OrderService = Depends(get_order_service),
    admin: AdminUser = Depends(require_admin),
):
    order = await _run(orders.cancel(order_id))
    return OrderResponse.from_order(order)


@router.patch("/{order_id}/participants", response_model=OrderResponse)
async def update_participants(
    order_id: int,
    update: ParticipantsUpdate,
    orders: OrderService = Depends(get_order_service),
    admin: AdminUser = Depends(require_admin),
):
    """
    Change the group size; the total is re-priced from the destination tiers
    """
    order = await _run(orders.update_participants(order_id, update.participants))
    return OrderResponse.from_order(order)


@router.patch("/{order_id}/departure-date", response_model=OrderResponse)
async def update_departure_date(
    order_id: int,
    update: DepartureDateUpdate,
    orders: OrderService = Depends(get_order_service),
    admin: AdminUser = Depends(require_admin),
):
    order = await _run(orders.update_departure_date(order_id, update.departure_date))
    return OrderResponse.from_order(order)


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_order(
    order_id: int,
    orders: OrderService = Depends(get_order_service),
    admin: AdminUser = Depends(require_admin),
):
    try:
        await orders.delete(order_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except DataStoreError as e:
        raise upstream_error(e)
    logger.info(f"Order {order_id} deleted by admin {admin.uid}")
