"""
Order State Machine - Legal transitions and derived payment fields

Every operation takes an Order and returns a new one. Rejected events raise
before anything is built, so the caller's Order is never partially changed.
Persisting the result is the caller's job.
"""
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Iterable, Optional, Sequence
import logging
import math

from tripsantai.models.destination import Destination
from tripsantai.models.order import (
    Order,
    OrderStatus,
    PaymentRecord,
    PaymentStatus,
    EDITABLE_STATUSES,
    TERMINAL_STATUSES,
)
from tripsantai.services import pricing

logger = logging.getLogger(__name__)

PAYABLE_STATUSES = frozenset({OrderStatus.AWAITING_PAYMENT, OrderStatus.READY_TO_DEPART})


class OrderError(Exception):
    """Base class for rejected order events"""
    def __init__(self, reason: str, order_id: Optional[int] = None):
        self.reason = reason
        self.order_id = order_id
        super().__init__(reason)


class OrderValidationError(OrderError):
    """The event itself is malformed (amount, participant count, customer info)"""


class OrderStateConflict(OrderError):
    """The event is not allowed while the order is in its current status"""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# --------------------------------------------------------------------------
# Derived values
# --------------------------------------------------------------------------

def total_paid(order: Order) -> float:
    return sum(p.amount for p in order.payment_history)


def remaining_balance(order: Order) -> float:
    return order.total_price - total_paid(order)


def derive_payment_status(
    total_price: float,
    history: Sequence[PaymentRecord],
) -> Optional[PaymentStatus]:
    """None until the first payment is recorded"""
    if not history:
        return None
    paid = sum(p.amount for p in history)
    return PaymentStatus.PAID_IN_FULL if paid >= total_price else PaymentStatus.PARTIALLY_PAID


def status_for_payment(payment_status: PaymentStatus) -> OrderStatus:
    if payment_status == PaymentStatus.PAID_IN_FULL:
        return OrderStatus.READY_TO_DEPART
    return OrderStatus.AWAITING_PAYMENT


def is_terminal(status: OrderStatus) -> bool:
    return status in TERMINAL_STATUSES


def can_complete(order: Order) -> bool:
    return (
        order.status == OrderStatus.READY_TO_DEPART
        and order.payment_status == PaymentStatus.PAID_IN_FULL
        and total_paid(order) >= order.total_price
    )


def _require_editable(order: Order, action: str) -> None:
    if order.status not in EDITABLE_STATUSES:
        raise OrderStateConflict(
            f"cannot {action}: order is {order.status.value}", order.id
        )


def _require_min_participants(participants: int, destination: Destination, order_id: Optional[int] = None) -> None:
    minimum = max(destination.min_people or 1, 1)
    if participants < minimum:
        raise OrderValidationError(
            f"below minimum participants ({minimum})", order_id
        )


# --------------------------------------------------------------------------
# Events
# --------------------------------------------------------------------------

def create_order(
    destination: Destination,
    customer_name: str,
    customer_phone: str,
    participants: int,
    departure_date: Optional[date] = None,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Order:
    """Build a new order priced at submission time"""
    if not (customer_name or "").strip():
        raise OrderValidationError("customer name is required")
    if not (customer_phone or "").strip():
        raise OrderValidationError("customer phone is required")
    _require_min_participants(participants, destination)

    created_at = now or _utcnow()
    return Order(
        id=int(created_at.timestamp() * 1000),
        customer_name=customer_name.strip(),
        customer_phone=customer_phone.strip(),
        destination_id=destination.id,
        destination_title=destination.title,
        participants=participants,
        order_date=created_at,
        departure_date=departure_date,
        total_price=pricing.total_price(destination.price_tiers, participants),
        status=OrderStatus.NEW,
        notes=notes,
    )


def contact_customer(order: Order) -> Order:
    """First operator contact: the tariff has been communicated"""
    if order.status != OrderStatus.NEW:
        raise OrderStateConflict(
            f"cannot contact customer: order is {order.status.value}", order.id
        )
    return replace(order, status=OrderStatus.AWAITING_PAYMENT)


def record_payment(
    order: Order,
    amount: float,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Order:
    if order.status not in PAYABLE_STATUSES:
        raise OrderStateConflict(
            f"cannot record payment: order is {order.status.value}", order.id
        )
    if amount is None or not math.isfinite(amount) or amount <= 0:
        raise OrderValidationError("amount must be positive", order.id)
    if amount > remaining_balance(order):
        raise OrderValidationError("exceeds remaining balance", order.id)

    history = order.payment_history + (PaymentRecord(amount=amount, date=now or _utcnow(), notes=notes),)
    payment_status = derive_payment_status(order.total_price, history)
    logger.debug(f"Order {order.id}: payment {amount} recorded, now {payment_status.value}")
    return replace(
        order,
        payment_history=history,
        payment_status=payment_status,
        status=status_for_payment(payment_status),
    )


def mark_complete(order: Order) -> Order:
    if not can_complete(order):
        raise OrderStateConflict(
            "cannot complete: order must be ready to depart and paid in full", order.id
        )
    return replace(order, status=OrderStatus.COMPLETED)


def cancel(order: Order) -> Order:
    if is_terminal(order.status):
        raise OrderStateConflict(
            f"cannot cancel: order is {order.status.value}", order.id
        )
    return replace(order, status=OrderStatus.CANCELLED)


def edit_participants(order: Order, destination: Destination, participants: int) -> Order:
    """
    Change the group size and reprice the order.

    When payments already exist the payment status (and with it the order
    status) is re-derived against the new total, so a larger group can move
    a paid-in-full order back to awaiting payment.
    """
    _require_editable(order, "edit participants")
    _require_min_participants(participants, destination, order.id)

    new_total = pricing.total_price(destination.price_tiers, participants)
    updated = replace(order, participants=participants, total_price=new_total)
    if order.payment_history:
        payment_status = derive_payment_status(new_total, order.payment_history)
        updated = replace(
            updated,
            payment_status=payment_status,
            status=status_for_payment(payment_status),
        )
    return updated


def edit_departure_date(order: Order, departure_date: Optional[date]) -> Order:
    _require_editable(order, "edit departure date")
    return replace(order, departure_date=departure_date)


def replay_payments(order: Order, amounts: Iterable[float]) -> Order:
    """Fold a sequence of payments over an order"""
    for amount in amounts:
        order = record_payment(order, amount, now=order.order_date)
    return order
