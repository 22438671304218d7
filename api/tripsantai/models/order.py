"""
Order & PaymentRecord Models
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, Tuple


class OrderStatus(str, Enum):
    """Order lifecycle; values are the strings stored in the orders table"""
    NEW = "Baru"
    AWAITING_PAYMENT = "Menunggu Pembayaran"
    READY_TO_DEPART = "Siap Jalan"
    COMPLETED = "Selesai"
    CANCELLED = "Dibatalkan"


class PaymentStatus(str, Enum):
    PARTIALLY_PAID = "DP"
    PAID_IN_FULL = "Lunas"


TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})
EDITABLE_STATUSES = frozenset({
    OrderStatus.NEW,
    OrderStatus.AWAITING_PAYMENT,
    OrderStatus.READY_TO_DEPART,
})


@dataclass(frozen=True)
class PaymentRecord:
    amount: float
    date: datetime
    notes: Optional[str] = None


@dataclass(frozen=True)
class Order:
    """
    One customer booking against a destination.

    Instances are never modified in place; state transitions build a new
    Order with dataclasses.replace.
    """
    id: int
    customer_name: str
    customer_phone: str
    destination_id: int
    destination_title: str
    participants: int
    order_date: datetime
    total_price: float
    status: OrderStatus = OrderStatus.NEW
    departure_date: Optional[date] = None
    payment_status: Optional[PaymentStatus] = None
    payment_history: Tuple[PaymentRecord, ...] = field(default_factory=tuple)
    notes: Optional[str] = None

    def __repr__(self):
        return f"<Order {self.id} {self.status.value} -> {self.destination_title}>"
