"""Domain Models"""
from tripsantai.models.destination import Destination, PriceTier
from tripsantai.models.order import (
    Order,
    OrderStatus,
    PaymentRecord,
    PaymentStatus,
    EDITABLE_STATUSES,
    TERMINAL_STATUSES,
)

__all__ = [
    "Destination", "PriceTier",
    "Order", "OrderStatus", "PaymentRecord", "PaymentStatus",
    "EDITABLE_STATUSES", "TERMINAL_STATUSES",
]
