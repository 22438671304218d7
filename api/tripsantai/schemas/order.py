"""
Order Schemas
"""
from pydantic import Field
from typing import Optional, List
from datetime import date, datetime

from tripsantai.models.order import Order, OrderStatus, PaymentStatus
from tripsantai.schemas.common import CamelModel
from tripsantai.services import order_state


class OrderCreate(CamelModel):
    """Schema for the public booking form"""
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_phone: str = Field(..., min_length=1, max_length=64)
    destination_id: int
    participants: int = Field(..., ge=1)
    departure_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=2000)
    recaptcha_token: Optional[str] = None


class PaymentCreate(CamelModel):
    """Schema for confirming a received payment"""
    amount: float
    notes: Optional[str] = Field(None, max_length=500)


class ParticipantsUpdate(CamelModel):
    participants: int


class DepartureDateUpdate(CamelModel):
    departure_date: Optional[date] = None


class PaymentRecordResponse(CamelModel):
    amount: float
    date: datetime
    notes: Optional[str] = None


class OrderResponse(CamelModel):
    """Schema for order response"""
    id: int
    customer_name: str
    customer_phone: str
    destination_id: Optional[int]
    destination_title: str
    participants: int
    order_date: Optional[datetime]
    departure_date: Optional[date]
    status: OrderStatus
    total_price: float
    payment_status: Optional[PaymentStatus] = None
    payment_history: List[PaymentRecordResponse] = []
    notes: Optional[str] = None
    total_paid: float = 0
    remaining_balance: float = 0
    can_complete: bool = False

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            customer_name=order.customer_name,
            customer_phone=order.customer_phone,
            destination_id=order.destination_id,
            destination_title=order.destination_title,
            participants=order.participants,
            order_date=order.order_date,
            departure_date=order.departure_date,
            status=order.status,
            total_price=order.total_price,
            payment_status=order.payment_status,
            payment_history=[PaymentRecordResponse.model_validate(p) for p in order.payment_history],
            notes=order.notes,
            total_paid=order_state.total_paid(order),
            remaining_balance=order_state.remaining_balance(order),
            can_complete=order_state.can_complete(order),
        )


class ContactResponse(CamelModel):
    """Order after first contact plus the message to send"""
    order: OrderResponse
    message: str
    whatsapp_url: str


class OrderCountsResponse(CamelModel):
    destination_count: int
    blog_post_count: int
    total_orders: int
    new_orders: int
    by_status: dict
