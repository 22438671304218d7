"""
Invoice Schemas
"""
from pydantic import Field
from typing import Optional, Dict, Any

from tripsantai.schemas.common import CamelModel


class InvoiceCreate(CamelModel):
    """
    Admin request to issue an invoice.

    total is advisory: the stored order total wins whenever it exists.
    """
    order_id: int
    total: Optional[float] = Field(None, ge=0)
    metadata: Dict[str, Any] = {}
    share_token: Optional[str] = Field(None, min_length=8, max_length=64)
