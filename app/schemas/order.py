from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Gateway(str, Enum):
    BILLDESK = "billdesk"
    RAZORPAY = "razorpay"


class OrderStatus(str, Enum):
    CREATED = "created"
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class OrderRecord(BaseModel):
    order_id: str
    gateway: Gateway
    amount: Decimal
    currency: str = "INR"
    status: OrderStatus = OrderStatus.CREATED
    receipt: Optional[str] = None
    notes: Dict[str, Any] = Field(default_factory=dict)
    customer_reference: Optional[str] = None
    redirect_url: Optional[str] = None
    payment_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
