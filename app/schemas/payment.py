from decimal import Decimal
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field

from app.schemas.order import OrderRecord


# Amounts are validated by the services so that bad input maps to
# VALIDATION_ERROR instead of a 422 from request parsing.

class BillDeskOrderRequest(BaseModel):
    amount: Any = None
    paymentOption: Optional[str] = None


class BillDeskOrderResponse(BaseModel):
    redirectUrl: str


class BillDeskOrder(BaseModel):
    redirect_url: str
    message: str
    merchant_transaction_id: str
    customer_reference: str
    amount: Decimal
    currency: str


class BillDeskPaymentResult(BaseModel):
    status: str
    order_id: Optional[str] = None
    customer_reference: str
    transaction_reference: Optional[str] = None
    auth_status: str
    amount: Optional[str] = None


class OrderCreateRequest(BaseModel):
    amount: Any = None
    currency: str = "INR"
    receipt: Optional[str] = None
    notes: Dict[str, Any] = Field(default_factory=dict)


class OrderResponse(BaseModel):
    success: bool = True
    order_id: str
    amount: int  # smallest currency unit (e.g., paise)
    currency: str
    receipt: Optional[str] = None


class PaymentVerificationRequest(BaseModel):
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None


class PaymentVerification(BaseModel):
    verified: bool
    order_id: str
    payment_id: str


class PaymentVerificationResponse(BaseModel):
    status: str = "ok"
    order_id: str
    payment_id: str


class OrderStatusResponse(BaseModel):
    status: str = "ok"
    order: Optional[OrderRecord] = None
