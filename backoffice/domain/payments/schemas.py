"""Payment domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, field_validator


def _validate_payments(v):
    if v < 1 or v > 12:
        raise ValueError("Number of payments must be between 1 and 12")
    return v


class OrderPaymentRequest(BaseModel):
    """Start a card payment for one customer's pending orders"""

    order_ids: list[str]
    payments: int = 1

    @field_validator("order_ids")
    @classmethod
    def validate_order_ids(cls, v):
        ids = list(dict.fromkeys(i.strip() for i in v if i and i.strip()))
        if not ids:
            raise ValueError("At least one order is required")
        return ids

    @field_validator("payments")
    @classmethod
    def validate_payments(cls, v):
        return _validate_payments(v)


class QuotePaymentRequest(BaseModel):
    payments: int = 1

    @field_validator("payments")
    @classmethod
    def validate_payments(cls, v):
        return _validate_payments(v)


class PaymentPageResponse(BaseModel):
    url: str
    low_profile_id: Optional[str] = None


class ManualPaymentRequest(BaseModel):
    """Record a payment taken outside Cardcom (cash, transfer, ...)"""

    order_ids: list[str]
    payment_method: str
    payment_reference: str

    @field_validator("order_ids")
    @classmethod
    def validate_order_ids(cls, v):
        ids = list(dict.fromkeys(i.strip() for i in v if i and i.strip()))
        if not ids:
            raise ValueError("At least one order is required")
        return ids

    @field_validator("payment_method", "payment_reference")
    @classmethod
    def validate_required(cls, v):
        if not v or not v.strip():
            raise ValueError("Payment method and reference are required")
        return v.strip()


class PaymentCallbackRequest(BaseModel):
    """Query parameters the payment page redirects back with"""

    payment: Optional[str] = None
    orders: Optional[str] = None
    quote: Optional[str] = None


class PaymentResult(BaseModel):
    success: bool
    message: str
    processed: list[str] = []
    skipped: list[str] = []


class OrderPaymentStatus(BaseModel):
    id: str
    status: str
    paid: bool
    paid_at: Optional[datetime] = None
    payment_method: Optional[str] = None
    payment_details: Optional[dict[str, Any]] = None
