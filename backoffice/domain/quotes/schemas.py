"""Quote domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import round_money


class QuoteItemCreate(BaseModel):
    product_name: str
    quantity: int
    price_at_time: float
    currency: str = "ILS"

    @field_validator("product_name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Product name is required")
        return v.strip()

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v):
        if v <= 0:
            raise ValueError("Quantity must be greater than 0")
        return v

    @field_validator("price_at_time")
    @classmethod
    def validate_price(cls, v):
        v = round_money(v)
        if v <= 0:
            raise ValueError("Price must be greater than 0")
        return v


class QuoteCreate(BaseModel):
    """Schema for creating a quote with its line items"""

    customer_id: str
    items: list[QuoteItemCreate]
    valid_until: Optional[date] = None
    currency: str = "ILS"

    @field_validator("items")
    @classmethod
    def validate_items(cls, v):
        if not v:
            raise ValueError("At least one item is required")
        return v


class QuoteItemResponse(BaseModel):
    id: str
    product_name: str
    quantity: int
    price_at_time: float
    currency: str

    class Config:
        from_attributes = True


class QuoteResponse(BaseModel):
    id: str
    customer_id: str
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    total_amount: float
    currency: str
    status: str
    valid_until: date
    payment_id: Optional[str] = None
    payment_status: Optional[str] = None
    created_at: Optional[datetime] = None
    items: list[QuoteItemResponse] = []


class QuoteStatusUpdate(BaseModel):
    status: Literal["draft", "sent", "accepted", "rejected"]
