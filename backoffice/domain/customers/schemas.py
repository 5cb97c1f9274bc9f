"""Customer domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email, validate_phone


class CustomerCreate(BaseModel):
    """Schema for creating a new customer"""

    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None
    contact_id: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Customer name is required")
        return v.strip()

    @field_validator("email")
    @classmethod
    def validate_customer_email(cls, v):
        if v:
            return validate_email(v)
        return v

    @field_validator("phone")
    @classmethod
    def validate_customer_phone(cls, v):
        if v:
            return validate_phone(v)
        return v


class CustomerUpdate(BaseModel):
    """Schema for updating an existing customer"""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None
    contact_id: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_customer_email(cls, v):
        if v:
            return validate_email(v)
        return v

    @field_validator("phone")
    @classmethod
    def validate_customer_phone(cls, v):
        if v:
            return validate_phone(v)
        return v


class CustomerResponse(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None
    contact_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrderItemCreate(BaseModel):
    product_id: str
    quantity: int

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v):
        if v <= 0:
            raise ValueError("Quantity must be greater than 0")
        return v


class OrderCreate(BaseModel):
    """Schema for creating an order from product lines"""

    items: list[OrderItemCreate]
    staff_id: Optional[str] = None

    @field_validator("items")
    @classmethod
    def validate_items(cls, v):
        if not v:
            raise ValueError("At least one item is required")
        return v


class OrderItemResponse(BaseModel):
    id: str
    product_id: Optional[str] = None
    product_name: str
    quantity: int
    price_at_time: float
    currency: str


class OrderResponse(BaseModel):
    id: str
    customer_id: str
    staff_id: Optional[str] = None
    staff_name: Optional[str] = None
    total_amount: float
    currency: str
    status: str
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    items: list[OrderItemResponse] = []


class OrderStatusUpdate(BaseModel):
    status: Literal["pending", "completed", "cancelled"]


class CustomerOrders(BaseModel):
    """A customer with all of their orders"""

    customer: CustomerResponse
    orders: list[OrderResponse]
