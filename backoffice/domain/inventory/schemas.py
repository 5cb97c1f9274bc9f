"""Inventory domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import round_money


def _positive_price(v):
    v = round_money(v)
    if v <= 0:
        raise ValueError("Price must be greater than 0")
    return v


def _non_negative_stock(v):
    if v < 0:
        raise ValueError("Stock cannot be negative")
    return v


class ProductCreate(BaseModel):
    name: str
    sku: Optional[str] = None
    price: float
    currency: str = "ILS"
    stock: int = 0

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Product name is required")
        return v.strip()

    @field_validator("price")
    @classmethod
    def validate_price(cls, v):
        return _positive_price(v)

    @field_validator("stock")
    @classmethod
    def validate_stock(cls, v):
        return _non_negative_stock(v)

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v):
        if not v or len(v.strip()) != 3:
            raise ValueError("Currency must be a 3-letter code")
        return v.strip().upper()


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    sku: Optional[str] = None
    price: Optional[float] = None
    currency: Optional[str] = None
    stock: Optional[int] = None

    @field_validator("price")
    @classmethod
    def validate_price(cls, v):
        if v is None:
            return v
        return _positive_price(v)

    @field_validator("stock")
    @classmethod
    def validate_stock(cls, v):
        if v is None:
            return v
        return _non_negative_stock(v)


class ProductResponse(BaseModel):
    id: str
    name: str
    sku: Optional[str] = None
    price: float
    currency: str
    stock: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
