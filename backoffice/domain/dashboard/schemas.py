"""Dashboard domain schemas - Pydantic models for statistics"""

from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import round_money


class SalesByStaff(BaseModel):
    staff_id: str
    staff_name: str
    total_orders: int
    total_sales: float
    avg_order_value: float
    percentage: float


class ProductsByStaff(BaseModel):
    product_id: str
    product_name: str
    staff_id: str
    staff_name: str
    quantity: int
    total_amount: float


class MonthlySalesProgress(BaseModel):
    current_month: str
    target_amount: float
    current_amount: float
    percentage: float
    remaining_amount: float
    days_remaining: int
    daily_target: float


class MonthlyTargetUpdate(BaseModel):
    target_amount: float

    @field_validator("target_amount")
    @classmethod
    def validate_target(cls, v):
        if v < 0:
            raise ValueError("Target amount cannot be negative")
        return round_money(v)


class LowStockProduct(BaseModel):
    id: str
    name: str
    sku: Optional[str] = None
    stock: int

    class Config:
        from_attributes = True


class DashboardSummary(BaseModel):
    customers: int
    products: int
    orders: int
    pending_orders: int
    revenue: float
    low_stock_threshold: int
    low_stock_products: list[LowStockProduct]
