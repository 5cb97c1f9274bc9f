"""Dashboard repository - Aggregate queries for statistics"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Customer, CustomerOrder, OrderItem, Product


class DashboardRepository:
    """Repository for dashboard queries"""

    @staticmethod
    def get_completed_orders(
        db: Session, business_id: str, start: datetime, end: datetime
    ) -> list[CustomerOrder]:
        """Completed orders created in [start, end]"""
        return (
            db.query(CustomerOrder)
            .options(
                joinedload(CustomerOrder.staff),
                joinedload(CustomerOrder.items).joinedload(OrderItem.product),
            )
            .filter(
                CustomerOrder.business_id == business_id,
                CustomerOrder.status == "completed",
                CustomerOrder.created_at >= start,
                CustomerOrder.created_at <= end,
            )
            .all()
        )

    @staticmethod
    def sum_completed(db: Session, business_id: str, start=None, end=None) -> float:
        query = db.query(func.coalesce(func.sum(CustomerOrder.total_amount), 0)).filter(
            CustomerOrder.business_id == business_id,
            CustomerOrder.status == "completed",
        )
        if start is not None:
            query = query.filter(CustomerOrder.created_at >= start)
        if end is not None:
            query = query.filter(CustomerOrder.created_at <= end)
        return float(query.scalar() or 0)

    @staticmethod
    def count_customers(db: Session, business_id: str) -> int:
        return db.query(func.count(Customer.id)).filter(Customer.business_id == business_id).scalar()

    @staticmethod
    def count_products(db: Session, business_id: str) -> int:
        return db.query(func.count(Product.id)).filter(Product.business_id == business_id).scalar()

    @staticmethod
    def count_orders(db: Session, business_id: str, status: Optional[str] = None) -> int:
        query = db.query(func.count(CustomerOrder.id)).filter(CustomerOrder.business_id == business_id)
        if status:
            query = query.filter(CustomerOrder.status == status)
        return query.scalar()

    @staticmethod
    def get_low_stock_products(db: Session, business_id: str, threshold: int) -> list[Product]:
        return (
            db.query(Product)
            .filter(Product.business_id == business_id, Product.stock <= threshold)
            .order_by(Product.stock.asc(), Product.name.asc())
            .all()
        )
