"""Payment repository - Database operations for the payment flows"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import BusinessSettings, CustomerOrder, OrderItem, Quote


class PaymentRepository:
    """Repository for payment-related database operations"""

    @staticmethod
    def get_settings(db: Session, business_id: str) -> Optional[BusinessSettings]:
        return db.query(BusinessSettings).filter(BusinessSettings.business_id == business_id).first()

    @staticmethod
    def get_orders_by_ids(
        db: Session, order_ids: list[str], business_id: Optional[str] = None
    ) -> list[CustomerOrder]:
        """Orders with items, products and customer, in the order the ids were given"""
        if not order_ids:
            return []
        query = (
            db.query(CustomerOrder)
            .options(
                joinedload(CustomerOrder.items).joinedload(OrderItem.product),
                joinedload(CustomerOrder.customer),
            )
            .filter(CustomerOrder.id.in_(order_ids))
        )
        if business_id:
            query = query.filter(CustomerOrder.business_id == business_id)
        found = {order.id: order for order in query.all()}
        return [found[oid] for oid in order_ids if oid in found]

    @staticmethod
    def get_order(db: Session, order_id: str, business_id: str) -> Optional[CustomerOrder]:
        return (
            db.query(CustomerOrder)
            .filter(CustomerOrder.id == order_id, CustomerOrder.business_id == business_id)
            .first()
        )

    @staticmethod
    def get_quote(db: Session, quote_id: str, business_id: Optional[str] = None) -> Optional[Quote]:
        query = db.query(Quote).options(joinedload(Quote.items), joinedload(Quote.customer))
        query = query.filter(Quote.id == quote_id)
        if business_id:
            query = query.filter(Quote.business_id == business_id)
        return query.first()

    @staticmethod
    def save(db: Session, obj):
        db.commit()
        db.refresh(obj)
        return obj
