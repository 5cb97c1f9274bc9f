"""Customer repository - Database operations for customers and orders"""

from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ...models import Customer, CustomerOrder, OrderItem, TeamMember


class CustomerRepository:
    """Repository for customer and order database operations"""

    @staticmethod
    def search_customers(
        db: Session,
        business_id: str,
        search: Optional[str] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
    ) -> list[Customer]:
        """Customers newest first, optionally filtered by text and creation date"""
        query = db.query(Customer).filter(Customer.business_id == business_id)

        if search:
            term = search.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            pattern = f"%{term}%"
            query = query.filter(
                or_(
                    Customer.name.ilike(pattern, escape="\\"),
                    Customer.email.ilike(pattern, escape="\\"),
                    Customer.phone.ilike(pattern, escape="\\"),
                )
            )
        if created_from:
            query = query.filter(Customer.created_at >= created_from)
        if created_to:
            query = query.filter(Customer.created_at <= created_to)

        return query.order_by(Customer.created_at.desc()).all()

    @staticmethod
    def get_customer_by_id(db: Session, customer_id: str, business_id: str) -> Optional[Customer]:
        return (
            db.query(Customer)
            .filter(Customer.id == customer_id, Customer.business_id == business_id)
            .first()
        )

    @staticmethod
    def create_customer(db: Session, business_id: str, **customer_data) -> Customer:
        customer = Customer(business_id=business_id, **customer_data)
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer

    @staticmethod
    def update_customer(db: Session, customer: Customer, **updates) -> Customer:
        for key, value in updates.items():
            if hasattr(customer, key):
                setattr(customer, key, value)

        db.commit()
        db.refresh(customer)
        return customer

    @staticmethod
    def delete_customer(db: Session, customer: Customer) -> None:
        db.delete(customer)
        db.commit()

    # Orders
    @staticmethod
    def get_orders(
        db: Session, business_id: str, customer_id: Optional[str] = None
    ) -> list[CustomerOrder]:
        query = (
            db.query(CustomerOrder)
            .options(joinedload(CustomerOrder.items).joinedload(OrderItem.product))
            .options(joinedload(CustomerOrder.staff))
            .filter(CustomerOrder.business_id == business_id)
        )
        if customer_id:
            query = query.filter(CustomerOrder.customer_id == customer_id)
        return query.order_by(CustomerOrder.created_at.desc()).all()

    @staticmethod
    def get_order_by_id(db: Session, order_id: str, business_id: Optional[str] = None) -> Optional[CustomerOrder]:
        query = db.query(CustomerOrder).filter(CustomerOrder.id == order_id)
        if business_id:
            query = query.filter(CustomerOrder.business_id == business_id)
        return query.first()

    @staticmethod
    def get_team_member(db: Session, staff_id: str, business_id: str) -> Optional[TeamMember]:
        return (
            db.query(TeamMember)
            .filter(TeamMember.id == staff_id, TeamMember.business_id == business_id)
            .first()
        )

    @staticmethod
    def create_order(db: Session, order: CustomerOrder, items: list[OrderItem]) -> CustomerOrder:
        """Write an order and its lines together"""
        order.items = items
        db.add(order)
        db.commit()
        db.refresh(order)
        return order

    @staticmethod
    def save(db: Session, obj):
        db.commit()
        db.refresh(obj)
        return obj
