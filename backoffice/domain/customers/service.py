"""Customer service - Business logic for customers and their orders"""

import csv
import logging
from datetime import date, datetime, time
from io import StringIO
from typing import Optional

from fastapi import HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ...config import DEFAULT_CURRENCY
from ...models import Business, Customer, CustomerOrder, OrderItem
from ...services.crm_service import CRMError, CRMNotConfigured, get_crm_client
from ...shared.validators import round_money
from ..automations.service import trigger_order_created
from ..inventory.repository import ProductRepository
from .repository import CustomerRepository
from .schemas import CustomerCreate, CustomerResponse, CustomerUpdate, OrderCreate

logger = logging.getLogger(__name__)


def serialize_order(order: CustomerOrder) -> dict:
    """Order with its lines, product names resolved"""
    return {
        "id": order.id,
        "customer_id": order.customer_id,
        "staff_id": order.staff_id,
        "staff_name": order.staff.name if order.staff else None,
        "total_amount": order.total_amount,
        "currency": order.currency,
        "status": order.status,
        "payment_method": order.payment_method,
        "payment_reference": order.payment_reference,
        "paid_at": order.paid_at,
        "created_at": order.created_at,
        "items": [
            {
                "id": item.id,
                "product_id": item.product_id,
                "product_name": item.product.name if item.product else "Unknown product",
                "quantity": item.quantity,
                "price_at_time": item.price_at_time,
                "currency": item.currency,
            }
            for item in order.items
        ],
    }


class CustomerService:
    """Service layer for customer business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CustomerRepository()

    def get_customers(
        self,
        business: Business,
        search: Optional[str] = None,
        created_from: Optional[date] = None,
        created_to: Optional[date] = None,
    ) -> list[Customer]:
        # Date filters are inclusive whole days
        start = datetime.combine(created_from, time.min) if created_from else None
        end = datetime.combine(created_to, time.max) if created_to else None
        return self.repo.search_customers(self.db, business.id, search, start, end)

    def get_customer(self, customer_id: str, business: Business) -> Customer:
        customer = self.repo.get_customer_by_id(self.db, customer_id, business.id)
        if not customer:
            raise HTTPException(status_code=404, detail="Customer not found")
        return customer

    def create_customer(self, data: CustomerCreate, business: Business) -> Customer:
        logger.info(f"📥 Creating customer for business {business.id}")
        return self.repo.create_customer(self.db, business.id, **data.model_dump())

    def update_customer(self, customer_id: str, data: CustomerUpdate, business: Business) -> Customer:
        customer = self.get_customer(customer_id, business)
        updates = data.model_dump(exclude_unset=True)
        if "name" in updates and not (updates["name"] or "").strip():
            raise HTTPException(status_code=400, detail="Customer name is required")
        return self.repo.update_customer(self.db, customer, **updates)

    def delete_customer(self, customer_id: str, business: Business) -> dict:
        customer = self.get_customer(customer_id, business)
        self.repo.delete_customer(self.db, customer)
        return {"message": "Customer deleted"}

    def export_customers_csv(
        self,
        business: Business,
        search: Optional[str] = None,
        created_from: Optional[date] = None,
        created_to: Optional[date] = None,
    ) -> StreamingResponse:
        """Export the filtered customer list as CSV"""
        customers = self.get_customers(business, search, created_from, created_to)
        logger.info(f"📊 CSV export for business {business.id}: {len(customers)} customers")

        output = StringIO()
        writer = csv.writer(output)
        writer.writerow(["ID", "Name", "Email", "Phone", "CRM Contact ID", "Notes", "Created At"])
        for customer in customers:
            writer.writerow(
                [
                    customer.id,
                    customer.name or "",
                    customer.email or "",
                    customer.phone or "",
                    customer.contact_id or "",
                    customer.notes or "",
                    (
                        customer.created_at.strftime("%Y-%m-%d %H:%M:%S")
                        if customer.created_at
                        else ""
                    ),
                ]
            )

        output.seek(0)
        filename = f"customers_export_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"
        return StreamingResponse(
            iter([output.getvalue()]),
            media_type="text/csv",
            headers={
                "Content-Disposition": f"attachment; filename={filename}",
                "Cache-Control": "no-cache",
            },
        )

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def get_orders_by_customer(self, business: Business) -> list[dict]:
        """Every customer that has orders, each with its orders (newest first)"""
        orders = self.repo.get_orders(self.db, business.id)
        grouped: dict[str, list[CustomerOrder]] = {}
        for order in orders:
            grouped.setdefault(order.customer_id, []).append(order)

        result = []
        for customer in self.repo.search_customers(self.db, business.id):
            if customer.id in grouped:
                result.append(
                    {
                        "customer": CustomerResponse.model_validate(customer),
                        "orders": [serialize_order(o) for o in grouped[customer.id]],
                    }
                )
        return result

    def get_customer_orders(self, customer_id: str, business: Business) -> list[dict]:
        self.get_customer(customer_id, business)
        return [serialize_order(o) for o in self.repo.get_orders(self.db, business.id, customer_id)]

    async def create_order(self, customer_id: str, data: OrderCreate, business: Business) -> dict:
        """
        Create a pending order. Prices are snapshotted from the products and
        order_created automations fire once the order is stored.
        """
        customer = self.get_customer(customer_id, business)

        if data.staff_id and not self.repo.get_team_member(self.db, data.staff_id, business.id):
            raise HTTPException(status_code=400, detail="Staff member not found")

        product_ids = [line.product_id for line in data.items]
        products = ProductRepository.get_products_by_ids(self.db, product_ids, business.id)
        missing = [pid for pid in product_ids if pid not in products]
        if missing:
            raise HTTPException(status_code=400, detail=f"Product not found: {', '.join(missing)}")

        items = []
        total = 0.0
        for line in data.items:
            product = products[line.product_id]
            price = round_money(product.price)
            total += price * line.quantity
            items.append(
                OrderItem(
                    product_id=product.id,
                    quantity=line.quantity,
                    price_at_time=price,
                    currency=product.currency or DEFAULT_CURRENCY,
                )
            )

        order = CustomerOrder(
            business_id=business.id,
            customer_id=customer.id,
            staff_id=data.staff_id,
            total_amount=round_money(total),
            currency=items[0].currency,
            status="pending",
        )
        order = self.repo.create_order(self.db, order, items)
        logger.info(f"🧾 Order {order.id} created for customer {customer.id}: {order.total_amount}")

        await trigger_order_created(self.db, order)
        return serialize_order(order)

    def update_order_status(self, order_id: str, status: str, business: Business) -> dict:
        """Change order status. Payment fields are only set by the payments flow."""
        order = self.repo.get_order_by_id(self.db, order_id, business.id)
        if not order:
            raise HTTPException(status_code=404, detail="Order not found")

        order.status = status
        self.repo.save(self.db, order)
        logger.info(f"🔄 Order {order.id} status -> {status}")
        return serialize_order(order)

    # ------------------------------------------------------------------
    # CRM
    # ------------------------------------------------------------------

    async def search_crm_contacts(self, term: str, business: Business) -> list[dict]:
        if not term or not term.strip():
            return []
        try:
            client = get_crm_client(self.db, business.id)
            return await client.search_contacts(term)
        except CRMNotConfigured as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        except CRMError as e:
            raise HTTPException(status_code=502, detail=str(e)) from e
