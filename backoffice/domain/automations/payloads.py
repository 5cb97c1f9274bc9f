"""Webhook payloads for order events"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Customer, CustomerOrder, OrderItem, Product

logger = logging.getLogger(__name__)

ORDER_CREATED = "order_created"
ORDER_PAID = "order_paid"
PRODUCT_PURCHASED = "product_purchased"
EVENTS = (ORDER_CREATED, ORDER_PAID, PRODUCT_PURCHASED)

# Event -> BusinessWebhook flag column
EVENT_FLAGS = {
    ORDER_CREATED: "on_order_created",
    ORDER_PAID: "on_order_paid",
    PRODUCT_PURCHASED: "on_product_purchased",
}

UNKNOWN_CUSTOMER = "Unknown customer"
UNKNOWN_PRODUCT = "Unknown product"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _customer_block(customer: Optional[Customer], customer_id: Optional[str]) -> dict:
    if not customer:
        return {
            "id": customer_id,
            "name": UNKNOWN_CUSTOMER,
            "email": None,
            "phone": None,
            "contact_id": None,
        }
    return {
        "id": customer.id,
        "name": customer.name,
        "email": customer.email,
        "phone": customer.phone,
        "contact_id": customer.contact_id,
    }


def _item_block(item: OrderItem, product: Optional[Product]) -> dict:
    return {
        "product_id": item.product_id,
        "product_name": product.name if product else UNKNOWN_PRODUCT,
        "quantity": item.quantity,
        "price_at_time": item.price_at_time,
    }


def build_order_payload(
    db: Session, order: CustomerOrder, event: str, item: Optional[OrderItem] = None
) -> dict:
    """
    Build the JSON body sent to automation webhooks.

    Missing customer or product rows degrade to placeholders so the
    notification still goes out.
    """
    customer = db.query(Customer).filter(Customer.id == order.customer_id).first()
    if not customer:
        logger.warning(f"⚠️ Customer {order.customer_id} not found for order {order.id}")

    product_ids = [i.product_id for i in order.items if i.product_id]
    products = (
        {p.id: p for p in db.query(Product).filter(Product.id.in_(product_ids)).all()}
        if product_ids
        else {}
    )

    payload = {
        "event": event,
        "order_id": order.id,
        "business_id": order.business_id,
        "timestamp": datetime.utcnow().isoformat(),
        "order": {
            "id": order.id,
            "total_amount": order.total_amount,
            "currency": order.currency,
            "status": order.status,
            "created_at": _iso(order.created_at),
            "paid_at": _iso(order.paid_at),
        },
        "customer": _customer_block(customer, order.customer_id),
        "order_items": [_item_block(i, products.get(i.product_id)) for i in order.items],
        "payment": {
            "status": "paid" if order.paid_at else "pending",
            "paid_at": _iso(order.paid_at),
            "method": order.payment_method,
            "reference": order.payment_reference,
        },
    }

    if event == PRODUCT_PURCHASED and item is not None:
        product = products.get(item.product_id)
        payload["product_id"] = item.product_id
        payload["product"] = {
            "id": item.product_id,
            "name": product.name if product else UNKNOWN_PRODUCT,
            "price": product.price if product else item.price_at_time,
            "sku": product.sku if product else None,
            "currency": product.currency if product else item.currency,
        }
        payload["order_item"] = {"quantity": item.quantity, "price_at_time": item.price_at_time}

    return payload


def build_sample_payload(event: str, business_id: str) -> dict:
    """Payload with made-up data for the test-send page"""
    now = datetime.utcnow().isoformat()
    payload = {
        "event": event,
        "order_id": "test-order",
        "business_id": business_id,
        "timestamp": now,
        "test": True,
        "order": {
            "id": "test-order",
            "total_amount": 100.0,
            "currency": "ILS",
            "status": "completed" if event != ORDER_CREATED else "pending",
            "created_at": now,
            "paid_at": now if event != ORDER_CREATED else None,
        },
        "customer": {
            "id": "test-customer",
            "name": "Test Customer",
            "email": "test@example.com",
            "phone": "0500000000",
            "contact_id": None,
        },
        "order_items": [
            {"product_id": "test-product", "product_name": "Test Product", "quantity": 2, "price_at_time": 50.0}
        ],
        "payment": {
            "status": "paid" if event != ORDER_CREATED else "pending",
            "paid_at": now if event != ORDER_CREATED else None,
            "method": "credit_card" if event != ORDER_CREATED else None,
            "reference": "TEST" if event != ORDER_CREATED else None,
        },
    }
    if event == PRODUCT_PURCHASED:
        payload["product_id"] = "test-product"
        payload["product"] = {
            "id": "test-product",
            "name": "Test Product",
            "price": 50.0,
            "sku": "TEST-SKU",
            "currency": "ILS",
        }
        payload["order_item"] = {"quantity": 2, "price_at_time": 50.0}
    return payload
