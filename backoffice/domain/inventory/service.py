"""Inventory service - Product catalogue and stock"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Business, BusinessWebhook, CustomerOrder, OrderItem, Product
from .repository import ProductRepository
from .schemas import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)


class InventoryService:
    """Service layer for product business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProductRepository()

    def get_products(self, business: Business) -> list[Product]:
        return self.repo.get_products(self.db, business.id)

    def get_product(self, product_id: str, business: Business) -> Product:
        product = self.repo.get_product_by_id(self.db, product_id, business.id)
        if not product:
            raise HTTPException(status_code=404, detail="Product not found")
        return product

    def create_product(self, data: ProductCreate, business: Business) -> Product:
        logger.info(f"📦 Creating product '{data.name}' for business {business.id}")
        return self.repo.create_product(self.db, business.id, **data.model_dump())

    def update_product(self, product_id: str, data: ProductUpdate, business: Business) -> Product:
        product = self.get_product(product_id, business)
        return self.repo.update_product(self.db, product, **data.model_dump(exclude_unset=True))

    def delete_product(self, product_id: str, business: Business) -> dict:
        product = self.get_product(product_id, business)

        in_orders = self.db.query(OrderItem.id).filter(OrderItem.product_id == product.id).first()
        if in_orders:
            raise HTTPException(
                status_code=400, detail="Product appears in existing orders and cannot be deleted"
            )

        # Automations scoped to this product fall back to "any product"
        self.db.query(BusinessWebhook).filter(BusinessWebhook.product_id == product.id).update(
            {BusinessWebhook.product_id: None}, synchronize_session=False
        )
        self.repo.delete_product(self.db, product)
        return {"message": "Product deleted"}


def apply_order_to_stock(db: Session, order: CustomerOrder) -> list[dict]:
    """
    Decrement product stock by the quantities in an order.

    Stock is floored at 0; a shortfall is logged, never raised.
    Returns one entry per touched product.
    """
    changes = []
    for item in order.items:
        if not item.product_id:
            continue
        product = db.query(Product).filter(Product.id == item.product_id).first()
        if not product:
            logger.warning(f"⚠️ Product {item.product_id} from order {order.id} no longer exists")
            continue

        before = product.stock or 0
        after = max(0, before - item.quantity)
        if before < item.quantity:
            logger.warning(
                f"⚠️ Stock shortfall for product {product.id}: had {before}, sold {item.quantity}"
            )
        product.stock = after
        changes.append({"product_id": product.id, "before": before, "after": after})

    db.commit()
    logger.info(f"📉 Stock updated for order {order.id}: {len(changes)} product(s)")
    return changes
