"""Inventory repository - Database operations for products"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Product


class ProductRepository:
    """Repository for product database operations"""

    @staticmethod
    def get_products(db: Session, business_id: str) -> list[Product]:
        return (
            db.query(Product)
            .filter(Product.business_id == business_id)
            .order_by(Product.name.asc())
            .all()
        )

    @staticmethod
    def get_product_by_id(db: Session, product_id: str, business_id: str) -> Optional[Product]:
        return (
            db.query(Product)
            .filter(Product.id == product_id, Product.business_id == business_id)
            .first()
        )

    @staticmethod
    def get_products_by_ids(db: Session, product_ids: list[str], business_id: str) -> dict[str, Product]:
        if not product_ids:
            return {}
        products = (
            db.query(Product)
            .filter(Product.id.in_(product_ids), Product.business_id == business_id)
            .all()
        )
        return {p.id: p for p in products}

    @staticmethod
    def create_product(db: Session, business_id: str, **product_data) -> Product:
        product = Product(business_id=business_id, **product_data)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    @staticmethod
    def update_product(db: Session, product: Product, **updates) -> Product:
        for key, value in updates.items():
            if value is not None and hasattr(product, key):
                setattr(product, key, value)

        db.commit()
        db.refresh(product)
        return product

    @staticmethod
    def delete_product(db: Session, product: Product) -> None:
        db.delete(product)
        db.commit()
