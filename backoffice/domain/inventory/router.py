"""Inventory router - FastAPI endpoints for products"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_business
from ...database import get_db
from ...models import Business
from .schemas import ProductCreate, ProductResponse, ProductUpdate
from .service import InventoryService

router = APIRouter(prefix="/products", tags=["Inventory"])


def get_inventory_service(db: Session = Depends(get_db)) -> InventoryService:
    """Dependency injection for InventoryService"""
    return InventoryService(db)


@router.get("", response_model=list[ProductResponse])
async def get_products(
    business: Business = Depends(get_current_business),
    service: InventoryService = Depends(get_inventory_service),
):
    """Get all products, ordered by name"""
    return service.get_products(business)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: str,
    business: Business = Depends(get_current_business),
    service: InventoryService = Depends(get_inventory_service),
):
    return service.get_product(product_id, business)


@router.post("", response_model=ProductResponse)
async def create_product(
    data: ProductCreate,
    business: Business = Depends(get_current_business),
    service: InventoryService = Depends(get_inventory_service),
):
    return service.create_product(data, business)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: str,
    data: ProductUpdate,
    business: Business = Depends(get_current_business),
    service: InventoryService = Depends(get_inventory_service),
):
    return service.update_product(product_id, data, business)


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    business: Business = Depends(get_current_business),
    service: InventoryService = Depends(get_inventory_service),
):
    return service.delete_product(product_id, business)
