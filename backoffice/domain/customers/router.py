"""Customer router - FastAPI endpoints for customers and orders"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_business
from ...database import get_db
from ...models import Business
from .schemas import (
    CustomerCreate,
    CustomerOrders,
    CustomerResponse,
    CustomerUpdate,
    OrderCreate,
    OrderResponse,
    OrderStatusUpdate,
)
from .service import CustomerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["Customers"])


def get_customer_service(db: Session = Depends(get_db)) -> CustomerService:
    """Dependency injection for CustomerService"""
    return CustomerService(db)


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("", response_model=list[CustomerResponse])
async def get_customers(
    search: Optional[str] = Query(None),
    created_from: Optional[date] = Query(None),
    created_to: Optional[date] = Query(None),
    business: Business = Depends(get_current_business),
    service: CustomerService = Depends(get_customer_service),
):
    """Get customers, newest first, with optional search and date range"""
    return service.get_customers(business, search, created_from, created_to)


@router.get("/export")
async def export_customers_csv(
    search: Optional[str] = Query(None),
    created_from: Optional[date] = Query(None),
    created_to: Optional[date] = Query(None),
    business: Business = Depends(get_current_business),
    service: CustomerService = Depends(get_customer_service),
):
    """Export customers as CSV with the same filters as the list"""
    return service.export_customers_csv(business, search, created_from, created_to)


@router.get("/crm/search")
async def search_crm_contacts(
    term: str = Query(..., min_length=1),
    business: Business = Depends(get_current_business),
    service: CustomerService = Depends(get_customer_service),
):
    """Look up CRM contacts to link a customer to"""
    return await service.search_crm_contacts(term, business)


@router.get("/orders", response_model=list[CustomerOrders])
async def get_orders_by_customer(
    business: Business = Depends(get_current_business),
    service: CustomerService = Depends(get_customer_service),
):
    return service.get_orders_by_customer(business)


@router.patch("/orders/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    data: OrderStatusUpdate,
    business: Business = Depends(get_current_business),
    service: CustomerService = Depends(get_customer_service),
):
    return service.update_order_status(order_id, data.status, business)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: str,
    business: Business = Depends(get_current_business),
    service: CustomerService = Depends(get_customer_service),
):
    return service.get_customer(customer_id, business)


@router.post("", response_model=CustomerResponse)
async def create_customer(
    data: CustomerCreate,
    business: Business = Depends(get_current_business),
    service: CustomerService = Depends(get_customer_service),
):
    return service.create_customer(data, business)


@router.put("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: str,
    data: CustomerUpdate,
    business: Business = Depends(get_current_business),
    service: CustomerService = Depends(get_customer_service),
):
    return service.update_customer(customer_id, data, business)


@router.delete("/{customer_id}")
async def delete_customer(
    customer_id: str,
    business: Business = Depends(get_current_business),
    service: CustomerService = Depends(get_customer_service),
):
    return service.delete_customer(customer_id, business)


# ============================================================================
# ORDERS
# ============================================================================


@router.get("/{customer_id}/orders", response_model=list[OrderResponse])
async def get_customer_orders(
    customer_id: str,
    business: Business = Depends(get_current_business),
    service: CustomerService = Depends(get_customer_service),
):
    return service.get_customer_orders(customer_id, business)


@router.post("/{customer_id}/orders", response_model=OrderResponse)
async def create_order(
    customer_id: str,
    data: OrderCreate,
    business: Business = Depends(get_current_business),
    service: CustomerService = Depends(get_customer_service),
):
    """Create a pending order; triggers order_created automations"""
    return await service.create_order(customer_id, data, business)
