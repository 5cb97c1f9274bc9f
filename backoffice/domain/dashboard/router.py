"""Dashboard router - FastAPI endpoints for statistics"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import get_current_business
from ...database import get_db
from ...models import Business
from .schemas import (
    DashboardSummary,
    MonthlySalesProgress,
    MonthlyTargetUpdate,
    ProductsByStaff,
    SalesByStaff,
)
from .service import DashboardService, default_range

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


def get_dashboard_service(db: Session = Depends(get_db)) -> DashboardService:
    """Dependency injection for DashboardService"""
    return DashboardService(db)


def get_date_range(
    start_date: Optional[date] = Query(None), end_date: Optional[date] = Query(None)
) -> tuple[date, date]:
    """Inclusive date range; defaults to month-to-date"""
    default_start, default_end = default_range()
    start = start_date or default_start
    end = end_date or default_end
    if start > end:
        raise HTTPException(status_code=400, detail="start_date must be on or before end_date")
    return start, end


@router.get("/summary", response_model=DashboardSummary)
async def get_summary(
    business: Business = Depends(get_current_business),
    service: DashboardService = Depends(get_dashboard_service),
):
    return service.get_summary(business)


@router.get("/sales-by-staff", response_model=list[SalesByStaff])
async def get_sales_by_staff(
    date_range: tuple = Depends(get_date_range),
    business: Business = Depends(get_current_business),
    service: DashboardService = Depends(get_dashboard_service),
):
    return service.sales_by_staff(business, *date_range)


@router.get("/products-by-staff", response_model=list[ProductsByStaff])
async def get_products_by_staff(
    date_range: tuple = Depends(get_date_range),
    business: Business = Depends(get_current_business),
    service: DashboardService = Depends(get_dashboard_service),
):
    return service.products_by_staff(business, *date_range)


@router.get("/monthly-progress", response_model=MonthlySalesProgress)
async def get_monthly_progress(
    business: Business = Depends(get_current_business),
    service: DashboardService = Depends(get_dashboard_service),
):
    return service.monthly_sales_progress(business)


@router.put("/monthly-target", response_model=MonthlySalesProgress)
async def update_monthly_target(
    data: MonthlyTargetUpdate,
    business: Business = Depends(get_current_business),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Set the business monthly sales target"""
    return service.update_monthly_target(business, data.target_amount)
