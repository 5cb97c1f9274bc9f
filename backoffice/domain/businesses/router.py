"""Business router - Admin, staff, team and settings endpoints"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_business, require_admin
from ...database import get_db
from ...models import Business, User
from .schemas import (
    AdminOverview,
    BusinessCreate,
    BusinessResponse,
    SettingsResponse,
    SettingsUpdate,
    StaffCreate,
    StaffResponse,
    TeamMemberCreate,
    TeamMemberResponse,
)
from .service import BusinessService

logger = logging.getLogger(__name__)

admin_router = APIRouter(prefix="/admin", tags=["Admin"])
router = APIRouter(prefix="/business", tags=["Business"])


def get_business_service(db: Session = Depends(get_db)) -> BusinessService:
    """Dependency injection for BusinessService"""
    return BusinessService(db)


# ============================================================================
# ADMIN
# ============================================================================


@admin_router.get("/businesses", response_model=list[BusinessResponse])
async def list_businesses(
    _admin: User = Depends(require_admin),
    service: BusinessService = Depends(get_business_service),
):
    return service.list_businesses()


@admin_router.post("/businesses", response_model=BusinessResponse)
async def create_business(
    data: BusinessCreate,
    admin: User = Depends(require_admin),
    service: BusinessService = Depends(get_business_service),
):
    return service.create_business(data, admin)


@admin_router.post("/businesses/{business_id}/toggle-status", response_model=BusinessResponse)
async def toggle_business_status(
    business_id: str,
    admin: User = Depends(require_admin),
    service: BusinessService = Depends(get_business_service),
):
    """Switch a business between active and inactive"""
    return service.toggle_status(business_id, admin)


@admin_router.get("/overview", response_model=AdminOverview)
async def admin_overview(
    _admin: User = Depends(require_admin),
    service: BusinessService = Depends(get_business_service),
):
    return service.get_overview()


# ============================================================================
# STAFF
# ============================================================================


@router.get("/staff", response_model=list[StaffResponse])
async def list_staff(
    business: Business = Depends(get_current_business),
    service: BusinessService = Depends(get_business_service),
):
    return service.list_staff(business)


@router.post("/staff", response_model=StaffResponse)
async def add_staff(
    data: StaffCreate,
    business: Business = Depends(get_current_business),
    service: BusinessService = Depends(get_business_service),
):
    return service.add_staff(business, data)


@router.post("/staff/{staff_id}/deactivate")
async def deactivate_staff(
    staff_id: str,
    business: Business = Depends(get_current_business),
    service: BusinessService = Depends(get_business_service),
):
    return service.deactivate_staff(business, staff_id)


@router.delete("/staff/{staff_id}")
async def remove_staff(
    staff_id: str,
    business: Business = Depends(get_current_business),
    service: BusinessService = Depends(get_business_service),
):
    return service.remove_staff(business, staff_id)


# ============================================================================
# TEAM
# ============================================================================


@router.get("/team", response_model=list[TeamMemberResponse])
async def list_team(
    business: Business = Depends(get_current_business),
    service: BusinessService = Depends(get_business_service),
):
    return service.list_team(business)


@router.post("/team", response_model=TeamMemberResponse)
async def add_team_member(
    data: TeamMemberCreate,
    business: Business = Depends(get_current_business),
    service: BusinessService = Depends(get_business_service),
):
    return service.add_team_member(business, data.name)


# ============================================================================
# SETTINGS
# ============================================================================


@router.get("/settings", response_model=SettingsResponse)
async def get_settings(
    business: Business = Depends(get_current_business),
    service: BusinessService = Depends(get_business_service),
):
    """CRM token is returned masked"""
    return service.get_settings(business)


@router.put("/settings", response_model=SettingsResponse)
async def update_settings(
    data: SettingsUpdate,
    business: Business = Depends(get_current_business),
    service: BusinessService = Depends(get_business_service),
):
    return service.update_settings(business, data)
