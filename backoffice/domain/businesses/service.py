"""Business service - Admin, staff, team and settings logic"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Business, BusinessSettings, User
from ...security_utils import decrypt_secret, encrypt_secret, mask_secret
from .repository import BusinessRepository
from .schemas import BusinessCreate, SettingsResponse, SettingsUpdate, StaffCreate

logger = logging.getLogger(__name__)


class BusinessService:
    """Service layer for business management"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BusinessRepository()

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def list_businesses(self) -> list[Business]:
        return self.repo.get_businesses(self.db)

    def get_business(self, business_id: str) -> Business:
        business = self.repo.get_business_by_id(self.db, business_id)
        if not business:
            raise HTTPException(status_code=404, detail="Business not found")
        return business

    def create_business(self, data: BusinessCreate, admin: User) -> Business:
        owner = None
        if data.owner_email:
            owner = self.repo.get_user_by_email(self.db, data.owner_email)
            if not owner:
                # Owner can be attached later through the staff page once they sign up
                logger.info(f"ℹ️ Owner {data.owner_email} has no account yet, creating business without staff")

        business = self.repo.create_business(self.db, data.name, owner)
        self.repo.add_system_log(
            self.db,
            "business_created",
            admin.id,
            business.id,
            {"name": business.name, "owner_email": data.owner_email, "owner_attached": owner is not None},
        )
        logger.info(f"✅ Business created: {business.id} by admin {admin.email}")
        return business

    def toggle_status(self, business_id: str, admin: User) -> Business:
        """Flip a business between active and inactive"""
        business = self.get_business(business_id)
        previous = business.status
        business.status = "inactive" if previous == "active" else "active"
        self.repo.save(self.db, business)

        self.repo.add_system_log(
            self.db,
            "business_status_changed",
            admin.id,
            business.id,
            {"from": previous, "to": business.status},
        )
        logger.info(f"🔄 Business {business.id} status: {previous} -> {business.status}")
        return business

    def get_overview(self) -> dict:
        return self.repo.get_overview(self.db)

    # ------------------------------------------------------------------
    # Staff (dashboard access)
    # ------------------------------------------------------------------

    def list_staff(self, business: Business) -> list[dict]:
        return [
            {
                "id": staff.id,
                "user_id": staff.user_id,
                "email": user.email,
                "full_name": user.full_name,
                "role": staff.role,
                "status": staff.status,
                "permissions": staff.permissions or {},
                "created_at": staff.created_at,
            }
            for staff, user in self.repo.get_staff(self.db, business.id)
        ]

    def add_staff(self, business: Business, data: StaffCreate) -> dict:
        user = self.repo.get_user_by_email(self.db, data.email)
        if not user:
            raise HTTPException(
                status_code=404, detail="User not found. They must sign in once before being added."
            )

        membership = self.repo.get_membership(self.db, business.id, user.id)
        if membership:
            if membership.status == "active":
                raise HTTPException(status_code=400, detail="User is already a staff member")
            membership.status = "active"
            membership.role = data.role
            if data.permissions is not None:
                membership.permissions = data.permissions
            self.repo.save(self.db, membership)
            logger.info(f"🔄 Reactivated staff member {user.email} in business {business.id}")
        else:
            membership = self.repo.create_staff(
                self.db, business.id, user.id, data.role, data.permissions or {}
            )
            logger.info(f"✅ Added staff member {user.email} to business {business.id}")

        return {
            "id": membership.id,
            "user_id": user.id,
            "email": user.email,
            "full_name": user.full_name,
            "role": membership.role,
            "status": membership.status,
            "permissions": membership.permissions or {},
            "created_at": membership.created_at,
        }

    def _get_staff_member(self, business: Business, staff_id: str):
        staff = self.repo.get_staff_member(self.db, business.id, staff_id)
        if not staff:
            raise HTTPException(status_code=404, detail="Staff member not found")
        return staff

    def deactivate_staff(self, business: Business, staff_id: str) -> dict:
        staff = self._get_staff_member(business, staff_id)
        staff.status = "inactive"
        self.repo.save(self.db, staff)
        return {"message": "Staff member deactivated", "id": staff.id}

    def remove_staff(self, business: Business, staff_id: str) -> dict:
        staff = self._get_staff_member(business, staff_id)
        self.repo.delete(self.db, staff)
        return {"message": "Staff member removed"}

    # ------------------------------------------------------------------
    # Team (sales staff)
    # ------------------------------------------------------------------

    def list_team(self, business: Business):
        return self.repo.get_team(self.db, business.id)

    def add_team_member(self, business: Business, name: str):
        return self.repo.create_team_member(self.db, business.id, name)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    @staticmethod
    def _settings_response(settings: BusinessSettings) -> SettingsResponse:
        if not settings:
            return SettingsResponse()
        token = decrypt_secret(settings.api_token)
        return SettingsResponse(
            location_id=settings.location_id,
            api_token=mask_secret(token),
            has_api_token=bool(token),
            cardcom_terminal=settings.cardcom_terminal,
            cardcom_api_name=settings.cardcom_api_name,
        )

    def get_settings(self, business: Business) -> SettingsResponse:
        return self._settings_response(self.repo.get_settings(self.db, business.id))

    def update_settings(self, business: Business, data: SettingsUpdate) -> SettingsResponse:
        updates = data.model_dump(exclude_unset=True)
        if "api_token" in updates:
            updates["api_token"] = encrypt_secret(updates["api_token"] or None)

        settings = self.repo.upsert_settings(self.db, business.id, **updates)
        logger.info(f"✅ Settings updated for business {business.id}: {sorted(updates)}")
        return self._settings_response(settings)
