"""Business repository - Database operations for businesses, staff and settings"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Business, BusinessSettings, BusinessStaff, Quote, SystemLog, TeamMember, User


class BusinessRepository:
    """Repository for business database operations"""

    @staticmethod
    def get_businesses(db: Session) -> list[Business]:
        return db.query(Business).order_by(Business.created_at.desc()).all()

    @staticmethod
    def get_business_by_id(db: Session, business_id: str) -> Optional[Business]:
        return db.query(Business).filter(Business.id == business_id).first()

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(func.lower(User.email) == email.lower()).first()

    @staticmethod
    def create_business(db: Session, name: str, owner: Optional[User] = None) -> Business:
        """Create a business, making the owner (if any) an admin staff member"""
        business = Business(name=name, status="active", owner_id=owner.id if owner else None)
        db.add(business)
        db.flush()

        if owner:
            db.add(BusinessStaff(user_id=owner.id, business_id=business.id, role="admin", status="active"))

        db.commit()
        db.refresh(business)
        return business

    @staticmethod
    def save(db: Session, obj):
        db.commit()
        db.refresh(obj)
        return obj

    @staticmethod
    def add_system_log(
        db: Session, action: str, user_id: Optional[str], business_id: Optional[str], details: dict
    ) -> SystemLog:
        log = SystemLog(action=action, user_id=user_id, business_id=business_id, details=details)
        db.add(log)
        db.commit()
        return log

    @staticmethod
    def get_overview(db: Session) -> dict:
        """Platform-wide counts for the admin dashboard"""
        return {
            "total_businesses": db.query(func.count(Business.id)).scalar() or 0,
            "active_businesses": db.query(func.count(Business.id))
            .filter(Business.status == "active")
            .scalar()
            or 0,
            "total_staff": db.query(func.count(BusinessStaff.id))
            .filter(BusinessStaff.status == "active")
            .scalar()
            or 0,
            "total_quotes": db.query(func.count(Quote.id)).scalar() or 0,
        }

    # Staff
    @staticmethod
    def get_staff(db: Session, business_id: str) -> list[tuple[BusinessStaff, User]]:
        return (
            db.query(BusinessStaff, User)
            .join(User, User.id == BusinessStaff.user_id)
            .filter(BusinessStaff.business_id == business_id)
            .order_by(BusinessStaff.created_at.asc())
            .all()
        )

    @staticmethod
    def get_membership(db: Session, business_id: str, user_id: str) -> Optional[BusinessStaff]:
        return (
            db.query(BusinessStaff)
            .filter(BusinessStaff.business_id == business_id, BusinessStaff.user_id == user_id)
            .first()
        )

    @staticmethod
    def get_staff_member(db: Session, business_id: str, staff_id: str) -> Optional[BusinessStaff]:
        return (
            db.query(BusinessStaff)
            .filter(BusinessStaff.id == staff_id, BusinessStaff.business_id == business_id)
            .first()
        )

    @staticmethod
    def create_staff(db: Session, business_id: str, user_id: str, role: str, permissions: dict) -> BusinessStaff:
        staff = BusinessStaff(
            business_id=business_id,
            user_id=user_id,
            role=role,
            status="active",
            permissions=permissions,
        )
        db.add(staff)
        db.commit()
        db.refresh(staff)
        return staff

    @staticmethod
    def delete(db: Session, obj) -> None:
        db.delete(obj)
        db.commit()

    # Team
    @staticmethod
    def get_team(db: Session, business_id: str) -> list[TeamMember]:
        return (
            db.query(TeamMember)
            .filter(TeamMember.business_id == business_id)
            .order_by(TeamMember.name.asc())
            .all()
        )

    @staticmethod
    def create_team_member(db: Session, business_id: str, name: str) -> TeamMember:
        member = TeamMember(business_id=business_id, name=name)
        db.add(member)
        db.commit()
        db.refresh(member)
        return member

    # Settings
    @staticmethod
    def get_settings(db: Session, business_id: str) -> Optional[BusinessSettings]:
        return db.query(BusinessSettings).filter(BusinessSettings.business_id == business_id).first()

    @staticmethod
    def upsert_settings(db: Session, business_id: str, **updates) -> BusinessSettings:
        settings = BusinessRepository.get_settings(db, business_id)
        if not settings:
            settings = BusinessSettings(business_id=business_id)
            db.add(settings)

        for key, value in updates.items():
            setattr(settings, key, value)

        db.commit()
        db.refresh(settings)
        return settings
