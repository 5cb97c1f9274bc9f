"""Business domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email


class BusinessCreate(BaseModel):
    """Schema for creating a business (admin)"""

    name: str
    owner_email: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Business name is required")
        return v.strip()

    @field_validator("owner_email")
    @classmethod
    def validate_owner_email(cls, v):
        if v:
            return validate_email(v)
        return v


class BusinessResponse(BaseModel):
    id: str
    name: str
    status: str
    owner_id: Optional[str] = None
    monthly_sales_target: float = 0
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AdminOverview(BaseModel):
    total_businesses: int
    active_businesses: int
    total_staff: int
    total_quotes: int


class StaffCreate(BaseModel):
    """Schema for giving a user dashboard access"""

    email: str
    role: Literal["admin", "staff"] = "staff"
    permissions: Optional[dict] = None

    @field_validator("email")
    @classmethod
    def validate_staff_email(cls, v):
        return validate_email(v)


class StaffResponse(BaseModel):
    id: str
    user_id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: str
    status: str
    permissions: Optional[dict] = None
    created_at: Optional[datetime] = None


class TeamMemberCreate(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()


class TeamMemberResponse(BaseModel):
    id: str
    name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SettingsUpdate(BaseModel):
    """CRM and Cardcom settings. Omitted fields are left unchanged."""

    location_id: Optional[str] = None
    api_token: Optional[str] = None
    cardcom_terminal: Optional[str] = None
    cardcom_api_name: Optional[str] = None

    @field_validator("cardcom_terminal")
    @classmethod
    def validate_terminal(cls, v):
        if v and not v.strip().isdigit():
            raise ValueError("Cardcom terminal must be numeric")
        return v.strip() if v else v


class SettingsResponse(BaseModel):
    location_id: Optional[str] = None
    api_token: Optional[str] = None  # masked
    has_api_token: bool = False
    cardcom_terminal: Optional[str] = None
    cardcom_api_name: Optional[str] = None
