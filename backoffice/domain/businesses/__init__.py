"""Business domain - Admin business management, staff, team and settings"""

from .router import admin_router, router

__all__ = ["router", "admin_router"]
