"""Customers domain - Customers, orders and CRM contact lookup"""

from .router import router

__all__ = ["router"]
