"""Inventory domain - Products and stock"""

from .router import router

__all__ = ["router"]
