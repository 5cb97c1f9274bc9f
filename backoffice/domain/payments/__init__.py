"""Payments domain - Cardcom payment pages, webhooks and manual payments"""

from .router import router

__all__ = ["router"]
