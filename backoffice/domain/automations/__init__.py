"""Automations domain - Outbound webhooks for order and product events"""

from .router import router

__all__ = ["router"]
