"""Dashboard domain - Staff statistics and sales targets"""

from .router import router

__all__ = ["router"]
