"""Quotes domain - Price quotes and their PDFs"""

from .router import router

__all__ = ["router"]
