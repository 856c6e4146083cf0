"""Catalog domain - billable care services"""

from .router import router

__all__ = ["router"]
