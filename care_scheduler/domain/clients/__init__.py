"""Clients domain - people receiving care"""

from .router import router

__all__ = ["router"]
