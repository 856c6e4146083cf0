"""Invoices domain - billing derived from completed appointments"""

from .router import router

__all__ = ["router"]
