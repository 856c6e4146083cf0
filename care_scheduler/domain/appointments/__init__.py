"""
Appointments domain

Lifecycle of worker/client visits: booking with double-booking prevention,
rescheduling, status changes and guarded deletion.
"""

from .router import router

__all__ = ["router"]
