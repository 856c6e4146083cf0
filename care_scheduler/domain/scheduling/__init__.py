"""
Scheduling Domain

Conflict detection (blocking) and weekly availability evaluation (advisory)
used by the appointment lifecycle.
"""

from .availability import WeeklyAvailability, availability_warning, is_advisably_available
from .overlap import ConflictDetector

__all__ = [
    "ConflictDetector",
    "WeeklyAvailability",
    "availability_warning",
    "is_advisably_available",
]
