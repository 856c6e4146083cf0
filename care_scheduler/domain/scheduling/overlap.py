"""
Overlap Detection Service

Detects scheduling conflicts between a candidate interval and a worker's
existing appointments. Two half-open intervals [s1, e1) and [s2, e2) overlap
iff s1 < e2 AND s2 < e1; back-to-back appointments do not conflict.

Cancelled appointments never block. Store failures propagate as
TransientStoreFailure: a failed query is never reported as "no conflict".
"""

import logging
from datetime import datetime
from typing import Optional

from ...models_appointment import Appointment, AppointmentStatus
from ...store import EntityKind, EntityStore

logger = logging.getLogger(__name__)


def overlap_filters(
    worker_id: str,
    start: datetime,
    end: datetime,
    exclude_appointment_id: Optional[str] = None,
) -> dict:
    """
    Store filters selecting the worker's blocking appointments that overlap [start, end).

    The overlap test is pushed down as one predicate per row:
    existing.start_time < end AND start < existing.end_time
    """
    filters = {
        "worker_id": worker_id,
        "status": ["!=", AppointmentStatus.cancelled.value],
        "start_time": ["<", end],
        "end_time": [">", start],
    }
    if exclude_appointment_id:
        filters["id"] = ["!=", exclude_appointment_id]
    return filters


class ConflictDetector:
    """Blocking double-booking check used by the appointment lifecycle"""

    def __init__(self, store: EntityStore):
        self.store = store

    def find_conflict(
        self,
        worker_id: str,
        start: datetime,
        end: datetime,
        exclude_appointment_id: Optional[str] = None,
    ) -> Optional[Appointment]:
        """First overlapping non-cancelled appointment for the worker, or None"""
        conflict = self.store.find_one(
            EntityKind.appointment,
            overlap_filters(worker_id, start, end, exclude_appointment_id),
        )
        if conflict is not None:
            logger.info(
                f"📅 Worker {worker_id} conflict: [{start}, {end}) overlaps appointment {conflict.id} "
                f"[{conflict.start_time}, {conflict.end_time})"
            )
        return conflict

    def has_conflict(
        self,
        worker_id: str,
        start: datetime,
        end: datetime,
        exclude_appointment_id: Optional[str] = None,
    ) -> bool:
        return self.find_conflict(worker_id, start, end, exclude_appointment_id) is not None
