"""
Appointment lifecycle - booking, rescheduling and deletion

Every operation is one unit of work: validation, the conflict check and the
write share a single store transaction. Before checking for overlaps the
effective worker row is locked, so two bookings for the same worker cannot
both pass the check. On PostgreSQL the ``appointments_no_overlap`` exclusion
constraint rejects anything that still slips through.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...context import RequestContext
from ...errors import ConstraintViolation, HasDependents, SchedulingConflict, ValidationError
from ...models import Worker
from ...models_appointment import NO_OVERLAP_CONSTRAINT, Appointment, AppointmentStatus
from ...shared.validators import to_store_time
from ...store import EntityKind, EntityStore
from ..scheduling import ConflictDetector, availability_warning, is_advisably_available
from .repository import AppointmentRepository
from .schemas import AppointmentCreate, AppointmentUpdate

logger = logging.getLogger(__name__)

# Patch fields that move the appointment in time or to another worker
SCHEDULE_FIELDS = ("worker_id", "start_time", "end_time")

CANCELLED = AppointmentStatus.cancelled.value


def _status_value(status) -> Optional[str]:
    return status.value if isinstance(status, AppointmentStatus) else status


@contextmanager
def _overlap_backstop(subject: str):
    """Turn a violation of the store exclusion constraint into a SchedulingConflict"""
    try:
        yield
    except ConstraintViolation as e:
        if not e.mentions(NO_OVERLAP_CONSTRAINT):
            raise
        logger.warning(f"⚠️ Exclusion constraint rejected {subject}")
        raise SchedulingConflict("Worker already has an appointment scheduled during this time") from e


def validate_window(start: datetime, end: datetime) -> None:
    """The interval is half-open, so it must not be empty"""
    if not end > start:
        raise ValidationError("End time must be after start time")


class AppointmentService:
    """Service layer for the appointment lifecycle"""

    def __init__(self, db: Session):
        self.store = EntityStore(db)
        self.repo = AppointmentRepository()
        self.detector = ConflictDetector(self.store)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_appointments(
        self,
        ctx: RequestContext,
        appointment_id: Optional[str] = None,
        worker_id: Optional[str] = None,
        client_id: Optional[str] = None,
        status: Optional[str] = None,
        start_from: Optional[datetime] = None,
        start_to: Optional[datetime] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> list[Appointment]:
        ctx.require_active_password()
        limit = offset = None
        if page is not None and page_size is not None:
            limit, offset = page_size, page * page_size
        return self.repo.list_appointments(
            self.store,
            appointment_id=appointment_id,
            worker_id=worker_id,
            client_id=client_id,
            status=_status_value(status),
            start_from=to_store_time(start_from),
            start_to=to_store_time(start_to),
            limit=limit,
            offset=offset,
        )

    def get_appointment(self, appointment_id: str, ctx: RequestContext) -> Appointment:
        ctx.require_active_password()
        return self.repo.get_appointment(self.store, appointment_id)

    def availability(self, appointment_id: str, ctx: RequestContext) -> dict:
        """Advisory availability of the assigned worker for the booked slot"""
        appointment = self.get_appointment(appointment_id, ctx)
        worker = appointment.worker
        return {
            "appointment_id": appointment.id,
            "worker_id": worker.id,
            "available": is_advisably_available(worker, appointment.start_time),
            "warning": availability_warning(worker, appointment.start_time),
        }

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_appointment(
        self, data: AppointmentCreate, ctx: RequestContext
    ) -> tuple[Appointment, list[str]]:
        """
        Book an appointment.

        Returns:
            The new appointment and any advisory availability warnings

        Raises:
            ValidationError: end_time is not after start_time
            NotFound: worker, client or service does not exist
            SchedulingConflict: the worker already has an overlapping appointment
        """
        ctx.require_active_password()
        validate_window(data.start_time, data.end_time)
        logger.info(
            f"📥 Booking worker {data.worker_id} for client {data.client_id} "
            f"[{data.start_time}, {data.end_time}) by {ctx.worker_id}"
        )

        with _overlap_backstop(f"booking for worker {data.worker_id}"):
            with self.store.transaction():
                worker = self.store.lock(EntityKind.worker, data.worker_id)
                self.store.find_by_id(EntityKind.client, data.client_id)
                self.store.find_by_id(EntityKind.service, data.service_id)

                if data.status != AppointmentStatus.cancelled:
                    self._ensure_free(worker.id, data.start_time, data.end_time)

                appointment = self.store.insert(EntityKind.appointment, data.model_dump())
                warnings = self._warnings(worker, appointment.start_time)

        logger.info(f"✅ Appointment {appointment.id} booked")
        return appointment, warnings

    def update_appointment(
        self, appointment_id: str, data: AppointmentUpdate, ctx: RequestContext
    ) -> tuple[Appointment, list[str]]:
        """
        Apply a partial update.

        Moving the appointment (worker, start or end) re-runs the conflict
        check against the effective post-update values, excluding the
        appointment itself. So does reviving a cancelled appointment.
        """
        ctx.require_active_password()
        patch = data.to_patch()

        with _overlap_backstop(f"update of appointment {appointment_id}"):
            with self.store.transaction():
                current = self.repo.get_appointment(self.store, appointment_id)

                worker_id = patch.get("worker_id", current.worker_id)
                start = patch.get("start_time", current.start_time)
                end = patch.get("end_time", current.end_time)
                new_status = _status_value(patch.get("status", current.status))

                moved = any(field in patch for field in SCHEDULE_FIELDS)
                revived = current.status == CANCELLED and new_status != CANCELLED

                if "client_id" in patch:
                    self.store.find_by_id(EntityKind.client, patch["client_id"])
                if "service_id" in patch:
                    self.store.find_by_id(EntityKind.service, patch["service_id"])

                worker = None
                if moved or revived:
                    validate_window(start, end)
                    worker = self.store.lock(EntityKind.worker, worker_id)
                    self._ensure_free(worker.id, start, end, exclude_appointment_id=current.id)

                appointment = self.store.update(EntityKind.appointment, current.id, patch)
                warnings = self._warnings(worker, appointment.start_time) if worker else []

        logger.info(f"✏️ Appointment {appointment_id} updated by {ctx.worker_id}: {sorted(patch)}")
        return appointment, warnings

    def delete_appointment(self, appointment_id: str, ctx: RequestContext) -> dict:
        """Delete an appointment; blocked while an invoice references it"""
        ctx.require_active_password()
        try:
            with self.store.transaction():
                appointment = self.repo.get_appointment(self.store, appointment_id)
                if self.repo.has_invoice(self.store, appointment.id):
                    raise HasDependents("Cannot delete appointment with an existing invoice")
                self.store.delete(EntityKind.appointment, appointment.id)
        except ConstraintViolation as e:
            # Invoice inserted between the check and the delete
            if e.mentions("FOREIGN KEY", "invoices_appointment_id_fkey"):
                raise HasDependents("Cannot delete appointment with an existing invoice") from e
            raise

        logger.info(f"🗑️ Appointment {appointment_id} deleted by {ctx.worker_id}")
        return {"message": "Appointment deleted"}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _ensure_free(
        self,
        worker_id: str,
        start: datetime,
        end: datetime,
        exclude_appointment_id: Optional[str] = None,
    ) -> None:
        conflict = self.detector.find_conflict(worker_id, start, end, exclude_appointment_id)
        if conflict is not None:
            logger.warning(f"⚠️ Scheduling conflict for worker {worker_id} with appointment {conflict.id}")
            raise SchedulingConflict(
                "Worker already has an appointment scheduled during this time",
                conflicting_appointment_id=conflict.id,
            )

    @staticmethod
    def _warnings(worker: Worker, start: datetime) -> list[str]:
        warning = availability_warning(worker, start)
        return [warning] if warning else []

