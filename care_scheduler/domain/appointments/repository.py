"""Appointment repository - Store operations for appointments"""

from datetime import datetime
from typing import Optional

from ...models_appointment import Appointment
from ...store import EntityKind, EntityStore


class AppointmentRepository:
    """Repository for appointment store operations"""

    @staticmethod
    def list_appointments(
        store: EntityStore,
        appointment_id: Optional[str] = None,
        worker_id: Optional[str] = None,
        client_id: Optional[str] = None,
        status: Optional[str] = None,
        start_from: Optional[datetime] = None,
        start_to: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[Appointment]:
        """Appointments ordered by start time, oldest first"""
        filters = {}
        if appointment_id:
            filters["id"] = appointment_id
        if worker_id:
            filters["worker_id"] = worker_id
        if client_id:
            filters["client_id"] = client_id
        if status:
            filters["status"] = status
        if start_from is not None or start_to is not None:
            filters["start_time"] = ["between", [start_from, start_to]]
        return store.find(
            EntityKind.appointment, filters, limit=limit, offset=offset, order_by="start_time"
        )

    @staticmethod
    def get_appointment(store: EntityStore, appointment_id: str) -> Appointment:
        return store.find_by_id(EntityKind.appointment, appointment_id)

    @staticmethod
    def has_invoice(store: EntityStore, appointment_id: str) -> bool:
        return store.exists(EntityKind.invoice, {"appointment_id": appointment_id})
