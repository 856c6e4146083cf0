"""Invoice repository - Store operations for invoices"""

from datetime import datetime
from typing import Optional

from ...models_appointment import Appointment, AppointmentStatus
from ...models_invoice import Invoice
from ...store import EntityKind, EntityStore


class InvoiceRepository:
    """Repository for invoice store operations"""

    @staticmethod
    def list_invoices(
        store: EntityStore,
        client_id: Optional[str] = None,
        appointment_id: Optional[str] = None,
        status: Optional[str] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[Invoice]:
        filters = {}
        if client_id:
            filters["client_id"] = client_id
        if appointment_id:
            filters["appointment_id"] = appointment_id
        if status:
            filters["status"] = status
        if created_from is not None or created_to is not None:
            filters["created_at"] = ["between", [created_from, created_to]]
        return store.find(
            EntityKind.invoice, filters, limit=limit, offset=offset, order_by="-created_at"
        )

    @staticmethod
    def get_invoice(store: EntityStore, invoice_id: str) -> Invoice:
        return store.find_by_id(EntityKind.invoice, invoice_id)

    @staticmethod
    def invoice_for_appointment(store: EntityStore, appointment_id: str) -> Optional[Invoice]:
        return store.find_one(EntityKind.invoice, {"appointment_id": appointment_id})

    @staticmethod
    def billable_appointments(store: EntityStore, client_id: str) -> list[Appointment]:
        """Completed appointments of the client that have not been invoiced yet"""
        invoiced = [
            invoice.appointment_id
            for invoice in store.find(EntityKind.invoice, {"client_id": client_id})
        ]
        filters = {"client_id": client_id, "status": AppointmentStatus.completed.value}
        if invoiced:
            filters["id"] = ["not in", invoiced]
        return store.find(EntityKind.appointment, filters, order_by="-start_time")
