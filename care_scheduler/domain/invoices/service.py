"""Invoice service - Billing derived from completed appointments"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...config import INVOICE_DUE_DAYS
from ...context import RequestContext
from ...errors import ConstraintViolation, DuplicateInvoice, ValidationError
from ...models_appointment import Appointment, AppointmentStatus
from ...models_invoice import UNIQUE_APPOINTMENT_CONSTRAINT, Invoice, InvoiceStatus
from ...store import EntityKind, EntityStore
from .repository import InvoiceRepository
from .schemas import InvoiceCreate, InvoiceUpdate

logger = logging.getLogger(__name__)

PAID = InvoiceStatus.paid.value


def _stamp_paid_date(
    values: dict, existing_status: Optional[str] = None, existing_paid_date: Optional[date] = None
) -> dict:
    """A paid invoice always carries a paid_date; today when none is kept or given"""
    status = values.get("status", existing_status)
    status = status.value if isinstance(status, InvoiceStatus) else status
    paid_date = values["paid_date"] if "paid_date" in values else existing_paid_date
    if status == PAID and not paid_date:
        values["paid_date"] = date.today()
    return values


class InvoiceService:
    """Service layer for invoices. Every operation is admin only."""

    def __init__(self, db: Session):
        self.store = EntityStore(db)
        self.repo = InvoiceRepository()

    def list_invoices(
        self,
        ctx: RequestContext,
        client_id: Optional[str] = None,
        appointment_id: Optional[str] = None,
        status: Optional[str] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> list[Invoice]:
        ctx.require_active_password()
        ctx.require_admin("view invoices")
        limit = offset = None
        if page is not None and page_size is not None:
            limit, offset = page_size, page * page_size
        if isinstance(status, InvoiceStatus):
            status = status.value
        return self.repo.list_invoices(
            self.store, client_id, appointment_id, status, created_from, created_to, limit, offset
        )

    def get_invoice(self, invoice_id: str, ctx: RequestContext) -> Invoice:
        ctx.require_active_password()
        ctx.require_admin("view invoices")
        return self.repo.get_invoice(self.store, invoice_id)

    def billable_appointments(self, client_id: str, ctx: RequestContext) -> list[Appointment]:
        """Completed, not yet invoiced appointments of a client"""
        ctx.require_active_password()
        ctx.require_admin("view invoices")
        self.store.find_by_id(EntityKind.client, client_id)
        return self.repo.billable_appointments(self.store, client_id)

    def create_invoice(self, data: InvoiceCreate, ctx: RequestContext) -> Invoice:
        """
        Create an invoice for a completed appointment.

        Raises:
            NotFound: the appointment (or client) does not exist
            ValidationError: the appointment is not completed, or belongs to another client
            DuplicateInvoice: the appointment already has an invoice
        """
        ctx.require_active_password()
        ctx.require_admin("create invoices")
        logger.info(f"📥 Creating invoice for appointment {data.appointment_id} by {ctx.worker_id}")

        try:
            with self.store.transaction():
                appointment = self.store.find_by_id(EntityKind.appointment, data.appointment_id)
                if appointment.status != AppointmentStatus.completed.value:
                    raise ValidationError("Invoices can only be created for completed appointments")

                existing = self.repo.invoice_for_appointment(self.store, appointment.id)
                if existing is not None:
                    raise DuplicateInvoice(
                        f"Appointment {appointment.id} already has invoice {existing.id}"
                    )

                client_id = data.client_id or appointment.client_id
                if client_id != appointment.client_id:
                    raise ValidationError("Invoice client must match the appointment's client")

                values = data.model_dump()
                values["client_id"] = client_id
                if values["amount"] is None:
                    values["amount"] = appointment.service.base_price
                if values["due_date"] is None:
                    values["due_date"] = date.today() + timedelta(days=INVOICE_DUE_DAYS)
                invoice = self.store.insert(EntityKind.invoice, _stamp_paid_date(values))
        except ConstraintViolation as e:
            if e.mentions(UNIQUE_APPOINTMENT_CONSTRAINT, "invoices.appointment_id"):
                raise DuplicateInvoice(
                    f"Appointment {data.appointment_id} already has an invoice"
                ) from e
            raise

        logger.info(f"✅ Invoice {invoice.id} created: amount={invoice.amount} due={invoice.due_date}")
        return invoice

    def update_invoice(self, invoice_id: str, data: InvoiceUpdate, ctx: RequestContext) -> Invoice:
        ctx.require_active_password()
        ctx.require_admin("update invoices")

        with self.store.transaction():
            invoice = self.repo.get_invoice(self.store, invoice_id)
            patch = _stamp_paid_date(data.to_patch(), invoice.status, invoice.paid_date)
            invoice = self.store.update(EntityKind.invoice, invoice.id, patch)

        logger.info(f"✏️ Invoice {invoice_id} updated by {ctx.worker_id}: {sorted(patch)}")
        return invoice

    def delete_invoice(self, invoice_id: str, ctx: RequestContext) -> dict:
        ctx.require_active_password()
        ctx.require_admin("delete invoices")

        with self.store.transaction():
            self.store.delete(EntityKind.invoice, invoice_id)

        logger.info(f"🗑️ Invoice {invoice_id} deleted by {ctx.worker_id}")
        return {"message": "Invoice deleted"}
