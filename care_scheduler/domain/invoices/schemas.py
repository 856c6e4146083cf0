"""Invoice domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from ...models_invoice import InvoiceStatus


class InvoiceCreate(BaseModel):
    """
    Schema for creating an invoice against a completed appointment.

    client_id defaults to the appointment's client, amount to the service's
    base price and due_date to INVOICE_DUE_DAYS from today.
    """

    appointment_id: str
    client_id: Optional[str] = None
    amount: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    status: InvoiceStatus = InvoiceStatus.draft
    due_date: Optional[date] = None
    paid_date: Optional[date] = None
    notes: Optional[str] = None


class InvoiceUpdate(BaseModel):
    amount: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    status: Optional[InvoiceStatus] = None
    due_date: Optional[date] = None
    paid_date: Optional[date] = None
    notes: Optional[str] = None

    def to_patch(self) -> dict:
        """Fields the caller sent; paid_date and notes may be cleared with null"""
        patch = self.model_dump(exclude_unset=True)
        return {k: v for k, v in patch.items() if v is not None or k in ("paid_date", "notes")}


class InvoiceResponse(BaseModel):
    id: str
    client_id: str
    appointment_id: str
    amount: Decimal
    status: InvoiceStatus
    due_date: date
    paid_date: Optional[date]
    notes: Optional[str]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
