"""Invoice router - FastAPI endpoints for billing (administrators only)"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_context
from ...context import RequestContext
from ...database import get_db
from ...models_invoice import InvoiceStatus
from ..appointments.schemas import AppointmentResponse
from .schemas import InvoiceCreate, InvoiceResponse, InvoiceUpdate
from .service import InvoiceService

router = APIRouter(prefix="/invoices", tags=["Invoices"])


def get_invoice_service(db: Session = Depends(get_db)) -> InvoiceService:
    """Dependency injection for InvoiceService"""
    return InvoiceService(db)


@router.get("", response_model=list[InvoiceResponse])
async def get_invoices(
    client_id: Optional[str] = Query(None),
    appointment_id: Optional[str] = Query(None),
    status: Optional[InvoiceStatus] = Query(None),
    created_from: Optional[datetime] = Query(None),
    created_to: Optional[datetime] = Query(None),
    page: Optional[int] = Query(None, ge=0),
    page_size: Optional[int] = Query(None, ge=1, le=200),
    ctx: RequestContext = Depends(get_current_context),
    service: InvoiceService = Depends(get_invoice_service),
):
    """List invoices, newest first"""
    return service.list_invoices(
        ctx, client_id, appointment_id, status, created_from, created_to, page, page_size
    )


@router.get("/billable/{client_id}", response_model=list[AppointmentResponse])
async def get_billable_appointments(
    client_id: str,
    ctx: RequestContext = Depends(get_current_context),
    service: InvoiceService = Depends(get_invoice_service),
):
    """Completed appointments of a client that have no invoice yet"""
    return service.billable_appointments(client_id, ctx)


@router.post("", response_model=InvoiceResponse, status_code=201)
async def create_invoice(
    data: InvoiceCreate,
    ctx: RequestContext = Depends(get_current_context),
    service: InvoiceService = Depends(get_invoice_service),
):
    return service.create_invoice(data, ctx)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: str,
    ctx: RequestContext = Depends(get_current_context),
    service: InvoiceService = Depends(get_invoice_service),
):
    return service.get_invoice(invoice_id, ctx)


@router.patch("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    invoice_id: str,
    data: InvoiceUpdate,
    ctx: RequestContext = Depends(get_current_context),
    service: InvoiceService = Depends(get_invoice_service),
):
    """Update an invoice. Marking it paid stamps today's date unless one is given."""
    return service.update_invoice(invoice_id, data, ctx)


@router.delete("/{invoice_id}")
async def delete_invoice(
    invoice_id: str,
    ctx: RequestContext = Depends(get_current_context),
    service: InvoiceService = Depends(get_invoice_service),
):
    return service.delete_invoice(invoice_id, ctx)
