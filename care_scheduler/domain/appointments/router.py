"""Appointment router - FastAPI endpoints for the appointment lifecycle"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_context
from ...context import RequestContext
from ...database import get_db
from ...models_appointment import AppointmentStatus
from .schemas import AppointmentCreate, AppointmentResponse, AppointmentUpdate, AvailabilityResponse
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db)


def _with_warnings(appointment, warnings: list[str]) -> AppointmentResponse:
    return AppointmentResponse.model_validate(appointment).model_copy(update={"warnings": warnings})


@router.get("", response_model=list[AppointmentResponse])
async def get_appointments(
    id: Optional[str] = Query(None),
    worker_id: Optional[str] = Query(None),
    client_id: Optional[str] = Query(None),
    status: Optional[AppointmentStatus] = Query(None),
    start_from: Optional[datetime] = Query(None, description="Inclusive lower bound on start_time"),
    start_to: Optional[datetime] = Query(None, description="Inclusive upper bound on start_time"),
    page: Optional[int] = Query(None, ge=0),
    page_size: Optional[int] = Query(None, ge=1, le=500),
    ctx: RequestContext = Depends(get_current_context),
    service: AppointmentService = Depends(get_appointment_service),
):
    """List appointments ordered by start time"""
    return service.list_appointments(
        ctx,
        appointment_id=id,
        worker_id=worker_id,
        client_id=client_id,
        status=status,
        start_from=start_from,
        start_to=start_to,
        page=page,
        page_size=page_size,
    )


@router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    data: AppointmentCreate,
    ctx: RequestContext = Depends(get_current_context),
    service: AppointmentService = Depends(get_appointment_service),
):
    """
    Book an appointment.

    Fails with 409 when the worker is already booked for an overlapping time.
    Availability outside the worker's declared schedule only adds a warning.
    """
    appointment, warnings = service.create_appointment(data, ctx)
    return _with_warnings(appointment, warnings)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: str,
    ctx: RequestContext = Depends(get_current_context),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.get_appointment(appointment_id, ctx)


@router.get("/{appointment_id}/availability", response_model=AvailabilityResponse)
async def get_appointment_availability(
    appointment_id: str,
    ctx: RequestContext = Depends(get_current_context),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.availability(appointment_id, ctx)


@router.patch("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: str,
    data: AppointmentUpdate,
    ctx: RequestContext = Depends(get_current_context),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment, warnings = service.update_appointment(appointment_id, data, ctx)
    return _with_warnings(appointment, warnings)


@router.delete("/{appointment_id}")
async def delete_appointment(
    appointment_id: str,
    ctx: RequestContext = Depends(get_current_context),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.delete_appointment(appointment_id, ctx)
