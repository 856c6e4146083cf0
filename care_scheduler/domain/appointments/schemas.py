"""Appointment domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models_appointment import AppointmentStatus
from ...shared.validators import to_store_time


class AppointmentCreate(BaseModel):
    """Schema for booking an appointment"""

    worker_id: str
    client_id: str
    service_id: str
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus = AppointmentStatus.scheduled
    location: str = Field(..., min_length=1)
    notes: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_time(cls, v):
        return to_store_time(v)


class AppointmentUpdate(BaseModel):
    """Partial update; only the fields the caller sends are applied"""

    worker_id: Optional[str] = None
    client_id: Optional[str] = None
    service_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: Optional[AppointmentStatus] = None
    location: Optional[str] = Field(None, min_length=1)
    notes: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_time(cls, v):
        return to_store_time(v)

    def to_patch(self) -> dict:
        """Fields the caller sent; None only clears the notes"""
        patch = self.model_dump(exclude_unset=True)
        return {k: v for k, v in patch.items() if v is not None or k == "notes"}


class AppointmentResponse(BaseModel):
    """Schema for appointment response"""

    id: str
    worker_id: str
    client_id: str
    service_id: str
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus
    location: str
    notes: Optional[str]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # Advisory availability messages from the write that produced this response
    warnings: list[str] = []

    class Config:
        from_attributes = True


class AvailabilityResponse(BaseModel):
    appointment_id: str
    worker_id: str
    available: Optional[bool]
    warning: Optional[str] = None
