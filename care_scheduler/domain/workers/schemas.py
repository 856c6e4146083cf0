"""Worker domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import UserRole
from ...shared.validators import validate_email, validate_phone
from ..scheduling.availability import AVAILABLE, DAY_LABELS, Slot, WeeklyAvailability


def normalize_availability(value: Optional[dict]) -> Optional[dict]:
    """
    Reject anything outside the fixed 7 x 2 shape, then return the canonical
    day -> slot -> "available" | "" mapping.
    """
    if value is None:
        return None
    days = {label.lower() for label in DAY_LABELS}
    slots = {slot.name for slot in Slot}
    for day, day_slots in value.items():
        if str(day).lower() not in days:
            raise ValueError(f"Unknown day '{day}'")
        if not isinstance(day_slots, dict):
            raise ValueError(f"Availability for {day} must be an object")
        for slot, flag in day_slots.items():
            if slot not in slots:
                raise ValueError(f"Unknown time slot '{slot}'")
            if flag not in (AVAILABLE, "", None, True, False):
                raise ValueError(f"Invalid availability value {flag!r} for {day} {slot}")
    return WeeklyAvailability.from_mapping(value).to_mapping()


class WorkerCreate(BaseModel):
    """Schema for creating a new worker"""

    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    role: str
    availability: Optional[dict] = None
    active: bool = True
    user_role: UserRole = UserRole.worker

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, v):
        return validate_phone(v)

    @field_validator("availability")
    @classmethod
    def validate_availability(cls, v):
        return normalize_availability(v)


class WorkerUpdate(BaseModel):
    """Schema for updating an existing worker"""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    availability: Optional[dict] = None
    active: Optional[bool] = None
    user_role: Optional[UserRole] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, v):
        return validate_phone(v)

    @field_validator("availability")
    @classmethod
    def validate_availability(cls, v):
        return normalize_availability(v)

    def to_patch(self) -> dict:
        """Fields the caller actually sent; None only clears the phone"""
        patch = self.model_dump(exclude_unset=True)
        return {k: v for k, v in patch.items() if v is not None or k == "phone"}


class WorkerResponse(BaseModel):
    """Schema for worker response"""

    id: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str]
    role: str
    availability: dict
    active: bool
    user_role: UserRole
    must_change_password: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("availability", mode="before")
    @classmethod
    def canonical_availability(cls, v):
        return WeeklyAvailability.from_mapping(v).to_mapping()


class WorkerCreatedResponse(BaseModel):
    worker: WorkerResponse
    temporary_password: str


class PasswordResetResponse(BaseModel):
    message: str
    temporary_password: str
