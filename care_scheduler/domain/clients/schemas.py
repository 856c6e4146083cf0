"""Client domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email, validate_phone


class ClientCreate(BaseModel):
    """Schema for creating a new client"""

    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: str
    address: str
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return validate_email(v)

    @field_validator("phone", "emergency_contact_phone")
    @classmethod
    def normalize_phone(cls, v):
        return validate_phone(v)


class ClientUpdate(BaseModel):
    """Schema for updating an existing client"""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return validate_email(v)

    @field_validator("phone", "emergency_contact_phone")
    @classmethod
    def normalize_phone(cls, v):
        return validate_phone(v)


# Columns that cannot be cleared with an explicit null
REQUIRED_FIELDS = ("first_name", "last_name", "phone", "address")


class ClientResponse(BaseModel):
    """Schema for client response"""

    id: str
    first_name: str
    last_name: str
    email: Optional[str]
    phone: str
    address: str
    emergency_contact_name: Optional[str]
    emergency_contact_phone: Optional[str]
    notes: Optional[str]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
