import uuid
from enum import Enum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship, validates
from sqlalchemy.sql import func

from .database import Base


def generate_id():
    """Generate a unique record ID"""
    return str(uuid.uuid4())


class UserRole(str, Enum):
    worker = "worker"
    admin = "admin"


class Account(Base):
    """Login identity for a worker. Only the credential layer reads this table."""

    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Worker(Base):
    __tablename__ = "workers"

    id = Column(String(36), primary_key=True, default=generate_id)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(50), nullable=True)
    role = Column(String(100), nullable=False)  # Job function, e.g. "Nurse", "Caregiver"
    # Legacy weekly shape: {"Monday": {"morning": "available", "afternoon": ""}, ...}
    # Parsed into WeeklyAvailability by the scheduling domain
    availability = Column(JSON, default=dict, nullable=False)
    active = Column(Boolean, default=True, nullable=False)

    # Account binding
    user_id = Column(String(36), ForeignKey("accounts.id"), nullable=True, index=True)
    user_role = Column(String(20), default=UserRole.worker.value, nullable=False)
    must_change_password = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    account = relationship("Account")
    appointments = relationship("Appointment", back_populates="worker", passive_deletes="all")

    @validates("user_role")
    def validate_user_role(self, _key, value):
        return UserRole(value).value

    @property
    def is_admin(self) -> bool:
        return self.user_role == UserRole.admin.value

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Client(Base):
    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=generate_id)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=False)
    address = Column(Text, nullable=False)
    emergency_contact_name = Column(String(255), nullable=True)
    emergency_contact_phone = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    appointments = relationship("Appointment", back_populates="client", passive_deletes="all")
    invoices = relationship("Invoice", back_populates="client", passive_deletes="all")


class Service(Base):
    """A billable care service (e.g. "Personal care visit")"""

    __tablename__ = "services"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    duration_minutes = Column(Integer, nullable=False)
    base_price = Column(Numeric(10, 2), nullable=False)
    active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    appointments = relationship("Appointment", back_populates="service", passive_deletes="all")
