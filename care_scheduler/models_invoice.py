"""
Invoice model for appointment billing
"""

from enum import Enum

from sqlalchemy import Column, Date, DateTime, ForeignKey, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship, validates
from sqlalchemy.sql import func

from .database import Base
from .models import generate_id


class InvoiceStatus(str, Enum):
    draft = "draft"
    pending = "pending"
    paid = "paid"
    cancelled = "cancelled"


UNIQUE_APPOINTMENT_CONSTRAINT = "uq_invoices_appointment"


class Invoice(Base):
    """Invoice model for client billing, one per completed appointment"""

    __tablename__ = "invoices"
    __table_args__ = (UniqueConstraint("appointment_id", name=UNIQUE_APPOINTMENT_CONSTRAINT),)

    id = Column(String(36), primary_key=True, default=generate_id)
    client_id = Column(String(36), ForeignKey("clients.id"), nullable=False, index=True)
    # No ON DELETE cascade: the appointment cannot go away while this row exists
    appointment_id = Column(String(36), ForeignKey("appointments.id"), nullable=False)

    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), default=InvoiceStatus.draft.value, nullable=False, index=True)
    due_date = Column(Date, nullable=False)
    paid_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="invoices")
    appointment = relationship("Appointment", back_populates="invoice")

    @validates("status")
    def validate_status(self, _key, value):
        return InvoiceStatus(value).value
