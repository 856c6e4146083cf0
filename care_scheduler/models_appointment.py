"""
Appointment model and its store-level non-overlap guarantee
"""

from enum import Enum

from sqlalchemy import DDL, Column, DateTime, ForeignKey, Index, String, Text, event
from sqlalchemy.orm import relationship, validates
from sqlalchemy.sql import func

from .database import Base
from .models import generate_id


class AppointmentStatus(str, Enum):
    scheduled = "scheduled"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


# Name of the PostgreSQL exclusion constraint; violations map to SchedulingConflict
NO_OVERLAP_CONSTRAINT = "appointments_no_overlap"


class Appointment(Base):
    """A worker visiting a client for one service over [start_time, end_time)"""

    __tablename__ = "appointments"
    __table_args__ = (Index("ix_appointments_worker_start", "worker_id", "start_time"),)

    id = Column(String(36), primary_key=True, default=generate_id)

    worker_id = Column(String(36), ForeignKey("workers.id"), nullable=False, index=True)
    client_id = Column(String(36), ForeignKey("clients.id"), nullable=False, index=True)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=False)

    # Stored verbatim; no timezone normalization happens in the core
    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    end_time = Column(DateTime(timezone=True), nullable=False)

    # Status workflow: scheduled, in_progress, completed, cancelled (free transitions)
    status = Column(String(20), default=AppointmentStatus.scheduled.value, nullable=False, index=True)
    location = Column(Text, nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    worker = relationship("Worker", back_populates="appointments")
    client = relationship("Client", back_populates="appointments")
    service = relationship("Service", back_populates="appointments")
    invoice = relationship("Invoice", back_populates="appointment", uselist=False, passive_deletes="all")

    @validates("status")
    def validate_status(self, _key, value):
        return AppointmentStatus(value).value


# PostgreSQL backstop for concurrent bookings: rejects overlapping intervals per worker
# at write time, independent of the application-level check
event.listen(
    Base.metadata,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
event.listen(
    Appointment.__table__,
    "after_create",
    DDL(
        f"ALTER TABLE appointments ADD CONSTRAINT {NO_OVERLAP_CONSTRAINT} "
        "EXCLUDE USING gist (worker_id WITH =, tstzrange(start_time, end_time, '[)') WITH &&) "
        "WHERE (status <> 'cancelled')"
    ).execute_if(dialect="postgresql"),
)
