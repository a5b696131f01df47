"""Appointment model for the booking system."""

from sqlalchemy import Column, String, DateTime, ForeignKey, Enum as SQLEnum, Text, Index, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.types import JSON
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
import enum
from app.core.database import Base


class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    AWAITING_REVIEW = "awaiting_review"
    COMPLETED = "completed"


# Statuses that hold a slot on the master's calendar
BLOCKING_STATUSES = (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)


class AppointmentLocationType(str, enum.Enum):
    AT_MASTER = "at_master"
    AT_CLIENT = "at_client"


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_master_start", "master_id", "start_time"),
        CheckConstraint("end_time > start_time", name="ck_appointments_interval"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    master_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    client_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    service_id = Column(UUID(as_uuid=True), ForeignKey("services.id"), nullable=True)

    # Naive UTC timestamps; end_time already includes the master's gap
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    status = Column(
        SQLEnum(
            AppointmentStatus,
            name="appointmentstatus",
            values_callable=lambda e: [m.value for m in e],
        ),
        default=AppointmentStatus.PENDING,
        nullable=False,
        index=True,
    )
    client_comment = Column(Text, nullable=True)
    location_type = Column(String, nullable=True)
    address = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)  # {"text": ..., "coordinates": [lat, lng]}

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    master = relationship("User", foreign_keys=[master_id], lazy="selectin")
    client = relationship("User", foreign_keys=[client_id], lazy="selectin")
    service = relationship("Service", lazy="selectin")
    review = relationship("Review", back_populates="appointment", uselist=False, lazy="selectin")
