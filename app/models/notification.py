"""Notification outbox model.

Rows are written after an appointment transition commits and are
delivered to the chat-bot by the worker in app/workers/notifications.py.
"""

from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, Enum, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.types import JSON
import uuid
import enum
from datetime import datetime

from app.core.database import Base


class NotificationType(str, enum.Enum):
    NEW_BOOKING = "new_booking"
    BOOKING_PENDING = "booking_pending"
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_REJECTED = "booking_rejected"
    BOOKING_CANCELLED = "booking_cancelled"
    COMPLETION_REQUESTED = "completion_requested"
    COMPLETION_CONFIRMED = "completion_confirmed"
    COMPLETION_DISPUTED = "completion_disputed"
    REMINDER_24H = "reminder_24h"
    REMINDER_1H = "reminder_1h"


class OutboxStatus(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class NotificationOutbox(Base):
    __tablename__ = "notification_outbox"
    __table_args__ = (
        Index("ix_notification_outbox_appointment_type", "appointment_id", "type"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    recipient_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    appointment_id = Column(UUID(as_uuid=True), ForeignKey("appointments.id", ondelete="CASCADE"), nullable=True)
    type = Column(
        Enum(NotificationType, name="notification_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    payload = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=dict)
    status = Column(String, nullable=False, default=OutboxStatus.PENDING.value, index=True)
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    sent_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
