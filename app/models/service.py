"""Service catalog model. Services are soft-deleted via is_active."""

from sqlalchemy import Column, String, DateTime, Integer, Boolean, ForeignKey, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
import enum
from datetime import datetime
from app.core.database import Base


class ServiceLocationType(str, enum.Enum):
    AT_MASTER = "at_master"
    AT_CLIENT = "at_client"
    BOTH = "both"


class Service(Base):
    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_services_duration_positive"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    master_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    price = Column(Integer, nullable=False)  # smallest currency unit
    duration_minutes = Column(Integer, nullable=False, default=60)
    currency = Column(String(3), nullable=False, default="RUB")
    is_active = Column(Boolean, nullable=False, default=True)
    location_type = Column(String, nullable=False, default=ServiceLocationType.AT_MASTER.value)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    master = relationship("User", back_populates="services")
