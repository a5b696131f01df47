"""Master-only profile, one-to-one with users."""

from sqlalchemy import Column, String, DateTime, Integer, Text, ForeignKey
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.types import JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from app.core.database import Base


class MasterProfile(Base):
    __tablename__ = "master_profiles"

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    display_name = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    avatar_url = Column(String, nullable=True)
    phone_number = Column(String, nullable=True)

    # JSON for SQLite compatibility, JSONB in Postgres
    location = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)  # {"type": "fixed", "address": {...}}
    working_dates = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=dict)  # {"2025-06-10": {"start": "09:00", "end": "12:00"}}
    gap_minutes = Column(Integer, nullable=True)  # falls back to settings.DEFAULT_GAP_MINUTES

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="master_profile")
