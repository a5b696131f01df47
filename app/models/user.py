"""User model. A user is a client until they become a master."""

from sqlalchemy import Column, String, DateTime, Boolean
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
import enum
from datetime import datetime
from app.core.database import Base


class UserRole(str, enum.Enum):
    CLIENT = "client"
    MASTER = "master"


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    telegram_id = Column(String, unique=True, index=True, nullable=False)  # external identity
    role = Column(String, nullable=False, default=UserRole.CLIENT.value)
    first_name = Column(String, nullable=True)
    username = Column(String, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    master_profile = relationship(
        "MasterProfile", back_populates="user", uselist=False, lazy="selectin"
    )
    services = relationship("Service", back_populates="master")

    @property
    def is_master(self) -> bool:
        return self.role == UserRole.MASTER.value
