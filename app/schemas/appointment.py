"""Pydantic schemas for Appointments."""

from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field
from typing import Optional
from app.models.appointment import AppointmentStatus, AppointmentLocationType
from app.schemas.master import Address


class AppointmentCreate(BaseModel):
    """Schema for creating an appointment. The client is the authenticated user."""
    master_id: UUID
    service_id: UUID
    date: str = Field(..., examples=["2025-06-10"])  # YYYY-MM-DD
    time: str = Field(..., examples=["09:00"])  # HH:MM
    comment: Optional[str] = Field(None, max_length=1000)
    location_type: Optional[AppointmentLocationType] = None
    address: Optional[Address] = None


class ServiceBrief(BaseModel):
    id: UUID
    title: str
    price: int
    currency: str
    duration_minutes: int

    class Config:
        from_attributes = True


class UserBrief(BaseModel):
    id: UUID
    first_name: Optional[str] = None
    username: Optional[str] = None

    class Config:
        from_attributes = True


class AppointmentOut(BaseModel):
    """Schema for returning appointment details."""
    id: UUID
    master_id: UUID
    client_id: UUID
    service_id: Optional[UUID] = None
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus
    client_comment: Optional[str] = None
    location_type: Optional[str] = None
    address: Optional[dict] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AppointmentDetailOut(AppointmentOut):
    """Appointment with the related service and counterparties, for listings."""
    service: Optional[ServiceBrief] = None
    master: Optional[UserBrief] = None
    client: Optional[UserBrief] = None
    has_review: bool = False


class TimeSlot(BaseModel):
    """Schema for a candidate slot."""
    time: str  # "09:00", "09:15", etc.
    available: bool
