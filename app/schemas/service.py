"""Pydantic schemas for the service catalog."""

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field

from app.models.service import ServiceLocationType


class ServiceCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    price: int = Field(..., gt=0)  # smallest currency unit
    duration_minutes: int = Field(..., gt=0, le=24 * 60)
    currency: str = Field("RUB", min_length=3, max_length=3)
    location_type: ServiceLocationType = ServiceLocationType.AT_MASTER


class ServiceUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    price: Optional[int] = Field(None, gt=0)
    duration_minutes: Optional[int] = Field(None, gt=0, le=24 * 60)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    location_type: Optional[ServiceLocationType] = None


class ServiceOut(BaseModel):
    id: UUID
    master_id: UUID
    title: str
    price: int
    duration_minutes: int
    currency: str
    is_active: bool
    location_type: ServiceLocationType
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
