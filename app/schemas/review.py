"""Pydantic schemas for reviews."""

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field

from app.schemas.appointment import UserBrief
from app.schemas.master import RatingSummary


class ReviewCreate(BaseModel):
    appointment_id: UUID
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)


class ReviewOut(BaseModel):
    id: UUID
    master_id: UUID
    client_id: UUID
    appointment_id: UUID
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    client: Optional[UserBrief] = None

    class Config:
        from_attributes = True


class MasterReviewsOut(BaseModel):
    reviews: list[ReviewOut]
    rating: RatingSummary


class CanLeaveReviewOut(BaseModel):
    can_leave_review: bool
