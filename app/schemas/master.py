"""Pydantic schemas for master profiles and working dates."""

from datetime import date, timedelta
from typing import Optional, Literal
from uuid import UUID
from pydantic import BaseModel, Field, field_validator, model_validator

from app.utils.calendar import END_OF_DAY, HHMM_RE, offset_of_day


class WorkingWindow(BaseModel):
    """Half-open working window [start, end) for one calendar date.

    end may be "24:00" for a window that runs until midnight.
    """
    start: str = Field(..., examples=["09:00"])
    end: str = Field(..., examples=["18:00"])

    @field_validator("start")
    @classmethod
    def validate_start(cls, v: str) -> str:
        if not HHMM_RE.match(v):
            raise ValueError("Time must be in HH:MM format")
        return v

    @field_validator("end")
    @classmethod
    def validate_end(cls, v: str) -> str:
        if v != END_OF_DAY and not HHMM_RE.match(v):
            raise ValueError("Time must be in HH:MM format or 24:00")
        return v

    @model_validator(mode="after")
    def validate_order(self) -> "WorkingWindow":
        if self.start_offset >= self.end_offset:
            raise ValueError("Working window start must be before end")
        return self

    @property
    def start_offset(self) -> timedelta:
        return offset_of_day(self.start)

    @property
    def end_offset(self) -> timedelta:
        return offset_of_day(self.end)


WorkingDates = dict[date, WorkingWindow]


def working_dates_to_json(working_dates: WorkingDates) -> dict:
    """Serialize to the stored {"YYYY-MM-DD": {"start", "end"}} shape."""
    return {
        d.isoformat(): window.model_dump()
        for d, window in sorted(working_dates.items())
    }


def working_dates_from_json(raw: dict | None) -> WorkingDates:
    """Load the stored shape back into validated value objects."""
    return {
        date.fromisoformat(key): WorkingWindow.model_validate(value)
        for key, value in (raw or {}).items()
    }


class Address(BaseModel):
    text: str = Field(..., min_length=1, max_length=500)
    coordinates: Optional[tuple[float, float]] = None  # [lat, lng]


class MasterLocation(BaseModel):
    type: Literal["fixed", "mobile", "both"]
    address: Optional[Address] = None


class MasterProfileUpdate(BaseModel):
    """Schema for updating the master profile. Omitted fields are left unchanged."""
    display_name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    avatar_url: Optional[str] = None
    phone_number: Optional[str] = Field(None, max_length=32)
    location: Optional[MasterLocation] = None
    working_dates: Optional[WorkingDates] = None
    gap_minutes: Optional[int] = Field(None, ge=0, le=120)


class MasterProfileOut(BaseModel):
    user_id: UUID
    display_name: Optional[str] = None
    description: Optional[str] = None
    avatar_url: Optional[str] = None
    phone_number: Optional[str] = None
    location: Optional[dict] = None
    working_dates: dict[str, WorkingWindow] = Field(default_factory=dict)
    gap_minutes: int

    class Config:
        from_attributes = True


class RatingSummary(BaseModel):
    average: float
    count: int


class PublicMasterOut(BaseModel):
    """Public master card shown to clients."""
    id: UUID
    display_name: Optional[str] = None
    description: Optional[str] = None
    avatar_url: Optional[str] = None
    location: Optional[dict] = None
    rating: RatingSummary
