"""Slot availability endpoint."""

from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.appointment import TimeSlot
from app.services.availability import get_available_slots

router = APIRouter()


@router.get("", response_model=list[TimeSlot])
async def get_slots(
    master_id: UUID = Query(...),
    date: str = Query(..., description="YYYY-MM-DD"),
    service_id: UUID = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Candidate start times for the service on that date, each flagged available or not.

    Empty when the master does not work that day.
    """
    return await get_available_slots(db, master_id, date, service_id)
