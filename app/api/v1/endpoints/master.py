"""Master-only endpoints: own profile, working dates and service catalog."""

import logging
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_master
from app.schemas.auth import MessageResponse
from app.schemas.master import MasterProfileOut, MasterProfileUpdate, WorkingWindow
from app.schemas.service import ServiceCreate, ServiceOut, ServiceUpdate
from app.services import master_service
from app.services.accounts import MasterAccount
from app.utils.calendar import parse_date

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/profile", response_model=MasterProfileOut)
async def get_profile(master: MasterAccount = Depends(get_current_master)):
    return master_service.profile_out(master)


@router.put("/profile", response_model=MasterProfileOut)
async def update_profile(
    data: MasterProfileUpdate,
    master: MasterAccount = Depends(get_current_master),
    db: AsyncSession = Depends(get_db),
):
    """Update profile fields. working_dates, when given, replaces the whole map."""
    master = await master_service.update_profile(db, master, data)
    return master_service.profile_out(master)


@router.put("/working-dates/{date_str}", response_model=MasterProfileOut)
async def set_working_date(
    date_str: str,
    window: WorkingWindow,
    master: MasterAccount = Depends(get_current_master),
    db: AsyncSession = Depends(get_db),
):
    master = await master_service.set_working_date(db, master, parse_date(date_str), window)
    return master_service.profile_out(master)


@router.delete("/working-dates/{date_str}", response_model=MasterProfileOut)
async def remove_working_date(
    date_str: str,
    master: MasterAccount = Depends(get_current_master),
    db: AsyncSession = Depends(get_db),
):
    master = await master_service.remove_working_date(db, master, parse_date(date_str))
    return master_service.profile_out(master)


# ============================================================================
# SERVICE CATALOG
# ============================================================================

@router.post("/services", response_model=ServiceOut, status_code=201)
async def create_service(
    data: ServiceCreate,
    master: MasterAccount = Depends(get_current_master),
    db: AsyncSession = Depends(get_db),
):
    return await master_service.create_service(db, master, data)


@router.get("/services", response_model=list[ServiceOut])
async def list_services(
    master: MasterAccount = Depends(get_current_master),
    db: AsyncSession = Depends(get_db),
):
    return await master_service.list_services(db, master.id)


@router.patch("/services/{service_id}", response_model=ServiceOut)
async def update_service(
    service_id: UUID,
    data: ServiceUpdate,
    master: MasterAccount = Depends(get_current_master),
    db: AsyncSession = Depends(get_db),
):
    return await master_service.update_service(db, master, service_id, data)


@router.delete("/services/{service_id}", response_model=MessageResponse)
async def delete_service(
    service_id: UUID,
    master: MasterAccount = Depends(get_current_master),
    db: AsyncSession = Depends(get_db),
):
    """Deactivate a service. Existing appointments are kept."""
    await master_service.deactivate_service(db, master, service_id)
    return MessageResponse(message="Service deleted")
