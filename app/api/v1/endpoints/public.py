"""Public master card and catalog, no authentication required."""

from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.master import PublicMasterOut
from app.schemas.service import ServiceOut
from app.services import master_service

router = APIRouter()


@router.get("/masters/{master_id}", response_model=PublicMasterOut)
async def get_master(master_id: UUID, db: AsyncSession = Depends(get_db)):
    return await master_service.get_public_master(db, master_id)


@router.get("/services/{master_id}", response_model=list[ServiceOut])
async def get_master_services(master_id: UUID, db: AsyncSession = Depends(get_db)):
    return await master_service.get_public_services(db, master_id)
