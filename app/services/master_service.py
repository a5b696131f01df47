"""Master profile, working dates and service catalog."""

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import MasterNotConfigured, MasterNotFound, ServiceNotFound
from app.models.service import Service
from app.models.user import User
from app.schemas.master import (
    MasterProfileOut,
    MasterProfileUpdate,
    PublicMasterOut,
    WorkingWindow,
    working_dates_to_json,
)
from app.schemas.service import ServiceCreate, ServiceUpdate
from app.services.accounts import MasterAccount, as_account, load_master
from app.services.review_service import get_master_rating

logger = logging.getLogger(__name__)


def profile_out(account: MasterAccount) -> MasterProfileOut:
    profile = account.profile
    return MasterProfileOut(
        user_id=account.id,
        display_name=profile.display_name,
        description=profile.description,
        avatar_url=profile.avatar_url,
        phone_number=profile.phone_number,
        location=profile.location,
        working_dates={d.isoformat(): w for d, w in sorted(account.working_dates.items())},
        gap_minutes=account.gap_minutes,
    )


def user_profile_out(user: User) -> Optional[MasterProfileOut]:
    account = as_account(user)
    if isinstance(account, MasterAccount):
        return profile_out(account)
    return None


async def update_profile(db: AsyncSession, account: MasterAccount, data: MasterProfileUpdate) -> MasterAccount:
    """Apply the fields present in data; working_dates replaces the whole map."""
    profile = account.profile
    fields = data.model_dump(exclude_unset=True)

    if "working_dates" in fields:
        profile.working_dates = working_dates_to_json(data.working_dates or {})
        fields.pop("working_dates")
    if "location" in fields:
        profile.location = data.location.model_dump() if data.location else None
        fields.pop("location")
    for field, value in fields.items():
        setattr(profile, field, value)

    await db.commit()
    await db.refresh(profile)
    logger.info("Master %s updated profile fields: %s", account.id, ", ".join(data.model_dump(exclude_unset=True)))
    return account


async def set_working_date(db: AsyncSession, account: MasterAccount, day: date, window: WorkingWindow) -> MasterAccount:
    working_dates = account.working_dates
    working_dates[day] = window
    account.profile.working_dates = working_dates_to_json(working_dates)
    await db.commit()
    await db.refresh(account.profile)
    logger.info("Master %s works %s %s-%s", account.id, day, window.start, window.end)
    return account


async def remove_working_date(db: AsyncSession, account: MasterAccount, day: date) -> MasterAccount:
    working_dates = account.working_dates
    if working_dates.pop(day, None) is not None:
        account.profile.working_dates = working_dates_to_json(working_dates)
        await db.commit()
        await db.refresh(account.profile)
        logger.info("Master %s removed working date %s", account.id, day)
    return account


# ---------------------------------------------------------------------------
# Service catalog
# ---------------------------------------------------------------------------

async def create_service(db: AsyncSession, account: MasterAccount, data: ServiceCreate) -> Service:
    service = Service(
        master_id=account.id,
        title=data.title,
        price=data.price,
        duration_minutes=data.duration_minutes,
        currency=data.currency.upper(),
        location_type=data.location_type.value,
        is_active=True,
    )
    db.add(service)
    await db.commit()
    await db.refresh(service)
    logger.info("Master %s created service %s (%s, %d min)", account.id, service.id, service.title, service.duration_minutes)
    return service


async def list_services(db: AsyncSession, master_id: UUID) -> list[Service]:
    """Active services of a master, oldest first."""
    result = await db.execute(
        select(Service)
        .where(and_(Service.master_id == master_id, Service.is_active.is_(True)))
        .order_by(Service.created_at)
    )
    return list(result.scalars().all())


async def _owned_service(db: AsyncSession, account: MasterAccount, service_id: UUID) -> Service:
    service = await db.get(Service, service_id)
    if not service or service.master_id != account.id or not service.is_active:
        raise ServiceNotFound()
    return service


async def update_service(db: AsyncSession, account: MasterAccount, service_id: UUID, data: ServiceUpdate) -> Service:
    service = await _owned_service(db, account, service_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        if field == "location_type":
            value = value.value
        elif field == "currency":
            value = value.upper()
        setattr(service, field, value)
    await db.commit()
    await db.refresh(service)
    return service


async def deactivate_service(db: AsyncSession, account: MasterAccount, service_id: UUID) -> None:
    """Soft delete: existing appointments keep pointing at the row."""
    service = await _owned_service(db, account, service_id)
    service.is_active = False
    await db.commit()
    logger.info("Master %s deactivated service %s", account.id, service_id)


# ---------------------------------------------------------------------------
# Public views
# ---------------------------------------------------------------------------

async def get_public_services(db: AsyncSession, master_id: UUID) -> list[Service]:
    try:
        await load_master(db, master_id)
    except MasterNotConfigured as e:
        raise MasterNotFound() from e
    return await list_services(db, master_id)


async def get_public_master(db: AsyncSession, master_id: UUID) -> PublicMasterOut:
    try:
        account = await load_master(db, master_id)
    except MasterNotConfigured as e:
        raise MasterNotFound() from e
    return PublicMasterOut(
        id=account.id,
        display_name=account.display_name,
        description=account.profile.description,
        avatar_url=account.profile.avatar_url,
        location=account.profile.location,
        rating=await get_master_rating(db, master_id),
    )
