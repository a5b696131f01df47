"""Account variants.

A user row carries a role flag and, for masters, a profile row. Code that
needs master-only data goes through MasterAccount so a client is never
read as if it had a profile.
"""

from dataclasses import dataclass
from typing import Union
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import MasterNotConfigured
from app.models.master_profile import MasterProfile
from app.models.user import User
from app.schemas.master import WorkingDates, working_dates_from_json


@dataclass(frozen=True)
class ClientAccount:
    user: User

    @property
    def id(self) -> UUID:
        return self.user.id


@dataclass(frozen=True)
class MasterAccount:
    user: User
    profile: MasterProfile

    @property
    def id(self) -> UUID:
        return self.user.id

    @property
    def display_name(self) -> str:
        return self.profile.display_name or self.user.first_name or "Master"

    @property
    def working_dates(self) -> WorkingDates:
        return working_dates_from_json(self.profile.working_dates)

    @property
    def gap_minutes(self) -> int:
        if self.profile.gap_minutes is None:
            return settings.DEFAULT_GAP_MINUTES
        return self.profile.gap_minutes


Account = Union[ClientAccount, MasterAccount]


def as_account(user: User) -> Account:
    if user.is_master and user.master_profile is not None:
        return MasterAccount(user=user, profile=user.master_profile)
    return ClientAccount(user=user)


def require_master(user: User | None) -> MasterAccount:
    """Return the master variant or raise MasterNotConfigured."""
    if user is None:
        raise MasterNotConfigured()
    account = as_account(user)
    if not isinstance(account, MasterAccount):
        raise MasterNotConfigured()
    return account


async def load_master(db: AsyncSession, master_id: UUID, for_update: bool = False) -> MasterAccount:
    """Load a master by id. With for_update the user row is locked until commit."""
    query = select(User).where(User.id == master_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return require_master(result.scalar_one_or_none())
