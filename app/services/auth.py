"""Authentication service.

Handles JWT token generation/validation and chat-bot identity login.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User, UserRole
from app.models.master_profile import MasterProfile
from app.core.config import settings

logger = logging.getLogger(__name__)

# JWT settings
ALGORITHM = "HS256"


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and validate a JWT access token."""
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning("JWT decode error: %s", e)
        return None


async def get_user_by_telegram_id(db: AsyncSession, telegram_id: str) -> Optional[User]:
    """Fetch a user by their chat-bot identity."""
    result = await db.execute(select(User).where(User.telegram_id == telegram_id))
    return result.scalar_one_or_none()


async def login_or_register(
    db: AsyncSession,
    telegram_id: str,
    first_name: Optional[str] = None,
    username: Optional[str] = None,
) -> User:
    """Return the user for this identity, registering a client on first login.

    Display fields are refreshed when the bot reports new values.
    """
    user = await get_user_by_telegram_id(db, telegram_id)

    if user:
        if user.first_name != first_name or user.username != username:
            user.first_name = first_name
            user.username = username
            await db.commit()
            await db.refresh(user)
        return user

    user = User(
        telegram_id=telegram_id,
        first_name=first_name,
        username=username,
        role=UserRole.CLIENT.value,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info("Registered new client %s (telegram_id=%s)", user.id, telegram_id)
    return user


async def become_master(db: AsyncSession, user: User, display_name: Optional[str] = None) -> User:
    """Switch the user to the master role, creating an empty profile if missing."""
    user.role = UserRole.MASTER.value
    if user.master_profile is None:
        user.master_profile = MasterProfile(
            display_name=display_name or user.first_name,
            working_dates={},
        )
    elif display_name:
        user.master_profile.display_name = display_name
    await db.commit()
    await db.refresh(user)

    logger.info("User %s is now a master", user.id)
    return user
