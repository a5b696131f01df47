"""FastAPI dependencies for authentication and authorization."""

from typing import Optional
from uuid import UUID
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import AccessDenied, MasterNotConfigured
from app.models.user import User
from app.services.accounts import MasterAccount, require_master
from app.services.auth import decode_access_token
from app.services.notification_service import NotificationDispatcher, OutboxDispatcher

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Extract and validate the current user from the bearer token.

    Raises 401 if the token is missing, invalid or names an unknown user.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id: Optional[str] = payload.get("sub")
    try:
        user_uuid = UUID(user_id) if user_id else None
    except ValueError:
        user_uuid = None
    if user_uuid is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    result = await db.execute(select(User).where(User.id == user_uuid))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    return user


async def get_current_master(current_user: User = Depends(get_current_user)) -> MasterAccount:
    """Require the master variant of the current account (403 otherwise)."""
    try:
        return require_master(current_user)
    except MasterNotConfigured:
        raise AccessDenied("Master access required")


def get_dispatcher() -> NotificationDispatcher:
    """Notification dispatcher used by the appointment endpoints. Overridden in tests."""
    return OutboxDispatcher()
