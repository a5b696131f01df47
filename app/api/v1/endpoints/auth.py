"""Authentication endpoints.

Login trusts the chat-bot Web App init data: the signature proves the
request comes from the bot platform for the embedded user.
"""

import logging
from fastapi import APIRouter, HTTPException, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.deps import get_current_user
from app.models.user import User
from app.schemas.auth import BotLogin, Token, UserOut
from app.services.auth import create_access_token, login_or_register, become_master
from app.services.master_service import user_profile_out
from app.services.telegram import validate_init_data

router = APIRouter()
logger = logging.getLogger(__name__)


def to_user_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        telegram_id=user.telegram_id,
        role=user.role,
        first_name=user.first_name,
        username=user.username,
        is_active=bool(user.is_active),
        master_profile=user_profile_out(user),
    )


@router.post("/login", response_model=Token)
async def login(credentials: BotLogin, db: AsyncSession = Depends(get_db)):
    """Log in (registering on first visit) with signed bot init data.

    Outside production a request without init data logs in as DEV_TELEGRAM_ID.
    """
    if credentials.init_data:
        bot_user = validate_init_data(credentials.init_data, settings.BOT_TOKEN)
        if not bot_user:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid init data",
            )
    elif not settings.is_production:
        logger.warning("Dev login as telegram_id=%s", settings.DEV_TELEGRAM_ID)
        bot_user = {"id": settings.DEV_TELEGRAM_ID, "first_name": "Dev", "username": "dev"}
    else:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="init_data is required",
        )

    user = await login_or_register(
        db,
        telegram_id=str(bot_user["id"]),
        first_name=bot_user.get("first_name"),
        username=bot_user.get("username"),
    )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is disabled")

    access_token = create_access_token(data={"sub": str(user.id), "telegram_id": user.telegram_id})
    logger.info("User logged in: %s (telegram_id=%s)", user.id, user.telegram_id)
    return Token(access_token=access_token, user=to_user_out(user))


@router.get("/me", response_model=UserOut)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get the current authenticated user."""
    return to_user_out(current_user)


@router.post("/become-master", response_model=UserOut)
async def become_master_endpoint(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Switch the current account to the master role."""
    user = await become_master(db, current_user)
    return to_user_out(user)
