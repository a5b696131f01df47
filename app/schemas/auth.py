"""Pydantic schemas for authentication endpoints."""

from pydantic import BaseModel
from uuid import UUID

from app.schemas.master import MasterProfileOut


class BotLogin(BaseModel):
    """Request schema for login with chat-bot signed init data."""
    init_data: str | None = None


class UserOut(BaseModel):
    """Response schema for user info."""
    id: UUID
    telegram_id: str
    role: str
    first_name: str | None = None
    username: str | None = None
    is_active: bool
    master_profile: MasterProfileOut | None = None


class Token(BaseModel):
    """Response schema for login: returns JWT token and the user."""
    access_token: str
    token_type: str = "bearer"
    user: UserOut


class MessageResponse(BaseModel):
    """Generic message response."""
    message: str
