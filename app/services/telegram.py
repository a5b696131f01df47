"""Chat-bot (Telegram) integration.

- validate_init_data: verifies the signed Web App init payload the front end sends on login.
- send_message: delivers a text message through the Bot API.
"""

import hashlib
import hmac
import json
import logging
from typing import Optional
from urllib.parse import parse_qsl

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)


def _data_check_string(fields: dict[str, str]) -> str:
    return "\n".join(f"{key}={value}" for key, value in sorted(fields.items()))


def sign_init_data(fields: dict[str, str], bot_token: str) -> str:
    """Compute the hash the Bot platform attaches to Web App init data."""
    secret_key = hmac.new(b"WebAppData", bot_token.encode("utf-8"), hashlib.sha256).digest()
    return hmac.new(
        secret_key, _data_check_string(fields).encode("utf-8"), hashlib.sha256
    ).hexdigest()


def validate_init_data(init_data: str, bot_token: str) -> Optional[dict]:
    """Verify the init data signature and return the embedded bot user.

    Returns None if the payload is unsigned, tampered with, or has no user.
    """
    if not init_data or not bot_token:
        return None

    fields = dict(parse_qsl(init_data, keep_blank_values=True))
    received_hash = fields.pop("hash", None)
    if not received_hash:
        return None

    expected_hash = sign_init_data(fields, bot_token)
    if not hmac.compare_digest(expected_hash, received_hash):
        logger.warning("Init data signature mismatch")
        return None

    user_raw = fields.get("user")
    if not user_raw:
        return None
    try:
        user = json.loads(user_raw)
    except json.JSONDecodeError as e:
        logger.warning("Init data carries malformed user JSON: %s", e)
        return None

    if not isinstance(user, dict) or "id" not in user:
        return None
    return user


async def send_message(
    chat_id: str,
    text: str,
    buttons: Optional[list[list[dict]]] = None,
    timeout: float = 10.0,
) -> bool:
    """Send a message via the Bot API. Returns True on success."""
    if not settings.BOT_TOKEN:
        logger.warning("BOT_TOKEN not configured, skipping message to %s", chat_id)
        return False

    url = f"{settings.TELEGRAM_API_URL}/bot{settings.BOT_TOKEN}/sendMessage"
    payload: dict = {
        "chat_id": chat_id,
        "text": text,
        "parse_mode": "Markdown",
    }
    if buttons:
        payload["reply_markup"] = {"inline_keyboard": buttons}

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(url, json=payload)
            response.raise_for_status()
        logger.info("Bot message sent to %s", chat_id)
        return True
    except httpx.HTTPStatusError as e:
        logger.error("Bot API rejected message to %s: %s %s", chat_id, e.response.status_code, e.response.text[:200])
        return False
    except httpx.HTTPError as e:
        logger.error("Bot API request failed for %s: %s", chat_id, e)
        return False
