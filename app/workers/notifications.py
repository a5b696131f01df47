"""Notification outbox delivery worker.

Picks pending outbox rows whose backoff has elapsed, renders them and sends
them through the bot API. A row is retried after 1, 5 and 30 minutes and
marked failed after MAX_DELIVERY_ATTEMPTS.

Runs inside the API process (see app/main.py) or standalone:

    python -m app.workers.notifications
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import async_session
from app.models.notification import NotificationOutbox, OutboxStatus
from app.models.review import Review  # noqa: F401 ensure models are registered
from app.models.service import Service  # noqa: F401
from app.models.user import User
from app.services.notification_service import render_message
from app.services.reminder_service import enqueue_due_reminders
from app.services.telegram import send_message

logger = logging.getLogger(__name__)

MAX_DELIVERY_ATTEMPTS = 3
RETRY_DELAYS = [1, 5, 30]  # minutes


def is_due(row: NotificationOutbox, now: datetime) -> bool:
    if row.attempts == 0:
        return True
    delay_minutes = RETRY_DELAYS[min(row.attempts - 1, len(RETRY_DELAYS) - 1)]
    return now >= row.updated_at + timedelta(minutes=delay_minutes)


async def get_due_notifications(db: AsyncSession, limit: int = 50, now: Optional[datetime] = None) -> list[NotificationOutbox]:
    now = now or datetime.utcnow()
    result = await db.execute(
        select(NotificationOutbox)
        .where(
            and_(
                NotificationOutbox.status == OutboxStatus.PENDING.value,
                NotificationOutbox.attempts < MAX_DELIVERY_ATTEMPTS,
            )
        )
        .order_by(NotificationOutbox.created_at)
        .limit(limit)
    )
    return [row for row in result.scalars().all() if is_due(row, now)]


def _mark_failed(row: NotificationOutbox, error: str, now: datetime) -> None:
    row.attempts += 1
    row.last_error = error
    row.updated_at = now
    if row.attempts >= MAX_DELIVERY_ATTEMPTS:
        row.status = OutboxStatus.FAILED.value
        logger.error(
            "Notification %s (%s) failed permanently after %d attempts: %s",
            row.id, row.type.value, row.attempts, error[:100],
        )
    else:
        next_delay = RETRY_DELAYS[min(row.attempts - 1, len(RETRY_DELAYS) - 1)]
        logger.warning(
            "Notification %s delivery failed (attempt %d/%d), retrying in %d min: %s",
            row.id, row.attempts, MAX_DELIVERY_ATTEMPTS, next_delay, error[:100],
        )


async def deliver_pending(db: AsyncSession, limit: int = 50, now: Optional[datetime] = None) -> int:
    """Deliver due outbox rows. Returns the number sent."""
    if not settings.BOT_TOKEN:
        logger.debug("BOT_TOKEN not configured, leaving outbox untouched")
        return 0

    now = now or datetime.utcnow()
    rows = await get_due_notifications(db, limit=limit, now=now)
    sent = 0

    for row in rows:
        recipient = await db.get(User, row.recipient_id)
        if recipient is None or not recipient.is_active:
            _mark_failed(row, "Recipient missing or inactive", now)
            continue

        try:
            text, buttons = render_message(row.type, row.payload or {})
        except (KeyError, ValueError) as e:
            _mark_failed(row, f"Render error: {e}", now)
            continue

        if await send_message(recipient.telegram_id, text, buttons=buttons):
            row.status = OutboxStatus.SENT.value
            row.attempts += 1
            row.sent_at = now
            row.updated_at = now
            sent += 1
        else:
            _mark_failed(row, "Bot API send failed", now)

    if rows:
        await db.commit()
        logger.info("Delivered %d of %d due notifications", sent, len(rows))
    return sent


async def run_once() -> int:
    async with async_session() as db:
        if settings.REMINDERS_ENABLED:
            await enqueue_due_reminders(db)
        return await deliver_pending(db)


async def run_forever(poll_seconds: Optional[int] = None) -> None:
    poll_seconds = poll_seconds or settings.NOTIFICATION_POLL_SECONDS
    logger.info("Notification worker started (poll every %ds)", poll_seconds)
    while True:
        try:
            await run_once()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Notification worker iteration failed")
        await asyncio.sleep(poll_seconds)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(run_forever())
    except KeyboardInterrupt:
        logger.info("Notification worker stopped")
