"""Appointment reminders.

Queues reminder_24h and reminder_1h outbox rows for confirmed appointments
starting inside the matching window. A reminder is queued at most once per
appointment and type.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.appointment import Appointment, AppointmentStatus
from app.models.notification import NotificationOutbox, NotificationType, OutboxStatus
from app.services.notification_service import appointment_payload

logger = logging.getLogger(__name__)

REMINDER_WINDOW = timedelta(minutes=10)
REMINDER_OFFSETS = {
    NotificationType.REMINDER_24H: timedelta(hours=24),
    NotificationType.REMINDER_1H: timedelta(hours=1),
}


async def _already_queued(db: AsyncSession, appointment_ids: list, notification_type: NotificationType) -> set:
    if not appointment_ids:
        return set()
    result = await db.execute(
        select(NotificationOutbox.appointment_id).where(
            and_(
                NotificationOutbox.appointment_id.in_(appointment_ids),
                NotificationOutbox.type == notification_type,
            )
        )
    )
    return set(result.scalars().all())


async def enqueue_due_reminders(db: AsyncSession, now: Optional[datetime] = None) -> int:
    """Queue reminders whose window has come up. Returns the number queued."""
    now = now or datetime.utcnow()
    queued = 0

    for notification_type, offset in REMINDER_OFFSETS.items():
        window_start = now + offset
        window_end = window_start + REMINDER_WINDOW

        result = await db.execute(
            select(Appointment).where(
                and_(
                    Appointment.status == AppointmentStatus.CONFIRMED,
                    Appointment.start_time >= window_start,
                    Appointment.start_time <= window_end,
                )
            )
        )
        appointments = result.scalars().all()
        seen = await _already_queued(db, [a.id for a in appointments], notification_type)

        for appointment in appointments:
            if appointment.id in seen:
                continue
            db.add(
                NotificationOutbox(
                    recipient_id=appointment.client_id,
                    appointment_id=appointment.id,
                    type=notification_type,
                    payload=appointment_payload(appointment),
                    status=OutboxStatus.PENDING.value,
                    attempts=0,
                )
            )
            queued += 1

    if queued:
        await db.commit()
        logger.info("Queued %d appointment reminders", queued)
    return queued
