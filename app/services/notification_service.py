"""Notification events and dispatch.

Appointment services publish NotificationEvents after their transaction has
committed. Publishing is best-effort: publish_events logs and drops any
failure so the triggering booking or transition is never affected.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import async_session
from app.models.appointment import Appointment
from app.models.notification import NotificationOutbox, NotificationType, OutboxStatus
from app.utils.calendar import format_hhmm

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationEvent:
    type: NotificationType
    recipient_id: UUID
    appointment_id: Optional[UUID] = None
    payload: dict = field(default_factory=dict)


class NotificationDispatcher(ABC):
    """Outbound interface the booking core publishes to."""

    @abstractmethod
    async def publish(self, event: NotificationEvent) -> None:
        ...


class OutboxDispatcher(NotificationDispatcher):
    """Persists events to notification_outbox in a session of its own."""

    def __init__(self, session_factory: Callable[[], AsyncSession] = async_session):
        self._session_factory = session_factory

    async def publish(self, event: NotificationEvent) -> None:
        async with self._session_factory() as db:
            db.add(
                NotificationOutbox(
                    recipient_id=event.recipient_id,
                    appointment_id=event.appointment_id,
                    type=event.type,
                    payload=event.payload,
                    status=OutboxStatus.PENDING.value,
                    attempts=0,
                )
            )
            await db.commit()

        logger.info(
            "Queued %s notification for user %s (appointment %s)",
            event.type.value,
            event.recipient_id,
            event.appointment_id,
        )


async def publish_events(dispatcher: NotificationDispatcher, events: Iterable[NotificationEvent]) -> int:
    """Publish each event; failures are logged and dropped. Returns the number published."""
    published = 0
    for event in events:
        try:
            await dispatcher.publish(event)
            published += 1
        except Exception:
            logger.exception(
                "Failed to publish %s notification for user %s (appointment %s)",
                event.type.value,
                event.recipient_id,
                event.appointment_id,
            )
    return published


def _person_name(user, fallback: str) -> str:
    if user is None:
        return fallback
    return user.first_name or (f"@{user.username}" if user.username else fallback)


def appointment_payload(appointment: Appointment) -> dict:
    """Snapshot of the appointment fields message templates need."""
    master = appointment.master
    profile = master.master_profile if master is not None else None
    return {
        "appointment_id": str(appointment.id),
        "service_title": appointment.service.title if appointment.service else "Service",
        "date": appointment.start_time.date().isoformat(),
        "time": format_hhmm(appointment.start_time),
        "master_name": (profile.display_name if profile and profile.display_name else None)
        or _person_name(master, "Master"),
        "master_description": profile.description if profile else None,
        "client_name": _person_name(appointment.client, "Client"),
    }


def booking_events(appointment: Appointment) -> list[NotificationEvent]:
    """A new booking asks the master to decide and gives the client a receipt."""
    payload = appointment_payload(appointment)
    return [
        NotificationEvent(NotificationType.NEW_BOOKING, appointment.master_id, appointment.id, payload),
        NotificationEvent(NotificationType.BOOKING_PENDING, appointment.client_id, appointment.id, payload),
    ]


# ---------------------------------------------------------------------------
# Message rendering
# ---------------------------------------------------------------------------

def _master_line(payload: dict) -> str:
    if payload.get("master_description"):
        return f"👩‍💼 Master: *{payload['master_name']}* ({payload['master_description']})"
    return f"👩‍💼 Master: *{payload['master_name']}*"


def _when_lines(payload: dict) -> str:
    return (
        f"💇 Service: {payload['service_title']}\n"
        f"📅 {payload['date']}\n"
        f"⏰ Time: {payload['time']}"
    )


def render_message(notification_type: NotificationType, payload: dict) -> tuple[str, Optional[list[list[dict]]]]:
    """Render the bot message text and optional inline buttons."""
    when = _when_lines(payload)
    buttons = None

    if notification_type == NotificationType.NEW_BOOKING:
        text = (
            f"🔔 *New booking request!*\n\n"
            f"👤 Client: *{payload['client_name']}*\n{when}\n\n"
            f"Confirm or reject the booking:"
        )
        appointment_id = payload["appointment_id"]
        buttons = [[
            {"text": "✅ Confirm", "callback_data": f"confirm_{appointment_id}"},
            {"text": "❌ Reject", "callback_data": f"reject_{appointment_id}"},
        ]]
    elif notification_type == NotificationType.BOOKING_PENDING:
        text = f"⏳ *Request sent!*\n\n{_master_line(payload)}\n{when}\n\nWaiting for the master to confirm."
    elif notification_type == NotificationType.BOOKING_CONFIRMED:
        text = (
            f"✅ *Booking confirmed!*\n\n{_master_line(payload)}\n{when}\n\n"
            f"See you there! You can cancel the booking in the app."
        )
    elif notification_type == NotificationType.BOOKING_REJECTED:
        text = (
            f"😔 *Booking rejected*\n\n"
            f"Master *{payload['master_name']}* could not confirm your booking.\n\n{when}\n\n"
            f"Please pick another time."
        )
    elif notification_type == NotificationType.BOOKING_CANCELLED:
        if payload.get("cancelled_by_master"):
            text = (
                f"❌ *Booking cancelled*\n\n"
                f"Master *{payload['master_name']}* cancelled your booking.\n\n{when}\n\n"
                f"You can book another time."
            )
        else:
            text = (
                f"❌ *Booking cancelled by client*\n\n"
                f"Client *{payload['client_name']}* cancelled the booking.\n\n{when}"
            )
    elif notification_type == NotificationType.COMPLETION_REQUESTED:
        text = (
            f"🧾 *Was the service provided?*\n\n{_master_line(payload)}\n{when}\n\n"
            f"Please confirm completion in the app, then leave a review."
        )
    elif notification_type == NotificationType.COMPLETION_CONFIRMED:
        text = f"🎉 *Completion confirmed*\n\nClient *{payload['client_name']}* confirmed the visit.\n\n{when}"
    elif notification_type == NotificationType.COMPLETION_DISPUTED:
        text = (
            f"⚠️ *Completion disputed*\n\n"
            f"Client *{payload['client_name']}* says the service was not provided yet.\n\n{when}"
        )
    elif notification_type == NotificationType.REMINDER_24H:
        text = f"⏰ *Reminder: tomorrow*\n\n{_master_line(payload)}\n{when}"
    elif notification_type == NotificationType.REMINDER_1H:
        text = f"⏰ *Reminder: in one hour*\n\n{_master_line(payload)}\n{when}"
    else:
        raise ValueError(f"Unknown notification type: {notification_type}")

    if buttons is None and settings.WEB_APP_URL:
        buttons = [[{"text": "📱 Open app", "web_app": {"url": settings.WEB_APP_URL}}]]
    return text, buttons
