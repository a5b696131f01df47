"""Tests for notification events, the outbox and its delivery worker."""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select

from app.core.config import settings
from app.models.appointment import AppointmentStatus
from app.models.notification import NotificationOutbox, NotificationType, OutboxStatus
from app.services import appointment_state
from app.services.booking import create_appointment
from app.services.notification_service import (
    NotificationEvent,
    OutboxDispatcher,
    publish_events,
    render_message,
)
from app.services.reminder_service import enqueue_due_reminders
from app.workers import notifications as worker

WORK_DAY = "2030-06-10"

PAYLOAD = {
    "appointment_id": "a1",
    "service_title": "Haircut",
    "date": WORK_DAY,
    "time": "09:00",
    "master_name": "Anna",
    "master_description": None,
    "client_name": "Ivan",
}


async def outbox_rows(db):
    result = await db.execute(
        select(NotificationOutbox)
        .order_by(NotificationOutbox.created_at)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


def test_new_booking_message_has_decision_buttons():
    text, buttons = render_message(NotificationType.NEW_BOOKING, PAYLOAD)
    assert "Ivan" in text and "Haircut" in text and "09:00" in text
    assert [b["callback_data"] for b in buttons[0]] == ["confirm_a1", "reject_a1"]


def test_cancel_message_names_who_cancelled():
    by_master, _ = render_message(NotificationType.BOOKING_CANCELLED, {**PAYLOAD, "cancelled_by_master": True})
    by_client, _ = render_message(NotificationType.BOOKING_CANCELLED, {**PAYLOAD, "cancelled_by_master": False})
    assert "Anna" in by_master
    assert "Ivan" in by_client


def test_every_type_renders():
    for notification_type in NotificationType:
        text, _ = render_message(notification_type, PAYLOAD)
        assert text


@pytest.mark.asyncio
async def test_publish_events_swallows_failures(dispatcher, failing_dispatcher):
    event = NotificationEvent(NotificationType.BOOKING_CONFIRMED, recipient_id=None, payload=PAYLOAD)

    assert await publish_events(failing_dispatcher, [event, event]) == 0
    assert await publish_events(dispatcher, [event]) == 1


@pytest.mark.asyncio
async def test_outbox_dispatcher_persists_events(db, session_factory, make_master, make_user, make_service):
    outbox = OutboxDispatcher(session_factory=session_factory)
    master = await make_master()
    client = await make_user("2001")
    service = await make_service(master)

    appointment = await create_appointment(db, client, master.id, service.id, WORK_DAY, "09:00", outbox)
    await appointment_state.confirm(db, appointment.id, master, outbox)

    rows = await outbox_rows(db)
    assert [r.type for r in rows] == [
        NotificationType.NEW_BOOKING, NotificationType.BOOKING_PENDING, NotificationType.BOOKING_CONFIRMED,
    ]
    assert rows[0].recipient_id == master.id
    assert all(r.status == OutboxStatus.PENDING.value and r.attempts == 0 for r in rows)
    assert rows[2].payload["time"] == "09:00"


@pytest.fixture
def queued(db, session_factory, make_master, make_user, make_service):
    async def _queue():
        outbox = OutboxDispatcher(session_factory=session_factory)
        master = await make_master()
        client = await make_user("2001")
        service = await make_service(master)
        await create_appointment(db, client, master.id, service.id, WORK_DAY, "09:00", outbox)
        return master, client
    return _queue


@pytest.mark.asyncio
async def test_worker_delivers_and_marks_sent(db, queued, monkeypatch):
    master, client = await queued()
    monkeypatch.setattr(settings, "BOT_TOKEN", "123:TEST")
    send = AsyncMock(return_value=True)
    monkeypatch.setattr(worker, "send_message", send)

    assert await worker.deliver_pending(db) == 2

    chat_ids = [call.args[0] for call in send.await_args_list]
    assert chat_ids == [master.telegram_id, client.telegram_id]
    assert send.await_args_list[0].kwargs["buttons"] is not None
    rows = await outbox_rows(db)
    assert all(r.status == OutboxStatus.SENT.value and r.sent_at is not None for r in rows)

    # Nothing left to send
    assert await worker.deliver_pending(db) == 0


@pytest.mark.asyncio
async def test_worker_backs_off_and_gives_up(db, queued, monkeypatch):
    await queued()
    monkeypatch.setattr(settings, "BOT_TOKEN", "123:TEST")
    send = AsyncMock(return_value=False)
    monkeypatch.setattr(worker, "send_message", send)
    start = datetime.utcnow()

    await worker.deliver_pending(db, now=start)
    assert send.await_count == 2

    # Still inside the first one minute backoff
    await worker.deliver_pending(db, now=start + timedelta(seconds=30))
    assert send.await_count == 2

    await worker.deliver_pending(db, now=start + timedelta(minutes=2))
    await worker.deliver_pending(db, now=start + timedelta(minutes=10))
    assert send.await_count == 6

    rows = await outbox_rows(db)
    assert all(r.status == OutboxStatus.FAILED.value and r.attempts == 3 for r in rows)

    await worker.deliver_pending(db, now=start + timedelta(hours=2))
    assert send.await_count == 6


@pytest.mark.asyncio
async def test_worker_skips_without_bot_token(db, queued, monkeypatch):
    await queued()
    monkeypatch.setattr(settings, "BOT_TOKEN", "")
    send = AsyncMock(return_value=True)
    monkeypatch.setattr(worker, "send_message", send)

    assert await worker.deliver_pending(db) == 0
    send.assert_not_awaited()
    rows = await outbox_rows(db)
    assert all(r.status == OutboxStatus.PENDING.value and r.attempts == 0 for r in rows)


@pytest.mark.asyncio
async def test_reminders_are_queued_once(db, make_master, make_user, make_service, dispatcher):
    master = await make_master()
    client = await make_user("2001")
    service = await make_service(master)
    appointment = await create_appointment(db, client, master.id, service.id, WORK_DAY, "09:00", dispatcher)

    day_before = appointment.start_time - timedelta(hours=24, minutes=5)
    assert await enqueue_due_reminders(db, now=day_before) == 0  # still pending

    await appointment_state.confirm(db, appointment.id, master, dispatcher)
    assert await enqueue_due_reminders(db, now=day_before) == 1
    assert await enqueue_due_reminders(db, now=day_before) == 0

    hour_before = appointment.start_time - timedelta(hours=1)
    assert await enqueue_due_reminders(db, now=hour_before) == 1

    rows = await outbox_rows(db)
    assert [r.type for r in rows] == [NotificationType.REMINDER_24H, NotificationType.REMINDER_1H]
    assert all(r.recipient_id == client.id for r in rows)

    # Outside every window
    assert await enqueue_due_reminders(db, now=appointment.start_time - timedelta(hours=5)) == 0


@pytest.mark.asyncio
async def test_cancelled_appointments_get_no_reminders(db, make_master, make_user, make_service, dispatcher):
    master = await make_master()
    client = await make_user("2001")
    service = await make_service(master)
    appointment = await create_appointment(db, client, master.id, service.id, WORK_DAY, "09:00", dispatcher)
    await appointment_state.confirm(db, appointment.id, master, dispatcher)
    appointment = await appointment_state.cancel(db, appointment.id, client, dispatcher)
    assert appointment.status == AppointmentStatus.CANCELLED

    assert await enqueue_due_reminders(db, now=appointment.start_time - timedelta(hours=1)) == 0
