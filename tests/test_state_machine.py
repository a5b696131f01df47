"""Tests for the appointment lifecycle."""

import pytest

from app.core.exceptions import AccessDenied, AppointmentNotFound, InvalidStateTransition
from app.models.appointment import AppointmentStatus
from app.services import appointment_state
from app.services.appointment_state import AppointmentAction, TRANSITIONS
from app.services.booking import create_appointment, get_appointment

WORK_DAY = "2030-06-10"


@pytest.fixture
def booked(db, make_master, make_user, make_service, dispatcher):
    async def _book():
        master = await make_master()
        client = await make_user("2001", first_name="Ivan")
        service = await make_service(master)
        appointment = await create_appointment(db, client, master.id, service.id, WORK_DAY, "09:00", dispatcher)
        dispatcher.events.clear()
        return master, client, appointment
    return _book


@pytest.mark.asyncio
async def test_full_lifecycle(db, booked, dispatcher):
    master, client, appointment = await booked()

    appointment = await appointment_state.confirm(db, appointment.id, master, dispatcher)
    assert appointment.status == AppointmentStatus.CONFIRMED

    appointment = await appointment_state.mark_complete(db, appointment.id, master, dispatcher)
    assert appointment.status == AppointmentStatus.AWAITING_REVIEW

    appointment = await appointment_state.confirm_complete(db, appointment.id, client, dispatcher)
    assert appointment.status == AppointmentStatus.COMPLETED

    assert dispatcher.types() == ["booking_confirmed", "completion_requested", "completion_confirmed"]
    assert [e.recipient_id for e in dispatcher.events] == [client.id, client.id, master.id]


@pytest.mark.asyncio
async def test_dispute_returns_to_confirmed(db, booked, dispatcher):
    master, client, appointment = await booked()
    await appointment_state.confirm(db, appointment.id, master, dispatcher)
    await appointment_state.mark_complete(db, appointment.id, master, dispatcher)

    appointment = await appointment_state.dispute_complete(db, appointment.id, client, dispatcher)

    assert appointment.status == AppointmentStatus.CONFIRMED
    assert dispatcher.events[-1].type.value == "completion_disputed"
    assert dispatcher.events[-1].recipient_id == master.id


@pytest.mark.asyncio
async def test_reject_cancels_pending(db, booked, dispatcher):
    master, client, appointment = await booked()

    appointment = await appointment_state.reject(db, appointment.id, master, dispatcher)

    assert appointment.status == AppointmentStatus.CANCELLED
    assert dispatcher.types() == ["booking_rejected"]


@pytest.mark.asyncio
async def test_cancel_notifies_the_other_side(db, booked, dispatcher):
    master, client, appointment = await booked()
    await appointment_state.cancel(db, appointment.id, client, dispatcher)

    event = dispatcher.events[-1]
    assert event.type.value == "booking_cancelled"
    assert event.recipient_id == master.id
    assert event.payload["cancelled_by_master"] is False


@pytest.mark.asyncio
async def test_master_cancels_confirmed(db, booked, dispatcher):
    master, client, appointment = await booked()
    await appointment_state.confirm(db, appointment.id, master, dispatcher)

    appointment = await appointment_state.cancel(db, appointment.id, master, dispatcher)

    assert appointment.status == AppointmentStatus.CANCELLED
    assert dispatcher.events[-1].recipient_id == client.id
    assert dispatcher.events[-1].payload["cancelled_by_master"] is True


@pytest.mark.asyncio
@pytest.mark.parametrize("terminal_path", [
    [AppointmentAction.REJECT],
    [AppointmentAction.CONFIRM, AppointmentAction.MARK_COMPLETE, AppointmentAction.CONFIRM_COMPLETE],
])
async def test_terminal_states_refuse_every_action(db, booked, dispatcher, terminal_path):
    master, client, appointment = await booked()
    for action in terminal_path:
        actor = master if TRANSITIONS[action].party.value == "master" else client
        await appointment_state.apply_transition(db, appointment.id, actor, action, dispatcher)
    final_status = (await get_appointment(db, appointment.id)).status
    dispatcher.events.clear()

    for action, transition in TRANSITIONS.items():
        actor = client if transition.party.value == "client" else master
        with pytest.raises(InvalidStateTransition):
            await appointment_state.apply_transition(db, appointment.id, actor, action, dispatcher)

    assert (await get_appointment(db, appointment.id)).status == final_status
    assert dispatcher.events == []


@pytest.mark.asyncio
async def test_illegal_transition_leaves_status(db, booked, dispatcher):
    master, client, appointment = await booked()

    with pytest.raises(InvalidStateTransition):
        await appointment_state.mark_complete(db, appointment.id, master, dispatcher)
    with pytest.raises(InvalidStateTransition):
        await appointment_state.confirm_complete(db, appointment.id, client, dispatcher)

    assert (await get_appointment(db, appointment.id)).status == AppointmentStatus.PENDING


@pytest.mark.asyncio
async def test_wrong_actor_is_denied(db, booked, make_user, make_master, dispatcher):
    master, client, appointment = await booked()
    stranger = await make_user("2999")
    other_master = await make_master(telegram_id="1999", display_name="Olga")

    with pytest.raises(AccessDenied):
        await appointment_state.confirm(db, appointment.id, client, dispatcher)
    with pytest.raises(AccessDenied):
        await appointment_state.confirm(db, appointment.id, other_master, dispatcher)
    with pytest.raises(AccessDenied):
        await appointment_state.cancel(db, appointment.id, stranger, dispatcher)

    await appointment_state.confirm(db, appointment.id, master, dispatcher)
    await appointment_state.mark_complete(db, appointment.id, master, dispatcher)
    with pytest.raises(AccessDenied):
        await appointment_state.confirm_complete(db, appointment.id, master, dispatcher)

    assert (await get_appointment(db, appointment.id)).status == AppointmentStatus.AWAITING_REVIEW


@pytest.mark.asyncio
async def test_unknown_appointment(db, booked, dispatcher):
    import uuid

    master, _, _ = await booked()
    with pytest.raises(AppointmentNotFound):
        await appointment_state.confirm(db, uuid.uuid4(), master, dispatcher)


@pytest.mark.asyncio
async def test_notification_failure_does_not_undo_transition(db, booked, failing_dispatcher):
    master, client, appointment = await booked()

    appointment = await appointment_state.confirm(db, appointment.id, master, failing_dispatcher)

    assert appointment.status == AppointmentStatus.CONFIRMED
    assert (await get_appointment(db, appointment.id)).status == AppointmentStatus.CONFIRMED


@pytest.mark.asyncio
async def test_refusals_keep_caller_objects_loaded(db, booked, dispatcher):
    master, client, appointment = await booked()

    with pytest.raises(AccessDenied):
        await appointment_state.confirm(db, appointment.id, client, dispatcher)
    with pytest.raises(InvalidStateTransition):
        await appointment_state.confirm_complete(db, appointment.id, client, dispatcher)

    # Attributes stay readable after each refusal, and the session keeps working
    assert client.first_name == "Ivan"
    assert appointment.status == AppointmentStatus.PENDING

    confirmed = await appointment_state.confirm(db, appointment.id, master, dispatcher)
    assert confirmed.status == AppointmentStatus.CONFIRMED
    assert dispatcher.types() == ["booking_confirmed"]
