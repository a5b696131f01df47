"""Appointment lifecycle.

    pending          --confirm (master)-->          confirmed
    pending          --reject (master)-->           cancelled
    pending/confirmed --cancel (either party)-->    cancelled
    confirmed        --mark-complete (master)-->    awaiting_review
    awaiting_review  --confirm-complete (client)--> completed
    awaiting_review  --dispute-complete (client)--> confirmed

cancelled and completed are terminal. Each transition loads the row, checks
the actor, checks the source status and then issues a single conditional
UPDATE ... WHERE status IN (sources). If a concurrent request changed the
status in between, the UPDATE matches no row and the caller gets
InvalidStateTransition; nothing is written.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AccessDenied, AppointmentNotFound, BookingError, InvalidStateTransition
from app.models.appointment import Appointment, AppointmentStatus
from app.models.notification import NotificationType
from app.models.user import User
from app.services.booking import get_appointment
from app.services.notification_service import (
    NotificationDispatcher,
    NotificationEvent,
    appointment_payload,
    publish_events,
)

logger = logging.getLogger(__name__)


class AppointmentAction(str, enum.Enum):
    CONFIRM = "confirm"
    REJECT = "reject"
    CANCEL = "cancel"
    MARK_COMPLETE = "mark-complete"
    CONFIRM_COMPLETE = "confirm-complete"
    DISPUTE_COMPLETE = "dispute-complete"


class Party(str, enum.Enum):
    MASTER = "master"
    CLIENT = "client"
    EITHER = "either"


@dataclass(frozen=True)
class Transition:
    sources: frozenset
    target: AppointmentStatus
    party: Party
    refusal: str


TRANSITIONS: dict[AppointmentAction, Transition] = {
    AppointmentAction.CONFIRM: Transition(
        sources=frozenset({AppointmentStatus.PENDING}),
        target=AppointmentStatus.CONFIRMED,
        party=Party.MASTER,
        refusal="Appointment already processed",
    ),
    AppointmentAction.REJECT: Transition(
        sources=frozenset({AppointmentStatus.PENDING}),
        target=AppointmentStatus.CANCELLED,
        party=Party.MASTER,
        refusal="Appointment already processed",
    ),
    AppointmentAction.CANCEL: Transition(
        sources=frozenset({AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED}),
        target=AppointmentStatus.CANCELLED,
        party=Party.EITHER,
        refusal="Only pending or confirmed appointments can be cancelled",
    ),
    AppointmentAction.MARK_COMPLETE: Transition(
        sources=frozenset({AppointmentStatus.CONFIRMED}),
        target=AppointmentStatus.AWAITING_REVIEW,
        party=Party.MASTER,
        refusal="Only confirmed appointments can be marked complete",
    ),
    AppointmentAction.CONFIRM_COMPLETE: Transition(
        sources=frozenset({AppointmentStatus.AWAITING_REVIEW}),
        target=AppointmentStatus.COMPLETED,
        party=Party.CLIENT,
        refusal="Appointment is not awaiting confirmation",
    ),
    AppointmentAction.DISPUTE_COMPLETE: Transition(
        sources=frozenset({AppointmentStatus.AWAITING_REVIEW}),
        target=AppointmentStatus.CONFIRMED,
        party=Party.CLIENT,
        refusal="Appointment is not awaiting confirmation",
    ),
}


def resolve_party(appointment: Appointment, actor: User, required: Party) -> Party:
    """Return the side the actor acts for, or raise AccessDenied.

    Master-only actions need the row's master holding the master role.
    Client-only actions need the row's client (masters book other masters too).
    """
    is_master = actor.id == appointment.master_id
    is_client = actor.id == appointment.client_id

    if required == Party.MASTER:
        if is_master and actor.is_master:
            return Party.MASTER
    elif required == Party.CLIENT:
        if is_client:
            return Party.CLIENT
    else:
        if is_master:
            return Party.MASTER
        if is_client:
            return Party.CLIENT
    raise AccessDenied("You are not allowed to perform this action on this appointment")


def transition_events(action: AppointmentAction, appointment: Appointment, side: Party) -> list[NotificationEvent]:
    """One event per counterparty affected by the transition."""
    payload = appointment_payload(appointment)
    master_id, client_id = appointment.master_id, appointment.client_id

    if action == AppointmentAction.CONFIRM:
        return [NotificationEvent(NotificationType.BOOKING_CONFIRMED, client_id, appointment.id, payload)]
    if action == AppointmentAction.REJECT:
        return [NotificationEvent(NotificationType.BOOKING_REJECTED, client_id, appointment.id, payload)]
    if action == AppointmentAction.CANCEL:
        by_master = side == Party.MASTER
        payload["cancelled_by_master"] = by_master
        recipient = client_id if by_master else master_id
        return [NotificationEvent(NotificationType.BOOKING_CANCELLED, recipient, appointment.id, payload)]
    if action == AppointmentAction.MARK_COMPLETE:
        return [NotificationEvent(NotificationType.COMPLETION_REQUESTED, client_id, appointment.id, payload)]
    if action == AppointmentAction.CONFIRM_COMPLETE:
        return [NotificationEvent(NotificationType.COMPLETION_CONFIRMED, master_id, appointment.id, payload)]
    if action == AppointmentAction.DISPUTE_COMPLETE:
        return [NotificationEvent(NotificationType.COMPLETION_DISPUTED, master_id, appointment.id, payload)]
    return []


async def apply_transition(
    db: AsyncSession,
    appointment_id: UUID,
    actor: User,
    action: AppointmentAction,
    dispatcher: NotificationDispatcher,
) -> Appointment:
    """Apply one lifecycle action and return the updated appointment."""
    transition = TRANSITIONS[action]
    actor_id = actor.id

    try:
        appointment = await get_appointment(db, appointment_id, for_update=True)
        if appointment is None:
            raise AppointmentNotFound()

        side = resolve_party(appointment, actor, transition.party)

        previous = appointment.status
        if previous not in transition.sources:
            raise InvalidStateTransition(transition.refusal)

        result = await db.execute(
            update(Appointment)
            .where(
                Appointment.id == appointment_id,
                Appointment.status.in_(list(transition.sources)),
            )
            .values(status=transition.target, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            # Lost the race against another transition on the same row
            raise InvalidStateTransition(transition.refusal)

        await db.commit()
    except BookingError as e:
        # Nothing was written. Commit ends the read transaction and releases
        # the row lock; rollback would expire the caller's objects.
        await db.commit()
        logger.warning(
            "Refused %s on appointment %s by user %s: %s",
            action.value, appointment_id, actor_id, e.detail,
        )
        raise
    except Exception:
        await db.rollback()
        raise

    appointment = await get_appointment(db, appointment_id)
    logger.info(
        "Appointment %s: %s -> %s (%s by %s %s)",
        appointment_id, previous.value, appointment.status.value, action.value, side.value, actor_id,
    )

    await publish_events(dispatcher, transition_events(action, appointment, side))
    return appointment


async def confirm(db: AsyncSession, appointment_id: UUID, actor: User, dispatcher: NotificationDispatcher) -> Appointment:
    return await apply_transition(db, appointment_id, actor, AppointmentAction.CONFIRM, dispatcher)


async def reject(db: AsyncSession, appointment_id: UUID, actor: User, dispatcher: NotificationDispatcher) -> Appointment:
    return await apply_transition(db, appointment_id, actor, AppointmentAction.REJECT, dispatcher)


async def cancel(db: AsyncSession, appointment_id: UUID, actor: User, dispatcher: NotificationDispatcher) -> Appointment:
    return await apply_transition(db, appointment_id, actor, AppointmentAction.CANCEL, dispatcher)


async def mark_complete(db: AsyncSession, appointment_id: UUID, actor: User, dispatcher: NotificationDispatcher) -> Appointment:
    return await apply_transition(db, appointment_id, actor, AppointmentAction.MARK_COMPLETE, dispatcher)


async def confirm_complete(db: AsyncSession, appointment_id: UUID, actor: User, dispatcher: NotificationDispatcher) -> Appointment:
    return await apply_transition(db, appointment_id, actor, AppointmentAction.CONFIRM_COMPLETE, dispatcher)


async def dispute_complete(db: AsyncSession, appointment_id: UUID, actor: User, dispatcher: NotificationDispatcher) -> Appointment:
    return await apply_transition(db, appointment_id, actor, AppointmentAction.DISPUTE_COMPLETE, dispatcher)
