"""Appointment booking and lifecycle endpoints."""

import logging
from typing import Literal, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_user, get_dispatcher
from app.core.exceptions import AccessDenied, AppointmentNotFound, NotFound, ValidationError
from app.models.appointment import Appointment
from app.models.user import User
from app.schemas.appointment import AppointmentCreate, AppointmentDetailOut
from app.services import appointment_state
from app.services.appointment_state import AppointmentAction
from app.services.booking import create_appointment, get_appointment, list_appointments
from app.services.notification_service import NotificationDispatcher

router = APIRouter()
logger = logging.getLogger(__name__)


def to_detail(appointment: Appointment) -> AppointmentDetailOut:
    out = AppointmentDetailOut.model_validate(appointment)
    out.has_review = appointment.review is not None
    return out


@router.post("", response_model=AppointmentDetailOut, status_code=201)
async def book_appointment(
    data: AppointmentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Book a pending appointment for the current user as client."""
    try:
        appointment = await create_appointment(
            db,
            client=current_user,
            master_id=data.master_id,
            service_id=data.service_id,
            date_str=data.date,
            time_str=data.time,
            dispatcher=dispatcher,
            comment=data.comment,
            location_type=data.location_type.value if data.location_type else None,
            address=data.address.model_dump() if data.address else None,
        )
    except NotFound as e:
        # Unresolvable references in the booking body are a bad request here
        raise ValidationError(e.detail) from e
    return to_detail(appointment)


@router.get("", response_model=list[AppointmentDetailOut])
async def get_my_appointments(
    role: Optional[Literal["master", "client"]] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Appointments of the current user, newest first.

    role defaults to the account's own role; only masters may ask for role=master.
    """
    role = role or current_user.role
    if role == "master" and not current_user.is_master:
        raise AccessDenied("Master access required")
    appointments = await list_appointments(db, current_user.id, as_master=role == "master")
    return [to_detail(a) for a in appointments]


@router.get("/{appointment_id}", response_model=AppointmentDetailOut)
async def get_appointment_detail(
    appointment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    appointment = await get_appointment(db, appointment_id)
    if appointment is None:
        raise AppointmentNotFound()
    if current_user.id not in (appointment.master_id, appointment.client_id):
        raise AccessDenied("You are not a party to this appointment")
    return to_detail(appointment)


async def _transition(
    action: AppointmentAction,
    appointment_id: UUID,
    current_user: User,
    db: AsyncSession,
    dispatcher: NotificationDispatcher,
) -> AppointmentDetailOut:
    appointment = await appointment_state.apply_transition(db, appointment_id, current_user, action, dispatcher)
    return to_detail(appointment)


@router.patch("/{appointment_id}/confirm", response_model=AppointmentDetailOut)
async def confirm_appointment(
    appointment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Master accepts a pending booking."""
    return await _transition(AppointmentAction.CONFIRM, appointment_id, current_user, db, dispatcher)


@router.patch("/{appointment_id}/reject", response_model=AppointmentDetailOut)
async def reject_appointment(
    appointment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Master declines a pending booking."""
    return await _transition(AppointmentAction.REJECT, appointment_id, current_user, db, dispatcher)


@router.patch("/{appointment_id}/cancel", response_model=AppointmentDetailOut)
async def cancel_appointment(
    appointment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Either party cancels a pending or confirmed booking."""
    return await _transition(AppointmentAction.CANCEL, appointment_id, current_user, db, dispatcher)


@router.patch("/{appointment_id}/mark-complete", response_model=AppointmentDetailOut)
async def mark_complete(
    appointment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    return await _transition(AppointmentAction.MARK_COMPLETE, appointment_id, current_user, db, dispatcher)


@router.patch("/{appointment_id}/confirm-complete", response_model=AppointmentDetailOut)
async def confirm_complete(
    appointment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    return await _transition(AppointmentAction.CONFIRM_COMPLETE, appointment_id, current_user, db, dispatcher)


@router.patch("/{appointment_id}/dispute-complete", response_model=AppointmentDetailOut)
async def dispute_complete(
    appointment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    return await _transition(AppointmentAction.DISPUTE_COMPLETE, appointment_id, current_user, db, dispatcher)
