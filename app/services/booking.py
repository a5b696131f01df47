"""Booking conflict resolver.

create_appointment is the only place appointments are inserted. The
overlap check and the insert run as one unit per master:

1. an in-process per-master lock serializes bookings handled by this worker;
2. the master's user row is read with SELECT ... FOR UPDATE, which serializes
   bookings across workers on PostgreSQL (SQLite ignores it and relies on 1);
3. on PostgreSQL an exclusion constraint on (master_id, [start_time, end_time))
   over pending/confirmed rows rejects anything that slips through, and the
   resulting IntegrityError is reported as SlotTaken.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy import select, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    BookingError,
    InvalidDateOrTime,
    ServiceNotFound,
    ServiceOwnershipMismatch,
    SlotTaken,
    ValidationError,
)
from app.core.locks import master_booking_locks
from app.models.appointment import Appointment, AppointmentStatus, BLOCKING_STATUSES
from app.models.service import Service, ServiceLocationType
from app.models.user import User
from app.services.accounts import load_master
from app.services.availability import window_bounds
from app.services.notification_service import NotificationDispatcher, booking_events, publish_events
from app.utils.calendar import combine, parse_date, parse_hhmm

logger = logging.getLogger(__name__)


async def find_overlapping_appointment(
    db: AsyncSession,
    master_id: UUID,
    start_time: datetime,
    end_time: datetime,
) -> Optional[Appointment]:
    """First pending/confirmed appointment of the master overlapping [start_time, end_time)."""
    result = await db.execute(
        select(Appointment)
        .where(
            and_(
                Appointment.master_id == master_id,
                Appointment.status.in_(BLOCKING_STATUSES),
                Appointment.start_time < end_time,
                Appointment.end_time > start_time,
            )
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_appointment(
    db: AsyncSession,
    appointment_id: UUID,
    for_update: bool = False,
) -> Optional[Appointment]:
    """Load an appointment with its relations, bypassing stale identity-map state."""
    query = (
        select(Appointment)
        .where(Appointment.id == appointment_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalar_one_or_none()


def _check_location(service: Service, location_type: Optional[str]) -> Optional[str]:
    if location_type is None:
        if service.location_type == ServiceLocationType.BOTH.value:
            return ServiceLocationType.AT_MASTER.value
        return service.location_type
    if service.location_type != ServiceLocationType.BOTH.value and location_type != service.location_type:
        raise ValidationError(f"This service is only offered {service.location_type}")
    return location_type


async def create_appointment(
    db: AsyncSession,
    client: User,
    master_id: UUID,
    service_id: UUID,
    date_str: str,
    time_str: str,
    dispatcher: NotificationDispatcher,
    comment: Optional[str] = None,
    location_type: Optional[str] = None,
    address: Optional[dict] = None,
) -> Appointment:
    """Admit a new pending appointment only if it overlaps nothing the master holds.

    Raises ServiceNotFound, ServiceOwnershipMismatch, InvalidDateOrTime,
    MasterNotConfigured or SlotTaken. Nothing is written when any of them is raised.
    """
    client_id = client.id
    day = parse_date(date_str)
    time_of_day = parse_hhmm(time_str)
    if client_id == master_id:
        raise ValidationError("You cannot book an appointment with yourself")

    async with master_booking_locks.hold(master_id):
        try:
            service = await db.get(Service, service_id)
            if not service or not service.is_active:
                raise ServiceNotFound()
            if service.master_id != master_id:
                raise ServiceOwnershipMismatch()
            location_type = _check_location(service, location_type)

            master = await load_master(db, master_id, for_update=True)

            start_time = combine(day, time_of_day)
            window = master.working_dates.get(day)
            if window is None:
                raise InvalidDateOrTime(f"Master does not work on {day.isoformat()}")
            window_start, window_end = window_bounds(day, window)
            service_end = start_time + timedelta(minutes=service.duration_minutes)
            if start_time < window_start or service_end > window_end:
                raise InvalidDateOrTime(
                    f"Requested time is outside working hours {window.start}-{window.end}"
                )

            end_time = service_end + timedelta(minutes=master.gap_minutes)

            conflict = await find_overlapping_appointment(db, master_id, start_time, end_time)
            if conflict:
                logger.warning(
                    "Slot taken: master %s %s-%s overlaps appointment %s",
                    master_id, start_time, end_time, conflict.id,
                )
                raise SlotTaken()

            appointment = Appointment(
                master_id=master_id,
                client_id=client_id,
                service_id=service.id,
                start_time=start_time,
                end_time=end_time,
                status=AppointmentStatus.PENDING,
                client_comment=comment,
                location_type=location_type,
                address=address,
            )
            db.add(appointment)
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.warning("Booking for master %s rejected by database constraint: %s", master_id, e.orig)
            raise SlotTaken() from e
        except BookingError:
            # Refused before anything was added. Commit ends the read transaction
            # and the master row lock without expiring the caller's objects.
            await db.commit()
            raise
        except Exception:
            await db.rollback()
            raise

    appointment = await get_appointment(db, appointment.id)
    logger.info(
        "Appointment %s created: master=%s client=%s %s-%s",
        appointment.id, master_id, client_id, appointment.start_time, appointment.end_time,
    )

    await publish_events(dispatcher, booking_events(appointment))
    return appointment


async def list_appointments(db: AsyncSession, user_id: UUID, as_master: bool) -> list[Appointment]:
    """Appointments where the user is the master (or the client), newest start first."""
    field = Appointment.master_id if as_master else Appointment.client_id
    result = await db.execute(
        select(Appointment).where(field == user_id).order_by(Appointment.start_time.desc())
    )
    return list(result.scalars().all())
