"""Slot availability for a master on a given day.

The candidate grid is every start time, stepped at SLOT_STEP_MINUTES from
the start of the master's working window, at which a service of the given
duration still ends inside the window. Each candidate is marked unavailable
when it overlaps a pending or confirmed appointment of the master.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Iterable, Sequence
from uuid import UUID

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import ServiceNotFound, ServiceOwnershipMismatch, ValidationError
from app.models.appointment import Appointment, BLOCKING_STATUSES
from app.models.service import Service
from app.schemas.appointment import TimeSlot
from app.schemas.master import WorkingWindow
from app.services.accounts import MasterAccount, load_master
from app.utils.calendar import combine, format_hhmm, parse_date

logger = logging.getLogger(__name__)

Interval = tuple[datetime, datetime]


def intervals_overlap(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Half-open intervals [a) and [b) overlap iff start_a < end_b and end_a > start_b."""
    return start_a < end_b and end_a > start_b


def window_bounds(day: date, window: WorkingWindow) -> Interval:
    """Working window as datetimes; an end of 24:00 is the next day's midnight."""
    midnight = combine(day, time.min)
    return midnight + window.start_offset, midnight + window.end_offset


def candidate_starts(
    day: date,
    window: WorkingWindow,
    duration_minutes: int,
    step_minutes: int,
) -> list[datetime]:
    """Start times from the window start, while start + duration <= window end."""
    window_start, window_end = window_bounds(day, window)
    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=step_minutes)

    starts = []
    current = window_start
    while current + duration <= window_end:
        starts.append(current)
        current += step
    return starts


def build_slot_grid(
    day: date,
    window: WorkingWindow,
    duration_minutes: int,
    busy: Iterable[Interval],
    step_minutes: int | None = None,
) -> list[TimeSlot]:
    """Pure slot computation over already-fetched busy intervals."""
    if duration_minutes <= 0:
        raise ValidationError("Service duration must be positive")
    step_minutes = step_minutes or settings.SLOT_STEP_MINUTES
    busy = list(busy)
    duration = timedelta(minutes=duration_minutes)

    slots = []
    for start in candidate_starts(day, window, duration_minutes, step_minutes):
        end = start + duration
        taken = any(intervals_overlap(b_start, b_end, start, end) for b_start, b_end in busy)
        slots.append(TimeSlot(time=format_hhmm(start), available=not taken))
    return slots


async def fetch_busy_intervals(
    db: AsyncSession,
    master_id: UUID,
    range_start: datetime,
    range_end: datetime,
) -> Sequence[Interval]:
    """Intervals of the master's pending/confirmed appointments touching the range."""
    result = await db.execute(
        select(Appointment.start_time, Appointment.end_time).where(
            and_(
                Appointment.master_id == master_id,
                Appointment.status.in_(BLOCKING_STATUSES),
                Appointment.start_time < range_end,
                Appointment.end_time > range_start,
            )
        )
    )
    return [(row.start_time, row.end_time) for row in result.all()]


async def compute_slots(
    db: AsyncSession,
    master_id: UUID,
    day: date,
    duration_minutes: int,
) -> list[TimeSlot]:
    """Slots for a service of duration_minutes with this master on day.

    Returns [] when the day is not in the master's working dates.
    Raises MasterNotConfigured if the master is missing or has no profile.
    """
    if duration_minutes <= 0:
        raise ValidationError("Service duration must be positive")

    master = await load_master(db, master_id)
    return await master_day_slots(db, master, day, duration_minutes)


async def master_day_slots(
    db: AsyncSession,
    master: MasterAccount,
    day: date,
    duration_minutes: int,
) -> list[TimeSlot]:
    window = master.working_dates.get(day)
    if window is None:
        return []

    window_start, window_end = window_bounds(day, window)
    busy = await fetch_busy_intervals(db, master.id, window_start, window_end)
    return build_slot_grid(day, window, duration_minutes, busy)


async def get_available_slots(
    db: AsyncSession,
    master_id: UUID,
    date_str: str,
    service_id: UUID,
) -> list[TimeSlot]:
    """Slots for (master, date, service), using the service's duration.

    The master is resolved first, so an unknown master is MasterNotConfigured
    (404) whatever service is passed.
    """
    day = parse_date(date_str)
    master = await load_master(db, master_id)

    service = await db.get(Service, service_id)
    if not service or not service.is_active:
        raise ServiceNotFound()
    if service.master_id != master_id:
        raise ServiceOwnershipMismatch()

    slots = await master_day_slots(db, master, day, service.duration_minutes)
    logger.debug(
        "Computed %d slots for master %s on %s (service %s, %d min)",
        len(slots), master_id, day, service_id, service.duration_minutes,
    )
    return slots
