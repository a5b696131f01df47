"""Reviews left by clients for completed appointments."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AppointmentNotFound, ReviewNotAllowed
from app.models.appointment import AppointmentStatus
from app.models.review import Review
from app.models.user import User
from app.schemas.master import RatingSummary
from app.services.booking import get_appointment

logger = logging.getLogger(__name__)

MASTER_REVIEWS_LIMIT = 50


async def create_review(
    db: AsyncSession,
    client: User,
    appointment_id: UUID,
    rating: int,
    comment: Optional[str] = None,
) -> Review:
    """Leave a review. Only the client of a completed appointment may, and only once."""
    appointment = await get_appointment(db, appointment_id)
    if appointment is None:
        raise AppointmentNotFound()
    if appointment.client_id != client.id:
        raise ReviewNotAllowed("Only the client of this appointment can review it")
    if appointment.status != AppointmentStatus.COMPLETED:
        raise ReviewNotAllowed("Only completed appointments can be reviewed")
    if appointment.review is not None:
        raise ReviewNotAllowed("Review already left for this appointment")

    review = Review(
        master_id=appointment.master_id,
        client_id=client.id,
        appointment_id=appointment.id,
        rating=rating,
        comment=comment,
    )
    db.add(review)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ReviewNotAllowed("Review already left for this appointment") from e

    result = await db.execute(
        select(Review).where(Review.id == review.id).execution_options(populate_existing=True)
    )
    review = result.scalar_one()

    logger.info("Review %s left for master %s (rating %d)", review.id, review.master_id, rating)
    return review


async def get_master_reviews(db: AsyncSession, master_id: UUID, limit: int = MASTER_REVIEWS_LIMIT) -> list[Review]:
    result = await db.execute(
        select(Review)
        .where(Review.master_id == master_id)
        .order_by(Review.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_master_rating(db: AsyncSession, master_id: UUID) -> RatingSummary:
    result = await db.execute(
        select(func.avg(Review.rating), func.count(Review.id)).where(Review.master_id == master_id)
    )
    average, count = result.one()
    return RatingSummary(average=round(float(average), 1) if average is not None else 0.0, count=count)


async def can_leave_review(db: AsyncSession, client: User, appointment_id: UUID) -> bool:
    appointment = await get_appointment(db, appointment_id)
    if appointment is None:
        raise AppointmentNotFound()
    return (
        appointment.client_id == client.id
        and appointment.status == AppointmentStatus.COMPLETED
        and appointment.review is None
    )
