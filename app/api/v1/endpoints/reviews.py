"""Review endpoints."""

from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_user
from app.models.user import User
from app.schemas.review import CanLeaveReviewOut, MasterReviewsOut, ReviewCreate, ReviewOut
from app.services import review_service

router = APIRouter()


@router.post("", response_model=ReviewOut, status_code=201)
async def create_review(
    data: ReviewCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await review_service.create_review(db, current_user, data.appointment_id, data.rating, data.comment)


@router.get("/master/{master_id}", response_model=MasterReviewsOut)
async def get_master_reviews(master_id: UUID, db: AsyncSession = Depends(get_db)):
    reviews = await review_service.get_master_reviews(db, master_id)
    rating = await review_service.get_master_rating(db, master_id)
    return MasterReviewsOut(reviews=[ReviewOut.model_validate(r) for r in reviews], rating=rating)


@router.get("/can-leave/{appointment_id}", response_model=CanLeaveReviewOut)
async def can_leave_review(
    appointment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return CanLeaveReviewOut(
        can_leave_review=await review_service.can_leave_review(db, current_user, appointment_id)
    )
