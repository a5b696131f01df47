from fastapi import APIRouter
from app.api.v1.endpoints import auth, master, public, slots, appointments, reviews

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(master.router, prefix="/master", tags=["master"])
api_router.include_router(public.router, prefix="/public", tags=["public"])
api_router.include_router(slots.router, prefix="/slots", tags=["slots"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["appointments"])
api_router.include_router(reviews.router, prefix="/reviews", tags=["reviews"])
