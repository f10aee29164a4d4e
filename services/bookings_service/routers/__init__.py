"""Routers package."""

from services.bookings_service.routers.bookings import router as bookings_router
from services.bookings_service.routers.trainers import router as trainers_router

__all__ = ["bookings_router", "trainers_router"]
