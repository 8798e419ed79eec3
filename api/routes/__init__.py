"""API route modules."""

from routes.health_routes import router as health_router
from routes.tutors_routes import router as tutors_router

__all__ = [
    "health_router",
    "tutors_router",
]
