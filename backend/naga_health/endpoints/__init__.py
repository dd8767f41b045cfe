# naga_health/endpoints/__init__.py

# Import routers from each endpoint file
from .bookings import router as bookings_router
from .facilities import router as facilities_router
from .health import router as health_router
from .lgu import router as lgu_router
from .patients import router as patients_router
from .provider import router as provider_router
from .triage import router as triage_router

__all__ = [
    "bookings_router",
    "facilities_router",
    "health_router",
    "lgu_router",
    "patients_router",
    "provider_router",
    "triage_router",
]
