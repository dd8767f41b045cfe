# naga_health/main.py
import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from naga_health.database import Base, engine
from naga_health.endpoints import (
    bookings_router,
    facilities_router,
    health_router,
    lgu_router,
    patients_router,
    provider_router,
    triage_router,
)
from naga_health.models import triage  # noqa: F401  registers audit tables with Base
from naga_health.services.facility_service import FACILITIES

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Naga Health Navigator API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    # Create audit tables
    Base.metadata.create_all(bind=engine)
    logger.info(f"✅ Naga Health API ready with {len(FACILITIES)} facilities")


# Include HTTP routers
app.include_router(health_router)
app.include_router(triage_router)
app.include_router(facilities_router)
app.include_router(bookings_router)
app.include_router(patients_router)
app.include_router(provider_router)
app.include_router(lgu_router)


@app.get("/")
def root():
    return {"message": "API is running"}
