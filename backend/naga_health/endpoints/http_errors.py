# naga_health/endpoints/http_errors.py
import logging
from contextlib import contextmanager

from fastapi import HTTPException

from naga_health.services.errors import (
    ActiveBookingExistsError,
    BookingNotFoundError,
    BookingValidationError,
    InvalidTransitionError,
    StorageError,
    UnknownFacilityError,
)

logger = logging.getLogger(__name__)


@contextmanager
def booking_errors():
    """Turn booking workflow exceptions into HTTP errors."""
    try:
        yield
    except (BookingNotFoundError, UnknownFacilityError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except BookingValidationError as e:
        logger.info(f"⚠️ Rejected request ({e.field}): {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except (InvalidTransitionError, ActiveBookingExistsError) as e:
        logger.info(f"⚠️ Conflict: {e}")
        raise HTTPException(status_code=409, detail=str(e))
    except StorageError as e:
        logger.error(f"❌ Storage unavailable: {e}")
        raise HTTPException(status_code=503, detail="Booking storage is unavailable. Please try again.")
