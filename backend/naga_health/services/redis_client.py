# naga_health/services/redis_client.py
import json
import logging
import os
from typing import List, Optional

import redis
from pydantic import ValidationError

from naga_health.models.booking import Booking, dump_bookings, parse_bookings
from naga_health.models.intake import IntakeData
from naga_health.services.booking_store import BookingStore
from naga_health.services.errors import StorageError

logger = logging.getLogger(__name__)

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# Same keys the browser build used for local storage
BOOKINGS_KEY = "naga_health_emr"
LAST_INTAKE_KEY = "last_naga_intake"


def get_redis() -> redis.Redis:
    return redis.Redis.from_url(REDIS_URL, decode_responses=True)


class BookingRepository:
    """Two JSON documents, each rewritten in full on every change."""

    def __init__(self, client=None):
        self.client = client if client is not None else get_redis()

    def load_bookings(self) -> List[Booking]:
        raw = self.client.get(BOOKINGS_KEY)
        if not raw:
            return []
        try:
            return parse_bookings(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error(f"❌ Stored booking list under '{BOOKINGS_KEY}' is unreadable: {e}")
            raise StorageError(f"Stored booking list is unreadable: {e}") from e

    def save_bookings(self, bookings: List[Booking]) -> None:
        self.client.set(BOOKINGS_KEY, json.dumps(dump_bookings(bookings)))

    def load_last_intake(self) -> Optional[IntakeData]:
        raw = self.client.get(LAST_INTAKE_KEY)
        if not raw:
            return None
        try:
            return IntakeData.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"⚠️ Ignoring unreadable last intake: {e}")
            return None

    def save_last_intake(self, intake: IntakeData) -> None:
        self.client.set(LAST_INTAKE_KEY, json.dumps(intake.to_json_dict()))


_repository: Optional[BookingRepository] = None
_store: Optional[BookingStore] = None


def get_repository() -> BookingRepository:
    global _repository
    if _repository is None:
        _repository = BookingRepository()
    return _repository


def get_booking_store() -> BookingStore:
    """Process-wide store, loaded from redis on first use."""
    global _store
    if _store is None:
        repository = get_repository()
        _store = BookingStore(repository.load_bookings(), save=repository.save_bookings)
        logger.info(f"✅ Loaded {len(_store)} bookings from redis")
    return _store
