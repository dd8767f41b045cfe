# tests/test_redis_client.py
import json

import pytest

from naga_health.models.booking import ClinicalData
from naga_health.services.booking_store import BookingStore
from naga_health.services.errors import StorageError
from naga_health.services.facility_service import get_facility
from naga_health.services.redis_client import BOOKINGS_KEY, LAST_INTAKE_KEY


def test_empty_redis_has_no_bookings(repository):
    assert repository.load_bookings() == []
    assert repository.load_last_intake() is None


def test_bookings_survive_reload(repository, fake_redis, clock, make_intake, request_for):
    store = BookingStore(save=repository.save_bookings, clock=clock)
    booking = store.create(make_intake(), None, request_for(), get_facility("bhs-abella"))
    store.complete(booking.id, ClinicalData(diagnosis="J06.9 - Acute URTI"))

    stored = json.loads(fake_redis.data[BOOKINGS_KEY])
    assert stored[0]["status"] == "Completed"
    assert stored[0]["patientName"] == "Juan Dela Cruz"
    assert "detailedStatus" not in stored[0]

    reloaded = BookingStore(repository.load_bookings(), clock=clock)
    assert reloaded.get(booking.id).diagnosis == "J06.9 - Acute URTI"


def test_unreadable_bookings_raise(repository, fake_redis):
    fake_redis.data[BOOKINGS_KEY] = json.dumps([{"id": "x", "status": "Lost"}])
    with pytest.raises(StorageError):
        repository.load_bookings()


def test_last_intake_round_trip(repository, fake_redis, make_intake):
    repository.save_last_intake(make_intake(philHealthPIN="12-345678901-2"))

    assert json.loads(fake_redis.data[LAST_INTAKE_KEY])["philHealthPIN"] == "12-345678901-2"
    assert repository.load_last_intake().patient_name == "Juan Dela Cruz"


def test_bad_last_intake_is_ignored(repository, fake_redis):
    fake_redis.data[LAST_INTAKE_KEY] = "{not json"
    assert repository.load_last_intake() is None
