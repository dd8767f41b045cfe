# tests/test_projections.py
import pytest

from naga_health.models.booking import ClinicalData
from naga_health.services import projections
from naga_health.services.facility_service import get_facility


@pytest.fixture
def populated(store, clock, make_intake, request_for):
    """Three patients at Abella: one waiting, one in progress, one seen and referred."""
    abella = get_facility("bhs-abella")

    waiting = store.create(make_intake(firstName="Ana"), None, request_for(), abella)

    seen = store.create(make_intake(firstName="Ben"), None, request_for(), abella)
    store.approve(seen.id)

    done = store.create(make_intake(firstName="Carla", barangay="Tinago"), None, request_for(), abella)
    store.approve(done.id)
    store.attend(done.id)
    clock.advance(30)
    store.complete(done.id, ClinicalData(diagnosis="J06.9 - Acute URTI"))
    _, referral = store.refer(done.id, get_facility("cho-1"), "needs specialist")

    return {"waiting": waiting, "seen": seen, "done": done, "referral": referral}


def test_facility_queue_counts(store, populated):
    queue = projections.facility_queue(store.all(), "bhs-abella")

    assert {b.id for b in queue.entries} == {populated["waiting"].id, populated["seen"].id}
    assert queue.pending_count == 1
    assert queue.active_count == 1
    assert queue.completed_count == 1


def test_unbooked_referral_not_in_target_queue(store, populated):
    queue = projections.facility_queue(store.all(), "cho-1")
    assert queue.entries == []
    assert queue.pending_count == 0


def test_patient_dashboard_views(store, populated):
    bookings = store.all()

    assert projections.active_booking_for_patient(bookings, "Ana Dela Cruz").id == populated["waiting"].id
    assert projections.active_booking_for_patient(bookings, "Carla Dela Cruz") is None
    assert [b.id for b in projections.pending_referrals(bookings, "carla dela cruz")] == [populated["referral"].id]
    assert [b.id for b in projections.emr_history(bookings, "Carla Dela Cruz")] == [populated["done"].id]


def test_global_active_bookings(store, populated):
    ids = {b.id for b in projections.global_active_bookings(store.all())}
    assert ids == {populated["waiting"].id, populated["seen"].id, populated["referral"].id}


def test_barangay_aggregate(store, populated):
    assert projections.barangay_diagnosis_aggregate(store.all()) == {"Tinago": {"J06.9": 1}}


def test_average_consultation_minutes(store, populated):
    assert projections.average_consultation_minutes(store.all(), "bhs-abella") == 30.0
    assert projections.average_consultation_minutes(store.all(), "cho-1") is None


def test_average_handles_mixed_timestamp_formats(store, populated):
    done = store.get(populated["done"].id)
    browser = done.model_copy(
        update={"consultation_start_time": "2024-06-01T09:00:00.000Z", "consultation_end_time": "2024-06-01T09:20:00"}
    )
    mixed = done.model_copy(
        update={
            "id": "legacy",
            "consultation_start_time": "2024-06-01T10:00:00",
            "consultation_end_time": "2024-06-01T10:40:00.000Z",
        }
    )
    assert projections.average_consultation_minutes([browser, mixed], "bhs-abella") == 30.0


@pytest.mark.parametrize(
    "diagnosis, expected",
    [
        ("J06.9 - Acute URTI", "J06.9"),
        ("A09", "A09"),
        ("  - no code", "Uncategorized"),
        (None, "Uncategorized"),
    ],
)
def test_diagnosis_prefix(diagnosis, expected):
    assert projections.diagnosis_prefix(diagnosis) == expected


def test_top_diagnoses_and_alert_level(store, clock, make_intake, request_for):
    abella = get_facility("bhs-abella")
    codes = ["J06.9 - URTI"] * 3 + ["A09 - Diarrhea"] * 2 + ["I10 - Hypertension"]
    for i, code in enumerate(codes):
        booking = store.create(make_intake(firstName=f"Patient{i}"), None, request_for(), abella)
        store.complete(booking.id, ClinicalData(diagnosis=code))

    bookings = store.all()
    assert projections.top_diagnoses(bookings, limit=2) == [("J06.9", 3), ("A09", 2)]
    assert projections.city_alert_level(bookings) == "Normal"
