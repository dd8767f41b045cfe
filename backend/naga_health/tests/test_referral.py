# tests/test_referral.py
from datetime import datetime, timezone

import pytest

from naga_health.models.booking import UNSCHEDULED, ClinicalData, DetailedStatus
from naga_health.services import lifecycle
from naga_health.services.errors import BookingValidationError, InvalidTransitionError
from naga_health.services.referral import DEFAULT_REFERRAL_DIAGNOSIS, build_referral

NOW = datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def approved(make_intake, request_for):
    booking = lifecycle.create(
        make_intake(), None, request_for(), "Barangay Health Station - Abella", today="2024-06-01", booking_id="b1"
    )
    return lifecycle.attend(lifecycle.approve(booking), NOW)


def test_referral_from_completed_consult(approved):
    done = lifecycle.complete(approved, ClinicalData(diagnosis="J06.9 - Acute URTI"), NOW)

    closed, successor = build_referral(done, "cho-1", "City Health Office I", "needs specialist", NOW, booking_id="r1")

    assert closed.status == "Completed"
    assert closed.diagnosis == "J06.9 - Acute URTI"
    assert closed.referral_to_facility_id == "cho-1"

    assert successor.id == "r1"
    assert successor.status == "Pending"
    assert successor.detailed_status == DetailedStatus.AWAITING_PATIENT_BOOKING
    assert successor.facility_id == "cho-1"
    assert successor.facility_name == "City Health Office I"
    assert (successor.date, successor.time_slot) == (UNSCHEDULED, UNSCHEDULED)
    assert successor.referral_from_facility_id == "bhs-abella"
    assert successor.referral_note == "needs specialist"
    assert successor.consent_requested is False
    assert successor.consultation_start_time is None
    assert successor.patient_name == done.patient_name
    assert successor.concern == done.concern


def test_referral_closes_open_source(approved):
    closed, successor = build_referral(approved, "ncgh-1", "Naga City General Hospital", "possible appendicitis", NOW)

    assert closed.status == "Completed"
    assert closed.diagnosis == DEFAULT_REFERRAL_DIAGNOSIS
    assert closed.referral_to_facility_id == "ncgh-1"
    assert closed.consultation_end_time == NOW.isoformat()
    assert successor.referral_from_facility_id == "bhs-abella"


def test_referral_keeps_supplied_clinical_notes(approved):
    clinical = ClinicalData(diagnosis="K35.8 - Acute appendicitis", treatment="NPO")
    closed, _ = build_referral(approved, "ncgh-1", "Naga City General Hospital", "surgical consult", NOW, clinical=clinical)
    assert closed.diagnosis == "K35.8 - Acute appendicitis"
    assert closed.treatment == "NPO"


def test_referral_requires_note(approved):
    with pytest.raises(BookingValidationError) as exc:
        build_referral(approved, "cho-1", "City Health Office I", "   ", NOW)
    assert exc.value.field == "referralNote"


def test_referral_rejects_declined(approved):
    declined = lifecycle.deny(approved, "Out of stock")
    with pytest.raises(InvalidTransitionError):
        build_referral(declined, "cho-1", "City Health Office I", "needs specialist", NOW)


def test_source_referred_only_once(approved):
    closed, _ = build_referral(approved, "cho-1", "City Health Office I", "needs specialist", NOW)
    with pytest.raises(InvalidTransitionError):
        build_referral(closed, "cho-2", "City Health Office II", "second opinion", NOW)
