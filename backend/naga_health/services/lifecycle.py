# naga_health/services/lifecycle.py
"""Booking lifecycle transitions.

Each function takes a booking (and whatever the form supplied) and returns the
booking that should replace it. Nothing here touches storage; BookingStore
applies the results. A failed precondition raises and the caller keeps the
old booking.

Approved sub-phases::

    Awaiting Assessment -> Assessment in Progress -> Awaiting Doctor
        -> (In Consultation Call, telemedicine only) -> Discharging -> Completed
"""
import logging
import uuid
from datetime import datetime
from typing import Iterable, Optional

from naga_health.models.booking import (
    ApprovedBooking,
    Booking,
    BookingStatus,
    ClinicalData,
    CompletedBooking,
    ConsultationMode,
    DeclinedBooking,
    DetailedStatus,
    PendingBooking,
    TriageLevel,
    common_fields,
    detailed_status_of,
    is_active,
    is_open,
    patient_key,
)
from naga_health.models.intake import BookingRequest, IntakeData, TriageResult
from naga_health.services.errors import (
    ActiveBookingExistsError,
    BookingValidationError,
    InvalidTransitionError,
)
from naga_health.utils.dates import parse_timestamp

logger = logging.getLogger(__name__)

DEFAULT_TIME_SLOT = "08:00 AM"
TIME_SLOTS = [
    "08:00 AM", "09:00 AM", "10:00 AM", "11:00 AM",
    "01:00 PM", "02:00 PM", "03:00 PM", "04:00 PM",
]


def new_booking_id() -> str:
    return uuid.uuid4().hex[:12]


def to_timestamp(moment: datetime) -> str:
    return moment.isoformat()


def describe_state(booking: Booking) -> str:
    detailed = detailed_status_of(booking)
    if detailed is None:
        return booking.status
    return f"{booking.status} ({detailed.value})"


def _require_text(value: Optional[str], field: str, message: str) -> str:
    text = (value or "").strip()
    if not text:
        raise BookingValidationError(field, message)
    return text


def _require_open(booking: Booking, operation: str) -> None:
    if not is_open(booking):
        raise InvalidTransitionError(booking.id, operation, describe_state(booking))


def _require_phase(booking: Booking, operation: str, status: BookingStatus, phase: DetailedStatus) -> None:
    if booking.status != status or detailed_status_of(booking) != phase:
        raise InvalidTransitionError(booking.id, operation, describe_state(booking))


def find_active_booking(bookings: Iterable[Booking], patient_name: str) -> Optional[Booking]:
    key = patient_key(patient_name)
    for booking in bookings:
        if patient_key(booking.patient_name) == key and is_active(booking):
            return booking
    return None


def ensure_no_active_booking(bookings: Iterable[Booking], patient_name: str, ignore_id: Optional[str] = None) -> None:
    existing = find_active_booking((b for b in bookings if b.id != ignore_id), patient_name)
    if existing is not None:
        raise ActiveBookingExistsError(patient_name, existing.facility_name)


# ---------------------------------------------------------------------------
# Patient side
# ---------------------------------------------------------------------------
def create(
    intake: IntakeData,
    triage: Optional[TriageResult],
    request: BookingRequest,
    facility_name: str,
    today: str,
    booking_id: Optional[str] = None,
) -> PendingBooking:
    """Build a fresh booking from a confirmed intake.

    The one-active-booking check needs the whole collection, so it lives in
    ``ensure_no_active_booking`` and the store runs it first.
    """
    return PendingBooking(
        id=booking_id or new_booking_id(),
        facility_id=request.facility_id,
        facility_name=facility_name,
        date=request.date or intake.preferred_date or today,
        time_slot=request.time_slot or intake.preferred_time_slot or DEFAULT_TIME_SLOT,
        detailed_status=DetailedStatus.AWAITING_ASSESSMENT,
        patient_name=intake.patient_name,
        patient_barangay=intake.barangay,
        patient_birth_date=intake.birth_date,
        patient_sex=intake.sex,
        triage_level=triage.triage_level if triage else TriageLevel.ROUTINE,
        concern=intake.primary_concern,
        is_follow_up=intake.is_follow_up,
        consultation_mode=request.consultation_mode or intake.consultation_mode,
        symptoms=list(intake.symptoms),
        additional_details=intake.additional_details,
        is_shared_with_network=True,
    )


def book_referral(booking: Booking, date: str, time_slot: str) -> PendingBooking:
    """Turn a referral placeholder into a normal pending appointment."""
    if not is_open(booking) or booking.detailed_status != DetailedStatus.AWAITING_PATIENT_BOOKING:
        raise InvalidTransitionError(booking.id, "book referral for", describe_state(booking))
    date = _require_text(date, "date", "Please choose a date for your referral appointment.")
    time_slot = _require_text(time_slot, "timeSlot", "Please choose a time slot for your referral appointment.")
    return PendingBooking(
        **{
            **common_fields(booking),
            "date": date,
            "time_slot": time_slot,
            "consultation_mode": ConsultationMode.IN_PERSON,
        },
        detailed_status=DetailedStatus.AWAITING_ASSESSMENT,
    )


# ---------------------------------------------------------------------------
# Provider side
# ---------------------------------------------------------------------------
def approve(booking: Booking) -> ApprovedBooking:
    if booking.status != BookingStatus.PENDING or booking.detailed_status == DetailedStatus.AWAITING_PATIENT_BOOKING:
        raise InvalidTransitionError(booking.id, "approve", describe_state(booking))
    return ApprovedBooking(**common_fields(booking), detailed_status=DetailedStatus.AWAITING_ASSESSMENT)


def attend(booking: Booking, now: datetime) -> Booking:
    """Start the assessment and its timer.

    Once the assessment has started, calling it again leaves the booking as
    is. The first recorded start time is kept.
    """
    if booking.status != BookingStatus.APPROVED:
        raise InvalidTransitionError(booking.id, "attend to", describe_state(booking))
    if booking.detailed_status != DetailedStatus.AWAITING_ASSESSMENT:
        return booking
    return booking.model_copy(
        update={
            "consultation_start_time": booking.consultation_start_time or to_timestamp(now),
            "detailed_status": DetailedStatus.ASSESSMENT_IN_PROGRESS,
        }
    )


def send_to_doctor(booking: Booking) -> Booking:
    _require_phase(booking, "send to doctor", BookingStatus.APPROVED, DetailedStatus.ASSESSMENT_IN_PROGRESS)
    return booking.model_copy(update={"detailed_status": DetailedStatus.AWAITING_DOCTOR})


def start_telemedicine_call(booking: Booking) -> Booking:
    _require_phase(booking, "start a call for", BookingStatus.APPROVED, DetailedStatus.AWAITING_DOCTOR)
    if booking.consultation_mode != ConsultationMode.TELEMEDICINE:
        raise InvalidTransitionError(booking.id, "start a call for", "an in-person consultation")
    return booking.model_copy(update={"detailed_status": DetailedStatus.IN_CONSULTATION_CALL})


def end_call(booking: Booking) -> Booking:
    _require_phase(booking, "end the call for", BookingStatus.APPROVED, DetailedStatus.IN_CONSULTATION_CALL)
    return booking.model_copy(update={"detailed_status": DetailedStatus.DISCHARGING})


def _end_time(booking: Booking, now: datetime) -> str:
    # start <= end even if the clock moved backwards
    if booking.consultation_start_time:
        started = parse_timestamp(booking.consultation_start_time)
        if started > parse_timestamp(now.isoformat()):
            return booking.consultation_start_time
    return to_timestamp(now)


def completed_from(booking: Booking, clinical: ClinicalData, diagnosis: str, now: datetime, **extra) -> CompletedBooking:
    return CompletedBooking(
        **common_fields(booking),
        vitals=clinical.vitals,
        pe_findings=clinical.pe_findings,
        diagnosis=diagnosis,
        treatment=clinical.treatment,
        prescriptions=[p for p in clinical.prescriptions if p.drug_name.strip()],
        requested_labs=clinical.requested_labs,
        non_pharma=clinical.non_pharma,
        follow_up_date=clinical.follow_up_date,
        completion_date=now.date().isoformat(),
    ).model_copy(update={"consultation_end_time": _end_time(booking, now), **extra})


def complete(booking: Booking, clinical: ClinicalData, now: datetime) -> CompletedBooking:
    _require_open(booking, "complete")
    diagnosis = _require_text(clinical.diagnosis, "diagnosis", "Please enter a diagnosis before completing.")
    return completed_from(booking, clinical, diagnosis, now)


def reschedule(booking: Booking, date: str, time_slot: str) -> PendingBooking:
    """Any open booking goes back to Pending / Awaiting Assessment with the new slot."""
    _require_open(booking, "reschedule")
    date = _require_text(date, "date", "Please choose a new date.")
    time_slot = _require_text(time_slot, "timeSlot", "Please choose a new time slot.")
    return PendingBooking(
        **{**common_fields(booking), "date": date, "time_slot": time_slot},
        detailed_status=DetailedStatus.AWAITING_ASSESSMENT,
    )


def deny(booking: Booking, reason: str, instructions: Optional[str] = None) -> DeclinedBooking:
    _require_open(booking, "decline")
    reason = _require_text(reason, "denialReason", "Please provide a reason for declining.")
    return DeclinedBooking(
        **common_fields(booking),
        denial_reason=reason,
        denial_instructions=(instructions or "").strip() or None,
    )
