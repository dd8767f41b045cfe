# naga_health/services/projections.py
"""Read-only views derived from the booking collection on every call."""
from collections import Counter
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel

from naga_health.models.booking import (
    Booking,
    BookingStatus,
    DetailedStatus,
    detailed_status_of,
    patient_key,
)
from naga_health.services.lifecycle import find_active_booking
from naga_health.utils.dates import parse_timestamp

UNKNOWN_BARANGAY = "Unknown"
UNCATEGORIZED = "Uncategorized"
MODERATE_ALERT_THRESHOLD = 50


class FacilityQueue(BaseModel):
    facility_id: str
    entries: List[Booking]
    pending_count: int
    active_count: int
    completed_count: int


def _for_patient(bookings: Iterable[Booking], patient_name: str) -> List[Booking]:
    key = patient_key(patient_name)
    return [b for b in bookings if patient_key(b.patient_name) == key]


def _awaiting_patient(booking: Booking) -> bool:
    return detailed_status_of(booking) == DetailedStatus.AWAITING_PATIENT_BOOKING


def active_booking_for_patient(bookings: Iterable[Booking], patient_name: str) -> Optional[Booking]:
    return find_active_booking(bookings, patient_name)


def global_active_bookings(bookings: Iterable[Booking]) -> List[Booking]:
    return [b for b in bookings if b.status not in (BookingStatus.COMPLETED, BookingStatus.DECLINED)]


def pending_referrals(bookings: Iterable[Booking], patient_name: str) -> List[Booking]:
    return [b for b in _for_patient(bookings, patient_name) if _awaiting_patient(b)]


def emr_history(bookings: Iterable[Booking], patient_name: str) -> List[Booking]:
    return [b for b in _for_patient(bookings, patient_name) if b.status == BookingStatus.COMPLETED]


def facility_queue(bookings: Iterable[Booking], facility_id: str) -> FacilityQueue:
    at_facility = [b for b in bookings if b.facility_id == facility_id]
    entries = [
        b for b in at_facility
        if b.status not in (BookingStatus.COMPLETED, BookingStatus.DECLINED) and not _awaiting_patient(b)
    ]
    return FacilityQueue(
        facility_id=facility_id,
        entries=entries,
        pending_count=sum(1 for b in entries if b.status == BookingStatus.PENDING),
        active_count=sum(1 for b in entries if b.status == BookingStatus.APPROVED),
        completed_count=sum(1 for b in at_facility if b.status == BookingStatus.COMPLETED),
    )


# -------------------------------
# Surveillance (LGU portal)
# -------------------------------
def diagnosis_prefix(diagnosis: Optional[str]) -> str:
    """'J06.9 - Acute URTI' -> 'J06.9'."""
    prefix = (diagnosis or "").split("-")[0].strip()
    return prefix or UNCATEGORIZED


def completed_consults(bookings: Iterable[Booking]) -> List[Booking]:
    return [b for b in bookings if b.status == BookingStatus.COMPLETED and b.diagnosis]


def barangay_diagnosis_aggregate(bookings: Iterable[Booking]) -> Dict[str, Dict[str, int]]:
    data: Dict[str, Dict[str, int]] = {}
    for b in completed_consults(bookings):
        brgy = b.patient_barangay or UNKNOWN_BARANGAY
        diag = diagnosis_prefix(b.diagnosis)
        data.setdefault(brgy, {})
        data[brgy][diag] = data[brgy].get(diag, 0) + 1
    return {brgy: data[brgy] for brgy in sorted(data)}


def top_diagnoses(bookings: Iterable[Booking], limit: int = 5) -> List[Tuple[str, int]]:
    counts = Counter(diagnosis_prefix(b.diagnosis) for b in completed_consults(bookings))
    return sorted(counts.items(), key=lambda x: x[1], reverse=True)[:limit]


def city_alert_level(bookings: Iterable[Booking]) -> str:
    return "Moderate" if len(completed_consults(bookings)) > MODERATE_ALERT_THRESHOLD else "Normal"


def average_consultation_minutes(bookings: Iterable[Booking], facility_id: Optional[str] = None) -> Optional[float]:
    durations = []
    for b in bookings:
        if b.status != BookingStatus.COMPLETED or (facility_id and b.facility_id != facility_id):
            continue
        if not (b.consultation_start_time and b.consultation_end_time):
            continue
        started = parse_timestamp(b.consultation_start_time)
        ended = parse_timestamp(b.consultation_end_time)
        durations.append((ended - started).total_seconds() / 60)
    if not durations:
        return None
    return round(sum(durations) / len(durations), 1)
