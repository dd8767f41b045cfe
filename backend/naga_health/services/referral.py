# naga_health/services/referral.py
import logging
from datetime import datetime
from typing import Optional, Tuple

from naga_health.models.booking import (
    UNSCHEDULED,
    Booking,
    BookingStatus,
    ClinicalData,
    CompletedBooking,
    DetailedStatus,
    PendingBooking,
    common_fields,
    is_open,
)
from naga_health.services.errors import BookingValidationError, InvalidTransitionError
from naga_health.services.lifecycle import completed_from, describe_state, new_booking_id

logger = logging.getLogger(__name__)

DEFAULT_REFERRAL_DIAGNOSIS = "Referred for specialist evaluation"


def _close_source(source: Booking, target_facility_id: str, clinical: Optional[ClinicalData], now: datetime) -> CompletedBooking:
    if source.status == BookingStatus.COMPLETED:
        if source.referral_to_facility_id:
            raise InvalidTransitionError(source.id, "refer", "already referred out")
        return source.model_copy(
            update={
                "referral_to_facility_id": target_facility_id,
                "diagnosis": source.diagnosis or DEFAULT_REFERRAL_DIAGNOSIS,
            }
        )
    if not is_open(source):
        raise InvalidTransitionError(source.id, "refer", describe_state(source))

    clinical = clinical or ClinicalData()
    diagnosis = (clinical.diagnosis or "").strip() or DEFAULT_REFERRAL_DIAGNOSIS
    return completed_from(source, clinical, diagnosis, now, referral_to_facility_id=target_facility_id)


def build_referral(
    source: Booking,
    target_facility_id: str,
    target_facility_name: str,
    note: str,
    now: datetime,
    clinical: Optional[ClinicalData] = None,
    booking_id: Optional[str] = None,
) -> Tuple[CompletedBooking, PendingBooking]:
    """Return (closed source, new booking at the target facility).

    Neither booking is stored here; the caller swaps both in together.
    """
    note = (note or "").strip()
    if not note:
        raise BookingValidationError("referralNote", "Please provide a referral note.")

    closed = _close_source(source, target_facility_id, clinical, now)

    carried = common_fields(source)
    carried.update(
        id=booking_id or new_booking_id(),
        facility_id=target_facility_id,
        facility_name=target_facility_name,
        date=UNSCHEDULED,
        time_slot=UNSCHEDULED,
        consultation_start_time=None,
        consultation_end_time=None,
        referral_from_facility_id=source.facility_id,
        referral_to_facility_id=None,
        referral_note=note,
        consent_requested=False,
        is_shared_with_network=True,
    )
    successor = PendingBooking(**carried, detailed_status=DetailedStatus.AWAITING_PATIENT_BOOKING)

    logger.info(f"🔁 Referral built: {source.id} ({source.facility_id}) -> {successor.id} ({target_facility_id})")
    return closed, successor
