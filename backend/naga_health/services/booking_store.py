# naga_health/services/booking_store.py
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from naga_health.models.booking import Booking, ClinicalData, CompletedBooking, PendingBooking
from naga_health.models.facility import Facility
from naga_health.models.intake import BookingRequest, IntakeData, TriageResult
from naga_health.services import lifecycle
from naga_health.services.errors import BookingNotFoundError, StorageError
from naga_health.services.referral import build_referral

logger = logging.getLogger(__name__)

SaveCallback = Callable[[List[Booking]], None]
Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookingStore:
    """Owns the booking collection.

    Every mutation builds a new list, swaps it in and hands it to ``save``.
    If saving fails the previous list is restored, so readers never see a
    half-applied change.
    """

    def __init__(self, bookings: Optional[List[Booking]] = None, save: Optional[SaveCallback] = None, clock: Optional[Clock] = None):
        self._bookings: List[Booking] = list(bookings or [])
        self._save = save
        self._clock = clock or _utcnow

    # ------------------------------- Reads -------------------------------
    def all(self) -> List[Booking]:
        return list(self._bookings)

    def get(self, booking_id: str) -> Booking:
        for booking in self._bookings:
            if booking.id == booking_id:
                return booking
        raise BookingNotFoundError(booking_id)

    def __len__(self) -> int:
        return len(self._bookings)

    # ------------------------------- Internals -------------------------------
    def _commit(self, bookings: List[Booking]) -> None:
        previous = self._bookings
        self._bookings = bookings
        if self._save is None:
            return
        try:
            self._save(list(bookings))
        except Exception as e:
            self._bookings = previous
            logger.error(f"❌ Failed to persist bookings, change rolled back: {e}")
            raise StorageError(str(e)) from e

    def _replace(self, booking_id: str, transition: Callable[[Booking], Booking]) -> Booking:
        current = self.get(booking_id)
        updated = transition(current)
        if updated is current:
            return current
        self._commit([updated if b.id == booking_id else b for b in self._bookings])
        logger.info(f"📝 Booking {booking_id}: {lifecycle.describe_state(current)} -> {lifecycle.describe_state(updated)}")
        return updated

    def _today(self) -> str:
        return self._clock().date().isoformat()

    # ------------------------------- Patient operations -------------------------------
    def create(self, intake: IntakeData, triage: Optional[TriageResult], request: BookingRequest, facility: Facility) -> PendingBooking:
        lifecycle.ensure_no_active_booking(self._bookings, intake.patient_name)
        booking = lifecycle.create(intake, triage, request, facility.name, today=self._today())
        self._commit([booking] + self._bookings)
        logger.info(f"✅ Booking {booking.id} created for {booking.patient_name} at {booking.facility_id}")
        return booking

    def book_referral(self, booking_id: str, date: str, time_slot: str) -> Booking:
        current = self.get(booking_id)
        lifecycle.ensure_no_active_booking(self._bookings, current.patient_name, ignore_id=booking_id)
        return self._replace(booking_id, lambda b: lifecycle.book_referral(b, date, time_slot))

    def cancel(self, booking_id: str) -> Booking:
        removed = self.get(booking_id)
        self._commit([b for b in self._bookings if b.id != booking_id])
        logger.info(f"🗑️ Booking {booking_id} cancelled by patient")
        return removed

    # ------------------------------- Provider operations -------------------------------
    def approve(self, booking_id: str) -> Booking:
        return self._replace(booking_id, lifecycle.approve)

    def attend(self, booking_id: str) -> Booking:
        return self._replace(booking_id, lambda b: lifecycle.attend(b, self._clock()))

    def send_to_doctor(self, booking_id: str) -> Booking:
        return self._replace(booking_id, lifecycle.send_to_doctor)

    def start_telemedicine_call(self, booking_id: str) -> Booking:
        return self._replace(booking_id, lifecycle.start_telemedicine_call)

    def end_call(self, booking_id: str) -> Booking:
        return self._replace(booking_id, lifecycle.end_call)

    def complete(self, booking_id: str, clinical: ClinicalData) -> Booking:
        return self._replace(booking_id, lambda b: lifecycle.complete(b, clinical, self._clock()))

    def reschedule(self, booking_id: str, date: str, time_slot: str) -> Booking:
        # an unbooked referral becomes active once it has a slot
        current = self.get(booking_id)
        lifecycle.ensure_no_active_booking(self._bookings, current.patient_name, ignore_id=booking_id)
        return self._replace(booking_id, lambda b: lifecycle.reschedule(b, date, time_slot))

    def deny(self, booking_id: str, reason: str, instructions: Optional[str] = None) -> Booking:
        return self._replace(booking_id, lambda b: lifecycle.deny(b, reason, instructions))

    def refer(self, booking_id: str, target: Facility, note: str, clinical: Optional[ClinicalData] = None) -> Tuple[CompletedBooking, PendingBooking]:
        """Close the source and open the successor in a single commit."""
        source = self.get(booking_id)
        closed, successor = build_referral(source, target.id, target.name, note, self._clock(), clinical=clinical)
        self._commit([successor] + [closed if b.id == booking_id else b for b in self._bookings])
        logger.info(f"🔁 Booking {booking_id} referred to {target.id} as {successor.id}")
        return closed, successor
