# naga_health/services/errors.py
"""Exceptions raised by the booking lifecycle and the triage collaborator.

Every failure leaves the booking store untouched; endpoints turn these into
HTTP responses.
"""


class BookingError(Exception):
    """Base class for booking workflow failures."""


class BookingValidationError(BookingError):
    """A required field was missing or empty before a transition."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class InvalidTransitionError(BookingError):
    def __init__(self, booking_id: str, operation: str, state: str):
        super().__init__(f"Cannot {operation} booking {booking_id} while it is {state}")
        self.booking_id = booking_id
        self.operation = operation
        self.state = state


class BookingNotFoundError(BookingError):
    def __init__(self, booking_id: str):
        super().__init__(f"Booking {booking_id} not found")
        self.booking_id = booking_id


class ActiveBookingExistsError(BookingError):
    def __init__(self, patient_name: str, facility_name: str):
        super().__init__(
            f"You already have an active appointment at {facility_name}. "
            "You must cancel your current appointment before booking another facility."
        )
        self.patient_name = patient_name
        self.facility_name = facility_name


class UnknownFacilityError(BookingError):
    def __init__(self, facility_id: str):
        super().__init__(f"Unknown facility {facility_id}")
        self.facility_id = facility_id


class StorageError(Exception):
    """Persisting the booking collection failed; the in-memory list was rolled back."""


class TriageError(Exception):
    def __init__(self, message: str, error_type, status_code: int = 500, detail=None):
        super().__init__(message)
        self.error_type = error_type
        self.status_code = status_code
        self.detail = detail
