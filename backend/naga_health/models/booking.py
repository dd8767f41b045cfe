# naga_health/models/booking.py
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class TriageLevel(str, Enum):
    EMERGENCY = "Emergency"
    URGENT = "Urgent"
    ROUTINE = "Routine"


class BookingStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    DECLINED = "Declined"
    COMPLETED = "Completed"


class DetailedStatus(str, Enum):
    AWAITING_ASSESSMENT = "Awaiting Assessment"
    ASSESSMENT_IN_PROGRESS = "Assessment in Progress"
    AWAITING_DOCTOR = "Awaiting Doctor"
    IN_CONSULTATION_CALL = "In Consultation Call"
    DISCHARGING = "Discharging"
    AWAITING_PATIENT_BOOKING = "Awaiting Patient Booking"


class ConsultationMode(str, Enum):
    IN_PERSON = "In-Person"
    TELEMEDICINE = "Telemedicine"


ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.APPROVED)
TERMINAL_STATUSES = (BookingStatus.DECLINED, BookingStatus.COMPLETED)

# Placeholder schedule for referral bookings the patient has not booked yet
UNSCHEDULED = "N/A"


class CamelModel(BaseModel):
    """Base for everything persisted: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
        extra="forbid",
    )

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Vitals(CamelModel):
    bp: str = ""
    hr: str = ""
    rr: str = ""
    o2sat: str = ""
    temp: str = ""


class PrescribedDrug(CamelModel):
    drug_name: str
    strength: str = ""
    dose: str = ""
    frequency: str = ""
    duration: str = ""
    quantity: str = ""


class ClinicalData(CamelModel):
    """Discharge form contents submitted when a consultation is completed."""

    vitals: Optional[Vitals] = None
    pe_findings: Optional[str] = None
    diagnosis: Optional[str] = None
    treatment: Optional[str] = None
    prescriptions: List[PrescribedDrug] = Field(default_factory=list)
    requested_labs: Optional[str] = None
    non_pharma: Optional[str] = None
    follow_up_date: Optional[str] = None


class _BookingBase(CamelModel):
    id: str
    facility_id: str
    facility_name: str
    date: str
    time_slot: str

    # Patient snapshot copied at intake time
    patient_name: str
    patient_barangay: str
    patient_birth_date: str
    patient_sex: Literal["Male", "Female", "Other"]

    triage_level: TriageLevel = TriageLevel.ROUTINE
    concern: str = ""
    is_follow_up: Optional[bool] = None
    consultation_mode: ConsultationMode = ConsultationMode.IN_PERSON
    symptoms: Optional[List[str]] = None
    additional_details: Optional[str] = None

    consultation_start_time: Optional[str] = None
    consultation_end_time: Optional[str] = None

    referral_from_facility_id: Optional[str] = None
    referral_to_facility_id: Optional[str] = None
    referral_note: Optional[str] = None
    consent_requested: Optional[bool] = None

    is_shared_with_network: bool = True


class _OpenBookingBase(_BookingBase):
    detailed_status: DetailedStatus


class PendingBooking(_OpenBookingBase):
    status: Literal["Pending"] = "Pending"


class ApprovedBooking(_OpenBookingBase):
    status: Literal["Approved"] = "Approved"


class DeclinedBooking(_BookingBase):
    status: Literal["Declined"] = "Declined"
    denial_reason: str
    denial_instructions: Optional[str] = None


class CompletedBooking(_BookingBase):
    status: Literal["Completed"] = "Completed"
    vitals: Optional[Vitals] = None
    pe_findings: Optional[str] = None
    diagnosis: Optional[str] = None
    treatment: Optional[str] = None
    prescriptions: Optional[List[PrescribedDrug]] = None
    requested_labs: Optional[str] = None
    non_pharma: Optional[str] = None
    follow_up_date: Optional[str] = None
    completion_date: Optional[str] = None


Booking = Annotated[
    Union[PendingBooking, ApprovedBooking, DeclinedBooking, CompletedBooking],
    Field(discriminator="status"),
]
OpenBooking = Union[PendingBooking, ApprovedBooking]

_booking_adapter = TypeAdapter(Booking)
_booking_list_adapter = TypeAdapter(List[Booking])


def parse_booking(data: dict) -> Booking:
    return _booking_adapter.validate_python(data)


def parse_bookings(data: list) -> List[Booking]:
    return _booking_list_adapter.validate_python(data)


def dump_bookings(bookings: List[Booking]) -> list:
    return [b.to_json_dict() for b in bookings]


def common_fields(booking: _BookingBase) -> dict:
    """Fields every variant shares, keyed by Python name, for building another variant."""
    return {name: getattr(booking, name) for name in _BookingBase.model_fields}


def is_open(booking: Booking) -> bool:
    return booking.status in ACTIVE_STATUSES


def detailed_status_of(booking: Booking) -> Optional[DetailedStatus]:
    return getattr(booking, "detailed_status", None)


def is_active(booking: Booking) -> bool:
    """Counts toward the one-active-booking-per-patient rule."""
    return is_open(booking) and booking.detailed_status != DetailedStatus.AWAITING_PATIENT_BOOKING


def patient_key(name: str) -> str:
    return " ".join(name.split()).casefold()
