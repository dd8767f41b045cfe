# naga_health/models/intake.py
from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from naga_health.models.booking import CamelModel, ConsultationMode, TriageLevel


class IntakeData(CamelModel):
    model_config = ConfigDict(extra="ignore")

    patient_type: Literal["Adult", "Child", "Pregnant"] = "Adult"
    primary_concern: str
    selected_facility_id: Optional[str] = None
    last_name: str
    first_name: str
    birth_date: str
    sex: Literal["Male", "Female", "Other"]
    barangay: str
    symptoms: List[str] = Field(default_factory=list)
    other_symptom: Optional[str] = None
    is_follow_up: bool = False
    condition_status: Optional[Literal["Improved", "Unchanged", "Worsened"]] = None
    medication_status: Optional[Literal["Finished", "Ongoing", "Did not take"]] = None
    prescription_image: Optional[str] = None
    lab_results_image: Optional[str] = None
    has_phil_health: bool = False
    phil_health_pin: Optional[str] = Field(default=None, alias="philHealthPIN")
    additional_details: str = ""
    consultation_mode: ConsultationMode = ConsultationMode.IN_PERSON
    preferred_date: Optional[str] = None
    preferred_time_slot: Optional[str] = None
    mobile: Optional[str] = None

    @property
    def patient_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class BookingContact(CamelModel):
    name: str
    phone: str
    schedule_notes: str


class TriageResult(CamelModel):
    model_config = ConfigDict(extra="ignore")

    triage_level: TriageLevel
    urgency_score: float
    explanation: str
    recommended_facility_ids: List[str]
    institutional_win: str
    action_plan: str
    booking_contact: BookingContact

    @field_validator("triage_level", mode="before")
    @classmethod
    def _normalize_level(cls, value):
        # The model answers EMERGENCY / URGENT / ROUTINE
        if isinstance(value, str):
            return value.strip().capitalize()
        return value


class BookingRequest(CamelModel):
    """What the patient picked in the booking modal; unset fields fall back to the intake."""

    facility_id: str
    date: Optional[str] = None
    time_slot: Optional[str] = None
    consultation_mode: Optional[ConsultationMode] = None


class TriageErrorType(str, Enum):
    MISSING_API_KEY = "MISSING_API_KEY"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    MODEL_ERROR = "MODEL_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"
    PARSE_ERROR = "PARSE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"


USER_MESSAGES = {
    TriageErrorType.MISSING_API_KEY: "The AI service is not properly configured. Please contact support.",
    TriageErrorType.QUOTA_EXCEEDED: "The AI service is temporarily overloaded. Please try again in a few moments.",
    TriageErrorType.MODEL_ERROR: "The AI service encountered an error. Please try again.",
    TriageErrorType.INVALID_REQUEST: "Your input could not be processed. Please check and try again.",
    TriageErrorType.PARSE_ERROR: "The response format was invalid. Please try again.",
    TriageErrorType.INTERNAL_ERROR: "An unexpected error occurred. Please try again.",
    TriageErrorType.RATE_LIMITED: "Too many requests. Please wait a moment and try again.",
    TriageErrorType.AUTHENTICATION_ERROR: "Authentication with the AI service failed. Please try again later.",
}


class TriageErrorOut(BaseModel):
    success: bool = False
    error: str
    errorType: TriageErrorType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class TriageResponseOut(BaseModel):
    success: bool = True
    data: dict
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
