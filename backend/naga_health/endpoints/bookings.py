# naga_health/endpoints/bookings.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from pydantic import ConfigDict

from naga_health.endpoints.http_errors import booking_errors
from naga_health.models.booking import CamelModel, ClinicalData
from naga_health.models.intake import BookingRequest, IntakeData, TriageResult
from naga_health.services import documents
from naga_health.services.booking_store import BookingStore
from naga_health.services.errors import BookingValidationError
from naga_health.services.facility_service import get_facility
from naga_health.services.projections import global_active_bookings
from naga_health.services.redis_client import BookingRepository, get_booking_store, get_repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


# ---------------------------
# Request bodies
# ---------------------------
class BookingCreateIn(BookingRequest):
    """Booking modal submission; without an intake the last submitted one is used."""

    model_config = ConfigDict(extra="ignore")

    intake: Optional[IntakeData] = None
    triage: Optional[TriageResult] = None


class ScheduleIn(CamelModel):
    date: str = ""
    time_slot: str = ""


class DenyIn(CamelModel):
    reason: str = ""
    instructions: Optional[str] = None


class ReferIn(CamelModel):
    target_facility_id: str
    note: str = ""
    clinical: Optional[ClinicalData] = None


# ---------------------------
# Patient side
# ---------------------------
@router.post("", status_code=201)
def create_booking(
    body: BookingCreateIn,
    store: BookingStore = Depends(get_booking_store),
    repository: BookingRepository = Depends(get_repository),
):
    with booking_errors():
        intake = body.intake or repository.load_last_intake()
        if intake is None:
            raise BookingValidationError("intake", "Please complete the intake form first.")
        facility = get_facility(body.facility_id)
        booking = store.create(intake, body.triage, body, facility)
    return booking.to_json_dict()


@router.get("")
def list_bookings(store: BookingStore = Depends(get_booking_store)):
    return [b.to_json_dict() for b in store.all()]


@router.get("/active", summary="Every booking that is still Pending or Approved")
def active_bookings(store: BookingStore = Depends(get_booking_store)):
    return [b.to_json_dict() for b in global_active_bookings(store.all())]


@router.get("/{booking_id}")
def get_booking(booking_id: str, store: BookingStore = Depends(get_booking_store)):
    with booking_errors():
        return store.get(booking_id).to_json_dict()


@router.delete("/{booking_id}")
def cancel_booking(booking_id: str, store: BookingStore = Depends(get_booking_store)):
    with booking_errors():
        removed = store.cancel(booking_id)
    return {"cancelled": removed.id}


@router.post("/{booking_id}/book-referral")
def book_referral(booking_id: str, body: ScheduleIn, store: BookingStore = Depends(get_booking_store)):
    with booking_errors():
        return store.book_referral(booking_id, body.date, body.time_slot).to_json_dict()


# ---------------------------
# Provider side
# ---------------------------
@router.post("/{booking_id}/approve")
def approve(booking_id: str, store: BookingStore = Depends(get_booking_store)):
    with booking_errors():
        return store.approve(booking_id).to_json_dict()


@router.post("/{booking_id}/attend")
def attend(booking_id: str, store: BookingStore = Depends(get_booking_store)):
    with booking_errors():
        return store.attend(booking_id).to_json_dict()


@router.post("/{booking_id}/send-to-doctor")
def send_to_doctor(booking_id: str, store: BookingStore = Depends(get_booking_store)):
    with booking_errors():
        return store.send_to_doctor(booking_id).to_json_dict()


@router.post("/{booking_id}/start-call")
def start_call(booking_id: str, store: BookingStore = Depends(get_booking_store)):
    with booking_errors():
        return store.start_telemedicine_call(booking_id).to_json_dict()


@router.post("/{booking_id}/end-call")
def end_call(booking_id: str, store: BookingStore = Depends(get_booking_store)):
    with booking_errors():
        return store.end_call(booking_id).to_json_dict()


@router.post("/{booking_id}/complete")
def complete(booking_id: str, clinical: ClinicalData, store: BookingStore = Depends(get_booking_store)):
    with booking_errors():
        return store.complete(booking_id, clinical).to_json_dict()


@router.post("/{booking_id}/reschedule")
def reschedule(booking_id: str, body: ScheduleIn, store: BookingStore = Depends(get_booking_store)):
    with booking_errors():
        return store.reschedule(booking_id, body.date, body.time_slot).to_json_dict()


@router.post("/{booking_id}/deny")
def deny(booking_id: str, body: DenyIn, store: BookingStore = Depends(get_booking_store)):
    with booking_errors():
        return store.deny(booking_id, body.reason, body.instructions).to_json_dict()


@router.post("/{booking_id}/refer", status_code=201)
def refer(booking_id: str, body: ReferIn, store: BookingStore = Depends(get_booking_store)):
    with booking_errors():
        target = get_facility(body.target_facility_id)
        closed, successor = store.refer(booking_id, target, body.note, clinical=body.clinical)
    return {"source": closed.to_json_dict(), "referral": successor.to_json_dict()}


# ---------------------------
# Documents
# ---------------------------
@router.get("/{booking_id}/documents/{kind}.pdf")
def download_document(booking_id: str, kind: str, store: BookingStore = Depends(get_booking_store)):
    if kind not in documents.RENDERERS:
        raise HTTPException(status_code=404, detail=f"Unknown document '{kind}'")
    title, render = documents.RENDERERS[kind]
    with booking_errors():
        booking = store.get(booking_id)
        pdf = render(booking)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{documents.document_filename(title, booking)}"'},
    )
