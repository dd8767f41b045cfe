# naga_health/endpoints/patients.py
from fastapi import APIRouter, Depends

from naga_health.services.booking_store import BookingStore
from naga_health.services.projections import active_booking_for_patient, emr_history, pending_referrals
from naga_health.services.redis_client import get_booking_store

router = APIRouter(prefix="/patients", tags=["Patients"])


@router.get("/{patient_name}/dashboard", summary="Active booking, pending referrals and EMR history")
def patient_dashboard(patient_name: str, store: BookingStore = Depends(get_booking_store)):
    bookings = store.all()
    active = active_booking_for_patient(bookings, patient_name)
    return {
        "patientName": patient_name,
        "activeBooking": active.to_json_dict() if active else None,
        "pendingReferrals": [b.to_json_dict() for b in pending_referrals(bookings, patient_name)],
        "history": [b.to_json_dict() for b in emr_history(bookings, patient_name)],
    }
