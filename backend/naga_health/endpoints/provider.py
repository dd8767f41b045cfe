# naga_health/endpoints/provider.py
from fastapi import APIRouter, Depends

from naga_health.endpoints.http_errors import booking_errors
from naga_health.services.booking_store import BookingStore
from naga_health.services.facility_service import get_facility
from naga_health.services.projections import average_consultation_minutes, facility_queue
from naga_health.services.redis_client import get_booking_store

router = APIRouter(prefix="/provider", tags=["Provider"])


@router.get("/{facility_id}/queue")
def queue(facility_id: str, store: BookingStore = Depends(get_booking_store)):
    with booking_errors():
        facility = get_facility(facility_id)
    bookings = store.all()
    q = facility_queue(bookings, facility.id)
    return {
        "facilityId": facility.id,
        "facilityName": facility.name,
        "pendingCount": q.pending_count,
        "activeCount": q.active_count,
        "completedCount": q.completed_count,
        "averageConsultationMinutes": average_consultation_minutes(bookings, facility.id),
        "entries": [b.to_json_dict() for b in q.entries],
    }
