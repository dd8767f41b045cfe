# naga_health/endpoints/lgu.py
from datetime import date

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from naga_health.endpoints.http_errors import booking_errors
from naga_health.services import projections
from naga_health.services.booking_store import BookingStore
from naga_health.services.documents import surveillance_workbook
from naga_health.services.redis_client import get_booking_store

router = APIRouter(prefix="/lgu", tags=["LGU Surveillance"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("/aggregate", summary="Completed consults by barangay and diagnosis code")
def aggregate(store: BookingStore = Depends(get_booking_store)):
    bookings = store.all()
    barangays = projections.barangay_diagnosis_aggregate(bookings)
    return {
        "totalConsultations": len(projections.completed_consults(bookings)),
        "activeBarangays": len(barangays),
        "alertLevel": projections.city_alert_level(bookings),
        "topDiagnoses": [
            {"diagnosis": diag, "count": count} for diag, count in projections.top_diagnoses(bookings)
        ],
        "barangays": barangays,
    }


@router.get("/export.xlsx")
def export_workbook(store: BookingStore = Depends(get_booking_store)):
    today = date.today()
    with booking_errors():
        content = surveillance_workbook(store.all(), today)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="Naga_Health_Trends_{today.isoformat()}.xlsx"'},
    )
