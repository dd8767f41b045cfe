# naga_health/endpoints/facilities.py
from typing import Optional

from fastapi import APIRouter, Query

from naga_health.endpoints.http_errors import booking_errors
from naga_health.services.facility_service import (
    facility_for_barangay,
    get_facility,
    list_facilities,
    recommended_facilities,
)

router = APIRouter(prefix="/facilities", tags=["Facilities"])


@router.get("", summary="All facilities in the city network")
def get_facilities(tier: Optional[str] = None):
    return [
        f.model_dump(by_alias=True)
        for f in list_facilities()
        if tier is None or f.tier == tier
    ]


@router.get("/recommend", summary="Resolve recommended facility ids, nearest first")
def recommend(
    ids: str = Query(..., description="Comma-separated facility ids"),
    lat: Optional[float] = None,
    lng: Optional[float] = None,
):
    facility_ids = [i.strip() for i in ids.split(",") if i.strip()]
    return recommended_facilities(facility_ids, lat, lng)


@router.get("/route", summary="BHS-first routing for a barangay")
def route(barangay: str):
    return facility_for_barangay(barangay).model_dump(by_alias=True)


@router.get("/{facility_id}")
def get_one(facility_id: str):
    with booking_errors():
        return get_facility(facility_id).model_dump(by_alias=True)
