# naga_health/services/facility_service.py
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from geopy.distance import geodesic
from rapidfuzz import process

from naga_health.models.facility import Facility
from naga_health.services.errors import UnknownFacilityError

logger = logging.getLogger(__name__)

# -------------------------------
# Facility directory
# File: naga_health/endpoints/data/facilities.json
# -------------------------------
DATA_DIR = Path(__file__).parent.parent / "endpoints" / "data"
FACILITIES_JSON_PATH = DATA_DIR / "facilities.json"

FALLBACK_FACILITY_ID = "cho-1"
EMERGENCY_FACILITY_ID = "ncgh-1"
BARANGAY_MATCH_CUTOFF = 85


def load_facilities() -> Dict[str, Facility]:
    if not FACILITIES_JSON_PATH.exists():
        raise RuntimeError(
            f"❌ Critical: Facilities file not found at {FACILITIES_JSON_PATH}.\n"
            "This is required for booking and referral routing."
        )
    with open(FACILITIES_JSON_PATH, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise RuntimeError(f"❌ Invalid JSON in {FACILITIES_JSON_PATH}: {e}")
    facilities = {item["id"]: Facility.model_validate(item) for item in data}
    logger.info(f"✅ Loaded {len(facilities)} facilities")
    return facilities


FACILITIES = load_facilities()


def list_facilities() -> List[Facility]:
    return list(FACILITIES.values())


def get_facility(facility_id: str) -> Facility:
    try:
        return FACILITIES[facility_id]
    except KeyError:
        raise UnknownFacilityError(facility_id) from None


def facility_for_barangay(barangay: str) -> Facility:
    """BHS-first routing: the patient's own health station, else City Health Office I."""
    stations = {f.barangay.lower(): f for f in FACILITIES.values() if f.tier == "BHS" and f.barangay}
    if barangay and stations:
        match = process.extractOne(barangay.lower().strip(), stations.keys(), score_cutoff=BARANGAY_MATCH_CUTOFF)
        if match:
            return stations[match[0]]
    logger.info(f"🏥 No health station for barangay '{barangay}', routing to {FALLBACK_FACILITY_ID}")
    return FACILITIES[FALLBACK_FACILITY_ID]


def recommended_facilities(facility_ids: List[str], lat: Optional[float] = None, lng: Optional[float] = None) -> List[dict]:
    """Resolve the LLM's recommended ids, dropping unknown ones.

    With a patient location the list is re-ordered by distance; otherwise the
    model's order is kept.
    """
    results = []
    for facility_id in facility_ids:
        facility = FACILITIES.get(facility_id)
        if facility is None:
            logger.warning(f"⚠️ Ignoring unknown recommended facility '{facility_id}'")
            continue
        entry = facility.model_dump(by_alias=True)
        if lat is not None and lng is not None:
            entry["distanceKm"] = round(
                geodesic((lat, lng), (facility.location.lat, facility.location.lng)).km, 1
            )
        results.append(entry)

    if lat is not None and lng is not None:
        results.sort(key=lambda x: x["distanceKm"])
    return results
