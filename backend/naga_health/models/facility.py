# naga_health/models/facility.py
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Location(BaseModel):
    lat: float
    lng: float


class Facility(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    type: Literal["BHC", "Public Hospital", "Private Hospital", "Clinic"]
    tier: Literal["BHS", "CHO", "Hospital"]
    barangay: Optional[str] = None
    services: List[str]
    specialized_services: List[str] = []
    contact_personnel: Optional[str] = None
    phil_health_supported: bool = True
    distance_km: float = 0.0
    base_cost: Literal["Free", "Low", "Moderate", "High"] = "Free"
    current_congestion: int = 0
    waiting_time_minutes: int = 0
    contact_number: Optional[str] = None
    operating_hours: Optional[str] = None
    location: Location
