import datetime
from datetime import date
from pydantic import field_validator
from typing import Optional
from tour_fleet.models.resource import ResourceStatus
from tour_fleet.schemas.common import StrictRequest


def _normalize_plate(v: str) -> str:
    v = v.strip().upper()
    if not v: raise ValueError("Plate cannot be empty")
    return v


# ─── Requests ─────────────────────────────────────────────────────────────────
class VehicleCreateRequest(StrictRequest):
    plate:       str
    brand:       str
    model:       str
    year:        Optional[int] = None
    vehicleType: str
    capacity:    int
    agencyId:    Optional[str] = None
    soatNumber:            Optional[str]  = None
    soatExpiry:            Optional[date] = None
    technicalReviewNumber: Optional[str]  = None
    technicalReviewExpiry: Optional[date] = None

    @field_validator("plate")
    @classmethod
    def check_plate(cls, v):
        return _normalize_plate(v)

    @field_validator("brand", "model")
    @classmethod
    def not_empty(cls, v):
        if not v.strip(): raise ValueError("Field cannot be empty")
        return v.strip()

    @field_validator("vehicleType")
    @classmethod
    def check_type(cls, v):
        if not v.strip(): raise ValueError("Vehicle type cannot be empty")
        return v.strip().lower()

    @field_validator("year")
    @classmethod
    def check_year(cls, v):
        if v is not None and not (1900 <= v <= 2100): raise ValueError("Year must be between 1900 and 2100")
        return v

    @field_validator("capacity")
    @classmethod
    def check_capacity(cls, v):
        if v <= 0: raise ValueError("Capacity must be greater than 0")
        return v


class VehicleUpdateRequest(StrictRequest):
    plate:       Optional[str] = None
    brand:       Optional[str] = None
    model:       Optional[str] = None
    year:        Optional[int] = None
    vehicleType: Optional[str] = None
    capacity:    Optional[int] = None
    agencyId:    Optional[str] = None
    soatNumber:            Optional[str]  = None
    soatExpiry:            Optional[date] = None
    technicalReviewNumber: Optional[str]  = None
    technicalReviewExpiry: Optional[date] = None

    @field_validator("plate")
    @classmethod
    def check_plate(cls, v):
        return _normalize_plate(v) if v is not None else v

    @field_validator("brand", "model")
    @classmethod
    def not_empty(cls, v):
        if v is not None and not v.strip(): raise ValueError("Field cannot be empty")
        return v.strip() if v is not None else v

    @field_validator("vehicleType")
    @classmethod
    def check_type(cls, v):
        if v is not None and not v.strip(): raise ValueError("Vehicle type cannot be empty")
        return v.strip().lower() if v is not None else v

    @field_validator("capacity")
    @classmethod
    def check_capacity(cls, v):
        if v is not None and v <= 0: raise ValueError("Capacity must be greater than 0")
        return v


class ResourceStatusRequest(StrictRequest):
    status: ResourceStatus
    reason: Optional[str] = None


class VehicleAssignmentRequest(StrictRequest):
    tourId:     str
    tourCode:   Optional[str] = None
    date:       date
    driverId:   Optional[int] = None
    passengers: Optional[int] = None
    notes:      Optional[str] = None

    @field_validator("tourId")
    @classmethod
    def check_tour(cls, v):
        if not v.strip(): raise ValueError("tourId cannot be empty")
        return v.strip()

    @field_validator("passengers")
    @classmethod
    def check_passengers(cls, v):
        if v is not None and v <= 0: raise ValueError("Passengers must be greater than 0")
        return v


class ReleaseRequest(StrictRequest):
    """Release the active claim on `date`, or the current one when omitted."""
    date: Optional[datetime.date] = None


class AssignDriverRequest(StrictRequest):
    driverId: int


class MaintenanceCreateRequest(StrictRequest):
    description: str
    date:        date
    cost:        Optional[float] = None
    setMaintenanceStatus: bool = False

    @field_validator("description")
    @classmethod
    def check_description(cls, v):
        if not v.strip(): raise ValueError("Description cannot be empty")
        return v.strip()

    @field_validator("cost")
    @classmethod
    def check_cost(cls, v):
        if v is not None and v < 0: raise ValueError("Cost cannot be negative")
        return v
