from datetime import date
from pydantic import field_validator, ValidationInfo
from typing import Optional
from tour_fleet.schemas.common import StrictRequest


def _not_blank(v: str | None) -> str | None:
    if v is None:
        return v
    if not v.strip(): raise ValueError("Field cannot be empty")
    return v.strip()


class DriverCreateRequest(StrictRequest):
    firstName:       str
    lastName:        str
    licenseNumber:   str
    licenseCategory: str
    licenseIssuedDate: Optional[date] = None
    licenseExpiry:   Optional[date] = None
    licenseAuthority: Optional[str] = None
    dni:             Optional[str] = None
    phone:           Optional[str] = None
    email:           Optional[str] = None
    agencyId:        Optional[str] = None

    @field_validator("firstName", "lastName", "licenseNumber", "licenseCategory")
    @classmethod
    def not_empty(cls, v):
        return _not_blank(v)

    @field_validator("licenseCategory")
    @classmethod
    def upper_category(cls, v):
        return v.upper()


class DriverUpdateRequest(StrictRequest):
    """Personal data only; licence changes go through the renewal endpoint."""
    firstName:       Optional[str] = None
    lastName:        Optional[str] = None
    dni:             Optional[str] = None
    phone:           Optional[str] = None
    email:           Optional[str] = None
    agencyId:        Optional[str] = None

    @field_validator("firstName", "lastName")
    @classmethod
    def not_empty(cls, v):
        return _not_blank(v)


class LicenseRenewalRequest(StrictRequest):
    licenseNumber:    str
    licenseCategory:  str
    issuedDate:       Optional[date] = None
    expiryDate:       date
    issuingAuthority: Optional[str] = None

    @field_validator("licenseNumber", "licenseCategory")
    @classmethod
    def not_empty(cls, v):
        return _not_blank(v)

    @field_validator("licenseCategory")
    @classmethod
    def upper_category(cls, v):
        return v.upper()

    @field_validator("expiryDate")
    @classmethod
    def check_expiry(cls, v, info: ValidationInfo):
        issued = info.data.get("issuedDate")
        if issued and v <= issued: raise ValueError("expiryDate must be after issuedDate")
        return v


class DriverEvaluationRequest(StrictRequest):
    rating:         int
    comments:       Optional[str] = None
    evaluationDate: Optional[date] = None   # defaults to today
    assignmentId:   Optional[int] = None

    @field_validator("rating")
    @classmethod
    def check_rating(cls, v):
        if not 1 <= v <= 5: raise ValueError("Rating must be between 1 and 5")
        return v


class DriverAssignmentRequest(StrictRequest):
    tourId:    str
    tourCode:  Optional[str] = None
    date:      date
    vehicleId: Optional[int] = None
    notes:     Optional[str] = None

    @field_validator("tourId")
    @classmethod
    def check_tour(cls, v):
        if not v.strip(): raise ValueError("tourId cannot be empty")
        return v.strip()
