from datetime import date
from sqlalchemy import and_, exists
from sqlalchemy.orm import Session, Query

from tour_fleet.config import settings
from tour_fleet.models.assignment import Assignment, AssignmentStatus
from tour_fleet.models.driver import Driver
from tour_fleet.models.resource import Resource, ResourceStatus
from tour_fleet.models.vehicle import Vehicle
from tour_fleet.services.ledger_service import ledger, serialize_assignment
from tour_fleet.utils.exceptions import ValidationException


def _busy_on(day: date):
    """EXISTS clause: the resource holds an active claim on `day`."""
    return exists().where(and_(
        Assignment.resourceId == Resource.id,
        Assignment.status == AssignmentStatus.ACTIVE,
        Assignment.date == day,
    ))


def _free(q: Query, day: date | None) -> Query:
    q = q.filter(Resource.status == ResourceStatus.ACTIVE)
    if day is None:
        # General availability: trust the cached flag, no specific day to scan
        return q.filter(Resource.isAvailable.is_(True))
    return q.filter(~_busy_on(day))


def requires_special_license(vehicle_type: str | None) -> bool:
    return bool(vehicle_type) and vehicle_type.lower() in settings.get_special_license_vehicle_types()


def _vehicle_summary(v: Vehicle) -> dict:
    return {
        "id":          v.id,
        "displayName": v.displayName,
        "plate":       v.plate,
        "brand":       v.brand,
        "model":       v.model,
        "vehicleType": v.vehicleType,
        "capacity":    v.capacity,
        "agencyId":    v.resource.agencyId,
        "status":      v.resource.status.value,
        "isAvailable": v.resource.isAvailable,
    }


def _driver_summary(d: Driver) -> dict:
    return {
        "id":              d.id,
        "displayName":     d.displayName,
        "licenseNumber":   d.licenseNumber,
        "licenseCategory": d.licenseCategory,
        "licenseExpiry":   d.licenseExpiry.isoformat() if d.licenseExpiry else None,
        "phone":           d.phone,
        "agencyId":        d.resource.agencyId,
        "status":          d.resource.status.value,
        "isAvailable":     d.resource.isAvailable,
    }


class AvailabilityResolver:
    """
    Read-only: which active resources hold no active claim on a day.
    Results are ordered by id so repeated calls on the same state match.
    """

    def available_vehicles(
        self, db: Session, day: date | None,
        min_capacity: int | None = None, vehicle_type: str | None = None,
        agency_id: str | None = None,
    ) -> list[dict]:
        q = _free(db.query(Vehicle).join(Vehicle.resource), day)
        if min_capacity:  q = q.filter(Vehicle.capacity >= min_capacity)
        if vehicle_type:  q = q.filter(Vehicle.vehicleType == vehicle_type.lower())
        if agency_id:     q = q.filter(Resource.agencyId == agency_id)
        return [_vehicle_summary(v) for v in q.order_by(Vehicle.id).all()]

    def available_drivers(
        self, db: Session, day: date | None,
        vehicle_type: str | None = None, license_category: str | None = None,
        agency_id: str | None = None,
    ) -> list[dict]:
        q = _free(db.query(Driver).join(Driver.resource), day)
        if license_category: q = q.filter(Driver.licenseCategory == license_category.upper())
        if agency_id:        q = q.filter(Resource.agencyId == agency_id)
        if requires_special_license(vehicle_type):
            q = q.filter(Driver.licenseCategory.startswith(settings.SPECIAL_LICENSE_PREFIX))
        return [_driver_summary(d) for d in q.order_by(Driver.id).all()]

    def check_resource(self, db: Session, resource: Resource, day: date | None,
                       date_from: date | None = None, date_to: date | None = None) -> dict:
        """
        Availability of one resource, with the reason when it is not free.
        Scope is a single day, an inclusive range, or (neither) the cached flag.
        """
        ranged = date_from is not None or date_to is not None
        if day is not None and ranged:
            raise ValidationException("Use either date or dateFrom/dateTo, not both", field="date")

        if ranged:
            claims = ledger.find_active_in_range(db, resource.id, date_from, date_to)
            free = not claims
        elif day is None:
            claims = []
            current = ledger.find_active_for_resource(db, resource.id)
            if current:
                claims = [current]
            free = resource.isAvailable
        else:
            claims = ledger.find_active_on_date(db, resource.id, day)
            free = not claims

        reason = None
        if resource.status != ResourceStatus.ACTIVE:
            free   = False
            reason = f"Resource status is '{resource.status.value}'"
        elif not free and ranged:
            reason = f"Already assigned on {', '.join(a.date.isoformat() for a in claims)}"
        elif not free:
            reason = (f"Already assigned on {day.isoformat()}" if day
                      else "Resource currently has an active assignment")

        return {
            "resourceId":   resource.id,
            "resourceType": resource.type.value,
            "date":         day.isoformat() if day else None,
            "dateFrom":     date_from.isoformat() if date_from else None,
            "dateTo":       date_to.isoformat() if date_to else None,
            "isAvailable":  free,
            "status":       resource.status.value,
            "reason":       reason,
            "assignments":  [serialize_assignment(a) for a in claims],
        }


resolver = AvailabilityResolver()
