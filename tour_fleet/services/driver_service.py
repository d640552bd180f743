import logging
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from sqlalchemy.orm import Session
from sqlalchemy import or_, func

from tour_fleet.config import settings
from tour_fleet.models.assignment import AssignmentStatus
from tour_fleet.models.driver import Driver
from tour_fleet.models.driver_evaluation import DriverEvaluation
from tour_fleet.models.driver_license_record import DriverLicenseRecord, LicenseRecordStatus
from tour_fleet.models.resource import Resource, ResourceType, ResourceStatus
from tour_fleet.models.vehicle import Vehicle
from tour_fleet.models.vehicle_pairing import VehiclePairing
from tour_fleet.schemas.common import PaginationParams, iso_utc
from tour_fleet.schemas.driver import (
    DriverCreateRequest, DriverUpdateRequest, DriverAssignmentRequest,
    LicenseRenewalRequest, DriverEvaluationRequest,
)
from tour_fleet.schemas.vehicle import ResourceStatusRequest
from tour_fleet.services.availability_service import resolver
from tour_fleet.services.conflict_guard import guard
from tour_fleet.services.ledger_service import ledger, serialize_assignment
from tour_fleet.services.registry_service import registry
from tour_fleet.utils.audit import log_action
from tour_fleet.utils.exceptions import NotFoundException, DuplicateEntryException

logger = logging.getLogger(__name__)


def _serialize(db: Session, d: Driver) -> dict:
    vehicle = db.get(Vehicle, d.currentVehicleId) if d.currentVehicleId else None
    return {
        "id":              d.id,
        "fullName":        d.displayName,
        "firstName":       d.firstName,
        "lastName":        d.lastName,
        "dni":             d.dni,
        "licenseNumber":   d.licenseNumber,
        "licenseCategory": d.licenseCategory,
        "licenseIssuedDate": d.licenseIssuedDate.isoformat() if d.licenseIssuedDate else None,
        "licenseExpiry":   d.licenseExpiry.isoformat() if d.licenseExpiry else None,
        "licenseAuthority": d.licenseAuthority,
        "phone":           d.phone,
        "email":           d.email,
        "averageRating":   float(d.averageRating or 0),
        "totalEvaluations": d.totalEvaluations or 0,
        "agencyId":        d.resource.agencyId,
        "status":          d.resource.status.value,
        "statusReason":    d.resource.statusReason,
        "isAvailable":     d.resource.isAvailable,
        "currentAssignmentId": d.resource.currentAssignmentId,
        "currentVehicle": {
            "id":          vehicle.id,
            "brand":       vehicle.brand,
            "model":       vehicle.model,
            "plate":       vehicle.plate,
            "vehicleType": vehicle.vehicleType,
        } if vehicle else None,
        "createdAt": iso_utc(d.resource.createdAt),
        "updatedAt": iso_utc(d.resource.updatedAt),
    }


def _serialize_license(r: DriverLicenseRecord) -> dict:
    return {
        "id":               r.id,
        "driverId":         r.driverId,
        "licenseNumber":    r.licenseNumber,
        "licenseCategory":  r.licenseCategory,
        "issuedDate":       r.issuedDate.isoformat() if r.issuedDate else None,
        "expiryDate":       r.expiryDate.isoformat() if r.expiryDate else None,
        "issuingAuthority": r.issuingAuthority,
        "status":           r.status.value,
        "createdBy":        r.createdBy,
        "createdAt":        iso_utc(r.createdAt),
    }


def _serialize_evaluation(e: DriverEvaluation) -> dict:
    return {
        "id":             e.id,
        "driverId":       e.driverId,
        "assignmentId":   e.assignmentId,
        "rating":         e.rating,
        "comments":       e.comments,
        "evaluationDate": e.evaluationDate.isoformat(),
        "evaluatedBy":    e.evaluatedBy,
        "createdAt":      iso_utc(e.createdAt),
    }


def _round_rating(value) -> float:
    if value is None:
        return 0.0
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


class DriverService:

    def _get(self, db: Session, driver_id: int) -> Driver:
        d = db.query(Driver).filter(Driver.id == driver_id).first()
        if not d: raise NotFoundException("Driver")
        return d

    def _check_license_free(self, db: Session, license_number: str, exclude_id: int | None = None):
        q = db.query(Driver).filter(Driver.licenseNumber == license_number)
        if exclude_id:
            q = q.filter(Driver.id != exclude_id)
        if q.first():
            raise DuplicateEntryException("License number already registered", field="licenseNumber")

    def list_drivers(
        self, db: Session, pagination: PaginationParams,
        status: ResourceStatus | None, license_type: str | None, agency_id: str | None,
        available: bool | None, vehicle_assigned: bool | None, search: str | None,
    ) -> tuple[list[dict], int]:
        q = db.query(Driver).join(Driver.resource)

        if status:        q = q.filter(Resource.status == status)
        if license_type:  q = q.filter(Driver.licenseCategory == license_type.upper())
        if agency_id:     q = q.filter(Resource.agencyId == agency_id)
        if available is not None:
            q = q.filter(Resource.isAvailable.is_(available))
        if vehicle_assigned is True:  q = q.filter(Driver.currentVehicleId != None)  # noqa: E711
        if vehicle_assigned is False: q = q.filter(Driver.currentVehicleId == None)  # noqa: E711
        if search:
            # autoescape: "%" and "_" in the search text match literally
            q = q.filter(or_(
                (Driver.firstName + " " + Driver.lastName).icontains(search, autoescape=True),
                Driver.dni.icontains(search, autoescape=True),
                Driver.licenseNumber.icontains(search, autoescape=True),
            ))

        total = q.count()
        items = q.order_by(Driver.id).offset(pagination.offset).limit(pagination.pageSize).all()
        return [_serialize(db, d) for d in items], total

    def get_driver(self, db: Session, driver_id: int) -> dict:
        d = self._get(db, driver_id)
        data = _serialize(db, d)
        recent, _ = ledger.history(db, d.id, 1, settings.RECENT_ASSIGNMENTS_LIMIT)
        data["recentAssignments"] = [serialize_assignment(a) for a in recent]
        pairings = db.query(VehiclePairing).filter(VehiclePairing.driverId == d.id)\
                     .order_by(VehiclePairing.assignedAt.desc()).limit(settings.RECENT_ASSIGNMENTS_LIMIT).all()
        data["vehicleHistory"] = [{
            "pairingId":  p.id,
            "vehicleId":  p.vehicleId,
            "assignedAt": iso_utc(p.assignedAt),
            "releasedAt": iso_utc(p.releasedAt),
            "isActive":   p.releasedAt is None,
        } for p in pairings]
        return data

    def create_driver(self, db: Session, data: DriverCreateRequest, actor: str | None) -> dict:
        self._check_license_free(db, data.licenseNumber)

        resource = registry.create(db, ResourceType.DRIVER, data.agencyId)
        d = Driver(
            id=resource.id,
            firstName=data.firstName,
            lastName=data.lastName,
            dni=data.dni,
            licenseNumber=data.licenseNumber,
            licenseCategory=data.licenseCategory,
            licenseIssuedDate=data.licenseIssuedDate,
            licenseExpiry=data.licenseExpiry,
            licenseAuthority=data.licenseAuthority,
            phone=data.phone,
            email=data.email,
            averageRating=0,
            totalEvaluations=0,
        )
        db.add(d)
        db.flush()
        db.add(DriverLicenseRecord(
            driverId=d.id,
            licenseNumber=data.licenseNumber,
            licenseCategory=data.licenseCategory,
            issuedDate=data.licenseIssuedDate,
            expiryDate=data.licenseExpiry,
            issuingAuthority=data.licenseAuthority,
            status=LicenseRecordStatus.ACTIVE,
            createdBy=actor,
        ))
        log_action(db, actor, "REGISTER", "Driver", d.id,
                   f"Registered driver {d.displayName} ({data.licenseNumber})")
        db.commit()
        db.refresh(d)
        logger.info(f"Driver {d.id} registered ({d.licenseNumber})")
        return _serialize(db, d)

    def update_driver(self, db: Session, driver_id: int, data: DriverUpdateRequest, actor: str | None) -> dict:
        d = self._get(db, driver_id)

        fields = data.model_dump(exclude_unset=True, exclude={"agencyId"})
        for name, value in fields.items():
            if value is not None:
                setattr(d, name, value)
        if "agencyId" in data.model_fields_set:
            d.resource.agencyId = data.agencyId

        log_action(db, actor, "UPDATE", "Driver", d.id, f"Updated driver {d.displayName}")
        db.commit()
        db.refresh(d)
        return _serialize(db, d)

    def update_status(self, db: Session, driver_id: int, data: ResourceStatusRequest, actor: str | None) -> dict:
        d = self._get(db, driver_id)
        registry.update_status(db, d.resource, data.status, data.reason, actor)
        db.commit()
        db.refresh(d)
        return _serialize(db, d)

    # ─── Availability ─────────────────────────────────────────────────────────
    def available_drivers(self, db: Session, day: date | None, vehicle_type: str | None,
                          license_type: str | None, agency_id: str | None) -> list[dict]:
        return resolver.available_drivers(db, day, vehicle_type, license_type, agency_id)

    def check_availability(self, db: Session, driver_id: int, day: date | None,
                           date_from: date | None = None, date_to: date | None = None) -> dict:
        d = self._get(db, driver_id)
        return resolver.check_resource(db, d.resource, day, date_from, date_to)

    # ─── Tour assignments ─────────────────────────────────────────────────────
    def create_assignment(self, db: Session, driver_id: int, data: DriverAssignmentRequest,
                          actor: str | None) -> dict:
        d = self._get(db, driver_id)
        if data.vehicleId is not None and not db.get(Vehicle, data.vehicleId):
            raise NotFoundException("Vehicle")

        assignment = guard.try_claim(
            db, d.id, ResourceType.DRIVER, data.date, data.tourId, data.tourCode,
            paired_resource_id=data.vehicleId, notes=data.notes, actor=actor,
        )
        return serialize_assignment(assignment)

    def release_assignment(self, db: Session, driver_id: int, day: date | None, actor: str | None) -> dict:
        self._get(db, driver_id)
        assignment = guard.release_current(db, driver_id, ResourceType.DRIVER, day, actor)
        return serialize_assignment(assignment)

    def get_assignments(self, db: Session, driver_id: int, pagination: PaginationParams,
                        status: AssignmentStatus | None = None,
                        date_from: date | None = None, date_to: date | None = None) -> tuple[list[dict], int]:
        self._get(db, driver_id)
        items, total = ledger.history(db, driver_id, pagination.page, pagination.pageSize,
                                      status, date_from, date_to)
        return [serialize_assignment(a) for a in items], total

    # ─── Licence ──────────────────────────────────────────────────────────────
    def renew_license(self, db: Session, driver_id: int, data: LicenseRenewalRequest, actor: str | None) -> dict:
        """
        Replace the driver's licence. The previous active record is marked
        superseded and a new active record is written in the same commit.
        """
        d = self._get(db, driver_id)
        if data.licenseNumber != d.licenseNumber:
            self._check_license_free(db, data.licenseNumber, exclude_id=driver_id)

        db.query(DriverLicenseRecord).filter(
            DriverLicenseRecord.driverId == d.id,
            DriverLicenseRecord.status == LicenseRecordStatus.ACTIVE,
        ).update({DriverLicenseRecord.status: LicenseRecordStatus.SUPERSEDED}, synchronize_session="fetch")

        record = DriverLicenseRecord(
            driverId=d.id,
            licenseNumber=data.licenseNumber,
            licenseCategory=data.licenseCategory,
            issuedDate=data.issuedDate,
            expiryDate=data.expiryDate,
            issuingAuthority=data.issuingAuthority,
            status=LicenseRecordStatus.ACTIVE,
            createdBy=actor,
        )
        db.add(record)

        old_number = d.licenseNumber
        d.licenseNumber     = data.licenseNumber
        d.licenseCategory   = data.licenseCategory
        d.licenseIssuedDate = data.issuedDate
        d.licenseExpiry     = data.expiryDate
        d.licenseAuthority  = data.issuingAuthority
        db.flush()

        log_action(db, actor, "LICENSE", "Driver", d.id,
                   f"Licence renewed {old_number} -> {data.licenseNumber} (expires {data.expiryDate})")
        db.commit()
        db.refresh(record)
        logger.info(f"Driver {d.id} licence renewed, expires {data.expiryDate}")
        return {"driver": _serialize(db, d), "license": _serialize_license(record)}

    def license_history(self, db: Session, driver_id: int) -> list[dict]:
        self._get(db, driver_id)
        records = db.query(DriverLicenseRecord).filter(DriverLicenseRecord.driverId == driver_id)\
                    .order_by(DriverLicenseRecord.id.desc()).all()
        return [_serialize_license(r) for r in records]

    # ─── Evaluations ──────────────────────────────────────────────────────────
    def add_evaluation(self, db: Session, driver_id: int, data: DriverEvaluationRequest, actor: str | None) -> dict:
        d = self._get(db, driver_id)
        if data.assignmentId is not None:
            a = ledger.get(db, data.assignmentId)
            if a.resourceId != d.id:
                raise NotFoundException("Assignment")

        evaluation = DriverEvaluation(
            driverId=d.id,
            assignmentId=data.assignmentId,
            rating=data.rating,
            comments=data.comments,
            evaluationDate=data.evaluationDate or date.today(),
            evaluatedBy=actor,
        )
        db.add(evaluation)
        db.flush()

        avg, count = db.query(func.avg(DriverEvaluation.rating), func.count(DriverEvaluation.id))\
                       .filter(DriverEvaluation.driverId == d.id).one()
        d.averageRating    = _round_rating(avg)
        d.totalEvaluations = count

        log_action(db, actor, "EVALUATE", "Driver", d.id,
                   f"Driver {d.displayName} rated {data.rating}/5")
        db.commit()
        db.refresh(evaluation)
        db.refresh(d)
        logger.info(f"Driver {d.id} evaluated: {data.rating} (avg {d.averageRating}, n={d.totalEvaluations})")
        return {
            "evaluation":       _serialize_evaluation(evaluation),
            "averageRating":    float(d.averageRating),
            "totalEvaluations": d.totalEvaluations,
        }

    def list_evaluations(self, db: Session, driver_id: int) -> list[dict]:
        self._get(db, driver_id)
        items = db.query(DriverEvaluation).filter(DriverEvaluation.driverId == driver_id)\
                  .order_by(DriverEvaluation.evaluationDate.desc(), DriverEvaluation.id.desc()).all()
        return [_serialize_evaluation(e) for e in items]

    # ─── Performance ──────────────────────────────────────────────────────────
    def performance(self, db: Session, driver_id: int,
                    date_from: date | None = None, date_to: date | None = None) -> dict:
        """Assignment counts by tour day and ratings given within the period."""
        self._get(db, driver_id)
        counts = ledger.count_by_status(db, driver_id, date_from, date_to)

        q = db.query(DriverEvaluation.rating, func.count(DriverEvaluation.id))\
              .filter(DriverEvaluation.driverId == driver_id)
        if date_from: q = q.filter(DriverEvaluation.evaluationDate >= date_from)
        if date_to:   q = q.filter(DriverEvaluation.evaluationDate <= date_to)
        by_rating = dict(q.group_by(DriverEvaluation.rating).all())

        total_evals = sum(by_rating.values())
        average = sum(r * n for r, n in by_rating.items()) / total_evals if total_evals else None

        return {
            "driverId": driver_id,
            "period": {
                "dateFrom": date_from.isoformat() if date_from else None,
                "dateTo":   date_to.isoformat() if date_to else None,
            },
            "metrics": {
                "totalAssignments":     sum(counts.values()),
                "activeAssignments":    counts[AssignmentStatus.ACTIVE],
                "completedAssignments": counts[AssignmentStatus.COMPLETED],
                "totalEvaluations":     total_evals,
                "averageRating":        _round_rating(average),
                "ratingsDistribution":  {str(r): by_rating.get(r, 0) for r in range(5, 0, -1)},
            },
        }


driver_service = DriverService()
