import logging
from datetime import date, datetime, timezone
from sqlalchemy.orm import Session
from sqlalchemy import or_

from tour_fleet.config import settings
from tour_fleet.models.assignment import AssignmentStatus
from tour_fleet.models.driver import Driver
from tour_fleet.models.maintenance_record import MaintenanceRecord
from tour_fleet.models.resource import Resource, ResourceType, ResourceStatus
from tour_fleet.models.vehicle import Vehicle
from tour_fleet.models.vehicle_pairing import VehiclePairing
from tour_fleet.schemas.common import PaginationParams
from tour_fleet.schemas.vehicle import (
    VehicleCreateRequest, VehicleUpdateRequest, ResourceStatusRequest,
    VehicleAssignmentRequest, AssignDriverRequest, MaintenanceCreateRequest,
)
from tour_fleet.services.availability_service import resolver
from tour_fleet.services.conflict_guard import guard
from tour_fleet.services.ledger_service import ledger, serialize_assignment
from tour_fleet.services.registry_service import registry
from tour_fleet.utils.audit import log_action
from tour_fleet.utils.exceptions import (
    NotFoundException, DuplicateEntryException, CapacityExceededException,
)
from tour_fleet.utils.locks import resource_locks

logger = logging.getLogger(__name__)


def _driver_ref(d: Driver | None) -> dict | None:
    if d is None:
        return None
    return {
        "id":            d.id,
        "fullName":      d.displayName,
        "licenseNumber": d.licenseNumber,
        "phone":         d.phone,
    }


def _serialize(db: Session, v: Vehicle) -> dict:
    driver = db.get(Driver, v.currentDriverId) if v.currentDriverId else None
    return {
        "id":          v.id,
        "displayName": v.displayName,
        "plate":       v.plate,
        "brand":       v.brand,
        "model":       v.model,
        "year":        v.year,
        "vehicleType": v.vehicleType,
        "capacity":    v.capacity,
        "agencyId":    v.resource.agencyId,
        "status":      v.resource.status.value,
        "statusReason": v.resource.statusReason,
        "isAvailable": v.resource.isAvailable,
        "currentAssignmentId": v.resource.currentAssignmentId,
        "documents": {
            "soat": {
                "number": v.soatNumber,
                "expiry": v.soatExpiry.isoformat() if v.soatExpiry else None,
            },
            "technicalReview": {
                "number": v.technicalReviewNumber,
                "expiry": v.technicalReviewExpiry.isoformat() if v.technicalReviewExpiry else None,
            },
        },
        "driver":    _driver_ref(driver),
        "createdAt": v.resource.createdAt.isoformat() if v.resource.createdAt else None,
        "updatedAt": v.resource.updatedAt.isoformat() if v.resource.updatedAt else None,
    }


def _serialize_maintenance(m: MaintenanceRecord) -> dict:
    return {
        "id":          m.id,
        "vehicleId":   m.vehicleId,
        "description": m.description,
        "date":        m.date.isoformat(),
        "cost":        float(m.cost) if m.cost is not None else None,
        "createdBy":   m.createdBy,
        "createdAt":   m.createdAt.isoformat() if m.createdAt else None,
    }


class VehicleService:

    def _get(self, db: Session, vehicle_id: int) -> Vehicle:
        v = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
        if not v:
            raise NotFoundException("Vehicle")
        return v

    def list_vehicles(
        self, db: Session, pagination: PaginationParams,
        status: ResourceStatus | None, vehicle_type: str | None, agency_id: str | None,
        driver_id: int | None, available: bool | None, search: str | None,
    ) -> tuple[list[dict], int]:
        q = db.query(Vehicle).join(Vehicle.resource)

        if status:              q = q.filter(Resource.status == status)
        if vehicle_type:        q = q.filter(Vehicle.vehicleType == vehicle_type.lower())
        if agency_id:           q = q.filter(Resource.agencyId == agency_id)
        if driver_id:           q = q.filter(Vehicle.currentDriverId == driver_id)
        if available is not None:
            q = q.filter(Resource.isAvailable.is_(available))
        if search:
            # autoescape: "%" and "_" in the search text match literally
            q = q.filter(or_(
                Vehicle.brand.icontains(search, autoescape=True),
                Vehicle.model.icontains(search, autoescape=True),
                Vehicle.plate.icontains(search, autoescape=True),
                Vehicle.vehicleType.icontains(search, autoescape=True),
            ))

        total = q.count()
        items = q.order_by(Vehicle.id).offset(pagination.offset).limit(pagination.pageSize).all()
        return [_serialize(db, v) for v in items], total

    def get_vehicle(self, db: Session, vehicle_id: int) -> dict:
        v = self._get(db, vehicle_id)
        data = _serialize(db, v)
        recent, _ = ledger.history(db, v.id, 1, settings.RECENT_ASSIGNMENTS_LIMIT)
        data["recentAssignments"] = [serialize_assignment(a) for a in recent]
        data["maintenanceRecords"] = self.list_maintenance(db, vehicle_id)
        return data

    def create_vehicle(self, db: Session, data: VehicleCreateRequest, actor: str | None) -> dict:
        if db.query(Vehicle).filter(Vehicle.plate == data.plate).first():
            raise DuplicateEntryException("Plate already registered", field="plate")

        resource = registry.create(db, ResourceType.VEHICLE, data.agencyId)
        vehicle = Vehicle(
            id=resource.id,
            plate=data.plate,
            brand=data.brand,
            model=data.model,
            year=data.year,
            vehicleType=data.vehicleType,
            capacity=data.capacity,
            soatNumber=data.soatNumber,
            soatExpiry=data.soatExpiry,
            technicalReviewNumber=data.technicalReviewNumber,
            technicalReviewExpiry=data.technicalReviewExpiry,
        )
        db.add(vehicle)
        db.flush()
        log_action(db, actor, "REGISTER", "Vehicle", vehicle.id,
                   f"Registered vehicle {data.plate} ({data.brand} {data.model})")
        db.commit()
        db.refresh(vehicle)
        logger.info(f"Vehicle {vehicle.id} registered ({vehicle.plate})")
        return _serialize(db, vehicle)

    def update_vehicle(self, db: Session, vehicle_id: int, data: VehicleUpdateRequest, actor: str | None) -> dict:
        v = self._get(db, vehicle_id)

        if data.plate and data.plate != v.plate:
            if db.query(Vehicle).filter(Vehicle.plate == data.plate, Vehicle.id != vehicle_id).first():
                raise DuplicateEntryException("Plate already used", field="plate")

        fields = data.model_dump(exclude_unset=True, exclude={"agencyId"})
        for name, value in fields.items():
            if value is not None:
                setattr(v, name, value)
        if "agencyId" in data.model_fields_set:
            v.resource.agencyId = data.agencyId

        log_action(db, actor, "UPDATE", "Vehicle", v.id, f"Updated vehicle {v.plate}")
        db.commit()
        db.refresh(v)
        return _serialize(db, v)

    def update_status(self, db: Session, vehicle_id: int, data: ResourceStatusRequest, actor: str | None) -> dict:
        v = self._get(db, vehicle_id)
        registry.update_status(db, v.resource, data.status, data.reason, actor)
        db.commit()
        db.refresh(v)
        return _serialize(db, v)

    # ─── Availability ─────────────────────────────────────────────────────────
    def available_vehicles(self, db: Session, day: date | None, min_capacity: int | None,
                           vehicle_type: str | None, agency_id: str | None) -> list[dict]:
        return resolver.available_vehicles(db, day, min_capacity, vehicle_type, agency_id)

    def check_availability(self, db: Session, vehicle_id: int, day: date | None,
                           date_from: date | None = None, date_to: date | None = None) -> dict:
        v = self._get(db, vehicle_id)
        return resolver.check_resource(db, v.resource, day, date_from, date_to)

    # ─── Tour assignments ─────────────────────────────────────────────────────
    def create_assignment(self, db: Session, vehicle_id: int, data: VehicleAssignmentRequest,
                          actor: str | None) -> dict:
        v = self._get(db, vehicle_id)
        if data.passengers is not None and data.passengers > v.capacity:
            raise CapacityExceededException(data.passengers, v.capacity)
        if data.driverId is not None and not db.get(Driver, data.driverId):
            raise NotFoundException("Driver")

        assignment = guard.try_claim(
            db, v.id, ResourceType.VEHICLE, data.date, data.tourId, data.tourCode,
            passengers=data.passengers, paired_resource_id=data.driverId,
            notes=data.notes, actor=actor,
        )
        return serialize_assignment(assignment)

    def release_assignment(self, db: Session, vehicle_id: int, day: date | None, actor: str | None) -> dict:
        self._get(db, vehicle_id)
        assignment = guard.release_current(db, vehicle_id, ResourceType.VEHICLE, day, actor)
        return serialize_assignment(assignment)

    def get_assignments(self, db: Session, vehicle_id: int, pagination: PaginationParams,
                        status: AssignmentStatus | None = None,
                        date_from: date | None = None, date_to: date | None = None) -> tuple[list[dict], int]:
        self._get(db, vehicle_id)
        items, total = ledger.history(db, vehicle_id, pagination.page, pagination.pageSize,
                                      status, date_from, date_to)
        return [serialize_assignment(a) for a in items], total

    # ─── Vehicle <-> driver pairing ───────────────────────────────────────────
    def _close_pairing(self, db: Session, pairing: VehiclePairing, actor: str | None, now: datetime) -> None:
        pairing.releasedAt = now
        pairing.releasedBy = actor
        vehicle = db.get(Vehicle, pairing.vehicleId)
        driver  = db.get(Driver, pairing.driverId)
        if vehicle and vehicle.currentDriverId == pairing.driverId:
            vehicle.currentDriverId = None
        if driver and driver.currentVehicleId == pairing.vehicleId:
            driver.currentVehicleId = None
        log_action(db, actor, "UNPAIR", "VehiclePairing", pairing.id,
                   f"Driver {pairing.driverId} unpaired from vehicle {pairing.vehicleId}")

    def _open_pairings(self, db: Session, vehicle_id: int | None = None, driver_id: int | None = None):
        q = db.query(VehiclePairing).filter(VehiclePairing.releasedAt == None)  # noqa: E711
        conds = []
        if vehicle_id is not None: conds.append(VehiclePairing.vehicleId == vehicle_id)
        if driver_id is not None:  conds.append(VehiclePairing.driverId == driver_id)
        return q.filter(or_(*conds)).all()

    def assign_driver(self, db: Session, vehicle_id: int, data: AssignDriverRequest, actor: str | None) -> dict:
        """
        Pair a driver with a vehicle. Existing pairings of either side are
        closed first, so reassignment is a single call.
        """
        vehicle = self._get(db, vehicle_id)
        driver = db.get(Driver, data.driverId)
        if not driver:
            raise NotFoundException("Driver")

        with resource_locks((ResourceType.VEHICLE.value, vehicle.id), (ResourceType.DRIVER.value, driver.id)):
            try:
                now = datetime.now(timezone.utc)
                for pairing in self._open_pairings(db, vehicle_id=vehicle.id, driver_id=driver.id):
                    self._close_pairing(db, pairing, actor, now)
                db.flush()

                pairing = VehiclePairing(
                    vehicleId=vehicle.id,
                    driverId=driver.id,
                    assignedAt=now,
                    assignedBy=actor,
                )
                db.add(pairing)
                vehicle.currentDriverId = driver.id
                driver.currentVehicleId = vehicle.id
                db.flush()
                log_action(db, actor, "PAIR", "VehiclePairing", pairing.id,
                           f"Driver {driver.displayName} paired with vehicle {vehicle.plate}")
                db.commit()
            except Exception:
                db.rollback()
                raise

        logger.info(f"Vehicle {vehicle.id} paired with driver {driver.id}")
        return {
            "pairingId":  pairing.id,
            "vehicleId":  vehicle.id,
            "driverId":   driver.id,
            "assignedAt": pairing.assignedAt.isoformat(),
            "assignedBy": pairing.assignedBy,
        }

    def unassign_driver(self, db: Session, vehicle_id: int, actor: str | None) -> dict:
        vehicle = self._get(db, vehicle_id)
        driver_id = vehicle.currentDriverId

        keys = [(ResourceType.VEHICLE.value, vehicle.id)]
        if driver_id:
            keys.append((ResourceType.DRIVER.value, driver_id))
        with resource_locks(*keys):
            try:
                now = datetime.now(timezone.utc)
                for pairing in self._open_pairings(db, vehicle_id=vehicle.id):
                    self._close_pairing(db, pairing, actor, now)
                vehicle.currentDriverId = None
                db.commit()
            except Exception:
                db.rollback()
                raise

        return {"vehicleId": vehicle.id, "previousDriverId": driver_id, "releasedAt": now.isoformat()}

    # ─── Maintenance ──────────────────────────────────────────────────────────
    def list_maintenance(self, db: Session, vehicle_id: int) -> list[dict]:
        self._get(db, vehicle_id)
        records = db.query(MaintenanceRecord).filter(MaintenanceRecord.vehicleId == vehicle_id)\
                    .order_by(MaintenanceRecord.date.desc(), MaintenanceRecord.id.desc()).all()
        return [_serialize_maintenance(m) for m in records]

    def add_maintenance(self, db: Session, vehicle_id: int, data: MaintenanceCreateRequest,
                        actor: str | None) -> dict:
        v = self._get(db, vehicle_id)
        record = MaintenanceRecord(
            vehicleId=v.id,
            description=data.description,
            date=data.date,
            cost=data.cost,
            createdBy=actor,
        )
        db.add(record)
        db.flush()
        log_action(db, actor, "CREATE", "MaintenanceRecord", record.id,
                   f"Maintenance on {v.plate}: {data.description}")
        if data.setMaintenanceStatus:
            registry.update_status(db, v.resource, ResourceStatus.MAINTENANCE,
                                   f"Maintenance record #{record.id}", actor)
        db.commit()
        db.refresh(record)
        return _serialize_maintenance(record)


vehicle_service = VehicleService()
