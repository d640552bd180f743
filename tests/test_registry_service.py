# tests/test_registry_service.py
"""Resource registry: registration, status transitions, duplicate keys."""

import pytest

from tour_fleet.models.assignment import Assignment, AssignmentStatus
from tour_fleet.models.resource import Resource, ResourceType, ResourceStatus
from tour_fleet.schemas.vehicle import ResourceStatusRequest, VehicleUpdateRequest, VehicleAssignmentRequest
from tour_fleet.schemas.driver import DriverUpdateRequest
from tour_fleet.services.driver_service import driver_service
from tour_fleet.services.registry_service import registry
from tour_fleet.services.vehicle_service import vehicle_service
from tour_fleet.utils.exceptions import NotFoundException, DuplicateEntryException
from tests.conftest import make_vehicle, make_driver, TOUR_DAY


class TestRegistration:
    def test_new_vehicle_starts_active_and_available(self, db):
        v = make_vehicle(db, plate="abc-123")

        assert v["plate"] == "ABC-123"
        assert v["status"] == "active"
        assert v["isAvailable"] is True
        assert v["currentAssignmentId"] is None

    def test_vehicle_and_driver_share_the_resource_id_space(self, db):
        v = make_vehicle(db)
        d = make_driver(db)

        assert v["id"] != d["id"]
        assert registry.get(db, v["id"]).type == ResourceType.VEHICLE
        assert registry.get(db, d["id"]).type == ResourceType.DRIVER

    def test_duplicate_plate_rejected(self, db):
        make_vehicle(db, plate="ABC-123")
        with pytest.raises(DuplicateEntryException) as exc:
            make_vehicle(db, plate="abc-123")
        assert exc.value.field == "plate"
        assert db.query(Resource).count() == 1

    def test_duplicate_license_rejected(self, db):
        make_driver(db, license_number="Q1")
        with pytest.raises(DuplicateEntryException) as exc:
            make_driver(db, license_number="Q1")
        assert exc.value.field == "licenseNumber"

    def test_update_plate_to_existing_one_rejected(self, db):
        make_vehicle(db, plate="AAA-111")
        other = make_vehicle(db, plate="BBB-222")
        with pytest.raises(DuplicateEntryException):
            vehicle_service.update_vehicle(db, other["id"], VehicleUpdateRequest(plate="AAA-111"), None)

    def test_update_driver_fields(self, db):
        d = make_driver(db)
        updated = driver_service.update_driver(
            db, d["id"], DriverUpdateRequest(phone="999888777", agencyId="AG-2"), "ops")
        assert updated["phone"] == "999888777"
        assert updated["agencyId"] == "AG-2"
        assert updated["firstName"] == "Luis"


class TestLookup:
    def test_unknown_id_is_not_found(self, db):
        with pytest.raises(NotFoundException) as exc:
            vehicle_service.get_vehicle(db, 999)
        assert exc.value.message == "Vehicle not found"

    def test_driver_id_is_not_a_vehicle(self, db):
        d = make_driver(db)
        with pytest.raises(NotFoundException):
            registry.get(db, d["id"], ResourceType.VEHICLE)


class TestStatus:
    def test_status_change_leaves_assignments_and_flag_alone(self, db):
        v = make_vehicle(db)
        vehicle_service.create_assignment(
            db, v["id"], VehicleAssignmentRequest(tourId="T1", date=TOUR_DAY), None)

        updated = vehicle_service.update_status(
            db, v["id"], ResourceStatusRequest(status=ResourceStatus.MAINTENANCE, reason="Brakes"), "ops")

        assert updated["status"] == "maintenance"
        assert updated["statusReason"] == "Brakes"
        assert updated["isAvailable"] is False
        assert db.query(Assignment).filter(Assignment.status == AssignmentStatus.ACTIVE).count() == 1
