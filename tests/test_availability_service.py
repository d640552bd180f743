# tests/test_availability_service.py
"""Availability resolver: date-scoped scans, cached flag, filters."""

import pytest
from datetime import date

from tour_fleet.models.resource import ResourceStatus
from tour_fleet.schemas.vehicle import ResourceStatusRequest, VehicleAssignmentRequest
from tour_fleet.services.availability_service import resolver, requires_special_license
from tour_fleet.services.driver_service import driver_service
from tour_fleet.services.registry_service import registry
from tour_fleet.services.vehicle_service import vehicle_service
from tour_fleet.utils.exceptions import ValidationException
from tests.conftest import make_vehicle, make_driver, TOUR_DAY


def claim(db, vehicle_id, day=TOUR_DAY):
    return vehicle_service.create_assignment(
        db, vehicle_id, VehicleAssignmentRequest(tourId="T1", date=day), None)


class TestAvailableVehicles:
    def test_claim_only_blocks_its_own_day(self, db):
        v = make_vehicle(db)
        claim(db, v["id"])

        assert resolver.available_vehicles(db, TOUR_DAY) == []
        assert [x["id"] for x in resolver.available_vehicles(db, date(2024, 5, 2))] == [v["id"]]

    def test_no_date_uses_cached_flag(self, db):
        busy = make_vehicle(db, plate="BUSY-1")
        free = make_vehicle(db, plate="FREE-1")
        # Claimed for a future day: not "currently available" even though today is free
        claim(db, busy["id"], date(2030, 1, 1))

        assert [x["id"] for x in resolver.available_vehicles(db, None)] == [free["id"]]

    def test_non_active_status_never_available(self, db):
        v = make_vehicle(db)
        for s in (ResourceStatus.INACTIVE, ResourceStatus.MAINTENANCE, ResourceStatus.TERMINATED):
            vehicle_service.update_status(db, v["id"], ResourceStatusRequest(status=s), None)
            assert resolver.available_vehicles(db, TOUR_DAY) == []
            assert resolver.available_vehicles(db, None) == []

    def test_min_capacity_and_type_filters(self, db):
        small = make_vehicle(db, plate="CAR-1", capacity=4, vehicle_type="car")
        van = make_vehicle(db, plate="VAN-1", capacity=12, vehicle_type="van")
        bus = make_vehicle(db, plate="BUS-1", capacity=40, vehicle_type="bus")

        assert [x["id"] for x in resolver.available_vehicles(db, TOUR_DAY, min_capacity=10)] == [van["id"], bus["id"]]
        assert [x["id"] for x in resolver.available_vehicles(db, TOUR_DAY, vehicle_type="CAR")] == [small["id"]]

    def test_agency_filter(self, db):
        make_vehicle(db, plate="A-1", agency_id="AG-1")
        mine = make_vehicle(db, plate="B-1", agency_id="AG-2")
        assert [x["id"] for x in resolver.available_vehicles(db, TOUR_DAY, agency_id="AG-2")] == [mine["id"]]

    def test_repeated_calls_are_identical(self, db):
        for i in range(4):
            make_vehicle(db, plate=f"P-{i}")
        assert resolver.available_vehicles(db, TOUR_DAY) == resolver.available_vehicles(db, TOUR_DAY)


class TestAvailableDrivers:
    def test_bus_needs_professional_licence(self, db):
        make_driver(db, license_number="L1", category="A-IIB")
        pro = make_driver(db, license_number="L2", category="B-IIC")

        ids = [d["id"] for d in resolver.available_drivers(db, TOUR_DAY, vehicle_type="bus")]
        assert ids == [pro["id"]]
        assert len(resolver.available_drivers(db, TOUR_DAY, vehicle_type="van")) == 2

    def test_licence_category_filter(self, db):
        make_driver(db, license_number="L1", category="A-IIB")
        make_driver(db, license_number="L2", category="B-IIC")
        found = driver_service.available_drivers(db, TOUR_DAY, None, "a-iib", None)
        assert [d["licenseCategory"] for d in found] == ["A-IIB"]

    def test_special_licence_types(self):
        assert requires_special_license("Bus")
        assert requires_special_license("minibus")
        assert not requires_special_license("van")
        assert not requires_special_license(None)


class TestCheckResource:
    def test_reports_conflicting_assignment(self, db):
        v = make_vehicle(db)
        a = claim(db, v["id"])

        result = resolver.check_resource(db, registry.get(db, v["id"]), TOUR_DAY)
        assert result["isAvailable"] is False
        assert result["reason"] == "Already assigned on 2024-05-01"
        assert [x["id"] for x in result["assignments"]] == [a["id"]]

    def test_status_reason_wins(self, db):
        v = make_vehicle(db)
        vehicle_service.update_status(
            db, v["id"], ResourceStatusRequest(status=ResourceStatus.MAINTENANCE), None)

        result = vehicle_service.check_availability(db, v["id"], TOUR_DAY)
        assert result["isAvailable"] is False
        assert result["status"] == "maintenance"
        assert "maintenance" in result["reason"]

    def test_free_resource(self, db):
        v = make_vehicle(db)
        result = vehicle_service.check_availability(db, v["id"], None)
        assert result == {
            "resourceId":   v["id"],
            "resourceType": "vehicle",
            "date":         None,
            "dateFrom":     None,
            "dateTo":       None,
            "isAvailable":  True,
            "status":       "active",
            "reason":       None,
            "assignments":  [],
        }

    def test_range_lists_every_claim_inside(self, db):
        v = make_vehicle(db)
        first  = claim(db, v["id"], day=date(2024, 5, 2))
        second = claim(db, v["id"], day=date(2024, 5, 4))
        claim(db, v["id"], day=date(2024, 5, 9))

        result = vehicle_service.check_availability(
            db, v["id"], None, date(2024, 5, 1), date(2024, 5, 5))

        assert result["isAvailable"] is False
        assert result["dateFrom"] == "2024-05-01"
        assert result["dateTo"] == "2024-05-05"
        assert result["reason"] == "Already assigned on 2024-05-02, 2024-05-04"
        assert [x["id"] for x in result["assignments"]] == [first["id"], second["id"]]

    def test_range_without_claims_is_free(self, db):
        v = make_vehicle(db)
        claim(db, v["id"], day=date(2024, 5, 9))
        result = vehicle_service.check_availability(
            db, v["id"], None, date(2024, 5, 1), date(2024, 5, 5))
        assert result["isAvailable"] is True
        assert result["assignments"] == []

    def test_date_and_range_together_rejected(self, db):
        v = make_vehicle(db)
        with pytest.raises(ValidationException) as exc:
            vehicle_service.check_availability(db, v["id"], TOUR_DAY, date(2024, 5, 1), None)
        assert exc.value.field == "date"
