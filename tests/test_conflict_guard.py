# tests/test_conflict_guard.py
"""Claim/release rules: double booking, flag/ledger agreement, capacity."""

import pytest
from datetime import date

from tour_fleet.models.assignment import Assignment, AssignmentStatus
from tour_fleet.models.audit_log import AuditLog
from tour_fleet.models.resource import Resource, ResourceStatus
from tour_fleet.schemas.driver import DriverAssignmentRequest
from tour_fleet.schemas.vehicle import ResourceStatusRequest, VehicleAssignmentRequest
from tour_fleet.services.availability_service import resolver
from tour_fleet.services.conflict_guard import guard
from tour_fleet.services.driver_service import driver_service
from tour_fleet.services.ledger_service import ledger
from tour_fleet.services.registry_service import registry
from tour_fleet.services.vehicle_service import vehicle_service
from tour_fleet.utils.exceptions import (
    DoubleBookingException, ResourceInactiveException, InvalidStateException,
    CapacityExceededException, NotFoundException,
)
from tests.conftest import make_vehicle, make_driver, held_lock_count, flag_matches_ledger, TOUR_DAY


def assign(db, vehicle_id, tour_id, day=TOUR_DAY, passengers=None, **extra):
    return vehicle_service.create_assignment(db, vehicle_id, VehicleAssignmentRequest(
        tourId=tour_id, date=day, passengers=passengers, **extra,
    ), "tester")


def available_ids(db, day=TOUR_DAY):
    return [v["id"] for v in resolver.available_vehicles(db, day)]


class TestVehicleScenario:
    def test_claim_conflict_release_cycle(self, db):
        v1 = make_vehicle(db, capacity=10)
        assert v1["id"] in available_ids(db)

        first = assign(db, v1["id"], "T1", passengers=8)
        assert first["status"] == "active"
        assert first["date"] == "2024-05-01"

        with pytest.raises(DoubleBookingException) as exc:
            assign(db, v1["id"], "T2", passengers=4)
        assert exc.value.details == {"conflictingAssignmentId": first["id"], "date": "2024-05-01"}
        assert v1["id"] not in available_ids(db)

        released = vehicle_service.release_assignment(db, v1["id"], None, "tester")
        assert released["status"] == "completed"
        assert v1["id"] in available_ids(db)

    def test_over_capacity_creates_no_ledger_entry(self, db):
        v1 = make_vehicle(db, capacity=10)

        with pytest.raises(CapacityExceededException) as exc:
            assign(db, v1["id"], "T3", passengers=15)

        assert exc.value.field == "passengers"
        assert ledger.count_for_resource(db, v1["id"]) == 0
        assert registry.get(db, v1["id"]).isAvailable is True

    def test_passengers_equal_to_capacity_allowed(self, db):
        v1 = make_vehicle(db, capacity=10)
        assert assign(db, v1["id"], "T1", passengers=10)["passengers"] == 10


class TestClaimRules:
    def test_inactive_resource_cannot_be_claimed(self, db):
        v = make_vehicle(db)
        vehicle_service.update_status(
            db, v["id"], ResourceStatusRequest(status=ResourceStatus.INACTIVE), None)

        with pytest.raises(ResourceInactiveException) as exc:
            assign(db, v["id"], "T1")
        assert exc.value.details == {"status": "inactive"}
        assert ledger.count_for_resource(db, v["id"]) == 0

    def test_different_dates_do_not_conflict(self, db):
        v = make_vehicle(db)
        a = assign(db, v["id"], "T1", day=date(2024, 5, 1))
        b = assign(db, v["id"], "T2", day=date(2024, 5, 2))

        resource = registry.get(db, v["id"])
        assert resource.isAvailable is False
        assert resource.currentAssignmentId == a["id"]

        guard.release(db, a["id"], None)
        resource = registry.get(db, v["id"])
        # Still holds the 2nd of May
        assert resource.isAvailable is False
        assert resource.currentAssignmentId == b["id"]

        guard.release(db, b["id"], None)
        resource = registry.get(db, v["id"])
        assert resource.isAvailable is True
        assert resource.currentAssignmentId is None

    def test_same_day_free_again_after_release(self, db):
        v = make_vehicle(db)
        first = assign(db, v["id"], "T1")
        guard.release(db, first["id"], None)

        second = assign(db, v["id"], "T2")
        assert second["id"] != first["id"]
        assert ledger.count_for_resource(db, v["id"]) == 2

    def test_companion_driver_must_exist(self, db):
        v = make_vehicle(db)
        with pytest.raises(NotFoundException):
            assign(db, v["id"], "T1", driverId=4242)
        assert ledger.count_for_resource(db, v["id"]) == 0

    def test_companion_is_recorded_but_not_claimed(self, db):
        v = make_vehicle(db)
        d = make_driver(db)
        a = assign(db, v["id"], "T1", driverId=d["id"])

        assert a["pairedResourceId"] == d["id"]
        assert registry.get(db, d["id"]).isAvailable is True

    def test_driver_claims_follow_the_same_rules(self, db):
        d = make_driver(db)
        req = DriverAssignmentRequest(tourId="T1", date=TOUR_DAY)
        driver_service.create_assignment(db, d["id"], req, None)
        with pytest.raises(DoubleBookingException):
            driver_service.create_assignment(db, d["id"], req, None)
        assert driver_service.available_drivers(db, TOUR_DAY, None, None, None) == []

    def test_locks_are_released_after_rejection(self, db):
        v = make_vehicle(db)
        assign(db, v["id"], "T1")
        with pytest.raises(DoubleBookingException):
            assign(db, v["id"], "T2")
        assert held_lock_count() == 0


class TestRelease:
    def test_release_of_completed_assignment_changes_nothing(self, db):
        v = make_vehicle(db)
        a = assign(db, v["id"], "T1")
        guard.release(db, a["id"], "ops")
        before = (registry.get(db, v["id"]).isAvailable, ledger.count_for_resource(db, v["id"]))

        with pytest.raises(InvalidStateException):
            guard.release(db, a["id"], "ops")

        after = (registry.get(db, v["id"]).isAvailable, ledger.count_for_resource(db, v["id"]))
        assert before == after
        assert ledger.get(db, a["id"]).completedBy == "ops"

    def test_release_without_active_assignment(self, db):
        v = make_vehicle(db)
        with pytest.raises(NotFoundException) as exc:
            vehicle_service.release_assignment(db, v["id"], None, None)
        assert exc.value.message == "Active assignment not found"

    def test_release_by_date_picks_that_claim(self, db):
        v = make_vehicle(db)
        assign(db, v["id"], "T1", day=date(2024, 5, 1))
        later = assign(db, v["id"], "T2", day=date(2024, 5, 3))

        released = vehicle_service.release_assignment(db, v["id"], date(2024, 5, 3), None)

        assert released["id"] == later["id"]
        assert v["id"] not in available_ids(db, date(2024, 5, 1))
        assert v["id"] in available_ids(db, date(2024, 5, 3))

    def test_unknown_assignment(self, db):
        with pytest.raises(NotFoundException):
            guard.release(db, 12345, None)


class TestLedgerAgreement:
    def test_flag_matches_ledger_after_mixed_operations(self, db):
        vehicles = [make_vehicle(db, plate=f"V-{i}") for i in range(3)]
        a = assign(db, vehicles[0]["id"], "T1")
        assign(db, vehicles[1]["id"], "T2")
        guard.release(db, a["id"], None)

        for resource in db.query(Resource).all():
            assert flag_matches_ledger(db, resource)

    def test_ledger_only_grows(self, db):
        v = make_vehicle(db)
        counts = [ledger.count_for_resource(db, v["id"])]
        a = assign(db, v["id"], "T1")
        counts.append(ledger.count_for_resource(db, v["id"]))
        guard.release(db, a["id"], None)
        counts.append(ledger.count_for_resource(db, v["id"]))
        with pytest.raises(InvalidStateException):
            guard.release(db, a["id"], None)
        counts.append(ledger.count_for_resource(db, v["id"]))

        assert counts == sorted(counts)
        assert counts[-1] == 1

    def test_rebuild_repairs_drifted_flags(self, db):
        v = make_vehicle(db)
        d = make_driver(db)
        assign(db, v["id"], "T1")

        # Simulate drift on both resources
        db.query(Resource).filter(Resource.id == v["id"]).update({"isAvailable": True, "currentAssignmentId": None})
        db.query(Resource).filter(Resource.id == d["id"]).update({"isAvailable": False})
        db.commit()
        db.expire_all()

        assert registry.rebuild_availability(db, "ops") == 2
        assert registry.get(db, v["id"]).isAvailable is False
        assert registry.get(db, d["id"]).isAvailable is True
        assert registry.rebuild_availability(db, "ops") == 0

    def test_history_is_most_recent_first(self, db):
        v = make_vehicle(db)
        first = assign(db, v["id"], "T1", day=date(2024, 5, 1))
        second = assign(db, v["id"], "T2", day=date(2024, 4, 1))

        items, total = ledger.history(db, v["id"])
        assert total == 2
        assert [a.id for a in items] == [second["id"], first["id"]]

        active, _ = ledger.history(db, v["id"], status=AssignmentStatus.ACTIVE)
        assert len(active) == 2

    def test_claim_writes_audit_rows(self, db):
        v = make_vehicle(db)
        a = assign(db, v["id"], "T1")
        guard.release(db, a["id"], "ops")

        actions = [row.action for row in db.query(AuditLog).filter(AuditLog.entityType == "Assignment")]
        assert actions == ["CLAIM", "RELEASE"]
        assert db.query(Assignment).count() == 1
