# tests/conftest.py
"""Shared fixtures: an in-memory SQLite schema rebuilt for every test."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_ENV"] = "test"

import pytest
from datetime import date
from fastapi.testclient import TestClient

import tour_fleet.models  # noqa: F401
from tour_fleet.database import Base, SessionLocal, engine
from tour_fleet.models.assignment import Assignment, AssignmentStatus
from tour_fleet.main import app
from tour_fleet.schemas.driver import DriverCreateRequest
from tour_fleet.schemas.vehicle import VehicleCreateRequest
from tour_fleet.services.driver_service import driver_service
from tour_fleet.services.vehicle_service import vehicle_service
from tour_fleet.utils import locks

TOUR_DAY = date(2024, 5, 1)


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    # No context manager: startup hooks stay off, the schema fixture owns the tables
    return TestClient(app)


def make_vehicle(db, plate="ABC-123", capacity=10, vehicle_type="van", agency_id=None, **extra):
    return vehicle_service.create_vehicle(db, VehicleCreateRequest(
        plate=plate,
        brand=extra.pop("brand", "Toyota"),
        model=extra.pop("model", "Hiace"),
        vehicleType=vehicle_type,
        capacity=capacity,
        agencyId=agency_id,
        **extra,
    ), "tester")


def make_driver(db, license_number="Q12345678", category="A-IIB", agency_id=None, **extra):
    return driver_service.create_driver(db, DriverCreateRequest(
        firstName=extra.pop("firstName", "Luis"),
        lastName=extra.pop("lastName", "Quispe"),
        licenseNumber=license_number,
        licenseCategory=category,
        agencyId=agency_id,
        **extra,
    ), "tester")


def held_lock_count():
    with locks._REGISTRY_LOCK:
        return sum(1 for lock in locks._LOCKS.values() if lock.locked())


def flag_matches_ledger(db, resource):
    active = db.query(Assignment).filter(
        Assignment.resourceId == resource.id,
        Assignment.status == AssignmentStatus.ACTIVE,
    ).first()
    return resource.isAvailable == (active is None)
