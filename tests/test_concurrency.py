# tests/test_concurrency.py
"""Simultaneous claims on one resource, each on its own session and thread."""

import threading
import pytest
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from tour_fleet.database import Base
from tour_fleet.models.assignment import Assignment, AssignmentStatus
from tour_fleet.models.resource import ResourceType
from tour_fleet.services.conflict_guard import guard
from tour_fleet.services.registry_service import registry
from tour_fleet.utils.exceptions import DoubleBookingException
from tests.conftest import make_vehicle, held_lock_count

WORKERS = 8


@pytest.fixture
def file_sessions(tmp_path):
    file_engine = create_engine(f"sqlite:///{tmp_path / 'race.db'}",
                                connect_args={"check_same_thread": False, "timeout": 30})
    Base.metadata.create_all(bind=file_engine)
    yield sessionmaker(bind=file_engine, autoflush=False, expire_on_commit=False)
    file_engine.dispose()


def race(factory, vehicle_id, days):
    start = threading.Barrier(len(days))

    def attempt(i_day):
        i, day = i_day
        session = factory()
        try:
            start.wait()
            guard.try_claim(session, vehicle_id, ResourceType.VEHICLE, day, f"T{i}")
            return "ok"
        except DoubleBookingException:
            return "double"
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=len(days)) as pool:
        return list(pool.map(attempt, enumerate(days)))


class TestConcurrentClaims:
    def test_only_one_claim_wins_the_same_day(self, file_sessions):
        with file_sessions() as session:
            vehicle_id = make_vehicle(session)["id"]

        results = race(file_sessions, vehicle_id, [date(2024, 5, 1)] * WORKERS)

        assert results.count("ok") == 1
        assert results.count("double") == WORKERS - 1
        assert held_lock_count() == 0
        with file_sessions() as session:
            active = session.query(Assignment).filter(Assignment.status == AssignmentStatus.ACTIVE).count()
            assert active == 1
            assert registry.get(session, vehicle_id).isAvailable is False

    def test_different_days_all_succeed(self, file_sessions):
        with file_sessions() as session:
            vehicle_id = make_vehicle(session)["id"]

        days = [date(2024, 5, d) for d in range(1, WORKERS + 1)]
        results = race(file_sessions, vehicle_id, days)

        assert results == ["ok"] * WORKERS
        with file_sessions() as session:
            current = registry.get(session, vehicle_id).currentAssignmentId
            earliest = session.query(Assignment).filter(Assignment.date == date(2024, 5, 1)).one()
            assert current == earliest.id
