import logging
from datetime import date
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tour_fleet.models.assignment import Assignment
from tour_fleet.models.resource import Resource, ResourceType, ResourceStatus
from tour_fleet.services.ledger_service import ledger
from tour_fleet.services.registry_service import registry
from tour_fleet.utils.audit import log_action
from tour_fleet.utils.exceptions import (
    NotFoundException, ResourceInactiveException, DoubleBookingException,
)
from tour_fleet.utils.locks import resource_lock

logger = logging.getLogger(__name__)


class ConflictGuard:
    """
    The only writer of assignments and of the cached availability flag.

    Every claim and release runs inside the per-resource lock and re-reads the
    resource row FOR UPDATE, so check-then-act cannot interleave with another
    claim on the same resource. Ledger row and flag are committed together;
    any failure rolls both back.
    """

    def try_claim(
        self, db: Session, resource_id: int, resource_type: ResourceType, day: date,
        tour_id: str, tour_code: str | None = None, *,
        passengers: int | None = None, paired_resource_id: int | None = None,
        notes: str | None = None, actor: str | None = None,
    ) -> Assignment:
        with resource_lock(resource_type.value, resource_id):
            try:
                resource = registry.get(db, resource_id, resource_type, for_update=True)
                if resource.status != ResourceStatus.ACTIVE:
                    raise ResourceInactiveException(resource.status.value)

                conflicts = ledger.find_active_on_date(db, resource.id, day)
                if conflicts:
                    raise DoubleBookingException(conflicts[0].id, day.isoformat())

                try:
                    assignment = ledger.create(
                        db, resource, tour_id, tour_code, day,
                        passengers=passengers, paired_resource_id=paired_resource_id,
                        notes=notes, actor=actor,
                    )
                except IntegrityError:
                    # Another process won the race; the partial unique index caught it
                    db.rollback()
                    logger.warning(f"Unique index rejected claim on {resource_type.value} "
                                   f"{resource_id} for {day.isoformat()}")
                    raise DoubleBookingException(None, day.isoformat())

                registry.sync_from_ledger(db, resource)
                log_action(db, actor, "CLAIM", "Assignment", assignment.id,
                           f"{resource_type.value} {resource_id} claimed for tour "
                           f"{tour_code or tour_id} on {day.isoformat()}")
                db.commit()
            except Exception:
                db.rollback()
                raise

        logger.info(f"Assignment #{assignment.id}: {resource_type.value} {resource_id} "
                    f"claimed for {day.isoformat()} (tour {tour_id})")
        return assignment

    def release(self, db: Session, assignment_id: int, actor: str | None = None) -> Assignment:
        """Complete an assignment by id. Completed ones are rejected with INVALID_STATE."""
        assignment = ledger.get(db, assignment_id)
        return self._release(db, assignment.resourceType, assignment.resourceId,
                             lambda: ledger.get(db, assignment_id, for_update=True), actor)

    def release_current(
        self, db: Session, resource_id: int, resource_type: ResourceType,
        day: date | None = None, actor: str | None = None,
    ) -> Assignment:
        """Complete the resource's active claim on `day`, or its current one."""
        def pick() -> Assignment:
            registry.get(db, resource_id, resource_type)
            if day is not None:
                found = ledger.find_active_on_date(db, resource_id, day)
                current = found[0] if found else None
            else:
                current = ledger.find_active_for_resource(db, resource_id)
            if current is None:
                raise NotFoundException("Active assignment")
            return current

        return self._release(db, resource_type, resource_id, pick, actor)

    def _release(self, db: Session, resource_type: ResourceType, resource_id: int,
                 pick, actor: str | None) -> Assignment:
        with resource_lock(resource_type.value, resource_id):
            try:
                resource: Resource = registry.get(db, resource_id, for_update=True)
                assignment = pick()
                ledger.complete(db, assignment, actor)
                # Stays unavailable while other dated claims remain
                registry.sync_from_ledger(db, resource)
                log_action(db, actor, "RELEASE", "Assignment", assignment.id,
                           f"{resource_type.value} {resource_id} released from "
                           f"{assignment.date.isoformat()}")
                db.commit()
            except Exception:
                db.rollback()
                raise

        logger.info(f"Assignment #{assignment.id} completed; {resource_type.value} {resource_id} "
                    f"available={resource.isAvailable}")
        return assignment


guard = ConflictGuard()
