import logging
from sqlalchemy.orm import Session

from tour_fleet.models.assignment import Assignment
from tour_fleet.models.resource import Resource, ResourceType, ResourceStatus
from tour_fleet.services.ledger_service import ledger
from tour_fleet.utils.audit import log_action
from tour_fleet.utils.exceptions import NotFoundException

logger = logging.getLogger(__name__)

_LABELS = {ResourceType.VEHICLE: "Vehicle", ResourceType.DRIVER: "Driver"}


class ResourceRegistry:
    """
    Common part of the vehicle and driver records: identity, operating status
    and the cached availability flag. Type-specific attributes live in the
    vehicle and driver services.
    """

    def get(self, db: Session, resource_id: int, resource_type: ResourceType | None = None,
            for_update: bool = False) -> Resource:
        q = db.query(Resource).filter(Resource.id == resource_id)
        if resource_type is not None:
            q = q.filter(Resource.type == resource_type)
        if for_update:
            # Row lock on PostgreSQL; refresh whatever the identity map holds
            q = q.with_for_update().populate_existing()
        resource = q.first()
        if not resource:
            raise NotFoundException(_LABELS.get(resource_type, "Resource"))
        return resource

    def create(self, db: Session, resource_type: ResourceType, agency_id: str | None) -> Resource:
        """New records start active and available. Caller flushes/commits."""
        resource = Resource(
            type=resource_type,
            status=ResourceStatus.ACTIVE,
            isAvailable=True,
            agencyId=agency_id,
        )
        db.add(resource)
        db.flush()
        return resource

    def update_status(self, db: Session, resource: Resource, status: ResourceStatus,
                      reason: str | None, actor: str | None) -> Resource:
        """Pure state transition: assignments and the availability flag are left alone."""
        old_status = resource.status.value
        resource.status = status
        resource.statusReason = reason
        log_action(db, actor, "STATUS", _LABELS[resource.type], resource.id,
                   f"Status changed {old_status} -> {status.value}" +
                   (f" | Reason: {reason}" if reason else ""))
        logger.info(f"{resource.type.value} {resource.id} status {old_status} -> {status.value}")
        return resource

    def set_availability_flag(self, db: Session, resource: Resource, value: bool,
                              current_assignment_id: int | None) -> None:
        """
        Only the conflict guard (and the rebuild below) may call this; anything
        else would let the cache drift from the ledger.
        """
        resource.isAvailable = value
        resource.currentAssignmentId = current_assignment_id

    def sync_from_ledger(self, db: Session, resource: Resource) -> Assignment | None:
        """Recompute the cached flag and current-assignment reference from the ledger."""
        current = ledger.find_active_for_resource(db, resource.id)
        self.set_availability_flag(db, resource, current is None, current.id if current else None)
        return current

    def rebuild_availability(self, db: Session, actor: str | None = None) -> int:
        """
        Rebuild every cached flag from the ledger. Returns how many resources
        had drifted. Takes no per-resource locks; run it while claims are quiet.
        """
        fixed = 0
        for resource in db.query(Resource).order_by(Resource.id).all():
            before = (resource.isAvailable, resource.currentAssignmentId)
            self.sync_from_ledger(db, resource)
            if (resource.isAvailable, resource.currentAssignmentId) != before:
                fixed += 1
                logger.warning(
                    f"Availability drift on {resource.type.value} {resource.id}: "
                    f"{before} -> {(resource.isAvailable, resource.currentAssignmentId)}"
                )
        log_action(db, actor, "REBUILD", "Resource", None,
                   f"Availability flags rebuilt from ledger, {fixed} corrected")
        db.commit()
        return fixed


registry = ResourceRegistry()
