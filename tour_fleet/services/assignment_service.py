from sqlalchemy.orm import Session

from tour_fleet.services.conflict_guard import guard
from tour_fleet.services.ledger_service import ledger, serialize_assignment
from tour_fleet.services.registry_service import registry


class AssignmentService:
    """Assignment operations addressed by assignment id rather than by resource."""

    def get_assignment(self, db: Session, assignment_id: int) -> dict:
        return serialize_assignment(ledger.get(db, assignment_id))

    def complete_assignment(self, db: Session, assignment_id: int, actor: str | None) -> dict:
        return serialize_assignment(guard.release(db, assignment_id, actor))

    def rebuild_availability(self, db: Session, actor: str | None) -> dict:
        return {"corrected": registry.rebuild_availability(db, actor)}


assignment_service = AssignmentService()
