import logging
from sqlalchemy.orm import Session
from tour_fleet.models.audit_log import AuditLog

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"


def log_action(
    db: Session,
    actor: str | None,
    action: str,
    entity_type: str,
    entity_id: int | None = None,
    description: str | None = None,
) -> AuditLog:
    """
    Record a mutation in the audit trail, inside the caller's transaction.
    The row is only added; it lands or disappears with the caller's commit.

    actor is the X-Actor header value (None is recorded as "system").
    action is a verb such as REGISTER, STATUS, CLAIM, RELEASE, PAIR, REBUILD.

        log_action(db, actor, "CLAIM", "Assignment", assignment.id,
                   f"vehicle {vehicle.id} claimed for tour {tour_id}")
    """
    entry = AuditLog(
        actor=actor or SYSTEM_ACTOR,
        action=action,
        entityType=entity_type,
        entityId=entity_id,
        description=description,
    )
    db.add(entry)
    logger.debug(f"audit {entry.actor} {action} {entity_type}:{entity_id}")
    return entry
