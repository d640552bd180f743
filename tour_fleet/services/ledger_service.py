from datetime import date, datetime, timezone
from sqlalchemy import func
from sqlalchemy.orm import Session, Query

from tour_fleet.models.assignment import Assignment, AssignmentStatus
from tour_fleet.models.resource import Resource
from tour_fleet.schemas.common import iso_utc
from tour_fleet.utils.exceptions import NotFoundException, InvalidStateException


def in_date_range(q: Query, date_from: date | None, date_to: date | None) -> Query:
    """Inclusive on both ends; either bound may be open."""
    if date_from: q = q.filter(Assignment.date >= date_from)
    if date_to:   q = q.filter(Assignment.date <= date_to)
    return q


def serialize_assignment(a: Assignment) -> dict:
    return {
        "id":               a.id,
        "resourceId":       a.resourceId,
        "resourceType":     a.resourceType.value,
        "tourId":           a.tourId,
        "tourCode":         a.tourCode,
        "date":             a.date.isoformat(),
        "status":           a.status.value,
        "passengers":       a.passengers,
        "pairedResourceId": a.pairedResourceId,
        "notes":            a.notes,
        "createdBy":        a.createdBy,
        "completedBy":      a.completedBy,
        "createdAt":        iso_utc(a.createdAt),
        "completedAt":      iso_utc(a.completedAt),
    }


class AssignmentLedger:
    """
    Claims of a resource for a tour on a calendar day. Rows are never deleted;
    the only mutation is active -> completed.
    """

    def get(self, db: Session, assignment_id: int, for_update: bool = False) -> Assignment:
        q = db.query(Assignment).filter(Assignment.id == assignment_id)
        if for_update:
            q = q.with_for_update().populate_existing()
        a = q.first()
        if not a:
            raise NotFoundException("Assignment")
        return a

    def create(
        self, db: Session, resource: Resource,
        tour_id: str, tour_code: str | None, day: date,
        passengers: int | None = None, paired_resource_id: int | None = None,
        notes: str | None = None, actor: str | None = None,
    ) -> Assignment:
        """Append an active claim. No conflict check here: the guard has already run."""
        a = Assignment(
            resourceId=resource.id,
            resourceType=resource.type,
            tourId=tour_id,
            tourCode=tour_code,
            date=day,
            status=AssignmentStatus.ACTIVE,
            passengers=passengers,
            pairedResourceId=paired_resource_id,
            notes=notes,
            createdBy=actor,
            createdAt=datetime.now(timezone.utc),
        )
        db.add(a)
        db.flush()
        return a

    def complete(self, db: Session, assignment: Assignment, actor: str | None = None) -> Assignment:
        if assignment.status == AssignmentStatus.COMPLETED:
            raise InvalidStateException(f"Assignment #{assignment.id} is already completed")
        assignment.status      = AssignmentStatus.COMPLETED
        assignment.completedAt = datetime.now(timezone.utc)
        assignment.completedBy = actor
        db.flush()
        return assignment

    def find_active_for_resource(self, db: Session, resource_id: int) -> Assignment | None:
        """The current claim: earliest-dated active assignment."""
        return db.query(Assignment).filter(
            Assignment.resourceId == resource_id,
            Assignment.status == AssignmentStatus.ACTIVE,
        ).order_by(Assignment.date.asc(), Assignment.id.asc()).first()

    def find_active_on_date(self, db: Session, resource_id: int, day: date) -> list[Assignment]:
        return db.query(Assignment).filter(
            Assignment.resourceId == resource_id,
            Assignment.status == AssignmentStatus.ACTIVE,
            Assignment.date == day,
        ).order_by(Assignment.id.asc()).all()

    def count_for_resource(self, db: Session, resource_id: int) -> int:
        return db.query(Assignment).filter(Assignment.resourceId == resource_id).count()

    def count_by_status(
        self, db: Session, resource_id: int,
        date_from: date | None = None, date_to: date | None = None,
    ) -> dict[AssignmentStatus, int]:
        q = db.query(Assignment.status, func.count(Assignment.id))\
              .filter(Assignment.resourceId == resource_id)
        rows = in_date_range(q, date_from, date_to).group_by(Assignment.status).all()
        counts = {s: 0 for s in AssignmentStatus}
        counts.update({status: n for status, n in rows})
        return counts

    def find_active_in_range(self, db: Session, resource_id: int,
                             date_from: date | None, date_to: date | None) -> list[Assignment]:
        q = db.query(Assignment).filter(
            Assignment.resourceId == resource_id,
            Assignment.status == AssignmentStatus.ACTIVE,
        )
        return in_date_range(q, date_from, date_to).order_by(Assignment.date.asc(), Assignment.id.asc()).all()

    def history(
        self, db: Session, resource_id: int, page: int = 1, page_size: int = 10,
        status: AssignmentStatus | None = None,
        date_from: date | None = None, date_to: date | None = None,
    ) -> tuple[list[Assignment], int]:
        """Most recent first; the date range applies to the tour day."""
        q = db.query(Assignment).filter(Assignment.resourceId == resource_id)
        if status:
            q = q.filter(Assignment.status == status)
        q = in_date_range(q, date_from, date_to)
        total = q.count()
        items = q.order_by(Assignment.createdAt.desc(), Assignment.id.desc())\
                 .offset((page - 1) * page_size).limit(page_size).all()
        return items, total


ledger = AssignmentLedger()
