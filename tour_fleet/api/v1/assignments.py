from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional

from tour_fleet.database import get_db
from tour_fleet.dependencies import get_actor
from tour_fleet.schemas.common import ErrorResponse, success_response
from tour_fleet.services.assignment_service import assignment_service

router = APIRouter(prefix="/assignments", responses={
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
})


@router.post("/rebuild-availability", summary="Recompute cached availability flags from the ledger")
def rebuild_availability(db: Session = Depends(get_db), actor: Optional[str] = Depends(get_actor)):
    return success_response("Availability flags rebuilt",
                            assignment_service.rebuild_availability(db, actor))


@router.get("/{assignment_id}", summary="Get assignment by ID")
def get_assignment(assignment_id: int, db: Session = Depends(get_db)):
    return success_response("Assignment retrieved", assignment_service.get_assignment(db, assignment_id))


@router.post("/{assignment_id}/complete", summary="Complete (release) an assignment")
def complete_assignment(
    assignment_id: int,
    db:            Session = Depends(get_db),
    actor:         Optional[str] = Depends(get_actor),
):
    return success_response("Assignment completed",
                            assignment_service.complete_assignment(db, assignment_id, actor))
