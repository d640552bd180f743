from datetime import date
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from tour_fleet.database import get_db
from tour_fleet.dependencies import get_actor, get_pagination, get_date_range, DateRange
from tour_fleet.models.assignment import AssignmentStatus
from tour_fleet.models.resource import ResourceStatus
from tour_fleet.schemas.common import PaginationParams, ErrorResponse, success_response, paginated_response
from tour_fleet.schemas.driver import (
    DriverCreateRequest, DriverUpdateRequest, DriverAssignmentRequest,
    LicenseRenewalRequest, DriverEvaluationRequest,
)
from tour_fleet.schemas.vehicle import ResourceStatusRequest, ReleaseRequest
from tour_fleet.services.driver_service import driver_service

router = APIRouter(prefix="/drivers", responses={
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
})


@router.get("", summary="List drivers (paginated)")
def list_drivers(
    status:          Optional[ResourceStatus] = Query(None),
    licenseType:     Optional[str]  = Query(None, description="Licence category, e.g. A-IIIC"),
    agencyId:        Optional[str]  = Query(None),
    available:       Optional[bool] = Query(None),
    vehicleAssigned: Optional[bool] = Query(None),
    search:          Optional[str]  = Query(None, description="Name, DNI or licence number"),
    pagination:      PaginationParams = Depends(get_pagination),
    db:              Session        = Depends(get_db),
):
    items, total = driver_service.list_drivers(
        db, pagination, status, licenseType, agencyId, available, vehicleAssigned, search,
    )
    return paginated_response("Drivers retrieved successfully", items, total,
                              pagination.page, pagination.pageSize)


@router.get("/available", summary="Drivers free on a date")
def available_drivers(
    date:        Optional[date] = Query(None, description="YYYY-MM-DD; omitted = currently unassigned"),
    vehicleType: Optional[str]  = Query(None, description="Only drivers licensed for this vehicle type"),
    licenseType: Optional[str]  = Query(None),
    agencyId:    Optional[str]  = Query(None),
    db:          Session        = Depends(get_db),
):
    data = driver_service.available_drivers(db, date, vehicleType, licenseType, agencyId)
    return success_response("Available drivers retrieved", data)


@router.get("/{driver_id}", summary="Get driver by ID")
def get_driver(driver_id: int, db: Session = Depends(get_db)):
    return success_response("Driver retrieved", driver_service.get_driver(db, driver_id))


@router.post("", status_code=status.HTTP_201_CREATED, summary="Register driver")
def create_driver(
    body:  DriverCreateRequest,
    db:    Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    data = driver_service.create_driver(db, body, actor)
    return success_response("Driver registered successfully", data)


@router.put("/{driver_id}", summary="Update driver info")
def update_driver(
    driver_id: int,
    body:      DriverUpdateRequest,
    db:        Session = Depends(get_db),
    actor:     Optional[str] = Depends(get_actor),
):
    data = driver_service.update_driver(db, driver_id, body, actor)
    return success_response("Driver updated successfully", data)


@router.patch("/{driver_id}/status", summary="Change driver operating status")
def update_status(
    driver_id: int,
    body:      ResourceStatusRequest,
    db:        Session = Depends(get_db),
    actor:     Optional[str] = Depends(get_actor),
):
    data = driver_service.update_status(db, driver_id, body, actor)
    return success_response("Driver status updated", data)


@router.get("/{driver_id}/availability", summary="Check one driver's availability")
def check_availability(
    driver_id: int,
    date:      Optional[date] = Query(None),
    period:    DateRange      = Depends(get_date_range),
    db:        Session        = Depends(get_db),
):
    return success_response("Availability retrieved",
                            driver_service.check_availability(db, driver_id, date, *period))


# ─── Tour assignments ─────────────────────────────────────────────────────────
@router.post("/{driver_id}/assignments", status_code=status.HTTP_201_CREATED,
             summary="Assign driver to a tour on a date")
def create_assignment(
    driver_id: int,
    body:      DriverAssignmentRequest,
    db:        Session = Depends(get_db),
    actor:     Optional[str] = Depends(get_actor),
):
    data = driver_service.create_assignment(db, driver_id, body, actor)
    return success_response("Driver assigned successfully", data)


@router.post("/{driver_id}/release", summary="Release the driver's active assignment")
def release_assignment(
    driver_id: int,
    body:      ReleaseRequest = ReleaseRequest(),
    db:        Session = Depends(get_db),
    actor:     Optional[str] = Depends(get_actor),
):
    data = driver_service.release_assignment(db, driver_id, body.date, actor)
    return success_response("Driver released successfully", data)


@router.get("/{driver_id}/assignments", summary="Driver assignment history (most recent first)")
def get_assignments(
    driver_id:  int,
    status:     Optional[AssignmentStatus] = Query(None),
    period:     DateRange = Depends(get_date_range),
    pagination: PaginationParams = Depends(get_pagination),
    db:         Session = Depends(get_db),
):
    items, total = driver_service.get_assignments(db, driver_id, pagination, status, *period)
    return paginated_response("Assignment history retrieved", items, total,
                              pagination.page, pagination.pageSize)


# ─── Licence ──────────────────────────────────────────────────────────────────
@router.put("/{driver_id}/license", summary="Renew the driver's licence")
def renew_license(
    driver_id: int,
    body:      LicenseRenewalRequest,
    db:        Session = Depends(get_db),
    actor:     Optional[str] = Depends(get_actor),
):
    data = driver_service.renew_license(db, driver_id, body, actor)
    return success_response("License renewed successfully", data)


@router.get("/{driver_id}/license-history", summary="Licences held by the driver (newest first)")
def license_history(driver_id: int, db: Session = Depends(get_db)):
    return success_response("License history retrieved", driver_service.license_history(db, driver_id))


# ─── Evaluations ──────────────────────────────────────────────────────────────
@router.post("/{driver_id}/evaluations", status_code=status.HTTP_201_CREATED,
             summary="Rate a driver (1-5)")
def add_evaluation(
    driver_id: int,
    body:      DriverEvaluationRequest,
    db:        Session = Depends(get_db),
    actor:     Optional[str] = Depends(get_actor),
):
    data = driver_service.add_evaluation(db, driver_id, body, actor)
    return success_response("Evaluation recorded", data)


@router.get("/{driver_id}/evaluations", summary="Driver evaluations (most recent first)")
def list_evaluations(driver_id: int, db: Session = Depends(get_db)):
    return success_response("Evaluations retrieved", driver_service.list_evaluations(db, driver_id))


@router.get("/{driver_id}/performance", summary="Assignment and rating metrics over a period")
def performance(
    driver_id: int,
    period:    DateRange = Depends(get_date_range),
    db:        Session   = Depends(get_db),
):
    return success_response("Performance metrics retrieved",
                            driver_service.performance(db, driver_id, *period))
