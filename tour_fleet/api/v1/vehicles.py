from datetime import date
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from tour_fleet.database import get_db
from tour_fleet.dependencies import get_actor, get_pagination, get_date_range, DateRange
from tour_fleet.models.assignment import AssignmentStatus
from tour_fleet.models.resource import ResourceStatus
from tour_fleet.schemas.common import PaginationParams, ErrorResponse, success_response, paginated_response
from tour_fleet.schemas.vehicle import (
    VehicleCreateRequest, VehicleUpdateRequest, ResourceStatusRequest,
    VehicleAssignmentRequest, ReleaseRequest, AssignDriverRequest, MaintenanceCreateRequest,
)
from tour_fleet.services.vehicle_service import vehicle_service

router = APIRouter(prefix="/vehicles", responses={
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
})


@router.get("", summary="List vehicles (paginated)")
def list_vehicles(
    status:     Optional[ResourceStatus] = Query(None, description="active | inactive | maintenance | terminated"),
    type:       Optional[str]  = Query(None, description="Vehicle type: car | van | minibus | bus ..."),
    agencyId:   Optional[str]  = Query(None),
    driverId:   Optional[int]  = Query(None),
    available:  Optional[bool] = Query(None, description="Cached availability flag"),
    search:     Optional[str]  = Query(None, description="Brand, model, plate or type"),
    pagination: PaginationParams = Depends(get_pagination),
    db:         Session        = Depends(get_db),
):
    items, total = vehicle_service.list_vehicles(
        db, pagination, status, type, agencyId, driverId, available, search,
    )
    return paginated_response("Vehicles retrieved successfully", items, total,
                              pagination.page, pagination.pageSize)


@router.get("/available", summary="Vehicles free on a date")
def available_vehicles(
    date:        Optional[date] = Query(None, description="YYYY-MM-DD; omitted = currently unassigned"),
    minCapacity: Optional[int]  = Query(None, ge=1),
    vehicleType: Optional[str]  = Query(None),
    agencyId:    Optional[str]  = Query(None),
    db:          Session        = Depends(get_db),
):
    data = vehicle_service.available_vehicles(db, date, minCapacity, vehicleType, agencyId)
    return success_response("Available vehicles retrieved", data)


@router.get("/{vehicle_id}", summary="Get vehicle by ID")
def get_vehicle(vehicle_id: int, db: Session = Depends(get_db)):
    return success_response("Vehicle retrieved", vehicle_service.get_vehicle(db, vehicle_id))


@router.post("", status_code=status.HTTP_201_CREATED, summary="Register vehicle")
def create_vehicle(
    body:  VehicleCreateRequest,
    db:    Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    data = vehicle_service.create_vehicle(db, body, actor)
    return success_response("Vehicle created successfully", data)


@router.put("/{vehicle_id}", summary="Update vehicle")
def update_vehicle(
    vehicle_id: int,
    body:       VehicleUpdateRequest,
    db:         Session = Depends(get_db),
    actor:      Optional[str] = Depends(get_actor),
):
    data = vehicle_service.update_vehicle(db, vehicle_id, body, actor)
    return success_response("Vehicle updated successfully", data)


@router.patch("/{vehicle_id}/status", summary="Change vehicle operating status")
def update_status(
    vehicle_id: int,
    body:       ResourceStatusRequest,
    db:         Session = Depends(get_db),
    actor:      Optional[str] = Depends(get_actor),
):
    data = vehicle_service.update_status(db, vehicle_id, body, actor)
    return success_response("Vehicle status updated", data)


@router.get("/{vehicle_id}/availability", summary="Check one vehicle's availability")
def check_availability(
    vehicle_id: int,
    date:       Optional[date] = Query(None),
    period:     DateRange      = Depends(get_date_range),
    db:         Session        = Depends(get_db),
):
    return success_response("Availability retrieved",
                            vehicle_service.check_availability(db, vehicle_id, date, *period))


# ─── Tour assignments ─────────────────────────────────────────────────────────
@router.post("/{vehicle_id}/assignments", status_code=status.HTTP_201_CREATED,
             summary="Assign vehicle to a tour on a date")
def create_assignment(
    vehicle_id: int,
    body:       VehicleAssignmentRequest,
    db:         Session = Depends(get_db),
    actor:      Optional[str] = Depends(get_actor),
):
    data = vehicle_service.create_assignment(db, vehicle_id, body, actor)
    return success_response("Vehicle assigned successfully", data)


@router.post("/{vehicle_id}/release", summary="Release the vehicle's active assignment")
def release_assignment(
    vehicle_id: int,
    body:       ReleaseRequest = ReleaseRequest(),
    db:         Session = Depends(get_db),
    actor:      Optional[str] = Depends(get_actor),
):
    data = vehicle_service.release_assignment(db, vehicle_id, body.date, actor)
    return success_response("Vehicle released successfully", data)


@router.get("/{vehicle_id}/assignments", summary="Vehicle assignment history (most recent first)")
def get_assignments(
    vehicle_id: int,
    status:     Optional[AssignmentStatus] = Query(None),
    period:     DateRange = Depends(get_date_range),
    pagination: PaginationParams = Depends(get_pagination),
    db:         Session = Depends(get_db),
):
    items, total = vehicle_service.get_assignments(db, vehicle_id, pagination, status, *period)
    return paginated_response("Assignment history retrieved", items, total,
                              pagination.page, pagination.pageSize)


# ─── Driver pairing ───────────────────────────────────────────────────────────
@router.post("/{vehicle_id}/assign-driver", summary="Pair a driver with the vehicle")
def assign_driver(
    vehicle_id: int,
    body:       AssignDriverRequest,
    db:         Session = Depends(get_db),
    actor:      Optional[str] = Depends(get_actor),
):
    data = vehicle_service.assign_driver(db, vehicle_id, body, actor)
    return success_response("Driver assigned successfully", data)


@router.post("/{vehicle_id}/unassign-driver", summary="Remove the vehicle's driver pairing")
def unassign_driver(
    vehicle_id: int,
    db:         Session = Depends(get_db),
    actor:      Optional[str] = Depends(get_actor),
):
    data = vehicle_service.unassign_driver(db, vehicle_id, actor)
    return success_response("Driver unassigned successfully", data)


# ─── Maintenance ──────────────────────────────────────────────────────────────
@router.get("/{vehicle_id}/maintenance", summary="Vehicle maintenance records")
def list_maintenance(vehicle_id: int, db: Session = Depends(get_db)):
    return success_response("Maintenance records retrieved", vehicle_service.list_maintenance(db, vehicle_id))


@router.post("/{vehicle_id}/maintenance", status_code=status.HTTP_201_CREATED,
             summary="Add maintenance record")
def add_maintenance(
    vehicle_id: int,
    body:       MaintenanceCreateRequest,
    db:         Session = Depends(get_db),
    actor:      Optional[str] = Depends(get_actor),
):
    data = vehicle_service.add_maintenance(db, vehicle_id, body, actor)
    return success_response("Maintenance record added", data)
