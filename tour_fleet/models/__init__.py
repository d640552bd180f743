"""
Import all models here so that:
1. Alembic can auto-detect them when generating migrations
2. Relationships between models resolve correctly

Resources first: vehicles, drivers and assignments all reference them.
"""

from tour_fleet.models.resource import Resource, ResourceType, ResourceStatus
from tour_fleet.models.vehicle import Vehicle
from tour_fleet.models.driver import Driver
from tour_fleet.models.assignment import Assignment, AssignmentStatus
from tour_fleet.models.vehicle_pairing import VehiclePairing
from tour_fleet.models.maintenance_record import MaintenanceRecord
from tour_fleet.models.driver_evaluation import DriverEvaluation
from tour_fleet.models.driver_license_record import DriverLicenseRecord, LicenseRecordStatus
from tour_fleet.models.audit_log import AuditLog

__all__ = [
    "Resource",
    "ResourceType",
    "ResourceStatus",
    "Vehicle",
    "Driver",
    "Assignment",
    "AssignmentStatus",
    "VehiclePairing",
    "MaintenanceRecord",
    "DriverEvaluation",
    "DriverLicenseRecord",
    "LicenseRecordStatus",
    "AuditLog",
]
