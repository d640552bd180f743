from fastapi import HTTPException, status


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES: machine-readable constants for client switch/case
# ═══════════════════════════════════════════════════════════════════════════════
class ErrorCode:
    VALIDATION_ERROR        = "VALIDATION_ERROR"
    NOT_FOUND               = "NOT_FOUND"
    DUPLICATE_ENTRY         = "DUPLICATE_ENTRY"
    RESOURCE_INACTIVE       = "RESOURCE_INACTIVE"
    DOUBLE_BOOKING          = "DOUBLE_BOOKING"
    INVALID_STATE           = "INVALID_STATE"
    CAPACITY_EXCEEDED       = "CAPACITY_EXCEEDED"
    STORAGE_UNAVAILABLE     = "STORAGE_UNAVAILABLE"
    INTERNAL_SERVER_ERROR   = "INTERNAL_SERVER_ERROR"


# ═══════════════════════════════════════════════════════════════════════════════
# BASE EXCEPTION
# ═══════════════════════════════════════════════════════════════════════════════
class AppException(HTTPException):
    """
    Base exception for all business-rule errors.
    Carries a machine-readable error_code; the error handler turns it into
    the {success: false, error, code} envelope.
    """
    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: str,
        details: list | dict | None = None,
        field: str | None = None,
    ):
        self.message    = message
        self.error_code = error_code
        self.details    = details
        self.field      = field
        super().__init__(status_code=status_code, detail={
            "message": message,
            "code":    error_code,
            "details": details,
            "field":   field,
        })


# ═══════════════════════════════════════════════════════════════════════════════
# CONCRETE EXCEPTIONS
# ═══════════════════════════════════════════════════════════════════════════════

class ValidationException(AppException):
    def __init__(self, message: str = "Invalid input", field: str | None = None):
        super().__init__(status.HTTP_422_UNPROCESSABLE_ENTITY, message, ErrorCode.VALIDATION_ERROR, field=field)


class NotFoundException(AppException):
    def __init__(self, resource: str = "Resource"):
        super().__init__(status.HTTP_404_NOT_FOUND, f"{resource} not found", ErrorCode.NOT_FOUND)


class DuplicateEntryException(AppException):
    def __init__(self, message: str = "Record already exists", field: str | None = None):
        super().__init__(status.HTTP_409_CONFLICT, message, ErrorCode.DUPLICATE_ENTRY, field=field)


class ResourceInactiveException(AppException):
    def __init__(self, resource_status: str):
        super().__init__(
            status.HTTP_409_CONFLICT,
            f"Resource cannot be assigned while its status is '{resource_status}'",
            ErrorCode.RESOURCE_INACTIVE,
            details={"status": resource_status},
        )


class DoubleBookingException(AppException):
    def __init__(self, assignment_id: int | None, date: str):
        super().__init__(
            status.HTTP_409_CONFLICT,
            f"Resource already has an active assignment on {date}",
            ErrorCode.DOUBLE_BOOKING,
            details={"conflictingAssignmentId": assignment_id, "date": date},
        )


class InvalidStateException(AppException):
    def __init__(self, message: str = "Assignment is already completed"):
        super().__init__(status.HTTP_409_CONFLICT, message, ErrorCode.INVALID_STATE)


class CapacityExceededException(AppException):
    def __init__(self, passengers: int, capacity: int):
        super().__init__(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            f"Vehicle capacity ({capacity}) is lower than the requested passengers ({passengers})",
            ErrorCode.CAPACITY_EXCEEDED,
            details={"passengers": passengers, "capacity": capacity},
            field="passengers",
        )
