import logging
import traceback
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from tour_fleet.utils.exceptions import AppException, ErrorCode

logger = logging.getLogger(__name__)


def _error_body(message: str, code: str, details=None, field: str | None = None) -> dict:
    return {
        "success": False,
        "error":   message,
        "code":    code,
        "details": details,
        "field":   field,
    }


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle all AppException subclasses (business-rule rejections)."""
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code} on {request.method} {request.url}: {exc.message}")
    else:
        logger.info(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, exc.error_code, exc.details, exc.field),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle Pydantic validation errors (422).
    Converts FastAPI's default validation error format into the standard envelope.
    """
    details = []
    for error in exc.errors():
        # loc is a tuple like ("body", "plate") or ("query", "date")
        loc = error.get("loc", [])
        field = ".".join(str(l) for l in loc if l not in ("body", "query", "path")) if loc else "unknown"
        details.append({
            "field":   field,
            "message": error.get("msg", "Invalid value"),
        })

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(
            "Validation error. Please check your input.",
            ErrorCode.VALIDATION_ERROR,
            details,
            details[0]["field"] if len(details) == 1 else None,
        ),
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """
    Handle unique constraint violations that slipped past the service checks.
    Prevents raw DB errors from leaking to the client.
    """
    logger.warning(f"IntegrityError on {request.method} {request.url}: {exc.orig}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=_error_body("A record with this data already exists.", ErrorCode.DUPLICATE_ENTRY),
    )


async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """
    Storage failures are not business errors: answer 503 instead of guessing
    "not found" or "available".
    """
    logger.error(
        f"Storage failure on {request.method} {request.url}\n"
        f"{traceback.format_exc()}"
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_error_body(
            "The data store is unavailable. Please try again later.",
            ErrorCode.STORAGE_UNAVAILABLE,
        ),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Catch-all handler for unexpected exceptions.
    Logs the full traceback, returns a safe 500 response.
    """
    logger.error(
        f"Unhandled exception on {request.method} {request.url}\n"
        f"{traceback.format_exc()}"
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            "An unexpected error occurred. Please try again later.",
            ErrorCode.INTERNAL_SERVER_ERROR,
        ),
    )
