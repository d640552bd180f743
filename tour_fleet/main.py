import logging
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from tour_fleet.config import settings
from tour_fleet.database import check_db_connection, init_db
from tour_fleet.utils.exceptions import AppException
from tour_fleet.middleware.error_handler import (
    app_exception_handler,
    validation_exception_handler,
    integrity_error_handler,
    storage_error_handler,
    generic_exception_handler,
)

from tour_fleet.api.v1 import vehicles
from tour_fleet.api.v1 import drivers
from tour_fleet.api.v1 import assignments

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Vehicle & Driver Assignment and Availability API for tour operations",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # ─── CORS ─────────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ─── Exception Handlers ───────────────────────────────────────────────────
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(SQLAlchemyError, storage_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # ─── Routers ──────────────────────────────────────────────────────────────
    PREFIX = "/api/v1"
    app.include_router(vehicles.router,    prefix=PREFIX, tags=["Vehicles"])
    app.include_router(drivers.router,     prefix=PREFIX, tags=["Drivers"])
    app.include_router(assignments.router, prefix=PREFIX, tags=["Assignments"])

    # ─── Startup ──────────────────────────────────────────────────────────────
    @app.on_event("startup")
    def on_startup():
        ok = check_db_connection()
        logger.info("DB connected" if ok else "DB connection FAILED")
        if ok and (settings.is_sqlite or settings.is_development):
            init_db()
            logger.info("Schema ensured via create_all")

    # ─── Health ───────────────────────────────────────────────────────────────
    @app.get("/health", tags=["Health"])
    def health():
        db_ok = check_db_connection()
        return {
            "status":   "ok" if db_ok else "degraded",
            "app":      settings.APP_NAME,
            "version":  settings.APP_VERSION,
            "database": "connected" if db_ok else "unreachable",
        }

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("tour_fleet.main:app", host=settings.APP_HOST, port=settings.APP_PORT,
                reload=settings.is_development)
