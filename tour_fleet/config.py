from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # ─── Application ───────────────────────────────────────────────────────────
    APP_NAME: str = "Tour Fleet Assignment Service"
    APP_VERSION: str = "1.0.0"
    APP_ENV:  str = "development"
    APP_DEBUG: bool = True
    APP_HOST:  str = "0.0.0.0"
    APP_PORT:  int = 8000
    LOG_LEVEL: str = "INFO"

    # ─── Database ──────────────────────────────────────────────────────────────
    DATABASE_URL:          str  = "sqlite:///./tour_fleet.db"
    DATABASE_POOL_SIZE:    int  = 10
    DATABASE_MAX_OVERFLOW: int  = 20
    DATABASE_POOL_TIMEOUT: int  = 30
    DATABASE_ECHO:         bool = False

    # ─── Listings ──────────────────────────────────────────────────────────────
    DEFAULT_PAGE_SIZE:        int = 10
    MAX_PAGE_SIZE:            int = 100
    RECENT_ASSIGNMENTS_LIMIT: int = 10

    # ─── Licence rules ─────────────────────────────────────────────────────────
    # Vehicle types that can only be driven with a professional licence category
    SPECIAL_LICENSE_VEHICLE_TYPES: str = "bus,minibus"
    SPECIAL_LICENSE_PREFIX:        str = "B-"

    # ─── CORS ──────────────────────────────────────────────────────────────────
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173,http://localhost:8000"

    def get_cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",")]

    def get_special_license_vehicle_types(self) -> List[str]:
        return [t.strip().lower() for t in self.SPECIAL_LICENSE_VEHICLE_TYPES.split(",") if t.strip()]

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    model_config = {"env_file": ".env", "case_sensitive": True, "extra": "ignore"}


settings = Settings()
