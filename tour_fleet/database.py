from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import QueuePool, StaticPool
from tour_fleet.config import settings
import logging

logger = logging.getLogger(__name__)


# ─── Engine ────────────────────────────────────────────────────────────────────
def _engine_options(url: str) -> dict:
    """Pool options per backend. SQLite has no server side pool to size."""
    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every session sees an empty DB
            options["poolclass"] = StaticPool
        return options
    return {
        "poolclass":     QueuePool,
        "pool_size":     settings.DATABASE_POOL_SIZE,
        "max_overflow":  settings.DATABASE_MAX_OVERFLOW,
        "pool_timeout":  settings.DATABASE_POOL_TIMEOUT,
        "pool_pre_ping": True,   # Detect stale connections before using them
    }


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DATABASE_ECHO,
    **_engine_options(settings.DATABASE_URL),
)


# ─── Session Factory ───────────────────────────────────────────────────────────
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,      # Avoid DetachedInstanceError after commit
)


# ─── Base Model ────────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.
    All models in tour_fleet/models/ should inherit from this class.
    """
    pass


# ─── Dependency Injection ──────────────────────────────────────────────────────
def get_db():
    """
    FastAPI dependency that provides a database session per request.
    Rolls back whatever the request left uncommitted and closes the session.

    Usage:
        @router.get("/items")
        def get_items(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# ─── Schema bootstrap ──────────────────────────────────────────────────────────
def init_db() -> None:
    """Create all tables. Development/SQLite only; production uses Alembic."""
    import tour_fleet.models  # noqa: F401 - registers models on Base.metadata
    Base.metadata.create_all(bind=engine)


# ─── Health Check ──────────────────────────────────────────────────────────────
def check_db_connection() -> bool:
    """Verify database is reachable. Used at startup and by /health."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
