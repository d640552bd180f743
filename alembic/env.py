"""
Alembic environment for the tour fleet schema.

The database URL always comes from tour_fleet.config.settings, never from
alembic.ini, so migrations hit the same database as the running service.
On SQLite, migrations run in batch mode (copy-and-move) because SQLite has
no ALTER for constraints.
"""

import logging
from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool
from alembic import context

from tour_fleet.config import settings
from tour_fleet.database import Base
import tour_fleet.models  # noqa: F401 - registers every table on Base.metadata

config = context.config
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

logger = logging.getLogger("alembic.env")
target_metadata = Base.metadata


def _configure_kwargs() -> dict:
    return {
        "target_metadata":        target_metadata,
        "compare_type":           True,
        "compare_server_default": True,
        "render_as_batch":        settings.is_sqlite,
    }


# ─── Offline Mode ─────────────────────────────────────────────────────────────
def run_migrations_offline() -> None:
    """Emit the SQL script only; used to review a migration before a PostgreSQL deploy."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_kwargs(),
    )
    with context.begin_transaction():
        context.run_migrations()


# ─── Online Mode ──────────────────────────────────────────────────────────────
def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        logger.info(f"Migrating {connection.engine.url.render_as_string(hide_password=True)}")
        context.configure(connection=connection, **_configure_kwargs())

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
