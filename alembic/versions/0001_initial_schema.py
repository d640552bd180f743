"""Initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

resource_type     = postgresql.ENUM("vehicle", "driver", name="resource_type", create_type=False)
resource_status   = postgresql.ENUM("active", "inactive", "maintenance", "terminated",
                                    name="resource_status", create_type=False)
assignment_status = postgresql.ENUM("active", "completed", name="assignment_status", create_type=False)


def upgrade():
    bind = op.get_bind()
    for enum_type in (resource_type, resource_status, assignment_status):
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        "resources",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("type", resource_type, nullable=False),
        sa.Column("status", resource_status, nullable=False, server_default="active"),
        sa.Column("isAvailable", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("currentAssignmentId", sa.Integer(), nullable=True),
        sa.Column("agencyId", sa.String(100), nullable=True),
        sa.Column("statusReason", sa.String(255), nullable=True),
        sa.Column("createdAt", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updatedAt", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_resources_id", "resources", ["id"])
    op.create_index("ix_resources_type", "resources", ["type"])
    op.create_index("ix_resources_status", "resources", ["status"])
    op.create_index("ix_resources_agencyId", "resources", ["agencyId"])

    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("plate", sa.String(20), nullable=False),
        sa.Column("brand", sa.String(100), nullable=False),
        sa.Column("model", sa.String(100), nullable=False),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("vehicleType", sa.String(50), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("soatNumber", sa.String(50), nullable=True),
        sa.Column("soatExpiry", sa.Date(), nullable=True),
        sa.Column("technicalReviewNumber", sa.String(50), nullable=True),
        sa.Column("technicalReviewExpiry", sa.Date(), nullable=True),
        sa.Column("currentDriverId", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["id"], ["resources.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_vehicles_plate", "vehicles", ["plate"], unique=True)
    op.create_index("ix_vehicles_vehicleType", "vehicles", ["vehicleType"])

    op.create_table(
        "drivers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("firstName", sa.String(100), nullable=False),
        sa.Column("lastName", sa.String(100), nullable=False),
        sa.Column("dni", sa.String(20), nullable=True),
        sa.Column("licenseNumber", sa.String(50), nullable=False),
        sa.Column("licenseCategory", sa.String(20), nullable=False),
        sa.Column("licenseExpiry", sa.Date(), nullable=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("email", sa.String(150), nullable=True),
        sa.Column("currentVehicleId", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["id"], ["resources.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_drivers_dni", "drivers", ["dni"])
    op.create_index("ix_drivers_licenseNumber", "drivers", ["licenseNumber"], unique=True)
    op.create_index("ix_drivers_licenseCategory", "drivers", ["licenseCategory"])

    op.create_table(
        "assignments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("resourceId", sa.Integer(), nullable=False),
        sa.Column("resourceType", resource_type, nullable=False),
        sa.Column("tourId", sa.String(100), nullable=False),
        sa.Column("tourCode", sa.String(100), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("status", assignment_status, nullable=False, server_default="active"),
        sa.Column("passengers", sa.Integer(), nullable=True),
        sa.Column("pairedResourceId", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("createdBy", sa.String(100), nullable=True),
        sa.Column("completedBy", sa.String(100), nullable=True),
        sa.Column("createdAt", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("completedAt", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["resourceId"], ["resources.id"]),
        sa.ForeignKeyConstraint(["pairedResourceId"], ["resources.id"]),
    )
    op.create_index("ix_assignments_id", "assignments", ["id"])
    op.create_index("ix_assignments_tourId", "assignments", ["tourId"])
    op.create_index("ix_assignments_resource_status_date", "assignments", ["resourceId", "status", "date"])
    op.create_index(
        "uq_assignments_active_resource_date", "assignments", ["resourceId", "date"], unique=True,
        postgresql_where=sa.text("status = 'active'"),
        sqlite_where=sa.text("status = 'active'"),
    )

    op.create_table(
        "vehicle_pairings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("driverId", sa.Integer(), nullable=False),
        sa.Column("vehicleId", sa.Integer(), nullable=False),
        sa.Column("assignedAt", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("assignedBy", sa.String(100), nullable=True),
        sa.Column("releasedAt", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("releasedBy", sa.String(100), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["driverId"], ["drivers.id"]),
        sa.ForeignKeyConstraint(["vehicleId"], ["vehicles.id"]),
    )
    op.create_index("ix_vehicle_pairings_driverId", "vehicle_pairings", ["driverId"])
    op.create_index("ix_vehicle_pairings_vehicleId", "vehicle_pairings", ["vehicleId"])

    op.create_table(
        "maintenance_records",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("vehicleId", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("cost", sa.Numeric(12, 2), nullable=True),
        sa.Column("createdBy", sa.String(100), nullable=True),
        sa.Column("createdAt", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["vehicleId"], ["vehicles.id"]),
    )
    op.create_index("ix_maintenance_records_vehicleId", "maintenance_records", ["vehicleId"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("actor", sa.String(100), nullable=False),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("entityType", sa.String(100), nullable=False),
        sa.Column("entityId", sa.Integer(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("createdAt", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )

    # Cyclic references are added once both sides exist; SQLite cannot ALTER constraints
    if bind.dialect.name != "sqlite":
        op.create_foreign_key("fk_resources_current_assignment", "resources", "assignments",
                              ["currentAssignmentId"], ["id"])
        op.create_foreign_key("fk_vehicles_current_driver", "vehicles", "drivers",
                              ["currentDriverId"], ["id"])
        op.create_foreign_key("fk_drivers_current_vehicle", "drivers", "vehicles",
                              ["currentVehicleId"], ["id"])


def downgrade():
    bind = op.get_bind()
    if bind.dialect.name != "sqlite":
        op.drop_constraint("fk_drivers_current_vehicle", "drivers", type_="foreignkey")
        op.drop_constraint("fk_vehicles_current_driver", "vehicles", type_="foreignkey")
        op.drop_constraint("fk_resources_current_assignment", "resources", type_="foreignkey")

    op.drop_table("audit_logs")
    op.drop_table("maintenance_records")
    op.drop_table("vehicle_pairings")
    op.drop_table("assignments")
    op.drop_table("drivers")
    op.drop_table("vehicles")
    op.drop_table("resources")

    for enum_type in (assignment_status, resource_status, resource_type):
        enum_type.drop(bind, checkfirst=True)
