"""Driver evaluations and licence history

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None

license_record_status = postgresql.ENUM("active", "superseded", name="license_record_status", create_type=False)


def upgrade():
    bind = op.get_bind()
    license_record_status.create(bind, checkfirst=True)

    with op.batch_alter_table("drivers") as batch:
        batch.add_column(sa.Column("licenseIssuedDate", sa.Date(), nullable=True))
        batch.add_column(sa.Column("licenseAuthority", sa.String(150), nullable=True))
        batch.add_column(sa.Column("averageRating", sa.Numeric(3, 2), nullable=False, server_default="0"))
        batch.add_column(sa.Column("totalEvaluations", sa.Integer(), nullable=False, server_default="0"))

    op.create_table(
        "driver_evaluations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("driverId", sa.Integer(), nullable=False),
        sa.Column("assignmentId", sa.Integer(), nullable=True),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("evaluationDate", sa.Date(), nullable=False),
        sa.Column("evaluatedBy", sa.String(100), nullable=True),
        sa.Column("createdAt", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="chk_evaluation_rating_range"),
        sa.ForeignKeyConstraint(["driverId"], ["drivers.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["assignmentId"], ["assignments.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_driver_evaluations_id", "driver_evaluations", ["id"])
    op.create_index("ix_driver_evaluations_driverId", "driver_evaluations", ["driverId"])
    op.create_index("ix_driver_evaluations_evaluationDate", "driver_evaluations", ["evaluationDate"])

    op.create_table(
        "driver_license_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("driverId", sa.Integer(), nullable=False),
        sa.Column("licenseNumber", sa.String(50), nullable=False),
        sa.Column("licenseCategory", sa.String(20), nullable=False),
        sa.Column("issuedDate", sa.Date(), nullable=True),
        sa.Column("expiryDate", sa.Date(), nullable=True),
        sa.Column("issuingAuthority", sa.String(150), nullable=True),
        sa.Column("status", license_record_status, nullable=False, server_default="active"),
        sa.Column("createdBy", sa.String(100), nullable=True),
        sa.Column("createdAt", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["driverId"], ["drivers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_driver_license_history_id", "driver_license_history", ["id"])
    op.create_index("ix_driver_license_history_driverId", "driver_license_history", ["driverId"])

    # Drivers registered before this revision get their current licence as the first record
    op.execute(
        'INSERT INTO driver_license_history ("driverId", "licenseNumber", "licenseCategory", '
        '"expiryDate") '
        'SELECT id, "licenseNumber", "licenseCategory", "licenseExpiry" FROM drivers'
    )


def downgrade():
    bind = op.get_bind()
    op.drop_table("driver_license_history")
    op.drop_table("driver_evaluations")

    with op.batch_alter_table("drivers") as batch:
        batch.drop_column("totalEvaluations")
        batch.drop_column("averageRating")
        batch.drop_column("licenseAuthority")
        batch.drop_column("licenseIssuedDate")

    license_record_status.drop(bind, checkfirst=True)
