from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None

def _owned_by_patient():
    return sa.Column("patient_id", sa.String(64), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)

def upgrade():
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("role", sa.String(16), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("home_lat", sa.Float(), nullable=True),
        sa.Column("home_lng", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("role IN ('PATIENT','CARETAKER')", name="ck_profiles_role"),
    )

    op.create_table(
        "connections",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("caretaker_id", sa.String(64), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("patient_id", sa.String(64), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("caretaker_id", "patient_id", name="uq_connections_pair"),
        sa.CheckConstraint("status IN ('PENDING','ACCEPTED','REJECTED')", name="ck_connections_status"),
    )

    op.create_table(
        "locations",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("patient_id", sa.String(64), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("lat", sa.Float(), nullable=False),
        sa.Column("lng", sa.Float(), nullable=False),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_locations_patient_recorded", "locations", ["patient_id", "recorded_at"])

    op.create_table(
        "alerts",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("patient_id", sa.String(64), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("caretaker_id", sa.String(64), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("resolved", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("type IN ('GEOFENCE_EXIT','LOW_BATTERY','MISSED_MEDICATION')", name="ck_alerts_type"),
    )

    op.create_table(
        "journals",
        sa.Column("id", sa.String(64), primary_key=True),
        _owned_by_patient(),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("mood", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "medications",
        sa.Column("id", sa.String(64), primary_key=True),
        _owned_by_patient(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("dosage", sa.String(255), nullable=False),
        sa.Column("time", sa.String(32), nullable=False),
        sa.Column("instructions", sa.Text(), nullable=True),
        sa.Column("taken", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "tasks",
        sa.Column("id", sa.String(64), primary_key=True),
        _owned_by_patient(),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "faces",
        sa.Column("id", sa.String(64), primary_key=True),
        _owned_by_patient(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("relation", sa.String(255), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "emergency_contacts",
        sa.Column("id", sa.String(64), primary_key=True),
        _owned_by_patient(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(32), nullable=False),
        sa.Column("relationship", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

def downgrade():
    op.drop_table("emergency_contacts")
    op.drop_table("faces")
    op.drop_table("tasks")
    op.drop_table("medications")
    op.drop_table("journals")
    op.drop_table("alerts")
    op.drop_index("ix_locations_patient_recorded", table_name="locations")
    op.drop_table("locations")
    op.drop_table("connections")
    op.drop_table("profiles")
