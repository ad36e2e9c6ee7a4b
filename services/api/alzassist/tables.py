from __future__ import annotations

import sqlalchemy as sa

metadata = sa.MetaData()

profiles = sa.Table(
    "profiles", metadata,
    sa.Column("id", sa.String(64), primary_key=True),
    sa.Column("role", sa.String(16), nullable=False),
    sa.Column("name", sa.String(255), nullable=False),
    sa.Column("phone", sa.String(32), nullable=True),
    sa.Column("home_lat", sa.Float(), nullable=True),
    sa.Column("home_lng", sa.Float(), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.CheckConstraint("role IN ('PATIENT','CARETAKER')", name="ck_profiles_role"),
)

connections = sa.Table(
    "connections", metadata,
    sa.Column("id", sa.String(64), primary_key=True),
    sa.Column("caretaker_id", sa.String(64), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True),
    sa.Column("patient_id", sa.String(64), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True),
    sa.Column("status", sa.String(16), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.UniqueConstraint("caretaker_id", "patient_id", name="uq_connections_pair"),
    sa.CheckConstraint("status IN ('PENDING','ACCEPTED','REJECTED')", name="ck_connections_status"),
)

locations = sa.Table(
    "locations", metadata,
    sa.Column("id", sa.String(64), primary_key=True),
    sa.Column("patient_id", sa.String(64), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
    sa.Column("lat", sa.Float(), nullable=False),
    sa.Column("lng", sa.Float(), nullable=False),
    sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False),
    sa.Index("ix_locations_patient_recorded", "patient_id", "recorded_at"),
)

alerts = sa.Table(
    "alerts", metadata,
    sa.Column("id", sa.String(64), primary_key=True),
    sa.Column("patient_id", sa.String(64), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True),
    sa.Column("caretaker_id", sa.String(64), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True),
    sa.Column("type", sa.String(32), nullable=False),
    sa.Column("message", sa.Text(), nullable=False),
    sa.Column("resolved", sa.Boolean(), nullable=False, server_default=sa.false()),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.CheckConstraint("type IN ('GEOFENCE_EXIT','LOW_BATTERY','MISSED_MEDICATION')", name="ck_alerts_type"),
)

journals = sa.Table(
    "journals", metadata,
    sa.Column("id", sa.String(64), primary_key=True),
    sa.Column("patient_id", sa.String(64), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True),
    sa.Column("content", sa.Text(), nullable=False),
    sa.Column("mood", sa.String(64), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
)

medications = sa.Table(
    "medications", metadata,
    sa.Column("id", sa.String(64), primary_key=True),
    sa.Column("patient_id", sa.String(64), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True),
    sa.Column("name", sa.String(255), nullable=False),
    sa.Column("dosage", sa.String(255), nullable=False),
    sa.Column("time", sa.String(32), nullable=False),
    sa.Column("instructions", sa.Text(), nullable=True),
    sa.Column("taken", sa.Boolean(), nullable=False, server_default=sa.false()),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
)

tasks = sa.Table(
    "tasks", metadata,
    sa.Column("id", sa.String(64), primary_key=True),
    sa.Column("patient_id", sa.String(64), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True),
    sa.Column("text", sa.Text(), nullable=False),
    sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
)

faces = sa.Table(
    "faces", metadata,
    sa.Column("id", sa.String(64), primary_key=True),
    sa.Column("patient_id", sa.String(64), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True),
    sa.Column("name", sa.String(255), nullable=False),
    sa.Column("relation", sa.String(255), nullable=False),
    sa.Column("image_url", sa.Text(), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
)

emergency_contacts = sa.Table(
    "emergency_contacts", metadata,
    sa.Column("id", sa.String(64), primary_key=True),
    sa.Column("patient_id", sa.String(64), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True),
    sa.Column("name", sa.String(255), nullable=False),
    sa.Column("phone", sa.String(32), nullable=False),
    sa.Column("relationship", sa.String(255), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
)
