"""One repository per entity.

Repositories only talk to the store. They never check who is asking; authorization
lives in the service and route layers. Every store failure is rolled back and raised
as :class:`StorageError`. Writes commit immediately so that one failed insert cannot
poison the writes that follow it in the same request.
"""
from __future__ import annotations

import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional

import structlog
import sqlalchemy as sa
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from alzassist import tables as t
from alzassist.errors import StorageError

log = structlog.get_logger("alzassist.store")

Row = Dict[str, Any]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class _Repository:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _guard(self, op: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            log.warning("store_call_failed", op=op, error=str(e))
            raise StorageError(f"{op} failed") from e

    def _one(self, op: str, stmt) -> Optional[Row]:
        with self._guard(op):
            row = self.db.execute(stmt).mappings().first()
        return dict(row) if row else None

    def _all(self, op: str, stmt) -> List[Row]:
        with self._guard(op):
            rows = self.db.execute(stmt).mappings().all()
        return [dict(r) for r in rows]

    def _write(self, op: str, stmt) -> int:
        with self._guard(op):
            n = self.db.execute(stmt).rowcount or 0
            self.db.commit()
        return n


class LocationRepository(_Repository):
    def insert(self, patient_id: str, lat: float, lng: float) -> Row:
        row = {"id": new_id(), "patient_id": patient_id, "lat": lat, "lng": lng, "recorded_at": utcnow()}
        self._write("location.insert", sa.insert(t.locations).values(**row))
        return row

    def history(self, patient_id: str, limit: int = 50) -> List[Row]:
        stmt = (
            sa.select(t.locations)
            .where(t.locations.c.patient_id == patient_id)
            .order_by(t.locations.c.recorded_at.desc())
            .limit(int(limit))
        )
        return self._all("location.history", stmt)

    def latest(self, patient_id: str) -> Optional[Row]:
        rows = self.history(patient_id, limit=1)
        return rows[0] if rows else None


class ProfileRepository(_Repository):
    def get(self, profile_id: str) -> Optional[Row]:
        return self._one("profile.get", sa.select(t.profiles).where(t.profiles.c.id == profile_id))

    def create(self, profile_id: str, role: str, name: str, phone: str | None = None) -> Row:
        row = {
            "id": profile_id, "role": role, "name": name, "phone": phone,
            "home_lat": None, "home_lng": None, "created_at": utcnow(),
        }
        self._write("profile.create", sa.insert(t.profiles).values(**row))
        return row

    def update(self, profile_id: str, changes: Dict[str, Any]) -> Optional[Row]:
        if changes:
            self._write("profile.update", sa.update(t.profiles).where(t.profiles.c.id == profile_id).values(**changes))
        return self.get(profile_id)


def _summary(prefix: str, row: Row) -> Row:
    return {
        "id": row[f"{prefix}_id"],
        "name": row[f"{prefix}_name"],
        "phone": row[f"{prefix}_phone"],
        "home_lat": row.get(f"{prefix}_home_lat"),
        "home_lng": row.get(f"{prefix}_home_lng"),
    }


class ConnectionRepository(_Repository):
    def get(self, connection_id: str) -> Optional[Row]:
        return self._one("connection.get", sa.select(t.connections).where(t.connections.c.id == connection_id))

    def find_pair(self, caretaker_id: str, patient_id: str) -> Optional[Row]:
        stmt = sa.select(t.connections).where(
            t.connections.c.caretaker_id == caretaker_id,
            t.connections.c.patient_id == patient_id,
        )
        return self._one("connection.find_pair", stmt)

    def create_pending(self, caretaker_id: str, patient_id: str) -> Row:
        row = {
            "id": new_id(), "caretaker_id": caretaker_id, "patient_id": patient_id,
            "status": "PENDING", "created_at": utcnow(),
        }
        self._write("connection.create", sa.insert(t.connections).values(**row))
        return row

    def update_status(self, connection_id: str, patient_id: str, status: str) -> Optional[Row]:
        # patient_id in the WHERE clause: only the targeted patient can answer a request
        stmt = (
            sa.update(t.connections)
            .where(t.connections.c.id == connection_id, t.connections.c.patient_id == patient_id)
            .values(status=status)
        )
        if not self._write("connection.update_status", stmt):
            return None
        return self.get(connection_id)

    def is_connected(self, caretaker_id: str, patient_id: str) -> bool:
        stmt = sa.select(t.connections.c.id).where(
            t.connections.c.caretaker_id == caretaker_id,
            t.connections.c.patient_id == patient_id,
            t.connections.c.status == "ACCEPTED",
        ).limit(1)
        return self._one("connection.is_connected", stmt) is not None

    def list_accepted_caretakers(self, patient_id: str) -> List[Row]:
        p = t.profiles.alias("caretaker")
        stmt = (
            sa.select(
                t.connections.c.id, t.connections.c.status, t.connections.c.created_at,
                p.c.id.label("caretaker_id"), p.c.name.label("caretaker_name"), p.c.phone.label("caretaker_phone"),
            )
            .join(p, p.c.id == t.connections.c.caretaker_id)
            .where(t.connections.c.patient_id == patient_id, t.connections.c.status == "ACCEPTED")
            .order_by(t.connections.c.created_at)
        )
        return [
            {"id": r["id"], "status": r["status"], "caretaker": _summary("caretaker", r)}
            for r in self._all("connection.list_caretakers", stmt)
        ]

    def list_accepted_patients(self, caretaker_id: str) -> List[Row]:
        p = t.profiles.alias("patient")
        stmt = (
            sa.select(
                t.connections.c.id, t.connections.c.status,
                p.c.id.label("patient_id"), p.c.name.label("patient_name"), p.c.phone.label("patient_phone"),
                p.c.home_lat.label("patient_home_lat"), p.c.home_lng.label("patient_home_lng"),
            )
            .join(p, p.c.id == t.connections.c.patient_id)
            .where(t.connections.c.caretaker_id == caretaker_id, t.connections.c.status == "ACCEPTED")
            .order_by(t.connections.c.created_at)
        )
        return [
            {"id": r["id"], "status": r["status"], "patient": _summary("patient", r)}
            for r in self._all("connection.list_patients", stmt)
        ]

    def list_pending(self, patient_id: str) -> List[Row]:
        p = t.profiles.alias("caretaker")
        stmt = (
            sa.select(
                t.connections.c.id, t.connections.c.status, t.connections.c.created_at,
                p.c.id.label("caretaker_id"), p.c.name.label("caretaker_name"), p.c.phone.label("caretaker_phone"),
            )
            .join(p, p.c.id == t.connections.c.caretaker_id)
            .where(t.connections.c.patient_id == patient_id, t.connections.c.status == "PENDING")
            .order_by(t.connections.c.created_at.desc())
        )
        return [
            {"id": r["id"], "status": r["status"], "created_at": r["created_at"], "caretaker": _summary("caretaker", r)}
            for r in self._all("connection.list_pending", stmt)
        ]


class AlertRepository(_Repository):
    def insert(self, patient_id: str, caretaker_id: str, type_: str, message: str) -> Row:
        row = {
            "id": new_id(), "patient_id": patient_id, "caretaker_id": caretaker_id,
            "type": type_, "message": message, "resolved": False, "created_at": utcnow(),
        }
        self._write("alert.insert", sa.insert(t.alerts).values(**row))
        return row

    def get(self, alert_id: str) -> Optional[Row]:
        return self._one("alert.get", sa.select(t.alerts).where(t.alerts.c.id == alert_id))

    def list_for_caretaker(self, caretaker_id: str) -> List[Row]:
        stmt = (
            sa.select(t.alerts, t.profiles.c.name.label("patient_name"))
            .select_from(t.alerts.outerjoin(t.profiles, t.profiles.c.id == t.alerts.c.patient_id))
            .where(t.alerts.c.caretaker_id == caretaker_id)
            .order_by(t.alerts.c.created_at.desc())
        )
        return self._all("alert.list", stmt)

    def unresolved_count(self, caretaker_id: str) -> int:
        stmt = sa.select(sa.func.count()).select_from(t.alerts).where(
            t.alerts.c.caretaker_id == caretaker_id,
            t.alerts.c.resolved == sa.false(),
        )
        with self._guard("alert.count"):
            return int(self.db.execute(stmt).scalar() or 0)

    def resolve(self, alert_id: str, caretaker_id: str) -> Optional[Row]:
        stmt = (
            sa.update(t.alerts)
            .where(t.alerts.c.id == alert_id, t.alerts.c.caretaker_id == caretaker_id)
            .values(resolved=True)
        )
        if not self._write("alert.resolve", stmt):
            return None
        return self.get(alert_id)


class PatientRecordRepository(_Repository):
    """CRUD over a table of rows owned by one patient (journals, medications, tasks, faces)."""

    def __init__(self, db: Session, table: sa.Table, order_by=None):
        super().__init__(db)
        self.table = table
        self.order_by = order_by if order_by is not None else table.c.created_at.desc()

    def create(self, patient_id: str, values: Dict[str, Any]) -> Row:
        row = {"id": new_id(), "patient_id": patient_id, "created_at": utcnow(), **values}
        self._write(f"{self.table.name}.create", sa.insert(self.table).values(**row))
        return self.get(row["id"], patient_id) or row

    def get(self, record_id: str, patient_id: str) -> Optional[Row]:
        stmt = sa.select(self.table).where(self.table.c.id == record_id, self.table.c.patient_id == patient_id)
        return self._one(f"{self.table.name}.get", stmt)

    def list_for_patient(self, patient_id: str) -> List[Row]:
        stmt = sa.select(self.table).where(self.table.c.patient_id == patient_id).order_by(self.order_by)
        return self._all(f"{self.table.name}.list", stmt)

    def update(self, record_id: str, patient_id: str, changes: Dict[str, Any]) -> Optional[Row]:
        if changes:
            stmt = (
                sa.update(self.table)
                .where(self.table.c.id == record_id, self.table.c.patient_id == patient_id)
                .values(**changes)
            )
            if not self._write(f"{self.table.name}.update", stmt):
                return None
        return self.get(record_id, patient_id)

    def delete(self, record_id: str, patient_id: str) -> bool:
        stmt = sa.delete(self.table).where(self.table.c.id == record_id, self.table.c.patient_id == patient_id)
        return self._write(f"{self.table.name}.delete", stmt) > 0
