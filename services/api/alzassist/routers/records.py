"""Patient-owned records: journals, medications, tasks, the faces gallery and emergency contacts.

All five share one shape. Patients write their own rows; a caretaker may read a
patient's rows by passing ``?patient_id=`` once connected.
"""
from typing import Any, Dict, Optional, Type

import sqlalchemy as sa
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from alzassist import tables
from alzassist.db import get_db
from alzassist.deps import get_gate, get_principal, require_patient
from alzassist.errors import NotFoundError, StorageError, ValidationError
from alzassist.repositories import PatientRecordRepository
from alzassist.responses import created, ok
from alzassist.schemas import (
    EmergencyContactIn, EmergencyContactOut, EmergencyContactUpdate,
    FaceIn, FaceOut, FaceUpdate,
    JournalIn, JournalOut, JournalUpdate,
    MedicationIn, MedicationOut, MedicationUpdate,
    TaskIn, TaskOut, TaskUpdate,
)
from alzassist.services import ConnectionGate


def build_router(
    prefix: str,
    table: sa.Table,
    label: str,
    create_model: Type[BaseModel],
    update_model: Type[BaseModel],
    out_model: Type[BaseModel],
    order_by=None,
) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[table.name])

    def repo(db: Session) -> PatientRecordRepository:
        return PatientRecordRepository(db, table, order_by=order_by)

    @router.post("", status_code=201, name=f"create_{table.name}")
    def create_record(payload: create_model, principal: Dict[str, Any] = Depends(require_patient), db: Session = Depends(get_db)):
        try:
            row = repo(db).create(principal["id"], payload.model_dump())
        except StorageError:
            raise ValidationError(f"Failed to create {label.lower()}")
        return created(out_model(**row))

    @router.get("", name=f"list_{table.name}")
    def list_records(
        patient_id: Optional[str] = Query(None),
        principal: Dict[str, Any] = Depends(get_principal),
        gate: ConnectionGate = Depends(get_gate),
        db: Session = Depends(get_db),
    ):
        owner = principal["id"]
        if principal["role"] == "CARETAKER":
            if not patient_id:
                raise ValidationError("patient_id query parameter is required for caretakers")
            gate.ensure_connected(principal["id"], patient_id)
            owner = patient_id
        return ok([out_model(**r) for r in repo(db).list_for_patient(owner)])

    @router.put("/{record_id}", name=f"update_{table.name}")
    def update_record(record_id: str, payload: update_model, principal: Dict[str, Any] = Depends(require_patient), db: Session = Depends(get_db)):
        changes = payload.model_dump(exclude_unset=True)
        for k, v in changes.items():
            if v is None and not table.c[k].nullable:
                raise ValidationError(f"{k} cannot be null")
        try:
            row = repo(db).update(record_id, principal["id"], changes)
        except StorageError:
            raise ValidationError(f"Failed to update {label.lower()}")
        if not row:
            raise NotFoundError(label)
        return ok(out_model(**row))

    @router.delete("/{record_id}", name=f"delete_{table.name}")
    def delete_record(record_id: str, principal: Dict[str, Any] = Depends(require_patient), db: Session = Depends(get_db)):
        try:
            deleted = repo(db).delete(record_id, principal["id"])
        except StorageError:
            raise ValidationError(f"Failed to delete {label.lower()}")
        if not deleted:
            raise NotFoundError(label)
        return ok({"message": f"{label} deleted"})

    return router


journals = build_router("/api/journals", tables.journals, "Journal", JournalIn, JournalUpdate, JournalOut)
medications = build_router(
    "/api/medications", tables.medications, "Medication", MedicationIn, MedicationUpdate, MedicationOut,
    order_by=tables.medications.c.time.asc(),
)
tasks = build_router("/api/tasks", tables.tasks, "Task", TaskIn, TaskUpdate, TaskOut)
gallery = build_router("/api/gallery", tables.faces, "Face", FaceIn, FaceUpdate, FaceOut)
emergency = build_router(
    "/api/emergency", tables.emergency_contacts, "Emergency contact",
    EmergencyContactIn, EmergencyContactUpdate, EmergencyContactOut,
    order_by=tables.emergency_contacts.c.created_at.asc(),
)
