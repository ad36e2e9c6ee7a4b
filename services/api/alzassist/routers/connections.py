from __future__ import annotations
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from alzassist.db import get_db
from alzassist.deps import require_caretaker, require_patient
from alzassist.errors import NotFoundError, StorageError, ValidationError
from alzassist.repositories import ConnectionRepository, ProfileRepository
from alzassist.responses import created, ok
from alzassist.schemas import (
    ConnectedCaretakerOut,
    ConnectedPatientOut,
    ConnectionCreate,
    ConnectionOut,
    ConnectionStatusUpdate,
    PendingRequestOut,
)

router = APIRouter(prefix="/api/connections", tags=["connections"])

@router.post("", status_code=201)
def request_connection(payload: ConnectionCreate, principal: Dict[str, Any] = Depends(require_caretaker), db: Session = Depends(get_db)):
    patient = ProfileRepository(db).get(payload.patient_id)
    if not patient or patient["role"] != "PATIENT":
        raise NotFoundError("Patient")
    repo = ConnectionRepository(db)
    existing = repo.find_pair(principal["id"], payload.patient_id)
    if existing:
        return created(ConnectionOut(**existing))
    try:
        row = repo.create_pending(principal["id"], payload.patient_id)
    except StorageError:
        raise ValidationError("Failed to send connection request")
    return created(ConnectionOut(**row))

@router.get("/patients")
def connected_patients(principal: Dict[str, Any] = Depends(require_caretaker), db: Session = Depends(get_db)):
    rows = ConnectionRepository(db).list_accepted_patients(principal["id"])
    return ok([ConnectedPatientOut(**r) for r in rows])

@router.get("/caretakers")
def connected_caretakers(principal: Dict[str, Any] = Depends(require_patient), db: Session = Depends(get_db)):
    rows = ConnectionRepository(db).list_accepted_caretakers(principal["id"])
    return ok([ConnectedCaretakerOut(**r) for r in rows])

@router.get("/requests")
def pending_requests(principal: Dict[str, Any] = Depends(require_patient), db: Session = Depends(get_db)):
    rows = ConnectionRepository(db).list_pending(principal["id"])
    return ok([PendingRequestOut(**r) for r in rows])

@router.put("/{connection_id}")
def answer_request(
    connection_id: str,
    payload: ConnectionStatusUpdate,
    principal: Dict[str, Any] = Depends(require_patient),
    db: Session = Depends(get_db),
):
    try:
        row = ConnectionRepository(db).update_status(connection_id, principal["id"], payload.status)
    except StorageError:
        raise ValidationError("Failed to update connection")
    if not row:
        raise NotFoundError("Connection")
    return ok(ConnectionOut(**row))
