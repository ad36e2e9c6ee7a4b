from __future__ import annotations
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from alzassist.config import settings
from alzassist.deps import get_gate, get_location_service, require_caretaker, require_patient
from alzassist.errors import ValidationError
from alzassist.responses import created, ok
from alzassist.schemas import LocationIn, LocationOut, LocationSubmitOut
from alzassist.services import ConnectionGate, LocationService

router = APIRouter(prefix="/api/locations", tags=["locations"])

@router.post("", status_code=201)
def submit_location(
    payload: LocationIn,
    principal: Dict[str, Any] = Depends(require_patient),
    svc: LocationService = Depends(get_location_service),
):
    result = svc.submit(principal["id"], payload.lat, payload.lng)
    if result.location is None:
        raise ValidationError("Failed to save location")
    out = LocationSubmitOut(
        location=LocationOut(**result.location),
        alert_triggered=result.alert_triggered,
        distance_m=result.distance_m,
        fanout=result.fanout.as_dict(),
    )
    return created(out)

@router.get("/{patient_id}")
def location_history(
    patient_id: str,
    limit: int | None = Query(None, ge=1, le=500),
    principal: Dict[str, Any] = Depends(require_caretaker),
    gate: ConnectionGate = Depends(get_gate),
    svc: LocationService = Depends(get_location_service),
):
    gate.ensure_connected(principal["id"], patient_id)
    rows = svc.get_history(patient_id, limit or settings.history_default_limit)
    return ok([LocationOut(**r) for r in rows])

@router.get("/{patient_id}/latest")
def latest_location(
    patient_id: str,
    principal: Dict[str, Any] = Depends(require_caretaker),
    gate: ConnectionGate = Depends(get_gate),
    svc: LocationService = Depends(get_location_service),
):
    gate.ensure_connected(principal["id"], patient_id)
    row = svc.get_latest(patient_id)
    return ok(LocationOut(**row) if row else None)
