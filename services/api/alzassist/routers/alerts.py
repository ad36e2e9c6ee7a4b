from __future__ import annotations
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from alzassist.db import get_db
from alzassist.deps import require_caretaker
from alzassist.errors import NotFoundError
from alzassist.repositories import AlertRepository
from alzassist.responses import ok
from alzassist.schemas import AlertCount, AlertOut

router = APIRouter(prefix="/api/alerts", tags=["alerts"])

@router.get("")
def list_alerts(principal: Dict[str, Any] = Depends(require_caretaker), db: Session = Depends(get_db)):
    return ok([AlertOut(**r) for r in AlertRepository(db).list_for_caretaker(principal["id"])])

@router.get("/count")
def unresolved_count(principal: Dict[str, Any] = Depends(require_caretaker), db: Session = Depends(get_db)):
    return ok(AlertCount(count=AlertRepository(db).unresolved_count(principal["id"])))

@router.put("/{alert_id}/resolve")
def resolve_alert(alert_id: str, principal: Dict[str, Any] = Depends(require_caretaker), db: Session = Depends(get_db)):
    row = AlertRepository(db).resolve(alert_id, principal["id"])
    if not row:
        raise NotFoundError("Alert")
    return ok(AlertOut(**row))
