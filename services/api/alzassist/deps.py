"""FastAPI dependencies: caller identity, role checks and per-request repositories."""
from __future__ import annotations

from typing import Any, Dict

import structlog
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from alzassist.config import settings
from alzassist.db import get_db
from alzassist.errors import AuthenticationError, ForbiddenError, StorageError
from alzassist.geofence import GeofenceEvaluator
from alzassist.repositories import (
    AlertRepository,
    ConnectionRepository,
    LocationRepository,
    ProfileRepository,
)
from alzassist.security import TokenError, verify_bearer
from alzassist.services import ConnectionGate, LocationService

log = structlog.get_logger("alzassist.auth")

bearer = HTTPBearer(auto_error=False)

_evaluator: GeofenceEvaluator | None = None

def get_evaluator() -> GeofenceEvaluator:
    # radius is fixed for the life of the process
    global _evaluator
    if _evaluator is None:
        _evaluator = GeofenceEvaluator(settings.geofence_radius_meters)
    return _evaluator

def get_identity(creds: HTTPAuthorizationCredentials | None = Depends(bearer)) -> Dict[str, Any]:
    if not creds:
        raise AuthenticationError("Missing or invalid authorization header")
    try:
        return verify_bearer(creds.credentials)
    except TokenError as e:
        log.info("auth.token_rejected", error=str(e))
        raise AuthenticationError("Invalid or expired token")

def get_principal(identity: Dict[str, Any] = Depends(get_identity), db: Session = Depends(get_db)) -> Dict[str, Any]:
    try:
        profile = ProfileRepository(db).get(identity["sub"])
    except StorageError:
        raise AuthenticationError("Authentication failed")
    if not profile:
        raise AuthenticationError("User profile not found")
    return {"id": profile["id"], "email": identity.get("email"), "role": profile["role"], "name": profile["name"]}

def require_role(*allowed: str):
    def _dep(principal: Dict[str, Any] = Depends(get_principal)) -> Dict[str, Any]:
        if principal["role"] not in allowed:
            raise ForbiddenError(f"Access denied. Required role: {' or '.join(allowed)}")
        return principal
    return _dep

require_patient = require_role("PATIENT")
require_caretaker = require_role("CARETAKER")

def get_gate(db: Session = Depends(get_db)) -> ConnectionGate:
    return ConnectionGate(ConnectionRepository(db))

def get_location_service(db: Session = Depends(get_db), evaluator: GeofenceEvaluator = Depends(get_evaluator)) -> LocationService:
    return LocationService(
        locations=LocationRepository(db),
        profiles=ProfileRepository(db),
        connections=ConnectionRepository(db),
        alerts=AlertRepository(db),
        evaluator=evaluator,
    )
