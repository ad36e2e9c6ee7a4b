from __future__ import annotations
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from alzassist.db import get_db
from alzassist.deps import get_identity, get_principal
from alzassist.errors import ForbiddenError, NotFoundError, StorageError, ValidationError
from alzassist.repositories import ConnectionRepository, ProfileRepository
from alzassist.responses import created, ok
from alzassist.schemas import ProfileCreate, ProfileOut, ProfileUpdate

router = APIRouter(prefix="/api/profiles", tags=["profiles"])

@router.post("", status_code=201)
def create_profile(payload: ProfileCreate, identity: Dict[str, Any] = Depends(get_identity), db: Session = Depends(get_db)):
    # The identity provider owns the account; this only records role and display data.
    repo = ProfileRepository(db)
    if repo.get(identity["sub"]):
        raise ValidationError("Profile already exists")
    try:
        row = repo.create(identity["sub"], payload.role, payload.name, payload.phone)
    except StorageError:
        raise ValidationError("Failed to create profile")
    return created(ProfileOut(**row))

@router.get("/me")
def my_profile(principal: Dict[str, Any] = Depends(get_principal), db: Session = Depends(get_db)):
    row = ProfileRepository(db).get(principal["id"])
    if not row:
        raise NotFoundError("Profile")
    return ok(ProfileOut(**row))

@router.put("/me")
def update_my_profile(payload: ProfileUpdate, principal: Dict[str, Any] = Depends(get_principal), db: Session = Depends(get_db)):
    changes = payload.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] is None:
        raise ValidationError("name cannot be null")
    if ("home_lat" in changes) != ("home_lng" in changes):
        raise ValidationError("home_lat and home_lng must be set together")
    try:
        row = ProfileRepository(db).update(principal["id"], changes)
    except StorageError:
        raise ValidationError("Failed to update profile")
    if not row:
        raise NotFoundError("Profile")
    return ok(ProfileOut(**row))

@router.get("/{profile_id}")
def get_profile(profile_id: str, principal: Dict[str, Any] = Depends(get_principal), db: Session = Depends(get_db)):
    row = ProfileRepository(db).get(profile_id)
    if not row:
        raise NotFoundError("Profile")
    if profile_id != principal["id"]:
        conns = ConnectionRepository(db)
        if principal["role"] == "CARETAKER":
            allowed = conns.is_connected(principal["id"], profile_id)
        else:
            allowed = conns.is_connected(profile_id, principal["id"])
        if not allowed:
            raise ForbiddenError("Not connected to this user")
    return ok(ProfileOut(**row))
