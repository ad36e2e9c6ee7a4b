from __future__ import annotations

import os
import time

# Settings are read once at import; point them at a throwaway store first.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTH_JWT_SECRET", "test-secret")
os.environ.setdefault("GEOFENCE_RADIUS_METERS", "500")
os.environ.setdefault("OTEL_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool

from alzassist import db
from alzassist.repositories import ConnectionRepository, ProfileRepository, new_id
from alzassist.tables import metadata

SECRET = "test-secret"


def make_token(sub: str, email: str | None = None, secret: str = SECRET, audience: str = "authenticated", ttl: int = 3600) -> str:
    now = int(time.time())
    claims = {"sub": sub, "aud": audience, "iat": now, "exp": now + ttl, "role": "authenticated"}
    if email:
        claims["email"] = email
    return jwt.encode(claims, secret, algorithm="HS256")


def auth(sub: str) -> dict:
    return {"Authorization": f"Bearer {make_token(sub)}"}


@pytest.fixture(autouse=True)
def database():
    eng = db.init_engine("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    metadata.create_all(eng)
    yield eng
    metadata.drop_all(eng)


@pytest.fixture
def client():
    from alzassist.app import app
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_profile():
    def _make(role: str, name: str = "", home: tuple[float, float] | None = None) -> str:
        pid = new_id()
        with db.db_session() as s:
            repo = ProfileRepository(s)
            repo.create(pid, role, name or f"{role.title()} {pid[:4]}")
            if home:
                repo.update(pid, {"home_lat": home[0], "home_lng": home[1]})
        return pid
    return _make


@pytest.fixture
def connect():
    def _connect(caretaker_id: str, patient_id: str, status: str = "ACCEPTED") -> str:
        with db.db_session() as s:
            repo = ConnectionRepository(s)
            row = repo.create_pending(caretaker_id, patient_id)
            if status != "PENDING":
                repo.update_status(row["id"], patient_id, status)
        return row["id"]
    return _connect


@pytest.fixture
def fetch():
    """Run a read against the store outside any request."""
    def _fetch(fn):
        with db.db_session() as s:
            return fn(s)
    return _fetch
