from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from alzassist.errors import StorageError
from alzassist.repositories import AlertRepository, ConnectionRepository, LocationRepository, ProfileRepository, new_id
from alzassist.scripts.migrate_and_seed import seed
from alzassist.config import settings


def test_locations_are_append_only(make_profile, fetch):
    patient = make_profile("PATIENT")
    first = fetch(lambda s: LocationRepository(s).insert(patient, 1.0, 2.0))
    second = fetch(lambda s: LocationRepository(s).insert(patient, 1.0, 2.0))
    assert first["id"] != second["id"]
    rows = fetch(lambda s: LocationRepository(s).history(patient))
    assert [r["id"] for r in rows] == [second["id"], first["id"]]


def test_history_is_per_patient(make_profile, fetch):
    a, b = make_profile("PATIENT"), make_profile("PATIENT")
    fetch(lambda s: LocationRepository(s).insert(a, 1.0, 1.0))
    assert fetch(lambda s: LocationRepository(s).history(b)) == []
    assert fetch(lambda s: LocationRepository(s).latest(b)) is None


def test_is_connected_requires_accepted(make_profile, connect, fetch):
    p, c = make_profile("PATIENT"), make_profile("CARETAKER")
    cid = connect(c, p, "PENDING")
    assert fetch(lambda s: ConnectionRepository(s).is_connected(c, p)) is False
    fetch(lambda s: ConnectionRepository(s).update_status(cid, p, "ACCEPTED"))
    assert fetch(lambda s: ConnectionRepository(s).is_connected(c, p)) is True
    # direction matters
    assert fetch(lambda s: ConnectionRepository(s).is_connected(p, c)) is False


def test_failed_write_rolls_back_and_raises_storage_error(make_profile, fetch, monkeypatch):
    patient = make_profile("PATIENT")

    def run(s):
        repo = AlertRepository(s)

        def broken(stmt, *a, **kw):
            raise OperationalError("INSERT", {}, Exception("statement timeout"))

        monkeypatch.setattr(s, "execute", broken)
        with pytest.raises(StorageError):
            repo.insert(patient, "nobody", "GEOFENCE_EXIT", "m")

    fetch(run)


def test_seed_is_idempotent(database, fetch):
    with database.begin() as c:
        seed(c)
    with database.begin() as c:
        seed(c)
    assert fetch(lambda s: ConnectionRepository(s).is_connected(settings.demo_caretaker_id, settings.demo_patient_id))
    pats = fetch(lambda s: ConnectionRepository(s).list_accepted_patients(settings.demo_caretaker_id))
    assert len(pats) == 1


def test_schema_rejects_unknown_role_and_status(make_profile, connect, fetch):
    with pytest.raises(StorageError):
        fetch(lambda s: ProfileRepository(s).create(new_id(), "ADMIN", "Root"))
    cid = connect(make_profile("CARETAKER"), make_profile("PATIENT"), "PENDING")
    row = fetch(lambda s: ConnectionRepository(s).get(cid))
    with pytest.raises(StorageError):
        fetch(lambda s: ConnectionRepository(s).update_status(cid, row["patient_id"], "MAYBE"))
    assert fetch(lambda s: ConnectionRepository(s).get(cid))["status"] == "PENDING"
