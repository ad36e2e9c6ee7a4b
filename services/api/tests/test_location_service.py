"""LocationService against in-memory fakes, including failing stores."""
from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

import pytest

from alzassist.errors import StorageError
from alzassist.geofence import GeofenceEvaluator
from alzassist.services import ConnectionGate, LocationService, geofence_message


class FakeLocations:
    def __init__(self, fail=False):
        self.rows = []
        self.fail = fail
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def insert(self, patient_id, lat, lng):
        if self.fail:
            raise StorageError("location.insert failed")
        self._clock += timedelta(seconds=1)
        row = {"id": f"L{len(self.rows)}", "patient_id": patient_id, "lat": lat, "lng": lng, "recorded_at": self._clock}
        self.rows.append(row)
        return row

    def history(self, patient_id, limit=50):
        if self.fail:
            raise StorageError("location.history failed")
        rows = sorted((r for r in self.rows if r["patient_id"] == patient_id), key=lambda r: r["recorded_at"], reverse=True)
        return rows[:limit]

    def latest(self, patient_id):
        rows = self.history(patient_id, 1)
        return rows[0] if rows else None


class FakeProfiles:
    def __init__(self, profiles=None, fail=False):
        self.profiles = profiles or {}
        self.fail = fail

    def get(self, pid):
        if self.fail:
            raise StorageError("profile.get failed")
        return self.profiles.get(pid)


class FakeConnections:
    def __init__(self, pairs=None, fail=False):
        # (caretaker_id, patient_id, status)
        self.pairs = pairs or []
        self.fail = fail

    def list_accepted_caretakers(self, patient_id):
        if self.fail:
            raise StorageError("connection.list_caretakers failed")
        return [
            {"id": f"C-{c}", "status": s, "caretaker": {"id": c, "name": c, "phone": None}}
            for c, p, s in self.pairs if p == patient_id and s == "ACCEPTED"
        ]

    def is_connected(self, caretaker_id, patient_id):
        if self.fail:
            raise StorageError("connection.is_connected failed")
        return (caretaker_id, patient_id, "ACCEPTED") in self.pairs


class FakeAlerts:
    def __init__(self, failing_for=()):
        self.rows = []
        self.failing_for = set(failing_for)

    def insert(self, patient_id, caretaker_id, type_, message):
        if caretaker_id in self.failing_for:
            raise StorageError("alert.insert failed")
        row = {"id": f"A{len(self.rows)}", "patient_id": patient_id, "caretaker_id": caretaker_id,
               "type": type_, "message": message, "resolved": False}
        self.rows.append(row)
        return row


HOME = {"id": "P1", "role": "PATIENT", "name": "Ada", "home_lat": 40.0, "home_lng": -74.0}


def service(locations=None, profiles=None, connections=None, alerts=None, radius=500):
    return LocationService(
        locations=locations or FakeLocations(),
        profiles=profiles or FakeProfiles({"P1": HOME}),
        connections=connections or FakeConnections(),
        alerts=alerts or FakeAlerts(),
        evaluator=GeofenceEvaluator(radius),
    )


def test_at_home_stores_location_and_raises_nothing():
    alerts = FakeAlerts()
    svc = service(connections=FakeConnections([("C1", "P1", "ACCEPTED")]), alerts=alerts)
    res = svc.submit("P1", 40.0, -74.0)
    assert res.location["lat"] == 40.0
    assert res.alert_triggered is False
    assert res.distance_m == 0
    assert alerts.rows == []


def test_exit_fans_out_only_to_accepted_caretakers():
    pairs = [("C1", "P1", "ACCEPTED"), ("C2", "P1", "ACCEPTED"), ("C3", "P1", "PENDING"),
             ("C4", "P1", "REJECTED"), ("C5", "P2", "ACCEPTED")]
    alerts = FakeAlerts()
    res = service(connections=FakeConnections(pairs), alerts=alerts).submit("P1", 40.01, -74.0)

    assert res.alert_triggered is True
    assert sorted(a["caretaker_id"] for a in alerts.rows) == ["C1", "C2"]
    assert all(a["patient_id"] == "P1" and a["type"] == "GEOFENCE_EXIT" and a["resolved"] is False for a in alerts.rows)
    assert res.fanout.attempted == 2 and res.fanout.delivered == 2 and res.fanout.failed == 0

    meters = int(re.search(r"\((\d+)m from home\)", alerts.rows[0]["message"]).group(1))
    assert abs(meters - 1112) <= 1
    assert alerts.rows[0]["message"].startswith("Patient Ada has left the safe zone")


def test_exit_without_caretakers_still_reports_trigger():
    res = service().submit("P1", 41.0, -74.0)
    assert res.alert_triggered is True
    assert res.fanout.attempted == 0


def test_one_failed_alert_does_not_stop_the_others():
    pairs = [("C1", "P1", "ACCEPTED"), ("C2", "P1", "ACCEPTED"), ("C3", "P1", "ACCEPTED")]
    alerts = FakeAlerts(failing_for={"C2"})
    res = service(connections=FakeConnections(pairs), alerts=alerts).submit("P1", 40.01, -74.0)

    assert res.alert_triggered is True
    assert [a["caretaker_id"] for a in alerts.rows] == ["C1", "C3"]
    assert (res.fanout.attempted, res.fanout.delivered, res.fanout.failed) == (3, 2, 1)
    failed = [d for d in res.fanout.deliveries if not d.delivered]
    assert failed[0].caretaker_id == "C2" and failed[0].error


def test_all_alerts_failing_is_reported_not_raised():
    pairs = [("C1", "P1", "ACCEPTED"), ("C2", "P1", "ACCEPTED")]
    res = service(connections=FakeConnections(pairs), alerts=FakeAlerts(failing_for={"C1", "C2"})).submit("P1", 40.01, -74.0)
    assert res.location is not None
    assert res.fanout.as_dict()["failed"] == 2


def test_caretaker_lookup_failure_keeps_location():
    res = service(connections=FakeConnections(fail=True)).submit("P1", 40.01, -74.0)
    assert res.location is not None
    assert res.alert_triggered is True
    assert res.fanout.attempted == 0


@pytest.mark.parametrize("profile", [
    None,
    {"id": "P1", "role": "PATIENT", "name": "Ada", "home_lat": None, "home_lng": None},
    {"id": "P1", "role": "PATIENT", "name": "Ada", "home_lat": 40.0, "home_lng": None},
])
def test_no_home_never_alerts(profile):
    alerts = FakeAlerts()
    profiles = FakeProfiles({"P1": profile} if profile else {})
    svc = service(profiles=profiles, connections=FakeConnections([("C1", "P1", "ACCEPTED")]), alerts=alerts)
    res = svc.submit("P1", -33.0, 151.0)
    assert res.location is not None
    assert res.alert_triggered is False
    assert alerts.rows == []


def test_profile_read_failure_means_no_alert():
    res = service(profiles=FakeProfiles(fail=True)).submit("P1", 41.0, -74.0)
    assert res.location is not None
    assert res.alert_triggered is False


def test_insert_failure_returns_no_location_and_no_alert():
    alerts = FakeAlerts()
    svc = service(locations=FakeLocations(fail=True), connections=FakeConnections([("C1", "P1", "ACCEPTED")]), alerts=alerts)
    res = svc.submit("P1", 41.0, -74.0)
    assert res.location is None
    assert res.alert_triggered is False
    assert alerts.rows == []


def test_history_is_newest_first_and_capped():
    locs = FakeLocations()
    svc = service(locations=locs)
    for i in range(7):
        svc.submit("P1", 40.0 + i * 0.0001, -74.0)
    hist = svc.get_history("P1", limit=5)
    assert len(hist) == 5
    stamps = [r["recorded_at"] for r in hist]
    assert all(a > b for a, b in zip(stamps, stamps[1:]))
    assert svc.get_latest("P1") == hist[0]


def test_reads_degrade_on_store_failure():
    svc = service(locations=FakeLocations(fail=True))
    assert svc.get_history("P1") == []
    assert svc.get_latest("P1") is None


def test_latest_without_rows_is_none():
    assert service().get_latest("P1") is None


def test_gate_checks_accepted_only():
    gate = ConnectionGate(FakeConnections([("C1", "P1", "ACCEPTED"), ("C2", "P1", "PENDING")]))
    assert gate.is_connected("C1", "P1") is True
    assert gate.is_connected("C2", "P1") is False
    assert gate.is_connected("C3", "P1") is False


def test_gate_fails_closed():
    assert ConnectionGate(FakeConnections(fail=True)).is_connected("C1", "P1") is False


def test_message_text():
    assert geofence_message("Ada", 1112) == "Patient Ada has left the safe zone (1112m from home)"
