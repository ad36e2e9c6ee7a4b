from __future__ import annotations

from conftest import auth


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_unknown_route_uses_envelope(client):
    r = client.get("/api/nothing-here")
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "Route not found"}


def test_request_id_is_echoed(client):
    r = client.get("/health", headers={"X-Request-Id": "abc-123"})
    assert r.headers["X-Request-Id"] == "abc-123"
    assert client.get("/health").headers["X-Request-Id"]


def test_metrics_exposes_geofence_counter(client, make_profile, connect):
    patient = make_profile("PATIENT", home=(0.0, 0.0))
    connect(make_profile("CARETAKER"), patient)
    client.post("/api/locations", json={"lat": 1.0, "lng": 1.0}, headers=auth(patient))
    body = client.get("/metrics").text
    assert "alzassist_geofence_exits_total" in body
    assert "alzassist_http_requests_total" in body
