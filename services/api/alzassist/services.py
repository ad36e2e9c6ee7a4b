from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import structlog
from prometheus_client import Counter

from alzassist.errors import ForbiddenError, StorageError
from alzassist.geofence import GeofenceEvaluator
from alzassist.repositories import (
    AlertRepository,
    ConnectionRepository,
    LocationRepository,
    ProfileRepository,
)

log = structlog.get_logger("alzassist.locations")

GEOFENCE_EXITS = Counter("alzassist_geofence_exits_total", "Location submissions outside the home geofence")
FANOUT_FAILURES = Counter("alzassist_alert_fanout_failures_total", "Geofence alerts that could not be stored")


class ConnectionGate:
    """Answers whether a caretaker may read a patient's data."""

    def __init__(self, connections: ConnectionRepository):
        self.connections = connections

    def is_connected(self, caretaker_id: str, patient_id: str) -> bool:
        try:
            return self.connections.is_connected(caretaker_id, patient_id)
        except StorageError:
            # fail closed
            return False

    def ensure_connected(self, caretaker_id: str, patient_id: str) -> None:
        if not self.is_connected(caretaker_id, patient_id):
            raise ForbiddenError("Not connected to this patient")


@dataclass
class AlertDelivery:
    caretaker_id: str
    delivered: bool
    alert_id: Optional[str] = None
    error: Optional[str] = None


@dataclass
class FanoutReport:
    deliveries: List[AlertDelivery] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.deliveries)

    @property
    def delivered(self) -> int:
        return sum(1 for d in self.deliveries if d.delivered)

    @property
    def failed(self) -> int:
        return self.attempted - self.delivered

    def as_dict(self) -> Dict[str, Any]:
        return {
            "attempted": self.attempted,
            "delivered": self.delivered,
            "failed": self.failed,
            "deliveries": [d.__dict__ for d in self.deliveries],
        }


@dataclass
class SubmitResult:
    location: Optional[Dict[str, Any]]
    alert_triggered: bool = False
    distance_m: Optional[int] = None
    fanout: FanoutReport = field(default_factory=FanoutReport)


def geofence_message(patient_name: str, distance_m: int) -> str:
    return f"Patient {patient_name} has left the safe zone ({distance_m}m from home)"


class LocationService:
    """Stores location samples and raises geofence alerts.

    None of the public operations raise. Store failures degrade to sentinels:
    ``location=None`` for ``submit``, ``[]`` for history and ``None`` for latest.
    """

    def __init__(
        self,
        locations: LocationRepository,
        profiles: ProfileRepository,
        connections: ConnectionRepository,
        alerts: AlertRepository,
        evaluator: GeofenceEvaluator,
    ):
        self.locations = locations
        self.profiles = profiles
        self.connections = connections
        self.alerts = alerts
        self.evaluator = evaluator

    def submit(self, patient_id: str, lat: float, lng: float) -> SubmitResult:
        try:
            location = self.locations.insert(patient_id, lat, lng)
        except StorageError as e:
            log.error("location.store_failed", patient_id=patient_id, error=str(e))
            return SubmitResult(location=None)
        log.info("location.stored", patient_id=patient_id, location_id=location["id"])

        try:
            profile = self.profiles.get(patient_id)
        except StorageError as e:
            log.warning("location.profile_unavailable", patient_id=patient_id, error=str(e))
            profile = None
        if not profile or profile.get("home_lat") is None or profile.get("home_lng") is None:
            return SubmitResult(location=location)

        result = self.evaluator.evaluate(lat, lng, profile["home_lat"], profile["home_lng"])
        if not result.outside:
            return SubmitResult(location=location, distance_m=result.rounded_distance_m)

        GEOFENCE_EXITS.inc()
        log.info("geofence.exit", patient_id=patient_id, distance_m=result.rounded_distance_m,
                 radius_m=self.evaluator.radius_m)
        report = self._fan_out(patient_id, geofence_message(profile["name"], result.rounded_distance_m))
        return SubmitResult(location=location, alert_triggered=True,
                            distance_m=result.rounded_distance_m, fanout=report)

    def _fan_out(self, patient_id: str, message: str) -> FanoutReport:
        report = FanoutReport()
        try:
            caretakers = self.connections.list_accepted_caretakers(patient_id)
        except StorageError as e:
            log.error("alert.fanout_failed", patient_id=patient_id, stage="list_caretakers", error=str(e))
            return report

        for conn in caretakers:
            caretaker_id = conn["caretaker"]["id"]
            try:
                alert = self.alerts.insert(patient_id, caretaker_id, "GEOFENCE_EXIT", message)
            except StorageError as e:
                FANOUT_FAILURES.inc()
                log.warning("alert.fanout_failed", patient_id=patient_id, caretaker_id=caretaker_id, error=str(e))
                report.deliveries.append(AlertDelivery(caretaker_id=caretaker_id, delivered=False, error=str(e)))
                continue
            report.deliveries.append(AlertDelivery(caretaker_id=caretaker_id, delivered=True, alert_id=alert["id"]))

        log.info("alert.fanout_complete", patient_id=patient_id, attempted=report.attempted,
                 delivered=report.delivered, failed=report.failed)
        return report

    def get_history(self, patient_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        try:
            return self.locations.history(patient_id, limit)
        except StorageError:
            return []

    def get_latest(self, patient_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self.locations.latest(patient_id)
        except StorageError:
            return None
