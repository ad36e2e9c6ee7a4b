from __future__ import annotations
from datetime import datetime
from typing import Any, Literal
from pydantic import BaseModel, ConfigDict, Field

Role = Literal["PATIENT", "CARETAKER"]
ConnectionStatus = Literal["PENDING", "ACCEPTED", "REJECTED"]
AlertType = Literal["GEOFENCE_EXIT", "LOW_BATTERY", "MISSED_MEDICATION"]

class Envelope(BaseModel):
    success: bool = True
    data: Any = None

class ErrorEnvelope(BaseModel):
    success: bool = False
    error: str

# Locations

class LocationIn(BaseModel):
    # strict: "40.0" as a string is a client error, not a coordinate
    lat: float = Field(..., strict=True, allow_inf_nan=False, ge=-90, le=90)
    lng: float = Field(..., strict=True, allow_inf_nan=False, ge=-180, le=180)

class LocationOut(BaseModel):
    id: str
    patient_id: str
    lat: float
    lng: float
    recorded_at: datetime

class AlertDeliveryOut(BaseModel):
    caretaker_id: str
    delivered: bool
    alert_id: str | None = None
    error: str | None = None

class FanoutReportOut(BaseModel):
    attempted: int
    delivered: int
    failed: int
    deliveries: list[AlertDeliveryOut] = []

class LocationSubmitOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    location: LocationOut
    alert_triggered: bool = Field(..., alias="alertTriggered")
    distance_m: int | None = Field(None, alias="distanceMeters")
    fanout: FanoutReportOut

# Profiles

class ProfileCreate(BaseModel):
    role: Role
    name: str = Field(..., min_length=1, max_length=255)
    phone: str | None = Field(None, max_length=32)

class ProfileUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    phone: str | None = Field(None, max_length=32)
    home_lat: float | None = Field(None, allow_inf_nan=False, ge=-90, le=90)
    home_lng: float | None = Field(None, allow_inf_nan=False, ge=-180, le=180)

class ProfileOut(BaseModel):
    id: str
    role: Role
    name: str
    phone: str | None = None
    home_lat: float | None = None
    home_lng: float | None = None
    created_at: datetime

class ProfileSummary(BaseModel):
    id: str
    name: str
    phone: str | None = None
    home_lat: float | None = None
    home_lng: float | None = None

# Connections

class ConnectionCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    patient_id: str = Field(..., alias="patientId", min_length=1, max_length=64)

class ConnectionStatusUpdate(BaseModel):
    status: Literal["ACCEPTED", "REJECTED"]

class ConnectionOut(BaseModel):
    id: str
    caretaker_id: str
    patient_id: str
    status: ConnectionStatus
    created_at: datetime

class ConnectedPatientOut(BaseModel):
    id: str
    status: ConnectionStatus
    patient: ProfileSummary

class ConnectedCaretakerOut(BaseModel):
    id: str
    status: ConnectionStatus
    caretaker: ProfileSummary

class PendingRequestOut(ConnectedCaretakerOut):
    created_at: datetime

# Alerts

class AlertOut(BaseModel):
    id: str
    patient_id: str
    caretaker_id: str
    type: AlertType
    message: str
    resolved: bool
    created_at: datetime
    patient_name: str | None = None

class AlertCount(BaseModel):
    count: int

# Patient-owned records

class JournalIn(BaseModel):
    content: str = Field(..., min_length=1)
    mood: str | None = Field(None, max_length=64)

class JournalUpdate(BaseModel):
    content: str | None = Field(None, min_length=1)
    mood: str | None = Field(None, max_length=64)

class JournalOut(BaseModel):
    id: str
    patient_id: str
    content: str
    mood: str | None = None
    created_at: datetime

class MedicationIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    dosage: str = Field(..., min_length=1, max_length=255)
    time: str = Field(..., min_length=1, max_length=32)
    instructions: str | None = None
    taken: bool = False

class MedicationUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    dosage: str | None = Field(None, min_length=1, max_length=255)
    time: str | None = Field(None, min_length=1, max_length=32)
    instructions: str | None = None
    taken: bool | None = None

class MedicationOut(BaseModel):
    id: str
    patient_id: str
    name: str
    dosage: str
    time: str
    instructions: str | None = None
    taken: bool
    created_at: datetime

class TaskIn(BaseModel):
    text: str = Field(..., min_length=1)

class TaskUpdate(BaseModel):
    text: str | None = Field(None, min_length=1)
    completed: bool | None = None

class TaskOut(BaseModel):
    id: str
    patient_id: str
    text: str
    completed: bool
    created_at: datetime

class FaceIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    relation: str = Field(..., min_length=1, max_length=255)
    image_url: str = Field(..., pattern=r"^https?://\S+$")

class FaceUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    relation: str | None = Field(None, min_length=1, max_length=255)
    image_url: str | None = Field(None, pattern=r"^https?://\S+$")

class FaceOut(BaseModel):
    id: str
    patient_id: str
    name: str
    relation: str
    image_url: str
    created_at: datetime

class EmergencyContactIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=1, max_length=32)
    relationship: str | None = Field(None, max_length=255)

class EmergencyContactUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    phone: str | None = Field(None, min_length=1, max_length=32)
    relationship: str | None = Field(None, max_length=255)

class EmergencyContactOut(BaseModel):
    id: str
    patient_id: str
    name: str
    phone: str
    relationship: str | None = None
    created_at: datetime
