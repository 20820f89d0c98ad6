"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

UNDETECTED_STATUS = "Tidak Terdeteksi"
NO_DATA_STATUS = "NO DATA"

# Measurements are stored exactly as the device sent them; 0 and false are
# legitimate readings.
Measurement = Any


class SensorSubmission(BaseModel):
    """Request body posted by the device."""

    # Only the wire names count towards presence.
    model_config = ConfigDict(extra="ignore")

    temperature: Measurement
    level_percent: Measurement = Field(..., alias="levelPercent")
    ntu: Measurement
    level_status: Optional[Any] = Field(default=None, alias="levelStatus")
    turb_status: Optional[Any] = Field(default=None, alias="turbStatus")


class SensorReading(BaseModel):
    """Normalized reading as stored in the latest slot and history."""

    model_config = ConfigDict(populate_by_name=True)

    temperature: Measurement = 0
    level_percent: Measurement = Field(default=0, alias="levelPercent")
    ntu: Measurement = 0
    level_status: Any = Field(default=UNDETECTED_STATUS, alias="levelStatus")
    turb_status: Any = Field(default=UNDETECTED_STATUS, alias="turbStatus")
    timestamp: int = Field(..., description="Milliseconds since the Unix epoch.")

    def to_store(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class HistoryEntry(SensorReading):
    """History reading carrying the store-generated key."""

    id: str = Field(..., description="Store-generated key of the history entry.")


class LatestPlaceholder(SensorReading):
    """Zero-valued body returned with 404 before any device has reported."""

    message: str = "No sensor data yet."
    level_status: Any = Field(default=NO_DATA_STATUS, alias="levelStatus")
    turb_status: Any = Field(default=NO_DATA_STATUS, alias="turbStatus")


class SubmissionAccepted(BaseModel):
    message: str = "Sensor data received and stored."


class StoreStatus(BaseModel):
    backend: str
    project: Optional[str] = None
    connected: bool


class ServiceStatus(BaseModel):
    """Payload served from the root endpoint."""

    message: str = "Tambak Monitoring API"
    status: str = "running"
    timestamp: str = Field(..., description="Current server time, ISO-8601 UTC.")
    store: StoreStatus


class StoreProbe(BaseModel):
    message: str
    data: Optional[Dict[str, Any]] = None


class DebugInfo(BaseModel):
    """Non-secret configuration echoed for troubleshooting deployments."""

    environment: str
    store_backend: str
    store_root_path: str
    project_id: Optional[str] = None
    database_url: Optional[str] = None
    client_email: Optional[str] = None
    has_private_key: bool
    cors_origins: List[str]
    connected: bool
    server_time: str
