"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import List, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from models.telemetry import MachineState, TelemetrySample
from services.telemetry import HealthStatus, HistoryWindow


class CamelModel(BaseModel):
    """Serializes snake_case attributes with the camelCase names used on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TelemetryRecord(CamelModel):
    """A stored sample as returned by the query endpoints."""

    timestamp: str
    machine_state: MachineState
    temperature: Union[int, float]
    cycle_time_ms: Union[int, float]
    good_count: Union[int, float]
    reject_count: Union[int, float]
    received_at: datetime = Field(..., description="Server-assigned ingestion time (UTC).")

    @classmethod
    def from_sample(cls, sample: TelemetrySample) -> "TelemetryRecord":
        return cls(
            timestamp=sample.timestamp,
            machine_state=sample.machine_state,
            temperature=sample.temperature,
            cycle_time_ms=sample.cycle_time_ms,
            good_count=sample.good_count,
            reject_count=sample.reject_count,
            received_at=sample.received_at,
        )


class IngestResponse(CamelModel):
    """Response payload after a sample has been stored."""

    success: bool = True
    message: str = "Telemetry data received"
    data_points_stored: int = Field(..., ge=1)


class HistoryResponse(BaseModel):
    """A window of the most recent samples, oldest first."""

    count: int = Field(..., ge=0)
    total: int = Field(..., ge=0)
    data: List[TelemetryRecord] = Field(default_factory=list)

    @classmethod
    def from_window(cls, window: HistoryWindow) -> "HistoryResponse":
        return cls(
            count=window.count,
            total=window.total,
            data=[TelemetryRecord.from_sample(sample) for sample in window.data],
        )


class HealthResponse(CamelModel):
    status: str
    data_points: int = Field(..., ge=0)
    uptime: float = Field(..., description="Seconds since the service started.")

    @classmethod
    def from_status(cls, health: HealthStatus) -> "HealthResponse":
        return cls(status=health.status, data_points=health.data_points, uptime=health.uptime)
