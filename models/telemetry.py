"""Domain models for machine telemetry."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Union

Number = Union[int, float]


class MachineState(str, Enum):
    """Operating modes reported by a machine."""

    RUN = "RUN"
    IDLE = "IDLE"
    FAULT = "FAULT"

    @classmethod
    def values(cls) -> list[str]:
        return [state.value for state in cls]


@dataclass(frozen=True, slots=True)
class TelemetrySample:
    """A single validated machine reading as held in the history buffer."""

    timestamp: str
    machine_state: MachineState
    temperature: Number
    cycle_time_ms: Number
    good_count: Number
    reject_count: Number
    received_at: datetime
