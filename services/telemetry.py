"""Ingest and query orchestration for machine telemetry."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Callable, List, Mapping, Optional, Union

from models.telemetry import MachineState, TelemetrySample
from services.errors import (
    InvalidArgumentError,
    InvalidPayloadError,
    InvalidStateError,
    InvalidTypeError,
    MissingFieldsError,
)
from settings import get_settings
from storage.history_buffer import HistoryBuffer, build_default_buffer

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "timestamp",
    "machineState",
    "temperature",
    "cycleTimeMs",
    "goodCount",
    "rejectCount",
)
NUMERIC_FIELDS = ("temperature", "cycleTimeMs", "goodCount", "rejectCount")
# Text fields also count as missing when null or empty.
_TEXT_FIELDS = ("timestamp", "machineState")


@dataclass(frozen=True)
class HistoryWindow:
    count: int
    total: int
    data: List[TelemetrySample]


@dataclass(frozen=True)
class HealthStatus:
    status: str
    data_points: int
    uptime: float


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _is_number(value: Any) -> bool:
    """True for finite JSON numbers that fit in a double."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


class TelemetryService:
    """Validates incoming samples and answers latest/history queries."""

    def __init__(
        self,
        buffer: HistoryBuffer,
        default_limit: int = 100,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.buffer = buffer
        self.default_limit = default_limit
        self._clock = clock
        self._started = time.monotonic()

    def ingest(self, payload: Any) -> int:
        """Validate ``payload``, stamp it and store it. Returns the buffer length."""
        sample = self._parse_sample(payload)
        stored = self.buffer.append(sample)
        logger.debug(
            "Stored telemetry sample",
            extra={"machine_state": sample.machine_state.value, "data_points": stored},
        )
        return stored

    def latest(self) -> TelemetrySample:
        return self.buffer.latest()

    def history(self, limit: Union[int, str, None] = None) -> HistoryWindow:
        window_size = self._resolve_limit(limit)
        data = self.buffer.windowed(window_size)
        return HistoryWindow(count=len(data), total=len(self.buffer), data=data)

    def health(self) -> HealthStatus:
        return HealthStatus(
            status="ok",
            data_points=len(self.buffer),
            uptime=round(time.monotonic() - self._started, 3),
        )

    def _resolve_limit(self, limit: Union[int, str, None]) -> int:
        if limit is None:
            return min(self.default_limit, self.buffer.capacity)

        if isinstance(limit, str):
            candidate = limit.strip()
            if not candidate:
                return min(self.default_limit, self.buffer.capacity)
            digits = candidate[1:] if candidate[0] in "+-" else candidate
            if not (digits.isascii() and digits.isdigit()):
                raise InvalidArgumentError("Invalid limit parameter", limit=limit)
            parsed = int(candidate)
        elif isinstance(limit, int) and not isinstance(limit, bool):
            parsed = limit
        else:
            raise InvalidArgumentError("Invalid limit parameter", limit=str(limit))

        if parsed < 1:
            logger.info("Rejected history query", extra={"limit": parsed})
            raise InvalidArgumentError("Invalid limit parameter", limit=parsed)
        return min(parsed, self.buffer.capacity)

    def _parse_sample(self, payload: Any) -> TelemetrySample:
        if not isinstance(payload, Mapping):
            raise InvalidPayloadError("Request body must be a JSON object")

        missing = [
            name
            for name in REQUIRED_FIELDS
            if name not in payload
            or (name in _TEXT_FIELDS and payload[name] in (None, ""))
        ]
        if missing:
            logger.info(
                "Rejected telemetry sample",
                extra={"reason": "missing fields", "missing": ",".join(missing)},
            )
            raise MissingFieldsError(required=REQUIRED_FIELDS, missing=missing)

        raw_state = payload["machineState"]
        if raw_state not in MachineState.values():
            logger.info(
                "Rejected telemetry sample",
                extra={"reason": "invalid state", "state": raw_state},
            )
            raise InvalidStateError(value=raw_state, valid_states=MachineState.values())

        bad_types = [name for name in NUMERIC_FIELDS if not _is_number(payload[name])]
        if bad_types:
            logger.info(
                "Rejected telemetry sample",
                extra={"reason": f"non-numeric {','.join(bad_types)}"},
            )
            raise InvalidTypeError(fields=bad_types)

        return TelemetrySample(
            timestamp=str(payload["timestamp"]),
            machine_state=MachineState(raw_state),
            temperature=payload["temperature"],
            cycle_time_ms=payload["cycleTimeMs"],
            good_count=payload["goodCount"],
            reject_count=payload["rejectCount"],
            received_at=self._clock(),
        )


@lru_cache
def build_default_service(capacity: Optional[int] = None) -> TelemetryService:
    """Factory that wires the service with the default history buffer."""
    settings = get_settings()
    buffer = build_default_buffer(capacity)
    return TelemetryService(buffer=buffer, default_limit=settings.default_history_limit)
