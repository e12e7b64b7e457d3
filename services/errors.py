"""Exceptions raised by the telemetry service layer."""

from __future__ import annotations

from typing import Any, Dict, Iterable


class TelemetryError(Exception):
    """Base class for telemetry errors that map onto an HTTP response."""

    code = "telemetry_error"

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra: Dict[str, Any] = extra

    def to_detail(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.code, **self.extra}


class TelemetryValidationError(TelemetryError):
    """The submitted sample was rejected; never retried server-side."""

    code = "invalid_sample"


class InvalidPayloadError(TelemetryValidationError):
    code = "invalid_payload"


class MissingFieldsError(TelemetryValidationError):
    code = "missing_fields"

    def __init__(self, required: Iterable[str], missing: Iterable[str]) -> None:
        super().__init__(
            "Missing required fields",
            required=list(required),
            missing=list(missing),
        )


class InvalidStateError(TelemetryValidationError):
    code = "invalid_state"

    def __init__(self, value: Any, valid_states: Iterable[str]) -> None:
        super().__init__(
            "Invalid machineState",
            value=value,
            validStates=list(valid_states),
        )


class InvalidTypeError(TelemetryValidationError):
    code = "invalid_type"

    def __init__(self, fields: Iterable[str]) -> None:
        super().__init__("Numeric fields must be numbers", fields=list(fields))


class InvalidArgumentError(TelemetryError):
    code = "invalid_argument"


class EmptyBufferError(TelemetryError):
    """No sample has been stored yet. Expected right after start-up."""

    code = "empty_buffer"
