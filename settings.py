from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple


_CAPACITY_ENV = "TELEMETRY_HISTORY_CAPACITY"
_DEFAULT_LIMIT_ENV = "TELEMETRY_DEFAULT_HISTORY_LIMIT"
_REFRESH_ENV = "DASHBOARD_REFRESH_SECONDS"
_HOST_ENV = "SERVER_HOST"
_PORT_ENV = "SERVER_PORT"
_LOG_LEVEL_ENV = "LOG_LEVEL"
_CORS_ORIGINS_ENV = "CORS_ALLOW_ORIGINS"

DEFAULT_HISTORY_CAPACITY = 1000
DEFAULT_HISTORY_LIMIT = 100


@dataclass(frozen=True)
class Settings:
    history_capacity: int
    default_history_limit: int
    dashboard_refresh_seconds: float
    server_host: str
    server_port: int
    log_level: str
    cors_allow_origins: Tuple[str, ...]


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_origins(default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = os.getenv(_CORS_ORIGINS_ENV)
    if value is None:
        return default
    origins = tuple(origin.strip() for origin in value.split(",") if origin.strip())
    return origins or default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    capacity = _read_positive_int(_CAPACITY_ENV, DEFAULT_HISTORY_CAPACITY)
    default_limit = _read_positive_int(_DEFAULT_LIMIT_ENV, DEFAULT_HISTORY_LIMIT)
    return Settings(
        history_capacity=capacity,
        default_history_limit=min(default_limit, capacity),
        dashboard_refresh_seconds=_read_positive_float(_REFRESH_ENV, 1.0),
        server_host=_read_str_env(_HOST_ENV, "0.0.0.0"),
        server_port=_read_positive_int(_PORT_ENV, 3000),
        log_level=_read_log_level("INFO"),
        cors_allow_origins=_read_origins(("*",)),
    )
