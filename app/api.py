"""HTTP route definitions for the service."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from app.schemas import HealthResponse, HistoryResponse, IngestResponse, TelemetryRecord
from services.errors import (
    EmptyBufferError,
    InvalidArgumentError,
    InvalidPayloadError,
    TelemetryValidationError,
)
from services.telemetry import TelemetryService, build_default_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["telemetry"])

_INTERNAL_ERROR = {"error": "Internal server error", "code": "internal_failure"}


def get_service() -> TelemetryService:
    return build_default_service()


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as exc:
        raise InvalidPayloadError("Request body must be valid JSON") from exc


@router.post(
    "/telemetry",
    status_code=status.HTTP_201_CREATED,
    response_model=IngestResponse,
    summary="Submit a telemetry sample.",
)
async def ingest_telemetry(
    request: Request,
    service: TelemetryService = Depends(get_service),
) -> IngestResponse:
    try:
        payload = await _read_json(request)
        stored = service.ingest(payload)
    except TelemetryValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.to_detail(),
        ) from exc
    except Exception as exc:
        logger.exception("Error processing telemetry")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_INTERNAL_ERROR,
        ) from exc
    return IngestResponse(data_points_stored=stored)


@router.get(
    "/telemetry/latest",
    response_model=TelemetryRecord,
    summary="Fetch the most recent telemetry sample.",
)
async def get_latest(
    service: TelemetryService = Depends(get_service),
) -> TelemetryRecord:
    try:
        sample = service.latest()
    except EmptyBufferError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=exc.to_detail(),
        ) from exc
    return TelemetryRecord.from_sample(sample)


@router.get(
    "/telemetry/history",
    response_model=HistoryResponse,
    summary="Fetch the most recent samples, oldest first.",
)
async def get_history(
    limit: Optional[str] = Query(
        None, description="Number of samples to return (default 100, capped at capacity)."
    ),
    service: TelemetryService = Depends(get_service),
) -> HistoryResponse:
    try:
        window = service.history(limit)
    except InvalidArgumentError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.to_detail(),
        ) from exc
    return HistoryResponse.from_window(window)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck(
    service: TelemetryService = Depends(get_service),
) -> HealthResponse:
    return HealthResponse.from_status(service.health())
