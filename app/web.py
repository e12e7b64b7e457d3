from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from app.api import get_service
from models.telemetry import TelemetrySample
from services.errors import EmptyBufferError
from services.telemetry import TelemetryService
from settings import get_settings

RECENT_ROWS = 10
CHART_POINTS = 60
CHART_WIDTH = 600
CHART_HEIGHT = 240
CHART_PADDING = 20


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


@dataclass(frozen=True)
class TemperatureChart:
    points: str
    min_value: float
    max_value: float
    width: int = CHART_WIDTH
    height: int = CHART_HEIGHT


def build_temperature_chart(samples: Sequence[TelemetrySample]) -> Optional[TemperatureChart]:
    """Project sample temperatures onto SVG polyline coordinates."""

    if not samples:
        return None

    values = [float(sample.temperature) for sample in samples]
    low, high = min(values), max(values)
    span = (high - low) or 1.0
    inner_width = CHART_WIDTH - 2 * CHART_PADDING
    inner_height = CHART_HEIGHT - 2 * CHART_PADDING
    step = inner_width / max(len(values) - 1, 1)

    coordinates = []
    for index, value in enumerate(values):
        x = CHART_PADDING + index * step
        y = CHART_PADDING + inner_height - ((value - low) / span) * inner_height
        coordinates.append(f"{x:.1f},{y:.1f}")
    return TemperatureChart(points=" ".join(coordinates), min_value=low, max_value=high)


def reject_rate(sample: TelemetrySample) -> Optional[float]:
    total = sample.good_count + sample.reject_count
    if not total:
        return None
    return round(sample.reject_count / total * 100, 1)


router = APIRouter(include_in_schema=False)


@router.get("/", name="ui_index", response_class=HTMLResponse)
@router.get("/ui", response_class=HTMLResponse)
async def ui_index(
    request: Request,
    service: TelemetryService = Depends(get_service),
) -> HTMLResponse:
    try:
        latest: Optional[TelemetrySample] = service.latest()
    except EmptyBufferError:
        latest = None

    recent = service.history(RECENT_ROWS).data
    chart_window = service.history(CHART_POINTS).data

    return templates.TemplateResponse(
        request,
        "ui/index.html",
        {
            "latest": latest,
            "reject_rate": reject_rate(latest) if latest else None,
            "recent": list(reversed(recent)),
            "chart": build_temperature_chart(chart_window),
            "total": service.health().data_points,
            "refresh_seconds": get_settings().dashboard_refresh_seconds,
        },
    )
