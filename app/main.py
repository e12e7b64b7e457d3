from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.api import router
from app.web import router as web_router
from logging_config import configure_logging
from services.telemetry import build_default_service
from settings import get_settings
from storage.history_buffer import build_default_buffer

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    service = build_default_service()
    logger.info(
        "Telemetry relay started",
        extra={"data_points": service.health().data_points},
    )
    try:
        yield
    finally:
        build_default_service.cache_clear()
        build_default_buffer.cache_clear()
        logger.info("Telemetry relay stopped")


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Machine Telemetry Relay",
        description="Collects machine telemetry samples and serves a bounded recent history.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(get_settings().cors_allow_origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    static_dir = Path(__file__).resolve().parent.parent / "static"
    app.mount("/static", StaticFiles(directory=static_dir), name="static")
    app.include_router(router)
    app.include_router(router, prefix="/api", include_in_schema=False)
    app.include_router(web_router)
    return app

app = create_app()
