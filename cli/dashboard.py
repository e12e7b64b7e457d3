"""Terminal dashboard that polls the relay on a fixed interval."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import httpx
import typer

from cli.client import ApiClient
from cli.render import render_chart, render_history, render_latest, render_status

logger = logging.getLogger(__name__)

RECENT_LIMIT = 10
CHART_LIMIT = 60

CONNECTED = "connected"
WAITING = "waiting"
DISCONNECTED = "disconnected"


@dataclass
class DashboardSnapshot:
    status: str = DISCONNECTED
    message: Optional[str] = None
    latest: Optional[Dict[str, Any]] = None
    recent: Optional[Dict[str, Any]] = None
    chart: Optional[Dict[str, Any]] = None


def render_snapshot(snapshot: DashboardSnapshot) -> None:
    typer.echo()
    render_status(snapshot.status, snapshot.message)
    if snapshot.latest is not None or snapshot.status == WAITING:
        render_latest(snapshot.latest)
    if snapshot.recent is not None:
        render_history(snapshot.recent)
    if snapshot.chart is not None:
        render_chart(snapshot.chart)


class DashboardPoller:
    """Fetches latest, recent and chart data once per interval.

    Each fetch stands on its own: a failure only blanks that section and
    updates the connection status for the tick. Nothing is retried before
    the next tick.
    """

    def __init__(
        self,
        client: ApiClient,
        interval: float = 1.0,
        render: Callable[[DashboardSnapshot], None] = render_snapshot,
    ) -> None:
        self.client = client
        self.interval = interval
        self.render = render
        self.last_snapshot = DashboardSnapshot()
        self._stop = threading.Event()

    def poll_once(self) -> DashboardSnapshot:
        snapshot = DashboardSnapshot(status=CONNECTED)

        try:
            snapshot.latest = self.client.get_latest()
            if snapshot.latest is None:
                snapshot.status = WAITING
                snapshot.message = "Waiting for data..."
        except httpx.HTTPError as exc:
            self._mark_failed(snapshot, "latest", exc)

        try:
            snapshot.recent = self.client.get_history(RECENT_LIMIT)
        except httpx.HTTPError as exc:
            self._mark_failed(snapshot, "history", exc)

        try:
            snapshot.chart = self.client.get_history(CHART_LIMIT)
        except httpx.HTTPError as exc:
            self._mark_failed(snapshot, "chart", exc)

        self.last_snapshot = snapshot
        self.render(snapshot)
        return snapshot

    def run(self, max_ticks: Optional[int] = None) -> int:
        """Poll until :meth:`stop` is called or ``max_ticks`` polls have run."""
        self._stop.clear()
        ticks = 0
        while not self._stop.is_set():
            self.poll_once()
            ticks += 1
            if max_ticks is not None and ticks >= max_ticks:
                break
            self._stop.wait(timeout=self.interval)
        return ticks

    def stop(self) -> None:
        self._stop.set()

    @staticmethod
    def _mark_failed(snapshot: DashboardSnapshot, section: str, exc: httpx.HTTPError) -> None:
        logger.warning(
            "Dashboard fetch failed",
            extra={"reason": f"{section}: {ApiClient.describe_error(exc)}"},
        )
        snapshot.status = DISCONNECTED
        snapshot.message = ApiClient.describe_error(exc)
