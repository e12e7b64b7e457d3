"""Streams simulated machine readings to the relay."""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

import httpx
import typer

from cli.client import ApiClient
from services.simulator import MachineSimulator

logger = logging.getLogger(__name__)

_STATE_ICONS = {"RUN": "●", "IDLE": "◐", "FAULT": "✖"}
_STATE_COLORS = {
    "RUN": typer.colors.GREEN,
    "IDLE": typer.colors.YELLOW,
    "FAULT": typer.colors.RED,
}


class SimulatorRunner:
    """Sends one simulated sample immediately and then one per interval."""

    def __init__(
        self,
        client: ApiClient,
        simulator: MachineSimulator,
        interval: float = 1.0,
    ) -> None:
        self.client = client
        self.simulator = simulator
        self.interval = interval
        self.sent = 0
        self.failed = 0
        self._stop = threading.Event()

    def check_server(self) -> Dict[str, Any]:
        return self.client.get_health()

    def send_once(self) -> Optional[Dict[str, Any]]:
        payload = self.simulator.tick()
        try:
            response = self.client.post_telemetry(payload)
        except httpx.HTTPError as exc:
            self.failed += 1
            logger.warning(
                "Failed to send telemetry",
                extra={"reason": ApiClient.describe_error(exc)},
            )
            typer.secho(
                f"Failed to send telemetry: {ApiClient.describe_error(exc)}",
                fg=typer.colors.RED,
                err=True,
            )
            return None

        self.sent += 1
        state = payload["machineState"]
        typer.secho(
            (
                f"{_STATE_ICONS.get(state, '?')} {state:<5} | "
                f"Temp: {payload['temperature']:.1f}°C | "
                f"Cycle: {payload['cycleTimeMs']}ms | "
                f"Good: {payload['goodCount']} | Reject: {payload['rejectCount']}"
            ),
            fg=_STATE_COLORS.get(state),
        )
        return response

    def run(self, max_ticks: Optional[int] = None) -> int:
        self._stop.clear()
        ticks = 0
        while not self._stop.is_set():
            self.send_once()
            ticks += 1
            if max_ticks is not None and ticks >= max_ticks:
                break
            self._stop.wait(timeout=self.interval)
        return ticks

    def stop(self) -> None:
        self._stop.set()
