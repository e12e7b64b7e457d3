from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the telemetry relay.

    Methods raise ``httpx.HTTPError`` subclasses; callers decide whether a
    failure ends the command or only the current polling tick.
    """

    def __init__(
        self,
        config: CLIConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config
        self._client = httpx.Client(
            base_url=config.base_url,
            timeout=config.request_timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def post_telemetry(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = self._client.post("/telemetry", json=payload)
        response.raise_for_status()
        return response.json()

    def get_latest(self) -> Optional[Dict[str, Any]]:
        """Return the newest sample, or ``None`` while the server has no data yet."""
        response = self._client.get("/telemetry/latest")
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return response.json()

    def get_history(self, limit: int) -> Dict[str, Any]:
        response = self._client.get("/telemetry/history", params={"limit": limit})
        response.raise_for_status()
        return response.json()

    def get_health(self) -> Dict[str, Any]:
        response = self._client.get("/health")
        response.raise_for_status()
        return response.json()

    @staticmethod
    def describe_error(exc: httpx.HTTPError) -> str:
        if not isinstance(exc, httpx.HTTPStatusError):
            return f"Cannot reach server: {exc}"
        detail: Any = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        if isinstance(detail, dict):
            detail = detail.get("error")
        return (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )

    @classmethod
    def handle_http_error(cls, exc: httpx.HTTPError) -> None:
        typer.secho(cls.describe_error(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
