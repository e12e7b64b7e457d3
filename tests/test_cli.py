from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import pytest
from typer.testing import CliRunner

from cli.app import app


class StubClient:
    def __init__(self, config, latest: Optional[Dict[str, Any]] = None) -> None:
        self.config = config
        self.latest = latest
        self.history_calls: List[int] = []
        self.posted: List[Dict[str, Any]] = []
        self.health_error: Optional[httpx.HTTPError] = None
        self.closed = False

    def get_latest(self) -> Optional[Dict[str, Any]]:
        return self.latest

    def get_history(self, limit: int) -> Dict[str, Any]:
        self.history_calls.append(limit)
        data = [self.latest] if self.latest else []
        return {"count": len(data), "total": len(data), "data": data}

    def get_health(self) -> Dict[str, Any]:
        if self.health_error is not None:
            raise self.health_error
        return {"status": "ok", "dataPoints": 1 if self.latest else 0, "uptime": 12.5}

    def post_telemetry(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.posted.append(payload)
        return {"success": True, "message": "Telemetry data received", "dataPointsStored": len(self.posted)}

    def close(self) -> None:
        self.closed = True


SAMPLE = {
    "timestamp": "2024-01-01T00:00:00Z",
    "machineState": "FAULT",
    "temperature": 88.1,
    "cycleTimeMs": 0,
    "goodCount": 40,
    "rejectCount": 2,
    "receivedAt": "2024-01-01T00:00:01Z",
}


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


def _install_stub(monkeypatch, stub: StubClient) -> None:
    def factory(config):
        stub.config = config
        return stub

    monkeypatch.setattr("cli.app.ApiClient", factory)


def test_latest_command(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None, latest=SAMPLE)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["--base-url", "http://relay:3000/", "latest"])

    assert result.exit_code == 0
    assert "machineState: FAULT" in result.stdout
    assert "temperature: 88.1" in result.stdout
    assert stub.config.base_url == "http://relay:3000"
    assert stub.closed is True


def test_latest_command_waiting(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["latest"])

    assert result.exit_code == 0
    assert "Waiting for data..." in result.stdout


def test_history_command(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None, latest=SAMPLE)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["history", "--limit", "5"])

    assert result.exit_code == 0
    assert stub.history_calls == [5]
    assert "History (1 of 1)" in result.stdout
    assert "2024-01-01T00:00:00Z" in result.stdout


def test_health_command(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None, latest=SAMPLE)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["health"])

    assert result.exit_code == 0
    assert "status: ok" in result.stdout
    assert "dataPoints: 1" in result.stdout


def test_watch_command_polls_for_requested_ticks(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None, latest=SAMPLE)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["--poll-interval", "0.01", "watch", "--ticks", "2"])

    assert result.exit_code == 0
    assert stub.history_calls == [10, 60, 10, 60]
    assert result.stdout.count("[connected]") == 2
    assert "Temperature (last 1)" in result.stdout


def test_simulate_command_sends_samples(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None, latest=SAMPLE)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["simulate", "--interval", "0", "--ticks", "3", "--seed", "5"])

    assert result.exit_code == 0
    assert len(stub.posted) == 3
    assert all(payload["machineState"] == "RUN" for payload in stub.posted)
    assert "Final counts" in result.stdout


def test_simulate_aborts_when_server_unreachable(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    request = httpx.Request("GET", "http://localhost:3000/health")
    stub.health_error = httpx.ConnectError("connection refused", request=request)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["simulate", "--ticks", "1"])

    assert result.exit_code == 1
    assert stub.posted == []
