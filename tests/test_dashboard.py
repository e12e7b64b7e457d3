"""Polling behaviour of the terminal dashboard and the simulator runner."""

from __future__ import annotations

import json
import random
from typing import Callable, List

import httpx

from cli.client import ApiClient
from cli.config import CLIConfig
from cli.dashboard import CONNECTED, DISCONNECTED, WAITING, DashboardPoller, DashboardSnapshot
from cli.simulate import SimulatorRunner
from services.simulator import MachineSimulator

SAMPLE = {
    "timestamp": "2024-01-01T00:00:00Z",
    "machineState": "RUN",
    "temperature": 65.2,
    "cycleTimeMs": 2500,
    "goodCount": 10,
    "rejectCount": 1,
    "receivedAt": "2024-01-01T00:00:01Z",
}


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> ApiClient:
    config = CLIConfig(base_url="http://relay.test")
    return ApiClient(config, transport=httpx.MockTransport(handler))


def _history(limit: int) -> dict:
    return {"count": 1, "total": 1, "data": [SAMPLE]}


def test_poll_fetches_latest_recent_and_chart_windows() -> None:
    seen: List[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        if request.url.path == "/telemetry/latest":
            return httpx.Response(200, json=SAMPLE)
        limit = int(request.url.params["limit"])
        return httpx.Response(200, json=_history(limit))

    rendered: List[DashboardSnapshot] = []
    poller = DashboardPoller(_client(handler), interval=0.01, render=rendered.append)

    snapshot = poller.poll_once()

    assert snapshot.status == CONNECTED
    assert snapshot.latest == SAMPLE
    assert snapshot.recent is not None and snapshot.chart is not None
    assert seen == [
        "http://relay.test/telemetry/latest",
        "http://relay.test/telemetry/history?limit=10",
        "http://relay.test/telemetry/history?limit=60",
    ]
    assert rendered == [snapshot]


def test_empty_buffer_is_waiting_not_disconnected() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/telemetry/latest":
            return httpx.Response(404, json={"detail": {"error": "No telemetry data available"}})
        return httpx.Response(200, json={"count": 0, "total": 0, "data": []})

    poller = DashboardPoller(_client(handler), render=lambda _snapshot: None)

    snapshot = poller.poll_once()

    assert snapshot.status == WAITING
    assert snapshot.latest is None
    assert snapshot.recent == {"count": 0, "total": 0, "data": []}


def test_one_failed_fetch_does_not_block_the_others() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/telemetry/latest":
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json=_history(int(request.url.params["limit"])))

    poller = DashboardPoller(_client(handler), render=lambda _snapshot: None)

    snapshot = poller.poll_once()

    assert snapshot.status == DISCONNECTED
    assert snapshot.latest is None
    assert snapshot.recent is not None
    assert snapshot.chart is not None


def test_run_stops_after_max_ticks() -> None:
    calls: List[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(500, text="boom")

    poller = DashboardPoller(_client(handler), interval=0.0, render=lambda _snapshot: None)

    assert poller.run(max_ticks=3) == 3
    assert len(calls) == 9
    assert poller.last_snapshot.status == DISCONNECTED


def test_stop_cancels_the_loop() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=SAMPLE if request.url.path.endswith("latest") else _history(1))

    poller = DashboardPoller(_client(handler), interval=0.0, render=lambda _snapshot: poller.stop())

    assert poller.run() == 1


def test_simulator_runner_posts_and_survives_failures() -> None:
    responses = iter(
        [
            httpx.Response(201, json={"success": True, "dataPointsStored": 1}),
            httpx.Response(503, text="unavailable"),
            httpx.Response(201, json={"success": True, "dataPointsStored": 2}),
        ]
    )
    posted: List[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        posted.append(json.loads(request.content))
        return next(responses)

    runner = SimulatorRunner(
        _client(handler),
        MachineSimulator(rng=random.Random(3)),
        interval=0.0,
    )

    assert runner.run(max_ticks=3) == 3
    assert runner.sent == 2
    assert runner.failed == 1
    assert [payload["machineState"] for payload in posted] == ["RUN", "RUN", "RUN"]
