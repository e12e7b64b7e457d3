from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

import httpx
import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.dashboard import DashboardPoller
from cli.render import render_health, render_history, render_latest
from cli.simulate import SimulatorRunner
from services.simulator import MachineSimulator

T = TypeVar("T")


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for running and interacting with the machine telemetry relay.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


def _call(func: Callable[..., T], *args: Any) -> T:
    try:
        return func(*args)
    except httpx.HTTPError as exc:
        ApiClient.handle_http_error(exc)
        raise


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Relay base URL (defaults to API_BASE_URL env or http://localhost:3000).",
    ),
    poll_interval: Optional[float] = typer.Option(
        None,
        "--poll-interval",
        help="Seconds between dashboard refreshes.",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Per-request timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(
        base_url=base_url,
        poll_interval=poll_interval,
        request_timeout=timeout,
    )
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("serve")
def serve_command(
    host: Optional[str] = typer.Option(None, help="Bind address (defaults to SERVER_HOST)."),
    port: Optional[int] = typer.Option(None, help="Bind port (defaults to SERVER_PORT)."),
) -> None:
    """Run the telemetry relay HTTP server."""
    import uvicorn

    from settings import get_settings

    settings = get_settings()
    bind_host = host or settings.server_host
    bind_port = settings.server_port if port is None else port
    typer.echo(f"Serving telemetry relay on http://{bind_host}:{bind_port}")
    uvicorn.run("app.main:app", host=bind_host, port=bind_port, log_config=None)


@app.command("latest")
def latest_command(ctx: typer.Context) -> None:
    """Show the most recent telemetry sample."""
    state = _get_state(ctx)
    render_latest(_call(state.client.get_latest))


@app.command("history")
def history_command(
    ctx: typer.Context,
    limit: int = typer.Option(10, "--limit", "-n", min=1, help="Number of samples to show."),
) -> None:
    """Show the most recent samples, newest first."""
    state = _get_state(ctx)
    render_history(_call(state.client.get_history, limit))


@app.command("health")
def health_command(ctx: typer.Context) -> None:
    """Show server status, stored sample count and uptime."""
    state = _get_state(ctx)
    render_health(_call(state.client.get_health))


@app.command("watch")
def watch_command(
    ctx: typer.Context,
    ticks: Optional[int] = typer.Option(
        None, "--ticks", min=1, help="Stop after this many refreshes (default: run until Ctrl+C)."
    ),
) -> None:
    """Poll the relay and render a live terminal dashboard."""
    state = _get_state(ctx)
    poller = DashboardPoller(state.client, interval=state.config.poll_interval)
    typer.echo(f"Watching {state.config.base_url} every {state.config.poll_interval}s ...")
    try:
        poller.run(max_ticks=ticks)
    except KeyboardInterrupt:
        poller.stop()


@app.command("simulate")
def simulate_command(
    ctx: typer.Context,
    interval: Optional[float] = typer.Option(
        None, "--interval", min=0.0, help="Seconds between samples (defaults to SIMULATOR_INTERVAL)."
    ),
    ticks: Optional[int] = typer.Option(
        None, "--ticks", min=1, help="Stop after this many samples (default: run until Ctrl+C)."
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for reproducible readings."),
) -> None:
    """Generate simulated machine readings and post them to the relay."""
    state = _get_state(ctx)
    send_interval = state.config.send_interval if interval is None else interval
    runner = SimulatorRunner(
        state.client,
        MachineSimulator(rng=random.Random(seed)),
        interval=send_interval,
    )

    typer.echo(f"Target: {state.config.base_url}/telemetry (interval={send_interval}s)")
    try:
        runner.check_server()
    except httpx.HTTPError as exc:
        typer.secho(
            "Cannot connect to server. Start it first with: telemetry-relay serve",
            fg=typer.colors.RED,
            err=True,
        )
        ApiClient.handle_http_error(exc)

    try:
        runner.run(max_ticks=ticks)
    except KeyboardInterrupt:
        runner.stop()
    simulator = runner.simulator
    typer.echo(
        f"Simulator stopped. Final counts - Good: {simulator.good_count}, "
        f"Reject: {simulator.reject_count}"
    )
