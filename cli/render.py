from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Sequence

import typer

_STATE_COLORS = {
    "RUN": typer.colors.GREEN,
    "IDLE": typer.colors.YELLOW,
    "FAULT": typer.colors.RED,
}
_SPARK_LEVELS = "▁▂▃▄▅▆▇█"
_HISTORY_COLUMNS = (
    ("timestamp", 26),
    ("machineState", 6),
    ("temperature", 7),
    ("cycleTimeMs", 7),
    ("goodCount", 6),
    ("rejectCount", 6),
)


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_status(status: str, message: Optional[str] = None) -> None:
    color = {
        "connected": typer.colors.GREEN,
        "waiting": typer.colors.YELLOW,
    }.get(status, typer.colors.RED)
    text = f"[{status}]" if message is None else f"[{status}] {message}"
    typer.secho(text, fg=color)


def render_latest(sample: Optional[Dict[str, Any]]) -> None:
    echo_heading("Latest")
    if not sample:
        typer.echo("Waiting for data...")
        return
    state = sample.get("machineState")
    typer.secho(f"machineState: {state}", fg=_STATE_COLORS.get(state))
    echo_key_values(
        [
            ("timestamp", sample.get("timestamp")),
            ("temperature", sample.get("temperature")),
            ("cycleTimeMs", sample.get("cycleTimeMs")),
            ("goodCount", sample.get("goodCount")),
            ("rejectCount", sample.get("rejectCount")),
            ("receivedAt", sample.get("receivedAt")),
        ]
    )


def render_history(payload: Dict[str, Any]) -> None:
    """Print a history window newest first, the way the dashboard table shows it."""
    data: Sequence[Dict[str, Any]] = payload.get("data") or []
    echo_heading(f"History ({payload.get('count', len(data))} of {payload.get('total', '?')})")
    if not data:
        typer.echo("No data yet.")
        return
    typer.echo("  ".join(name.ljust(width) for name, width in _HISTORY_COLUMNS))
    for sample in reversed(data):
        typer.echo(
            "  ".join(str(sample.get(name, "")).ljust(width) for name, width in _HISTORY_COLUMNS)
        )


def sparkline(values: Sequence[float]) -> str:
    if not values:
        return ""
    low, high = min(values), max(values)
    span = high - low
    if not span:
        return _SPARK_LEVELS[0] * len(values)
    top = len(_SPARK_LEVELS) - 1
    return "".join(_SPARK_LEVELS[round((value - low) / span * top)] for value in values)


def render_chart(payload: Dict[str, Any]) -> None:
    data: Sequence[Dict[str, Any]] = payload.get("data") or []
    temperatures = [
        float(sample["temperature"])
        for sample in data
        if isinstance(sample.get("temperature"), (int, float))
    ]
    echo_heading(f"Temperature (last {len(temperatures)})")
    if not temperatures:
        typer.echo("No data yet.")
        return
    typer.echo(sparkline(temperatures))
    typer.echo(f"min {min(temperatures):.1f}  max {max(temperatures):.1f}")


def render_health(payload: Dict[str, Any]) -> None:
    echo_heading("Health")
    echo_key_values(
        [
            ("status", payload.get("status")),
            ("dataPoints", payload.get("dataPoints")),
            ("uptime", payload.get("uptime")),
        ]
    )
