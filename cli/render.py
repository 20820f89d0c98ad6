from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List

import typer

_READING_FIELDS = (
    ("temperature", "temperature"),
    ("levelPercent", "level_percent"),
    ("levelStatus", "level_status"),
    ("ntu", "ntu"),
    ("turbStatus", "turb_status"),
)


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def format_timestamp(value: Any) -> str:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return str(value)
    moment = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="seconds")


def render_reading(payload: Dict[str, Any], has_data: bool = True) -> None:
    echo_heading("Latest Reading")
    if not has_data:
        typer.secho(payload.get("message") or "No sensor data yet.", fg=typer.colors.YELLOW)
    pairs = [(label, payload.get(key)) for key, label in _READING_FIELDS]
    pairs.append(("recorded_at", format_timestamp(payload.get("timestamp"))))
    echo_key_values(pairs)


def render_history(entries: List[Dict[str, Any]]) -> None:
    echo_heading(f"History ({len(entries)} entries)")
    if not entries:
        typer.echo("No history recorded.")
        return
    for entry in entries:
        typer.echo(
            f"  - {format_timestamp(entry.get('timestamp'))} [{entry.get('id')}] "
            f"temp={entry.get('temperature')} "
            f"level={entry.get('levelPercent')} ({entry.get('levelStatus')}) "
            f"ntu={entry.get('ntu')} ({entry.get('turbStatus')})"
        )


def render_status(payload: Dict[str, Any]) -> None:
    echo_heading("Service Status")
    store = payload.get("store") or {}
    echo_key_values(
        [
            ("message", payload.get("message")),
            ("status", payload.get("status")),
            ("server_time", payload.get("timestamp")),
            ("store_backend", store.get("backend")),
            ("store_project", store.get("project")),
            ("store_connected", store.get("connected")),
        ]
    )
