from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import echo_key_values, render_history, render_reading, render_status


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Send and inspect pond sensor readings on the Tambak monitoring service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:3000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each HTTP request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("send")
def send_command(
    ctx: typer.Context,
    temperature: float = typer.Option(..., "--temperature", "-t", help="Water temperature in °C."),
    level_percent: float = typer.Option(..., "--level-percent", "-l", help="Water level in percent."),
    ntu: float = typer.Option(..., "--ntu", "-n", help="Turbidity in NTU."),
    level_status: Optional[str] = typer.Option(None, "--level-status", help="Level status label."),
    turb_status: Optional[str] = typer.Option(None, "--turb-status", help="Turbidity status label."),
) -> None:
    """Submit one reading the way the device does."""
    state = _get_state(ctx)
    typer.echo(f"Sending reading to {state.config.base_url} ...")
    message = state.client.send_reading(
        temperature=temperature,
        level_percent=level_percent,
        ntu=ntu,
        level_status=level_status,
        turb_status=turb_status,
    )
    typer.secho(message or "Reading accepted.", fg=typer.colors.GREEN)


@app.command("latest")
def latest_command(ctx: typer.Context) -> None:
    """Show the most recent reading."""
    state = _get_state(ctx)
    payload, has_data = state.client.get_latest()
    render_reading(payload, has_data=has_data)


@app.command("history")
def history_command(ctx: typer.Context) -> None:
    """Show the recent reading history, oldest first."""
    state = _get_state(ctx)
    render_history(state.client.get_history())


@app.command("status")
def status_command(ctx: typer.Context) -> None:
    """Show service status and store connectivity."""
    state = _get_state(ctx)
    render_status(state.client.get_status())


@app.command("probe")
def probe_command(ctx: typer.Context) -> None:
    """Ask the service to write and read back a probe record."""
    state = _get_state(ctx)
    payload = state.client.probe_store()
    typer.secho(payload.get("message", ""), fg=typer.colors.GREEN)
    echo_key_values((payload.get("data") or {}).items())
