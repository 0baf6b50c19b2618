from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Optional

import typer
import uvicorn

from seeker_client.config import load_target_config
from seeker_client.events import LogEvent
from seeker_client.formatter import EventFormatter
from seeker_client.layout import renderer_names
from seeker_client.logging import setup_logging
from seeker_client.models import PropertyDefinition, TargetConfig
from seeker_client.settings import get_settings
from seeker_client.shipper import HttpShipper, build_target_uri

app = typer.Typer(
    help="Seeker client CLI: ship test events and run a local collector.",
    no_args_is_help=True,
)


def _print(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2, default=str))


def _parse_property(raw: str) -> PropertyDefinition:
    if "=" not in raw:
        raise typer.BadParameter(f"expected name=template, got {raw!r}")
    name, value = raw.split("=", 1)
    try:
        return PropertyDefinition(name=name.strip(), value=value)
    except ValueError as e:
        raise typer.BadParameter(f"invalid property {raw!r}: {e}")


def _resolve_config(
    config: Optional[Path], server_url: Optional[str], props: List[str]
) -> TargetConfig:
    try:
        cfg = load_target_config(config)
    except (FileNotFoundError, ValueError) as e:
        raise typer.BadParameter(str(e))

    updates: dict = {}
    if server_url:
        updates["server_url"] = server_url
    if props:
        updates["properties"] = list(cfg.properties) + [_parse_property(p) for p in props]
    if updates:
        cfg = cfg.model_copy(update=updates)
    return cfg


def _formatter(cfg: TargetConfig) -> EventFormatter:
    try:
        return EventFormatter(cfg.properties)
    except ValueError as e:
        raise typer.BadParameter(str(e))


@app.command("send")
def send(
    message: str = typer.Option("hello from seeker-client", "--message", "-m"),
    level: str = typer.Option("INFO", "--level", "-l"),
    server_url: Optional[str] = typer.Option(None, "--server-url", "-s"),
    prop: List[str] = typer.Option(
        [], "--property", "-p", help="Extra property as name=template"
    ),
    config: Optional[Path] = typer.Option(None, "--config", "-c"),
    count: int = typer.Option(1, "--count", "-n", min=1),
    batch: bool = typer.Option(False, "--batch", help="Ship all events in one array"),
) -> None:
    """
    Ship test events and print what happened to each request.
    """
    cfg = _resolve_config(config, server_url, prop)
    formatter = _formatter(cfg)
    events = [
        LogEvent(level=level, message=message, logger_name="seeker_client.cli")
        for _ in range(count)
    ]

    with HttpShipper(cfg, formatter=formatter) as shipper:
        if batch:
            results = [shipper.send_logs(events)]
        else:
            results = [shipper.send_log(e) for e in events]

    for r in results:
        line = f"{r.outcome} events={r.event_count}"
        if r.status_code is not None:
            line += f" status={r.status_code}"
        if r.error:
            line += f" error={r.error}"
        typer.echo(line)


@app.command("render")
def render(
    message: str = typer.Option("hello from seeker-client", "--message", "-m"),
    level: str = typer.Option("INFO", "--level", "-l"),
    prop: List[str] = typer.Option([], "--property", "-p"),
    config: Optional[Path] = typer.Option(None, "--config", "-c"),
) -> None:
    """
    Print the JSON a test event would be shipped as.
    """
    cfg = _resolve_config(config, None, prop)
    event = LogEvent(level=level, message=message, logger_name="seeker_client.cli")
    typer.echo(_formatter(cfg).render(event))


@app.command("validate-config")
def validate_config(
    config: Path = typer.Option(..., "--config", "-c", help="Seeker YAML config file"),
) -> None:
    """
    Validate a YAML config: server URL, property names and templates.
    """
    try:
        cfg = load_target_config(config)
    except (FileNotFoundError, ValueError) as e:
        raise typer.BadParameter(str(e))

    if cfg.server_url is None:
        typer.echo("warning: server_url is not set, events will not be shipped")
    else:
        try:
            uri = build_target_uri(cfg.server_url)
        except ValueError as e:
            raise typer.BadParameter(str(e))
        typer.echo(f"target: {uri}")

    typer.echo(f"properties: {', '.join(p.name for p in cfg.properties) or '(none)'}")
    typer.echo("ok: config parsed and templates compiled")


@app.command("renderers")
def renderers() -> None:
    """
    List the template renderers available to property values.
    """
    _print(renderer_names())


@app.command("collector")
def collector(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(5341, "--port"),
    max_events: int = typer.Option(1000, "--max-events", min=1),
) -> None:
    """
    Run a local collector that accepts POST /api/v1/logs.
    """
    from seeker_client.collector import create_app

    log = setup_logging("seeker_client.cli", get_settings().log_level.upper())
    log.info(f"collector listening on http://{host}:{port}/api/v1/logs")
    uvicorn.run(create_app(max_events), host=host, port=port, log_level="info")


if __name__ == "__main__":
    app()
