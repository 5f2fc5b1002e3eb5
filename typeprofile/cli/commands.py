"""Command line interface for the type profiler."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import click

from ..inspector.session import TypeProfileError
from ..pipeline import collect_and_annotate
from ..profiler.collector import ProfileCollector
from ..utils.config import Settings, load_settings
from ..utils.logger import configure_logging, get_logger, new_correlation_id

LOGGER = get_logger(__name__)


@click.group()
@click.option("--config", "config_path", type=click.Path(path_type=Path), help="Path to config file.")
@click.option("--verbose", is_flag=True, help="Enable verbose logging output.")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool) -> None:
    """Annotate scripts with the runtime types V8 observes while running them."""
    settings = load_settings(config_path)
    if verbose:
        settings.log_level = "DEBUG"
    configure_logging(settings.log_level, structured=settings.structured_logging)
    new_correlation_id()
    ctx.obj = settings


@cli.command()
@click.argument("script", type=click.File("r", encoding="utf-8", errors="replace"))
@click.option("--json", "as_json", is_flag=True, help="Emit the result as JSON.")
@click.pass_obj
def annotate(settings: Settings, script, as_json: bool) -> None:
    """Run SCRIPT under the type profiler and print the annotated source."""
    source = script.read()
    try:
        result = collect_and_annotate(source, ProfileCollector.from_settings(settings))
    except TypeProfileError as exc:
        raise click.ClickException(str(exc)) from exc

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    click.echo(result.annotated)
    for message in result.logs:
        click.echo(f"console.{message.level}: {message.value}", err=True)


@cli.command()
@click.option("--host", default=None, help="Interface to bind (defaults to the configured host).")
@click.option("--port", type=int, default=None, help="Port to listen on (defaults to the configured port).")
@click.pass_obj
def serve(settings: Settings, host: Optional[str], port: Optional[int]) -> None:
    """Serve the interactive annotation page."""
    import uvicorn

    from ..web.app import create_app

    bind_host = host or settings.host
    bind_port = port or settings.port
    LOGGER.info("Serving type profiler on http://%s:%d", bind_host, bind_port)
    uvicorn.run(create_app(settings), host=bind_host, port=bind_port, log_level=settings.log_level.lower())


def main() -> None:
    cli(prog_name="typeprofile")


__all__ = ["annotate", "cli", "main", "serve"]
