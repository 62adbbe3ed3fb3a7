"""CLI entrypoint for imgix source automation."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from .config import load_config
from .errors import ImgixAutomationError
from .models import Source
from .schema import load_source_spec
from .service import SourceService


def _configure_logging() -> None:
    env_level = os.getenv("IMGIX_AUTOMATION_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, env_level, None)
    if not isinstance(level, int):
        level = logging.INFO
        logging.warning(
            "Unrecognized IMGIX_AUTOMATION_LOG_LEVEL '%s'; defaulting to INFO",
            env_level,
        )
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s - %(message)s")


_configure_logging()

app = typer.Typer(help="imgix source automation")

CONFIG_HELP = "Path to automation config YAML (IMGIX_API_KEY is used when omitted)"


def _build_service(config: Optional[Path]) -> SourceService:
    return SourceService.from_config(load_config(config))


def _source_summary(source: Source) -> Dict[str, Any]:
    deployment = source.deployment
    return {
        "id": source.id,
        "name": source.name,
        "enabled": source.enabled,
        "deployment_status": source.deployment_status,
        "date_deployed": source.date_deployed,
        "deployment": {
            "type": deployment.type,
            "imgix_subdomains": deployment.imgix_subdomains,
            "custom_domains": deployment.custom_domains,
            "cache_ttl_behavior": deployment.cache_ttl_behavior,
            "secure_url_enabled": deployment.secure_url_enabled,
            "allows_upload": deployment.allows_upload,
        },
    }


def _fail(exc: Exception) -> typer.Exit:
    typer.secho(str(exc), fg=typer.colors.RED, err=True)
    return typer.Exit(code=1)


@app.command("get-source")
def get_source(
    source_id: str,
    wait: bool = typer.Option(False, "--wait", help="Wait until the deployment settles"),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, help=CONFIG_HELP),
) -> None:
    """Show a source, optionally waiting for its deployment to finish."""

    try:
        source = _build_service(config).read_source(source_id, wait_for_deployed=wait)
    except ImgixAutomationError as exc:
        raise _fail(exc) from exc
    typer.echo(json.dumps(_source_summary(source), indent=2))


@app.command("create-source")
def create_source(
    spec: Path = typer.Option(..., exists=True, readable=True, help="Path to source specification YAML"),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, help=CONFIG_HELP),
) -> None:
    """Create a source and wait until imgix has deployed it."""

    try:
        service = _build_service(config)
        source = service.create_source(load_source_spec(spec))
    except ImgixAutomationError as exc:
        raise _fail(exc) from exc
    typer.echo(json.dumps(_source_summary(source), indent=2))


@app.command("update-source")
def update_source(
    source_id: str,
    spec: Path = typer.Option(..., exists=True, readable=True, help="Path to source specification YAML"),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, help=CONFIG_HELP),
) -> None:
    """Apply a specification to an existing source and wait for the redeploy."""

    try:
        service = _build_service(config)
        source = service.update_source(source_id, load_source_spec(spec))
    except ImgixAutomationError as exc:
        raise _fail(exc) from exc
    typer.echo(json.dumps(_source_summary(source), indent=2))


@app.command("disable-source")
def disable_source(
    source_id: str,
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, help=CONFIG_HELP),
) -> None:
    """Disable a source. imgix sources cannot be deleted."""

    try:
        service = _build_service(config)
        outcome = service.disable_source(service.lookup_source(source_id))
    except ImgixAutomationError as exc:
        raise _fail(exc) from exc

    for diagnostic in outcome.diagnostics:
        typer.secho(
            f"{diagnostic.severity.upper()}: {diagnostic.summary}",
            fg=typer.colors.YELLOW,
            err=True,
        )
        if diagnostic.detail:
            typer.secho(diagnostic.detail, fg=typer.colors.YELLOW, err=True)
    typer.echo(json.dumps(_source_summary(outcome.source), indent=2))


if __name__ == "__main__":
    app()
