"""Click CLI for running the relay and checking its audit log."""

from __future__ import annotations

import os
from pathlib import Path

import click
import uvicorn

from discord_relay.audit.logger import validate_audit_chain


@click.group()
def cli() -> None:
    """Discord webhook relay."""


@cli.command()
@click.option("--host", default="0.0.0.0", show_default=True, help="Interface to bind.")
@click.option(
    "--port",
    type=int,
    default=lambda: int(os.environ.get("PORT", "3000")),
    help="Port to listen on (defaults to $PORT or 3000).",
)
@click.option("--log-level", default="info", show_default=True)
def serve(host: str, port: int, log_level: str) -> None:
    """Run the relay server."""
    click.echo(f"Relay listening on :{port}", err=True)
    uvicorn.run(
        "discord_relay.api.app:create_app_from_env",
        factory=True,
        host=host,
        port=port,
        log_level=log_level,
    )


@cli.command("verify-audit")
@click.argument("log_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def verify_audit(log_path: Path) -> None:
    """Validate the hash chain of an audit log file."""
    result = validate_audit_chain(log_path)
    if result.valid:
        click.echo(f"{log_path}: chain intact")
        return
    click.echo(f"{log_path}: chain broken at line {result.broken_at_line}", err=True)
    raise SystemExit(1)


if __name__ == "__main__":
    cli()
