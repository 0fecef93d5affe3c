"""io-relay CLI.

Usage:
    io-relay run --token <token>             # Connect a demo host to the relay
    io-relay run --endpoint ws://localhost:8788 --heartbeat 5
    io-relay config                          # Show effective configuration
    io-relay config --json
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import click

from . import __version__
from .client import IoClient
from .config import ENV_TOKEN, IoConfig, mask_token
from .errors import IoConfigurationError
from .host import EventEmitter

logger = logging.getLogger(__name__)


class DemoHost(EventEmitter):
    """Stand-in host that only produces heartbeats."""

    def version(self) -> str:
        return __version__

    def user(self) -> Any | None:
        return None

    async def reset(self) -> None:
        logger.info("Demo host reset requested by relay")


async def _run(token: str, config: IoConfig, heartbeat: float) -> None:
    host = DemoHost()
    async with IoClient(host, token, config):
        beat = 0
        while True:
            await asyncio.sleep(heartbeat)
            beat += 1
            await host.emit("heartbeat", {"beat": beat})


@click.group()
@click.version_option(__version__, prog_name="io-relay")
def main() -> None:
    """io-relay - mirror host events to a relay endpoint."""


@main.command("run")
@click.option("--token", envvar=ENV_TOKEN, required=True, help="Relay credential")
@click.option("--endpoint", default=None, help="Relay WebSocket URI")
@click.option("--protocol", "subprotocol", default=None, help="Declared subprotocol")
@click.option("--heartbeat", default=15.0, show_default=True, help="Heartbeat interval (seconds)")
@click.option(
    "--log-level",
    default="INFO",
    show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
)
def run(
    token: str,
    endpoint: str | None,
    subprotocol: str | None,
    heartbeat: float,
    log_level: str,
) -> None:
    """Connect a demo host to the relay until interrupted."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = IoConfig.from_env(endpoint=endpoint, subprotocol=subprotocol)
    except IoConfigurationError as e:
        raise click.UsageError(str(e)) from e

    click.echo(f"Connecting to {config.endpoint} as {mask_token(token)}", err=True)
    try:
        asyncio.run(_run(token, config, heartbeat))
    except KeyboardInterrupt:
        click.echo("Stopped", err=True)


@main.command("config")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.option("--token", envvar=ENV_TOKEN, default=None, help="Relay credential")
def show_config(output_json: bool, token: str | None) -> None:
    """Show the effective relay configuration.

    Examples:

        io-relay config
        io-relay config --json
    """
    try:
        config = IoConfig.from_env()
    except IoConfigurationError as e:
        raise click.UsageError(str(e)) from e

    data = config.to_dict()
    data["token"] = mask_token(token)

    if output_json:
        click.echo(json.dumps(data, indent=2))
        return

    click.echo("io-relay Configuration")
    click.echo("-" * 40)
    for key, value in data.items():
        click.echo(f"{key + ':':<26}{value}")


if __name__ == "__main__":
    main()
