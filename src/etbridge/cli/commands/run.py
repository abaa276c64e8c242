"""Run command for serving a tracker from a standalone RAM backend."""

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer

from etbridge.cli.console import console, error

if TYPE_CHECKING:
    from etbridge.config import BridgeConfig

logger = logging.getLogger(__name__)


def register(app: typer.Typer) -> None:
    """Register the run command."""

    @app.command()
    def run(
        config: Annotated[
            Path | None,
            typer.Option(
                "--config",
                "-c",
                help="Path to configuration file",
            ),
        ] = None,
        host: Annotated[
            str | None,
            typer.Option(
                "--host",
                "-h",
                help="Tracker host to connect to",
            ),
        ] = None,
        port: Annotated[
            int | None,
            typer.Option(
                "--port",
                "-p",
                help="Tracker port to connect to",
            ),
        ] = None,
        ram_image: Annotated[
            Path | None,
            typer.Option(
                "--ram-image",
                help="Raw RDRAM dump to serve",
            ),
        ] = None,
        verbose: Annotated[
            bool,
            typer.Option(
                "--verbose",
                "-v",
                help="Log every command and response",
            ),
        ] = False,
    ) -> None:
        """Connect to the tracker and answer its memory requests."""
        from pydantic import ValidationError

        from etbridge.config import ConfigError, load_config

        try:
            bridge_config = load_config(config)
        except (FileNotFoundError, ConfigError, ValidationError, ValueError) as e:
            error(f"Error loading config: {e}")
            raise typer.Exit(1) from None

        try:
            if host is not None:
                bridge_config.tracker.host = host
            if port is not None:
                bridge_config.tracker.port = port
            if ram_image is not None:
                bridge_config.emulator.ram_image = ram_image
        except ValidationError as e:
            error("Invalid option:")
            for err in e.errors():
                option = str(err["loc"][0]).replace("_", "-")
                console.print(f"  [yellow]--{option}[/yellow]: {err['msg']}")
            raise typer.Exit(1) from None

        try:
            asyncio.run(_run_bridge(bridge_config, verbose))
        except KeyboardInterrupt:
            # Use print here since logging may not be configured yet
            print("\nBridge stopped")


async def _run_bridge(bridge_config: "BridgeConfig", verbose: bool = False) -> None:
    """Run the bridge until cancelled."""
    from etbridge.logging import configure_logging
    from etbridge.memory import RamBackend
    from etbridge.plugin import TrackerPlugin
    from etbridge.runner import BridgeRunner

    configure_logging(
        level="DEBUG" if verbose else bridge_config.logging.level,
        use_rich=True,
        log_to_file=bridge_config.logging.log_to_file,
    )

    emulator = bridge_config.emulator
    backend = RamBackend(size=emulator.ram_size, base_address=emulator.base_address)
    if emulator.ram_image is not None:
        copied = backend.load_image(emulator.ram_image)
        logger.info(f"Loaded {copied} bytes from {emulator.ram_image}")

    plugin = TrackerPlugin(bridge_config, backend)
    runner = BridgeRunner(plugin, tick_interval=emulator.tick_interval)
    await runner.run()
