"""Configuration management commands."""

from pathlib import Path
from typing import Annotated

import click
import typer

from etbridge.cli.console import console, create_table, error, success


def register(app: typer.Typer) -> None:
    """Register the config command."""

    @app.command()
    def config(
        action: Annotated[
            str | None,
            typer.Argument(help="Action: show, validate"),
        ] = None,
        path: Annotated[
            Path | None,
            typer.Option(
                "--path",
                "-p",
                help="Path to config file (default: $ETBRIDGE_HOME/config.toml)",
            ),
        ] = None,
    ) -> None:
        """Inspect configuration."""
        if action is None:
            ctx = click.get_current_context()
            click.echo(ctx.get_help())
            raise typer.Exit(0)

        from pydantic import ValidationError
        from rich.syntax import Syntax

        from etbridge.config import ConfigError, load_config
        from etbridge.config.paths import get_config_path

        expanded_path = path.expanduser() if path else get_config_path()

        if action == "show":
            if not expanded_path.exists():
                error(f"Config file not found: {expanded_path}")
                console.print("Defaults are used when no config file exists")
                raise typer.Exit(1)

            content = expanded_path.read_text()
            syntax = Syntax(content, "toml", theme="monokai", line_numbers=True)
            console.print(f"[bold]Config file: {expanded_path}[/bold]\n")
            console.print(syntax)

        elif action == "validate":
            if not expanded_path.exists():
                error(f"Config file not found: {expanded_path}")
                raise typer.Exit(1)

            try:
                config_obj = load_config(expanded_path)
            except ValidationError as e:
                error("Configuration validation failed:")
                console.print()
                for err in e.errors():
                    loc = ".".join(str(x) for x in err["loc"])
                    console.print(f"  [yellow]{loc}[/yellow]: {err['msg']}")
                raise typer.Exit(1) from None
            except (ConfigError, ValueError) as e:
                error(f"Error loading config: {e}")
                raise typer.Exit(1) from None

            table = create_table(
                "Configuration Summary", [("Setting", "cyan"), ("Value", "green")]
            )
            tracker = config_obj.tracker
            emulator = config_obj.emulator
            table.add_row("Tracker", f"{tracker.host}:{tracker.port}")
            table.add_row("Retry delay", f"{tracker.retry_delay:g}s")
            table.add_row("Core ID", emulator.core_id)
            table.add_row("Tick interval", f"{emulator.tick_interval:.4f}s")
            table.add_row("RAM", f"{emulator.ram_size} bytes @ 0x{emulator.base_address:08X}")
            table.add_row(
                "RAM image",
                str(emulator.ram_image) if emulator.ram_image else "[dim]none[/dim]",
            )

            success("Configuration is valid!")
            console.print()
            console.print(table)

        else:
            error(f"Unknown action: {action}")
            console.print("Valid actions: show, validate")
            raise typer.Exit(1)
