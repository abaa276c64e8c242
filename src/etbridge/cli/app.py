"""Main CLI application."""

import typer

from etbridge.cli.commands import config, run

app = typer.Typer(
    name="etbridge",
    help="etbridge - EmoTracker auto-tracking bridge",
    no_args_is_help=True,
)

config.register(app)
run.register(app)


if __name__ == "__main__":
    app()
