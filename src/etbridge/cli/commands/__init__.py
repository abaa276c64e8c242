"""CLI command modules."""

from etbridge.cli.commands import config, run

__all__ = [
    "config",
    "run",
]
