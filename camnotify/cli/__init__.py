"""Command line interface."""

from camnotify.cli.main import cli

__all__ = ["cli"]
