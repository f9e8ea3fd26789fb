"""Command line interface for sheetnest."""

from sheetnest.cli.main import cli

__all__ = ["cli"]
