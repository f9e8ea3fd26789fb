"""Shared utilities for sheetnest."""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

# Rich console for pretty output
console = Console()

# Log output stays off stdout so command output can be piped
log_console = Console(stderr=True)


def setup_logging(level: str = "INFO", target: Optional[Console] = None) -> logging.Logger:
    """Set up logging with Rich handler."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=target or log_console, rich_tracebacks=True)],
        force=True,
    )
    return logging.getLogger("sheetnest")


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a module."""
    return logging.getLogger(f"sheetnest.{name}")


def format_mm(value: float, digits: int = 0) -> str:
    """Format a length in millimetres."""
    return f"{value:.{digits}f} mm"


def format_area(value: float) -> str:
    """Format an area, switching to square metres for large values."""
    if abs(value) >= 1_000_000:
        return f"{value / 1_000_000:.2f} m²"
    return f"{value:.0f} mm²"


def format_dimensions(width: float, height: float) -> str:
    """Format a width x height pair in millimetres."""
    return f"{width:.0f} × {height:.0f} mm"
