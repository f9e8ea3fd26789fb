"""Main CLI entry point for sheetnest."""

import click
from rich.console import Console

from sheetnest import __version__

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="sheetnest")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """sheetnest - pack cabinet boards onto stock sheets.

    Finds free space on sheets, places boards with optional rotation and
    creates new sheets when nothing fits.
    """
    from sheetnest.config import get_settings
    from sheetnest.utils import setup_logging

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging("DEBUG" if verbose else get_settings().log_level)


# Import and register commands
from sheetnest.cli.nest_cmd import gaps, nest

cli.add_command(nest)
cli.add_command(gaps)


@cli.command()
def status() -> None:
    """Show the effective nesting configuration."""
    from sheetnest.config import get_settings

    settings = get_settings()

    console.print("[bold]sheetnest Status[/bold]")
    console.print(f"Version: {__version__}")
    console.print()
    console.print("[bold]Sheets:[/bold]")
    console.print(f"  Default size: {settings.sheet_width:.0f} x {settings.sheet_height:.0f} mm")
    console.print(f"  Full at: {settings.full_threshold * 100:.0f}%")
    console.print()
    console.print("[bold]Nesting:[/bold]")
    console.print(f"  Min spacing: {settings.min_spacing} mm")
    console.print(f"  Min gap size: {settings.min_gap_size} mm")
    console.print(f"  Allow rotation: {settings.allow_rotation}")
    console.print(f"  Create new sheets: {settings.create_new_sheets}")
    console.print(f"  Prefer existing sheets: {settings.prefer_existing_sheets}")
    console.print(f"  Optimize utilization: {settings.optimize_utilization}")


def main() -> None:
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
