"""Nesting CLI commands for sheetnest."""

import json
import logging
from pathlib import Path
from typing import List, Optional, Tuple

import click
from rich.console import Console

from sheetnest.nesting import NestingConfig, NestingEngine, NestingRoot, Rectangle, Sheet

console = Console()


def _parse_board(entry: dict, index: int) -> List[Rectangle]:
    """Build the boards described by one job entry (one per quantity)."""
    if not isinstance(entry, dict):
        raise click.BadParameter(f"Board {index} must be an object")

    name = str(entry.get("name") or f"board_{index}")
    material = entry.get("material")
    thickness = entry.get("thickness")
    quantity = entry.get("quantity", 1)

    if not isinstance(quantity, int) or quantity < 1:
        raise click.BadParameter(f"Board {name}: quantity must be a positive integer")

    if thickness is not None:
        try:
            thickness = float(thickness)
        except (TypeError, ValueError):
            raise click.BadParameter(f"Board {name}: thickness must be a number")

    outline = entry.get("outline")
    if outline is None:
        try:
            width = float(entry["width"])
            height = float(entry["height"])
        except (KeyError, TypeError, ValueError):
            raise click.BadParameter(f"Board {name}: needs 'outline' or numeric 'width' and 'height'")
        outline = [(0.0, 0.0), (width, 0.0), (width, height), (0.0, height)]
    else:
        try:
            outline = [(float(p[0]), float(p[1])) for p in outline]
        except (IndexError, TypeError, ValueError):
            raise click.BadParameter(f"Board {name}: outline must be a list of [x, y] pairs")

    boards = []
    for copy_index in range(1, quantity + 1):
        board_name = name if quantity == 1 else f"{name}#{copy_index}"
        boards.append(Rectangle(outline, material=material, thickness=thickness, name=board_name))
    return boards


def _parse_sheet(entry: dict, index: int) -> Sheet:
    if not isinstance(entry, dict):
        raise click.BadParameter(f"Sheet {index} must be an object")
    try:
        return Sheet(
            width=float(entry.get("width", Sheet.DEFAULT_WIDTH)),
            height=float(entry.get("height", Sheet.DEFAULT_HEIGHT)),
            material=entry.get("material"),
            thickness=entry.get("thickness"),
            sheet_id=entry.get("id"),
        )
    except (TypeError, ValueError) as e:
        raise click.BadParameter(f"Sheet {index}: {e}")


def load_job(path: Path) -> Tuple[List[Sheet], List[Rectangle]]:
    """
    Load a nesting job file.

    The file holds either a list of boards or an object with ``sheets``
    and ``boards`` lists.

    Args:
        path: JSON job file

    Returns:
        Existing sheets and boards to place
    """
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid job file {path.name}: {e}")

    if isinstance(data, list):
        sheet_entries, board_entries = [], data
    elif isinstance(data, dict):
        sheet_entries = data.get("sheets", [])
        board_entries = data.get("boards", [])
    else:
        raise click.ClickException(f"Invalid job file {path.name}: expected a list or an object")

    sheets = [_parse_sheet(entry, i) for i, entry in enumerate(sheet_entries, start=1)]
    boards: List[Rectangle] = []
    for i, entry in enumerate(board_entries, start=1):
        boards.extend(_parse_board(entry, i))

    return sheets, boards


@click.command()
@click.argument("job_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--no-rotation", is_flag=True, help="Only place boards unrotated")
@click.option("--no-new-sheets", is_flag=True, help="Never create sheets")
@click.option("--spread", is_flag=True, help="Prefer emptier sheets instead of filling fuller ones")
@click.option("--spacing", type=float, default=None, help="Clearance between boards (mm)")
@click.option("--min-gap", type=float, default=None, help="Smallest usable gap (mm)")
@click.option("--sheet-width", type=float, default=None, help="Width of new sheets (mm)")
@click.option("--sheet-height", type=float, default=None, help="Height of new sheets (mm)")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.option("--layout", is_flag=True, help="Print the text layout export")
@click.pass_context
def nest(
    ctx: click.Context,
    job_file: Path,
    no_rotation: bool,
    no_new_sheets: bool,
    spread: bool,
    spacing: Optional[float],
    min_gap: Optional[float],
    sheet_width: Optional[float],
    sheet_height: Optional[float],
    output_json: bool,
    layout: bool,
) -> None:
    """Nest the boards of a job file onto sheets.

    Examples:

        sheetnest nest job.json

        sheetnest nest job.json --no-rotation --spacing 8

        sheetnest nest job.json --json
    """
    from sheetnest.nesting.report import export_layout, print_summary

    sheets, boards = load_job(job_file)
    if not boards:
        raise click.ClickException("Job file contains no boards")

    config = NestingConfig.from_settings()
    if no_rotation:
        config.allow_rotation = False
    if no_new_sheets:
        config.create_new_sheets = False
    if spread:
        config.prefer_existing_sheets = False
    if spacing is not None:
        config.min_spacing = spacing
    if min_gap is not None:
        config.min_gap_size = min_gap
    if sheet_width is not None:
        config.sheet_width = sheet_width
    if sheet_height is not None:
        config.sheet_height = sheet_height

    try:
        engine = NestingEngine(
            root=NestingRoot(config.sheet_width, config.sheet_height, name=job_file.stem),
            config=config,
        )
    except ValueError as e:
        raise click.ClickException(str(e))

    for sheet in sheets:
        engine.add_sheet(sheet)

    if output_json:
        logging.getLogger("sheetnest").setLevel(logging.WARNING)
        results = engine.nest_boards(boards)
    else:
        with console.status("Nesting boards...") as status:
            def progress(index: int, total: int, board: Rectangle) -> None:
                status.update(f"Nesting {board.name} ({index}/{total})...")

            results = engine.nest_boards(boards, progress_callback=progress)

    problems = engine.validate_nesting()

    if output_json:
        click.echo(json.dumps({
            "results": [r.to_dict() for r in results],
            "sheets": [s.to_dict() for s in engine.sheets],
            "problems": problems,
        }, indent=2))
    else:
        print_summary(engine, console=console)
        if layout:
            console.print(export_layout(engine), markup=False, highlight=False)

    if problems:
        ctx.exit(1)


def _parse_rect(value: str) -> Tuple[float, float, float, float]:
    try:
        x, y, w, h = (float(part) for part in value.split(","))
    except ValueError:
        raise click.BadParameter(f"Expected X,Y,W,H, got {value!r}")
    return x, y, w, h


@click.command()
@click.option("--width", "-w", type=float, default=Sheet.DEFAULT_WIDTH, help="Sheet width (mm)")
@click.option("--height", "-h", type=float, default=Sheet.DEFAULT_HEIGHT, help="Sheet height (mm)")
@click.option("--board", "-b", "board_specs", multiple=True, help="Placed board as X,Y,W,H")
@click.option("--spacing", type=float, default=None, help="Clearance around boards (mm)")
@click.option("--min-gap", type=float, default=None, help="Smallest usable gap (mm)")
def gaps(
    width: float,
    height: float,
    board_specs: Tuple[str, ...],
    spacing: Optional[float],
    min_gap: Optional[float],
) -> None:
    """Show the free gaps of a sheet.

    Example: sheetnest gaps -b 100,100,600,400
    """
    from sheetnest.config import get_settings
    from sheetnest.nesting.gap_calculator import GapCalculator
    from sheetnest.nesting.report import gaps_table

    settings = get_settings()
    try:
        sheet = Sheet(width=width, height=height)
    except ValueError as e:
        raise click.ClickException(str(e))

    for i, spec in enumerate(board_specs, start=1):
        x, y, w, h = _parse_rect(spec)
        board = Rectangle.from_size(w, h, name=f"board_{i}")
        board.place_at(x, y)
        sheet.add_board(board)

    calculator = GapCalculator(
        min_gap_size=min_gap if min_gap is not None else settings.min_gap_size,
        min_spacing=spacing if spacing is not None else settings.min_spacing,
    )
    found = sheet.gaps(calculator)

    if not found:
        console.print("[yellow]No gaps found[/yellow]")
        return

    console.print(gaps_table(found, title=f"Gaps on {width:.0f} x {height:.0f} mm sheet"))
