"""Rich tables and text export for nesting sessions."""

from typing import TYPE_CHECKING, List, Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from sheetnest.nesting.gap_calculator import Gap
from sheetnest.nesting.sheet import Sheet
from sheetnest.utils import console as default_console
from sheetnest.utils import format_area, format_dimensions, format_mm

if TYPE_CHECKING:
    from sheetnest.nesting.engine import NestingEngine, PlacementResult


def summary_table(engine: "NestingEngine") -> Table:
    """Session totals and the options they were produced with."""
    config = engine.config
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Sheets", str(len(engine.sheets)))
    table.add_row("New sheets", str(engine.new_sheets_created))
    table.add_row("Boards processed", str(len(engine.placement_results)))
    table.add_row("Nested", f"[green]{engine.total_boards_nested}[/green]")
    failed = engine.total_boards_failed
    table.add_row("Failed", f"[red]{failed}[/red]" if failed else "0")
    table.add_row("Average utilization", f"{engine.average_utilization():.2f}%")
    table.add_row("Area used", format_area(engine.total_area_used()))
    table.add_row("Area available", format_area(engine.total_area_available()))
    table.add_row("Rotation", "on" if config.allow_rotation else "off")
    table.add_row("New sheet creation", "on" if config.create_new_sheets else "off")
    table.add_row("Sheet preference", "fill" if config.prefer_existing_sheets else "spread")
    table.add_row("Min spacing", format_mm(config.min_spacing, 1))
    table.add_row("Min gap size", format_mm(config.min_gap_size))
    return table


def placement_table(results: Sequence["PlacementResult"]) -> Table:
    table = Table(title="Placements")
    table.add_column("#", justify="right")
    table.add_column("Board")
    table.add_column("Size")
    table.add_column("Sheet")
    table.add_column("Position", justify="right")
    table.add_column("Rotation", justify="right")
    table.add_column("Result")

    for i, result in enumerate(results, start=1):
        if result.success:
            board = result.board
            x, y, rotation = result.position
            table.add_row(
                str(i),
                board.name or "-",
                format_dimensions(board.width, board.height),
                result.sheet.sheet_id or "-",
                f"({x:.0f}, {y:.0f})",
                f"{rotation}°",
                "[green]new sheet[/green]" if result.new_sheet else "[green]placed[/green]",
            )
        else:
            board = result.board
            table.add_row(
                str(i),
                (board.name or "-") if board is not None else "-",
                format_dimensions(board.width, board.height) if board is not None else "-",
                "-",
                "-",
                "-",
                f"[red]{result.reason}[/red]",
            )

    return table


def sheets_table(sheets: Sequence[Sheet]) -> Table:
    table = Table(title="Sheets")
    table.add_column("#", justify="right")
    table.add_column("Id")
    table.add_column("Classification")
    table.add_column("Size")
    table.add_column("Boards", justify="right")
    table.add_column("Utilization", justify="right")
    table.add_column("Free", justify="right")

    for i, sheet in enumerate(sheets, start=1):
        table.add_row(
            str(i),
            sheet.sheet_id or "-",
            sheet.classification_key,
            format_dimensions(sheet.width, sheet.height),
            str(sheet.board_count),
            f"{sheet.utilization_percentage():.2f}%",
            format_area(sheet.available_area),
        )

    return table


def gaps_table(gaps: Sequence[Gap], title: str = "Gaps") -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Position", justify="right")
    table.add_column("Size")
    table.add_column("Area", justify="right")

    for i, gap in enumerate(gaps, start=1):
        table.add_row(
            str(i),
            f"({gap.x:.0f}, {gap.y:.0f})",
            format_dimensions(gap.width, gap.height),
            format_area(gap.area),
        )

    return table


def print_summary(engine: "NestingEngine", console: Optional[Console] = None) -> None:
    """Print summary, placements, sheets and any validation problems."""
    out = console or default_console

    out.print(Panel(summary_table(engine), title="Nesting Summary"))
    if engine.placement_results:
        out.print(placement_table(engine.placement_results))
    if engine.sheets:
        out.print(sheets_table(engine.sheets))

    problems = engine.validate_nesting()
    if problems:
        out.print("[bold red]Validation problems:[/bold red]")
        for problem in problems:
            out.print(f"  - {problem}")


def export_layout(engine: "NestingEngine") -> str:
    """Export the session layout as comment-prefixed text."""
    lines: List[str] = [
        "; Nesting layout",
        f"; Sheets: {len(engine.sheets)}",
        f"; Average utilization: {engine.average_utilization():.2f}%",
        "",
    ]

    for i, sheet in enumerate(engine.sheets, start=1):
        lines.append(f"; Sheet {i}: {sheet.sheet_id or '-'} ({sheet.classification_key})")
        lines.append(f";   Size: {sheet.width:.1f}x{sheet.height:.1f}mm")
        lines.append(f";   Utilization: {sheet.utilization_percentage():.2f}%")
        for j, board in enumerate(sheet.boards, start=1):
            x, y = board.position if board.position is not None else (0.0, 0.0)
            lines.append(f";   Board {j}: {board.name or '-'}")
            lines.append(f";     Position: ({x:.1f}, {y:.1f})")
            lines.append(f";     Size: {board.width:.1f}x{board.height:.1f}")
            lines.append(f";     Rotation: {board.rotation}°")
        lines.append("")

    failed = [r for r in engine.placement_results if not r.success]
    if failed:
        lines.append(f"; Unplaced boards ({len(failed)}):")
        for result in failed:
            name = result.board.name if result.board is not None and result.board.name else "-"
            lines.append(f";   - {name}: {result.reason}")

    return "\n".join(lines)
