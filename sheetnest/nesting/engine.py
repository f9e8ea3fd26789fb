"""Nesting engine for packing boards onto stock sheets.

Boards are placed greedily, one at a time, in the order given: candidate
sheets are filtered by material and thickness, ordered by utilization,
and each is searched for a gap and rotation whose simulated placement
does not collide with the boards already there. When nothing fits a new
sheet can be created.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from sheetnest.config import Settings, get_settings
from sheetnest.nesting.gap_calculator import Gap, GapCalculator
from sheetnest.nesting.rectangle import Rectangle
from sheetnest.nesting.sheet import NestingRoot, Sheet
from sheetnest.utils import get_logger

logger = get_logger("nesting.engine")

NO_PLACEMENT = "No suitable placement found"
NO_ROOT = "Failed to create new sheet: no nesting root"
ALREADY_PLACED = "Board is already placed"

ProgressCallback = Callable[[int, int, Rectangle], None]


def _shares_area(a: Rectangle, b: Rectangle) -> bool:
    """Placed boxes overlap by more than an edge; touching boards never collide."""
    bounds_a = a.placed_bounds
    bounds_b = b.placed_bounds
    if bounds_a is None or bounds_b is None:
        return False
    return bounds_a.shares_area(bounds_b)


@dataclass
class NestingConfig:
    """Configuration for a nesting engine."""
    # Options
    allow_rotation: bool = True  # Try 0/90/180/270
    create_new_sheets: bool = True
    prefer_existing_sheets: bool = True  # Fill fuller sheets first
    optimize_utilization: bool = True  # Order candidate sheets at all

    # Spacing (mm)
    min_spacing: float = 5.0
    min_gap_size: float = 100.0

    # Sheets
    full_threshold: float = 0.95
    sheet_width: float = Sheet.DEFAULT_WIDTH
    sheet_height: float = Sheet.DEFAULT_HEIGHT

    def validate(self) -> None:
        if self.min_spacing < 0:
            raise ValueError(f"min_spacing must not be negative, got {self.min_spacing}")
        if self.min_gap_size <= 0:
            raise ValueError(f"min_gap_size must be positive, got {self.min_gap_size}")
        if not 0 < self.full_threshold <= 1:
            raise ValueError(f"full_threshold must be in (0, 1], got {self.full_threshold}")
        if self.sheet_width <= 0 or self.sheet_height <= 0:
            raise ValueError(
                f"Sheet dimensions must be positive, got {self.sheet_width}x{self.sheet_height}"
            )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "allow_rotation": self.allow_rotation,
            "create_new_sheets": self.create_new_sheets,
            "prefer_existing_sheets": self.prefer_existing_sheets,
            "optimize_utilization": self.optimize_utilization,
            "min_spacing": self.min_spacing,
            "min_gap_size": self.min_gap_size,
            "full_threshold": self.full_threshold,
            "sheet_width": self.sheet_width,
            "sheet_height": self.sheet_height,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "NestingConfig":
        """Create from dictionary."""
        return cls(
            allow_rotation=data.get("allow_rotation", True),
            create_new_sheets=data.get("create_new_sheets", True),
            prefer_existing_sheets=data.get("prefer_existing_sheets", True),
            optimize_utilization=data.get("optimize_utilization", True),
            min_spacing=data.get("min_spacing", 5.0),
            min_gap_size=data.get("min_gap_size", 100.0),
            full_threshold=data.get("full_threshold", 0.95),
            sheet_width=data.get("sheet_width", Sheet.DEFAULT_WIDTH),
            sheet_height=data.get("sheet_height", Sheet.DEFAULT_HEIGHT),
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "NestingConfig":
        """Create from application settings."""
        settings = settings or get_settings()
        return cls(
            allow_rotation=settings.allow_rotation,
            create_new_sheets=settings.create_new_sheets,
            prefer_existing_sheets=settings.prefer_existing_sheets,
            optimize_utilization=settings.optimize_utilization,
            min_spacing=settings.min_spacing,
            min_gap_size=settings.min_gap_size,
            full_threshold=settings.full_threshold,
            sheet_width=settings.sheet_width,
            sheet_height=settings.sheet_height,
        )


@dataclass
class PlacementResult:
    """Outcome of placing one board."""
    success: bool
    board: Optional[Rectangle] = None
    sheet: Optional[Sheet] = None
    gap: Optional[Gap] = None
    rotation: int = 0
    new_sheet: bool = False
    reason: Optional[str] = None

    @property
    def position(self) -> Optional[tuple]:
        if not self.success or self.board is None or self.board.position is None:
            return None
        x, y = self.board.position
        return (x, y, self.rotation)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        position = self.position
        return {
            "success": self.success,
            "board": self.board.name if self.board is not None else None,
            "sheet_id": self.sheet.sheet_id if self.sheet is not None else None,
            "gap": self.gap.to_dict() if self.gap is not None else None,
            "x": position[0] if position else None,
            "y": position[1] if position else None,
            "rotation": self.rotation if self.success else None,
            "new_sheet": self.new_sheet,
            "reason": self.reason,
        }


class NestingEngine:
    """
    Places boards on sheets one at a time.

    The engine works on the sheets of its ``NestingRoot``. Without a root it
    keeps its own sheet list and cannot create new sheets.
    """

    def __init__(self, root: Optional[NestingRoot] = None, config: Optional[NestingConfig] = None):
        """
        Initialize nesting engine.

        Args:
            root: Session context owning the sheets
            config: Nesting configuration
        """
        self.root = root
        self.config = config or NestingConfig()
        self.config.validate()

        self._own_sheets: List[Sheet] = []
        self.placement_results: List[PlacementResult] = []
        self.progress_callback: Optional[ProgressCallback] = None

    @property
    def gap_calculator(self) -> GapCalculator:
        return GapCalculator(
            min_gap_size=self.config.min_gap_size,
            min_spacing=self.config.min_spacing,
            allow_rotation=self.config.allow_rotation,
        )

    @property
    def sheets(self) -> List[Sheet]:
        if self.root is not None:
            return self.root.sheets
        return self._own_sheets

    def add_sheet(self, sheet: Sheet) -> Sheet:
        """Register an existing sheet with this session."""
        if self.root is not None:
            return self.root.add_sheet(sheet)
        if not any(existing is sheet for existing in self._own_sheets):
            self._own_sheets.append(sheet)
        return sheet

    def on_progress(self, callback: Optional[ProgressCallback]) -> None:
        self.progress_callback = callback

    # Main nesting

    def nest_board(self, board: Rectangle) -> PlacementResult:
        """Place a single board."""
        if board is None:
            return self._failure_result("Board is None")
        if not isinstance(board, Rectangle):
            return self._failure_result("Board is not a Rectangle")
        if board.is_positioned:
            return self._failure_result(ALREADY_PLACED, board)

        errors = board.validation_errors()
        if errors:
            logger.warning(f"Rejected board {board.name or '?'}: {', '.join(errors)}")
            return self._failure_result(f"Invalid board: {', '.join(errors)}", board)

        candidates = self.find_candidate_sheets(board)
        if self.config.optimize_utilization:
            candidates = self.sort_sheets_by_preference(candidates)

        for sheet in candidates:
            result = self.try_place_on_sheet(board, sheet)
            if result is not None:
                return result

        if self.config.create_new_sheets:
            return self.create_and_place_on_new_sheet(board)

        logger.debug(f"No placement for {board.name or 'board'} on {len(candidates)} candidate sheets")
        return self._failure_result(NO_PLACEMENT, board)

    def nest_boards(
        self,
        boards: Sequence[Rectangle],
        progress_callback: Optional[ProgressCallback] = None,
    ) -> List[PlacementResult]:
        """
        Place boards in order.

        Args:
            boards: Boards to place, in placement order
            progress_callback: Called as (index, total, board) before each
                attempt, with a 1-based index

        Returns:
            One result per board
        """
        if progress_callback is not None:
            self.progress_callback = progress_callback

        self.placement_results = []
        total = len(boards)

        for index, board in enumerate(boards, start=1):
            if self.progress_callback is not None:
                self.progress_callback(index, total, board)

            self.placement_results.append(self.nest_board(board))

        logger.info(
            f"Nested {self.total_boards_nested}/{total} boards, "
            f"{self.new_sheets_created} new sheets"
        )
        return self.placement_results

    # Sheet selection

    def find_candidate_sheets(self, board: Rectangle) -> List[Sheet]:
        return [
            sheet for sheet in self.sheets
            if sheet.matches_board(board) and not sheet.is_full(self.config.full_threshold)
        ]

    def sort_sheets_by_preference(self, sheets: List[Sheet]) -> List[Sheet]:
        if self.config.prefer_existing_sheets:
            return sorted(sheets, key=lambda s: s.utilization(), reverse=True)
        return sorted(sheets, key=lambda s: s.utilization())

    # Placement

    def try_place_on_sheet(self, board: Rectangle, sheet: Sheet) -> Optional[PlacementResult]:
        """Try every allowed rotation on one sheet. None if nothing fits."""
        rotations = (0, 90, 180, 270) if self.config.allow_rotation else (0,)

        for rotation in rotations:
            gap = self.gap_calculator.find_gap_for_board(board, sheet, rotation)
            if gap is None:
                continue

            logger.debug(f"Trying {sheet.sheet_id} r{rotation} at ({gap.x}, {gap.y})")
            if self.can_place(board, sheet, gap, rotation):
                self.place_board(board, sheet, gap, rotation)
                return self._success_result(board, sheet, gap, rotation, False)

        return None

    def can_place(self, board: Rectangle, sheet: Sheet, gap: Optional[Gap], rotation: int) -> bool:
        if gap is None:
            return False
        if not sheet.matches_board(board):
            return False

        width, height = board.footprint(rotation)
        if gap.width < width or gap.height < height:
            return False
        if not sheet.within_bounds(gap.x, gap.y, width, height):
            return False

        return not self.has_collision(board, sheet, gap.x, gap.y, rotation)

    def has_collision(self, board: Rectangle, sheet: Sheet, x: float, y: float, rotation: int) -> bool:
        """Check a trial placement against the boards on the sheet."""
        trial = board.copy()
        trial.place_at(x, y, rotation)

        for existing in sheet.boards:
            if existing is board or not existing.is_positioned:
                continue
            if not _shares_area(trial, existing):
                continue
            if trial.overlaps_with(existing):
                return True

        return False

    def place_board(self, board: Rectangle, sheet: Sheet, gap: Gap, rotation: int) -> None:
        board.place_at(gap.x, gap.y, rotation)
        sheet.add_board(board)
        logger.info(
            f"Placed {board.name or 'board'} on {sheet.sheet_id} "
            f"at ({gap.x:.1f}, {gap.y:.1f}) r{rotation}"
        )

    # New sheets

    def create_and_place_on_new_sheet(self, board: Rectangle) -> PlacementResult:
        if self.root is None:
            logger.warning(NO_ROOT)
            return self._failure_result(NO_ROOT, board)

        try:
            sheet = self.root.create_sheet(
                material=board.material,
                thickness=board.thickness,
                width=self.config.sheet_width,
                height=self.config.sheet_height,
            )
        except Exception as e:
            logger.error(f"Error creating new sheet: {e}")
            return self._failure_result(f"Failed to create new sheet: {e}", board)

        gap = Gap.create(0, 0, sheet.width, sheet.height)
        self.place_board(board, sheet, gap, 0)

        if not sheet.within_bounds(0, 0, board.width, board.height):
            logger.warning(
                f"{board.name or 'Board'} ({board.width:.0f}x{board.height:.0f}) "
                f"exceeds new sheet {sheet.sheet_id}"
            )

        return self._success_result(board, sheet, gap, 0, True)

    # Results

    def _success_result(
        self,
        board: Rectangle,
        sheet: Sheet,
        gap: Gap,
        rotation: int,
        new_sheet: bool,
    ) -> PlacementResult:
        return PlacementResult(
            success=True,
            board=board,
            sheet=sheet,
            gap=gap,
            rotation=rotation,
            new_sheet=new_sheet,
        )

    def _failure_result(self, reason: str, board: Optional[Rectangle] = None) -> PlacementResult:
        return PlacementResult(success=False, board=board, reason=reason)

    # Statistics

    @property
    def total_boards_nested(self) -> int:
        return sum(1 for r in self.placement_results if r.success)

    @property
    def total_boards_failed(self) -> int:
        return sum(1 for r in self.placement_results if not r.success)

    @property
    def new_sheets_created(self) -> int:
        return sum(1 for r in self.placement_results if r.success and r.new_sheet)

    def average_utilization(self) -> float:
        """Mean sheet utilization as a percentage."""
        if not self.sheets:
            return 0.0
        total = sum(sheet.utilization() for sheet in self.sheets)
        return round(total / len(self.sheets) * 100, 2)

    def total_area_used(self) -> float:
        return sum(sheet.used_area for sheet in self.sheets)

    def total_area_available(self) -> float:
        return sum(sheet.area for sheet in self.sheets)

    # Validation

    def validate_nesting(self) -> List[str]:
        """Audit the session: failed boards and overlapping pairs."""
        errors = []

        for i, result in enumerate(self.placement_results, start=1):
            if not result.success:
                errors.append(f"Board {i} failed to place: {result.reason}")

        for sheet_index, sheet in enumerate(self.sheets, start=1):
            boards = sheet.boards
            for i in range(len(boards)):
                for j in range(i + 1, len(boards)):
                    if _shares_area(boards[i], boards[j]) and boards[i].overlaps_with(boards[j]):
                        message = f"Sheet {sheet_index}: Board {i + 1} overlaps with Board {j + 1}"
                        logger.warning(message)
                        errors.append(message)

        return errors

    def is_valid_nesting(self) -> bool:
        return not self.validate_nesting()


# Convenience functions
def create_engine(root: Optional[NestingRoot] = None, **options) -> NestingEngine:
    """Create a nesting engine with config options given as keywords.

    Unknown option names raise TypeError.
    """
    config = NestingConfig(**options)
    return NestingEngine(root=root, config=config)


def nest_board(board: Rectangle, root: Optional[NestingRoot] = None, **options) -> PlacementResult:
    """Place one board, creating a session root if none is given."""
    engine = create_engine(root if root is not None else NestingRoot(), **options)
    return engine.nest_board(board)


def nest_boards(
    boards: Sequence[Rectangle],
    root: Optional[NestingRoot] = None,
    progress_callback: Optional[ProgressCallback] = None,
    **options,
) -> List[PlacementResult]:
    """
    Nest boards onto sheets.

    Args:
        boards: Boards to place, in order
        root: Session holding existing sheets; a fresh one is used if None
        progress_callback: Called as (index, total, board) before each board
        **options: NestingConfig fields

    Returns:
        One placement result per board
    """
    engine = create_engine(root if root is not None else NestingRoot(), **options)
    return engine.nest_boards(boards, progress_callback=progress_callback)
