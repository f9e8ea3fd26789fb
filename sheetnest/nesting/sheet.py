"""Stock sheets and the nesting session that owns them."""

from typing import TYPE_CHECKING, List, Optional, Tuple
from uuid import uuid4

from sheetnest.nesting.rectangle import Rectangle
from sheetnest.utils import get_logger

if TYPE_CHECKING:
    from sheetnest.nesting.gap_calculator import Gap, GapCalculator

logger = get_logger("nesting.sheet")

THICKNESS_TOLERANCE = 0.5  # mm


class Sheet:
    """
    A rectangular stock panel holding placed boards.

    The sheet does not check collisions or bounds when a board is added;
    the engine validates placements first.
    """

    DEFAULT_WIDTH = 2440.0  # mm
    DEFAULT_HEIGHT = 1220.0  # mm

    def __init__(
        self,
        width: float = DEFAULT_WIDTH,
        height: float = DEFAULT_HEIGHT,
        material: Optional[str] = None,
        thickness: Optional[float] = None,
        sheet_id: Optional[str] = None,
    ):
        if width <= 0 or height <= 0:
            raise ValueError(f"Sheet dimensions must be positive, got {width}x{height}")

        self.width = float(width)
        self.height = float(height)
        self.material = material
        self.thickness = float(thickness) if thickness is not None else None
        self.sheet_id = sheet_id

        self.boards: List[Rectangle] = []

        self._gaps: List["Gap"] = []
        self._gaps_dirty = True
        self._gap_settings: Optional[Tuple[float, float]] = None

    def __repr__(self) -> str:
        return (
            f"<Sheet {self.sheet_id or '?'} {self.width:.0f}x{self.height:.0f} "
            f"{self.classification_key} boards={len(self.boards)}>"
        )

    # Area and utilization

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def used_area(self) -> float:
        return sum(board.area for board in self.boards)

    @property
    def available_area(self) -> float:
        return self.area - self.used_area

    def utilization(self) -> float:
        """Fraction of the sheet area covered by boards."""
        if self.area == 0:
            return 0.0
        return self.used_area / self.area

    def utilization_percentage(self) -> float:
        return round(self.utilization() * 100, 2)

    def is_full(self, threshold: float = 0.95) -> bool:
        return self.utilization() >= threshold

    @property
    def is_empty(self) -> bool:
        return not self.boards

    @property
    def board_count(self) -> int:
        return len(self.boards)

    # Board management

    def add_board(self, board: Rectangle) -> bool:
        """Add a placed board. Returns False if it is already on this sheet."""
        if any(existing is board for existing in self.boards):
            return False

        self.boards.append(board)
        self.invalidate_gaps()
        return True

    def remove_board(self, board: Rectangle) -> bool:
        """Remove a board and clear its placement."""
        for i, existing in enumerate(self.boards):
            if existing is board:
                del self.boards[i]
                board.reset_position()
                self.invalidate_gaps()
                return True
        return False

    def within_bounds(self, x: float, y: float, width: float, height: float) -> bool:
        if x < 0 or y < 0:
            return False
        if x + width > self.width:
            return False
        if y + height > self.height:
            return False
        return True

    # Gap cache

    def invalidate_gaps(self) -> None:
        self._gaps = []
        self._gaps_dirty = True

    def gaps(self, calculator: Optional["GapCalculator"] = None) -> List["Gap"]:
        """Free rectangles on this sheet, recomputed only after a change."""
        if calculator is None:
            from sheetnest.nesting.gap_calculator import GapCalculator
            calculator = GapCalculator()

        settings = (calculator.min_gap_size, calculator.min_spacing)
        if self._gaps_dirty or settings != self._gap_settings:
            self._gaps = calculator.find_gaps(self)
            self._gap_settings = settings
            self._gaps_dirty = False
            logger.debug(f"Recomputed {len(self._gaps)} gaps for {self.sheet_id or 'sheet'}")

        return self._gaps

    def largest_gap(self, calculator: Optional["GapCalculator"] = None) -> Optional["Gap"]:
        gaps = self.gaps(calculator)
        if not gaps:
            return None
        return max(gaps, key=lambda g: g.area)

    def has_gap_for_board(
        self,
        board: Rectangle,
        rotation: int = 0,
        calculator: Optional["GapCalculator"] = None,
    ) -> bool:
        """Check if any gap can hold the board (spacing not included)."""
        if board is None:
            return False
        width, height = board.footprint(rotation)
        return any(gap.fits(width, height) for gap in self.gaps(calculator))

    def can_fit(
        self,
        board: Rectangle,
        rotation: int = 0,
        calculator: Optional["GapCalculator"] = None,
    ) -> bool:
        if board is None:
            return False
        if not self.matches_board(board):
            return False
        if board.area > self.available_area:
            return False
        return self.has_gap_for_board(board, rotation, calculator)

    # Material and thickness matching

    def matches_material(self, material: Optional[str]) -> bool:
        if self.material is None or material is None:
            return True
        return self.material == material

    def matches_thickness(self, thickness: Optional[float]) -> bool:
        if self.thickness is None or thickness is None:
            return True
        return abs(self.thickness - float(thickness)) < THICKNESS_TOLERANCE

    def matches_board(self, board: Rectangle) -> bool:
        if board is None:
            return False
        return self.matches_material(board.material) and self.matches_thickness(board.thickness)

    @property
    def classification_key(self) -> str:
        material = self.material if self.material is not None else "nil"
        thickness = self.thickness if self.thickness is not None else 0.0
        return f"{material}_{thickness}"

    # Validation

    def validation_errors(self) -> List[str]:
        errors = []

        for i, board in enumerate(self.boards, start=1):
            if not board.is_positioned:
                errors.append(f"Board {i} is not positioned")
                continue
            bounds = board.placed_bounds
            if bounds is None or not self.within_bounds(
                bounds.min_x, bounds.min_y, bounds.width, bounds.height
            ):
                errors.append(f"Board {i} lies outside the sheet")

        return errors

    @property
    def is_valid(self) -> bool:
        return not self.validation_errors()

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "sheet_id": self.sheet_id,
            "material": self.material,
            "thickness": self.thickness,
            "classification_key": self.classification_key,
            "width": self.width,
            "height": self.height,
            "area": self.area,
            "board_count": self.board_count,
            "used_area": self.used_area,
            "available_area": self.available_area,
            "utilization": self.utilization(),
            "utilization_percentage": self.utilization_percentage(),
            "is_full": self.is_full(),
            "is_empty": self.is_empty,
            "boards": [board.to_dict() for board in self.boards],
        }


class NestingRoot:
    """
    Session context that owns the sheets of one nesting run.

    New sheets can only be created through a root.
    """

    def __init__(
        self,
        sheet_width: float = Sheet.DEFAULT_WIDTH,
        sheet_height: float = Sheet.DEFAULT_HEIGHT,
        name: str = "Nesting",
    ):
        self.name = name
        self.sheet_width = sheet_width
        self.sheet_height = sheet_height
        self.sheets: List[Sheet] = []
        self._counter = 0

    def __repr__(self) -> str:
        return f"<NestingRoot {self.name!r} sheets={len(self.sheets)}>"

    def generate_sheet_id(self) -> str:
        self._counter += 1
        return f"sheet_{self._counter}_{uuid4().hex[:8]}"

    def add_sheet(self, sheet: Sheet) -> Sheet:
        if not any(existing is sheet for existing in self.sheets):
            if sheet.sheet_id is None:
                sheet.sheet_id = self.generate_sheet_id()
            self.sheets.append(sheet)
        return sheet

    def create_sheet(
        self,
        material: Optional[str] = None,
        thickness: Optional[float] = None,
        width: Optional[float] = None,
        height: Optional[float] = None,
    ) -> Sheet:
        """Create an empty sheet and register it with this root."""
        sheet = Sheet(
            width=width if width is not None else self.sheet_width,
            height=height if height is not None else self.sheet_height,
            material=material,
            thickness=thickness,
            sheet_id=self.generate_sheet_id(),
        )
        self.sheets.append(sheet)
        logger.info(f"Created sheet {sheet.sheet_id} ({sheet.classification_key})")
        return sheet

    def find_sheet(self, sheet_id: str) -> Optional[Sheet]:
        for sheet in self.sheets:
            if sheet.sheet_id == sheet_id:
                return sheet
        return None
