"""Free-space detection on nesting sheets.

Gaps are found with a corner-probing heuristic: maximal rectangles are
grown from a fixed set of origins next to every placed board and at the
sheet corners. This bounds the search cost; it does not promise the true
largest free rectangle. Placement safety comes from the engine's
collision check, not from the gap search.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from sheetnest.nesting.rectangle import Bounds2D, Rectangle
from sheetnest.nesting.sheet import Sheet
from sheetnest.utils import get_logger

logger = get_logger("nesting.gap_calculator")

# (x, y, width, height) at full precision
RawGap = Tuple[float, float, float, float]


@dataclass(frozen=True)
class Gap:
    """A free rectangular region on a sheet."""
    x: float
    y: float
    width: float
    height: float
    area: float

    @classmethod
    def create(cls, x: float, y: float, width: float, height: float) -> "Gap":
        """Build a gap, rounding values to 2 decimals."""
        return cls(
            x=round(x, 2),
            y=round(y, 2),
            width=round(width, 2),
            height=round(height, 2),
            area=round(width * height, 2),
        )

    def fits(self, width: float, height: float) -> bool:
        return self.width >= width and self.height >= height

    def contains(self, other: "Gap") -> bool:
        return _contains(
            (self.x, self.y, self.width, self.height),
            (other.x, other.y, other.width, other.height),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "area": self.area,
        }


@dataclass(frozen=True)
class GapFit:
    """Best gap found for a board across rotations."""
    gap: Gap
    rotation: int
    wasted_area: float


def _contains(outer: RawGap, inner: RawGap) -> bool:
    ox, oy, ow, oh = outer
    ix, iy, iw, ih = inner
    return ox <= ix and oy <= iy and ox + ow >= ix + iw and oy + oh >= iy + ih


def _rects_intersect(
    x1: float, y1: float, w1: float, h1: float,
    x2: float, y2: float, w2: float, h2: float,
) -> bool:
    if x1 + w1 < x2 or x1 > x2 + w2:
        return False
    if y1 + h1 < y2 or y1 > y2 + h2:
        return False
    return True


def _horizontal_line_hits(
    x1: float, x2: float, y: float, rect: Bounds2D,
) -> bool:
    if y < rect.min_y or y > rect.max_y:
        return False
    if x2 < rect.min_x or x1 > rect.max_x:
        return False
    return True


class GapCalculator:
    """
    Finds empty rectangular regions on a sheet.

    Every placed board is treated as its bounding box grown by
    ``min_spacing`` on all sides.
    """

    DEFAULT_MIN_GAP_SIZE = 100.0  # mm
    DEFAULT_MIN_SPACING = 5.0  # mm

    def __init__(
        self,
        min_gap_size: float = DEFAULT_MIN_GAP_SIZE,
        min_spacing: float = DEFAULT_MIN_SPACING,
        allow_rotation: bool = True,
    ):
        self.min_gap_size = min_gap_size
        self.min_spacing = min_spacing
        self.allow_rotation = allow_rotation

    # Main gap detection

    def find_gaps(self, sheet: Sheet) -> List[Gap]:
        """Compute the gaps of a sheet, largest first.

        This always computes from scratch; use ``sheet.gaps(calculator)`` for
        the cached result.
        """
        if sheet is None:
            return []

        if sheet.is_empty:
            return [Gap.create(0, 0, sheet.width, sheet.height)]

        obstacles = self._padded_obstacles(sheet)
        candidates: List[RawGap] = []

        for origin in self._candidate_origins(sheet):
            rect = self._max_rectangle_from(origin[0], origin[1], sheet, obstacles)
            if rect is not None:
                candidates.append(rect)

        kept = [
            rect for rect in self._remove_contained(candidates)
            if rect[2] >= self.min_gap_size and rect[3] >= self.min_gap_size
        ]
        kept.sort(key=lambda r: r[2] * r[3], reverse=True)

        gaps = [Gap.create(*rect) for rect in kept]
        logger.debug(f"Found {len(gaps)} gaps from {len(candidates)} candidates")
        return gaps

    def _padded_obstacles(self, sheet: Sheet) -> List[Tuple[Bounds2D, Bounds2D]]:
        """(placed bounds, padded bounds) for every positioned board."""
        s = self.min_spacing
        obstacles = []
        for board in sheet.boards:
            if not board.is_positioned:
                continue
            bounds = board.placed_bounds
            if bounds is None:
                continue
            padded = Bounds2D(bounds.min_x - s, bounds.min_y - s, bounds.max_x + s, bounds.max_y + s)
            obstacles.append((bounds, padded))
        return obstacles

    def _candidate_origins(self, sheet: Sheet) -> List[Tuple[float, float]]:
        s = self.min_spacing
        g = self.min_gap_size
        origins = []

        for board in sheet.boards:
            if not board.is_positioned:
                continue
            bounds = board.placed_bounds
            if bounds is None:
                continue
            origins.extend([
                (bounds.max_x + s, bounds.min_y),  # right
                (bounds.min_x, bounds.max_y + s),  # top
                (bounds.min_x - g - s, bounds.min_y),  # left
                (bounds.min_x, bounds.min_y - g - s),  # bottom
            ])

        origins.extend([
            (0.0, 0.0),
            (sheet.width - g, 0.0),
            (0.0, sheet.height - g),
            (sheet.width - g, sheet.height - g),
        ])
        return origins

    # Max rectangle finding

    def _max_rectangle_from(
        self,
        start_x: float,
        start_y: float,
        sheet: Sheet,
        obstacles: List[Tuple[Bounds2D, Bounds2D]],
    ) -> Optional[RawGap]:
        if start_x < 0 or start_y < 0:
            return None
        if start_x >= sheet.width or start_y >= sheet.height:
            return None

        # Half-open so a corner on a board's lower-left edge is covered at zero spacing
        for _, padded in obstacles:
            if padded.min_x <= start_x < padded.max_x and padded.min_y <= start_y < padded.max_y:
                return None

        width = self._max_width_from(start_x, start_y, sheet, obstacles)
        if width < self.min_gap_size:
            return None

        height = self._max_height_from(start_x, start_y, width, sheet, obstacles)
        if height < self.min_gap_size:
            return None

        return (start_x, start_y, width, height)

    def _max_width_from(
        self,
        start_x: float,
        start_y: float,
        sheet: Sheet,
        obstacles: List[Tuple[Bounds2D, Bounds2D]],
    ) -> float:
        max_width = sheet.width - start_x

        for bounds, padded in obstacles:
            if not _horizontal_line_hits(start_x, start_x + max_width, start_y, padded):
                continue
            if bounds.min_x > start_x:
                max_width = min(max_width, bounds.min_x - start_x - self.min_spacing)

        return max_width

    def _max_height_from(
        self,
        start_x: float,
        start_y: float,
        width: float,
        sheet: Sheet,
        obstacles: List[Tuple[Bounds2D, Bounds2D]],
    ) -> float:
        max_height = sheet.height - start_y

        for bounds, padded in obstacles:
            if not _rects_intersect(
                start_x, start_y, width, max_height,
                padded.min_x, padded.min_y, padded.width, padded.height,
            ):
                continue
            if bounds.min_y > start_y:
                max_height = min(max_height, bounds.min_y - start_y - self.min_spacing)

        return max_height

    # Filtering

    def _remove_contained(self, rects: List[RawGap]) -> List[RawGap]:
        unique: List[RawGap] = []
        for rect in rects:
            if rect not in unique:
                unique.append(rect)

        return [
            rect for i, rect in enumerate(unique)
            if not any(j != i and _contains(other, rect) for j, other in enumerate(unique))
        ]

    # Board fitting

    def required_size(self, board: Rectangle, rotation: int = 0) -> Tuple[float, float]:
        """Board footprint plus spacing on both sides."""
        width, height = board.footprint(rotation)
        return (width + 2 * self.min_spacing, height + 2 * self.min_spacing)

    def find_gap_for_board(
        self,
        board: Rectangle,
        sheet: Sheet,
        rotation: int = 0,
    ) -> Optional[Gap]:
        """First (largest) gap with room for the board at this rotation."""
        if board is None or sheet is None:
            return None

        needed_width, needed_height = self.required_size(board, rotation)
        for gap in sheet.gaps(self):
            if gap.fits(needed_width, needed_height):
                return gap
        return None

    def find_best_gap(
        self,
        board: Rectangle,
        sheet: Sheet,
        try_rotations: Optional[bool] = None,
    ) -> Optional[GapFit]:
        """Gap and rotation that waste the least area."""
        if board is None or sheet is None:
            return None

        if try_rotations is None:
            try_rotations = self.allow_rotation
        rotations = (0, 90, 180, 270) if try_rotations else (0,)

        best: Optional[GapFit] = None
        for rotation in rotations:
            gap = self.find_gap_for_board(board, sheet, rotation)
            if gap is None:
                continue
            wasted = gap.area - board.width * board.height
            if best is None or wasted < best.wasted_area:
                best = GapFit(gap=gap, rotation=rotation, wasted_area=wasted)

        return best

    # Validation

    def gap_is_valid(self, gap: Optional[Gap], sheet: Optional[Sheet]) -> bool:
        if gap is None or sheet is None:
            return False

        if gap.width < self.min_gap_size or gap.height < self.min_gap_size:
            return False
        if not sheet.within_bounds(gap.x, gap.y, gap.width, gap.height):
            return False

        for board in sheet.boards:
            if not board.is_positioned:
                continue
            bounds = board.placed_bounds
            if _rects_intersect(
                gap.x, gap.y, gap.width, gap.height,
                bounds.min_x, bounds.min_y, bounds.width, bounds.height,
            ):
                return False

        return True


def find_gaps(
    sheet: Sheet,
    min_gap_size: float = GapCalculator.DEFAULT_MIN_GAP_SIZE,
    min_spacing: float = GapCalculator.DEFAULT_MIN_SPACING,
) -> List[Gap]:
    """
    Find the gaps of a sheet.

    Args:
        sheet: Sheet to inspect
        min_gap_size: Smallest usable gap side (mm)
        min_spacing: Clearance kept around placed boards (mm)

    Returns:
        Gaps sorted by area, largest first
    """
    calculator = GapCalculator(min_gap_size=min_gap_size, min_spacing=min_spacing)
    return calculator.find_gaps(sheet)
