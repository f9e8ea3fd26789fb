"""Nesting module for packing boards onto stock sheets.

Provides the board and sheet models, gap detection and the greedy
placement engine.
"""

from sheetnest.nesting.rectangle import (
    VALID_ROTATIONS,
    Bounds2D,
    Rectangle,
    point_in_polygon,
)
from sheetnest.nesting.sheet import (
    NestingRoot,
    Sheet,
)
from sheetnest.nesting.gap_calculator import (
    Gap,
    GapCalculator,
    GapFit,
    find_gaps,
)
from sheetnest.nesting.engine import (
    NestingConfig,
    NestingEngine,
    PlacementResult,
    create_engine,
    nest_board,
    nest_boards,
)

__all__ = [
    "VALID_ROTATIONS",
    "Bounds2D",
    "Rectangle",
    "point_in_polygon",
    "NestingRoot",
    "Sheet",
    "Gap",
    "GapCalculator",
    "GapFit",
    "find_gaps",
    "NestingConfig",
    "NestingEngine",
    "PlacementResult",
    "create_engine",
    "nest_board",
    "nest_boards",
]
