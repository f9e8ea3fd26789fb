"""sheetnest - nesting of cabinet boards onto stock sheets."""

__version__ = "0.1.0"

from sheetnest.nesting import (
    NestingConfig,
    NestingEngine,
    NestingRoot,
    PlacementResult,
    Rectangle,
    Sheet,
    nest_boards,
)

__all__ = [
    "__version__",
    "NestingConfig",
    "NestingEngine",
    "NestingRoot",
    "PlacementResult",
    "Rectangle",
    "Sheet",
    "nest_boards",
]
