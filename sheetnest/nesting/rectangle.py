"""2D board projection used by the nesting engine.

A Rectangle is the flat outline of a board together with the material
and thickness used to match it against stock sheets. The outline is
kept in local coordinates; placement (position + quarter-turn rotation)
is stored separately and only applied when a placed outline is needed.
"""

import copy
import numbers
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

Point = Tuple[float, float]

VALID_ROTATIONS = (0, 90, 180, 270)


@dataclass(frozen=True)
class Bounds2D:
    """Axis-aligned bounding box."""
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def intersects(self, other: "Bounds2D") -> bool:
        """Check overlap. Touching edges count as intersecting."""
        if self.max_x < other.min_x or self.min_x > other.max_x:
            return False
        if self.max_y < other.min_y or self.min_y > other.max_y:
            return False
        return True

    def shares_area(self, other: "Bounds2D") -> bool:
        """Check overlap by more than a shared edge or corner."""
        return (
            min(self.max_x, other.max_x) > max(self.min_x, other.min_x)
            and min(self.max_y, other.max_y) > max(self.min_y, other.min_y)
        )

    @classmethod
    def from_points(cls, points: Sequence[Point]) -> Optional["Bounds2D"]:
        if not points:
            return None
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        return cls(min(xs), min(ys), max(xs), max(ys))


def check_rotation(rotation: int) -> int:
    """Validate a rotation angle in degrees."""
    if rotation not in VALID_ROTATIONS:
        raise ValueError(f"Rotation must be one of {VALID_ROTATIONS}, got {rotation!r}")
    return rotation


def point_in_polygon(points: Sequence[Point], x: float, y: float) -> bool:
    """Ray casting point-in-polygon test.

    Uses the half-open crossing rule, so for an axis-aligned outline a
    point on the lower or left edge is inside while a point on the upper
    or right edge is outside.
    """
    n = len(points)
    if n < 3:
        return False

    inside = False
    j = n - 1
    for i in range(n):
        xi, yi = points[i]
        xj, yj = points[j]
        if (yi > y) != (yj > y):
            if x < (xj - xi) * (y - yi) / (yj - yi) + xi:
                inside = not inside
        j = i

    return inside


def _rotate_point(point: Point, rotation: int) -> Point:
    x, y = point
    if rotation == 90:
        return (-y, x)
    if rotation == 180:
        return (-x, -y)
    if rotation == 270:
        return (y, -x)
    return (x, y)


class Rectangle:
    """
    A board projected onto the nesting plane.

    Identity matters: sheets hold boards by reference and callers keep
    their own handles to sync placements back to wherever the board
    came from.
    """

    def __init__(
        self,
        outline: Optional[Iterable[Sequence[float]]] = None,
        material: Optional[str] = None,
        thickness: Optional[float] = None,
        name: str = "",
    ):
        """
        Initialize board outline.

        Args:
            outline: Closed polygon as (x, y) pairs in mm
            material: Material name, None for unrestricted
            thickness: Board thickness in mm
            name: Display name
        """
        self.name = name
        self.material = material
        self.thickness = thickness

        self._outline: Tuple[Point, ...] = ()
        self._bounds: Optional[Bounds2D] = None
        self._bounds_valid = False

        self.position: Optional[Point] = None
        self.rotation = 0

        if outline is not None:
            self.set_outline(outline)

    @classmethod
    def from_size(cls, width: float, height: float, **kwargs) -> "Rectangle":
        """Create a rectangular board with its lower-left corner at the origin."""
        outline = [(0.0, 0.0), (width, 0.0), (width, height), (0.0, height)]
        return cls(outline, **kwargs)

    def __repr__(self) -> str:
        label = self.name or "Rectangle"
        return f"<{label} {self.width:.1f}x{self.height:.1f} at {self.position} r{self.rotation}>"

    # Outline

    def set_outline(self, points: Iterable[Sequence[float]]) -> None:
        """Replace the outline with a new sequence of (x, y) points."""
        self._outline = tuple((float(p[0]), float(p[1])) for p in points)
        self._bounds = None
        self._bounds_valid = False

    @property
    def outline(self) -> Tuple[Point, ...]:
        return self._outline

    @property
    def bounds(self) -> Optional[Bounds2D]:
        """Bounding box of the local outline, computed once per outline."""
        if not self._bounds_valid:
            self._bounds = Bounds2D.from_points(self._outline)
            self._bounds_valid = True
        return self._bounds

    @property
    def width(self) -> float:
        bounds = self.bounds
        return bounds.width if bounds else 0.0

    @property
    def height(self) -> float:
        bounds = self.bounds
        return bounds.height if bounds else 0.0

    @property
    def area(self) -> float:
        """Unsigned polygon area (shoelace formula)."""
        points = self._outline
        n = len(points)
        if n < 3:
            return 0.0

        total = 0.0
        for i, (x1, y1) in enumerate(points):
            x2, y2 = points[(i + 1) % n]
            total += x1 * y2 - x2 * y1

        return abs(total) / 2.0

    @property
    def center(self) -> Point:
        bounds = self.bounds
        if bounds is None:
            return (0.0, 0.0)
        return ((bounds.min_x + bounds.max_x) / 2.0, (bounds.min_y + bounds.max_y) / 2.0)

    # Placement

    @property
    def is_positioned(self) -> bool:
        return self.position is not None

    def place_at(self, x: float, y: float, rotation: int = 0) -> None:
        """Set placement. The stored outline is left untouched."""
        self.rotation = check_rotation(rotation)
        self.position = (x, y)

    def reset_position(self) -> None:
        self.position = None
        self.rotation = 0

    def footprint(self, rotation: Optional[int] = None) -> Tuple[float, float]:
        """Width and height of the board once turned by ``rotation``."""
        if rotation is None:
            rotation = self.rotation
        check_rotation(rotation)
        if rotation in (90, 270):
            return (self.height, self.width)
        return (self.width, self.height)

    def placed_outline(self) -> Tuple[Point, ...]:
        """Outline in sheet coordinates.

        The outline is turned about the origin, then shifted so the lower-left
        corner of its bounding box lands on the placement position.
        """
        if self.position is None or not self._outline:
            return self._outline

        turned = [_rotate_point(p, self.rotation) for p in self._outline]
        min_x = min(p[0] for p in turned)
        min_y = min(p[1] for p in turned)
        dx = self.position[0] - min_x
        dy = self.position[1] - min_y
        return tuple((px + dx, py + dy) for px, py in turned)

    @property
    def placed_bounds(self) -> Optional[Bounds2D]:
        if self.position is None:
            return self.bounds
        return Bounds2D.from_points(self.placed_outline())

    # Geometry tests

    def contains_point(self, x: float, y: float) -> bool:
        """Check if a point lies inside the local (unplaced) outline."""
        return point_in_polygon(self._outline, x, y)

    def overlaps_with(self, other: "Rectangle") -> bool:
        """Check if two placed outlines overlap.

        Bounding boxes are compared first; when they meet, the boards overlap
        if any vertex of one lies inside the other. Two polygons crossing each
        other with no vertex inside the other (a plus sign laid through a
        square) are not detected.
        """
        if not isinstance(other, Rectangle):
            return False

        bounds1 = self.placed_bounds
        bounds2 = other.placed_bounds
        if bounds1 is None or bounds2 is None:
            return False
        if not bounds1.intersects(bounds2):
            return False

        mine = self.placed_outline()
        theirs = other.placed_outline()

        for px, py in mine:
            if point_in_polygon(theirs, px, py):
                return True

        for px, py in theirs:
            if point_in_polygon(mine, px, py):
                return True

        return False

    def copy(self) -> "Rectangle":
        """Copy for trial placements. The outline tuple is shared."""
        return copy.copy(self)

    # Classification

    @property
    def classification_key(self) -> str:
        material = self.material if self.material is not None else "nil"
        thickness = float(self.thickness) if self.thickness is not None else 0.0
        return f"{material}_{thickness}"

    def validation_errors(self) -> List[str]:
        errors = []

        if not self._outline:
            errors.append("No outline points")
        if len(self._outline) < 3:
            errors.append("Outline has less than 3 points")
        if self.area <= 0:
            errors.append("Zero area")
        if self.thickness is not None and (
            isinstance(self.thickness, bool) or not isinstance(self.thickness, numbers.Real)
        ):
            errors.append("Invalid thickness")

        return errors

    @property
    def is_valid(self) -> bool:
        return not self.validation_errors()

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "material": self.material,
            "thickness": self.thickness,
            "outline": [list(p) for p in self._outline],
            "width": self.width,
            "height": self.height,
            "area": self.area,
            "position": list(self.position) if self.position is not None else None,
            "rotation": self.rotation,
            "positioned": self.is_positioned,
            "classification_key": self.classification_key,
        }
