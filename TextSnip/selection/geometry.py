"""Coordinate value types and the transforms between global, surface-local and capture-pixel space."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CoordinateSpace(str, Enum):
    # Union of all displays, shared origin, y increases upward
    GLOBAL = "global"
    # Relative to one display's frame origin, y increases upward
    LOCAL = "local"
    # Bitmap pixel grid, top-left origin, scaled by the display's pixel density
    CAPTURE = "capture"
    # OCR observation boxes, 0..1, bottom-left origin
    NORMALIZED = "normalized"


def _check_same_space(*spaces: CoordinateSpace) -> CoordinateSpace:
    first = spaces[0]
    for space in spaces[1:]:
        if space is not first:
            raise ValueError(f"Cannot mix coordinate spaces: {first.value} and {space.value}")
    return first


@dataclass(frozen=True)
class Point:
    x: float
    y: float
    space: CoordinateSpace = CoordinateSpace.GLOBAL


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle.

    Attributes:
        x, y: Origin corner (the minimum x and y of the rectangle).
        width, height: Non-negative extents.
        space: Coordinate space the values belong to.
    """

    x: float
    y: float
    width: float
    height: float
    space: CoordinateSpace = CoordinateSpace.GLOBAL

    def __post_init__(self):
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Rect size must be non-negative, got {self.width}x{self.height}")

    @property
    def origin(self) -> Point:
        return Point(self.x, self.y, self.space)

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def mid_x(self) -> float:
        return self.x + self.width / 2

    @property
    def mid_y(self) -> float:
        return self.y + self.height / 2

    @property
    def center(self) -> Point:
        return Point(self.mid_x, self.mid_y, self.space)

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def contains(self, point: Point) -> bool:
        """Half-open containment: the max edges belong to the neighbouring rect."""
        _check_same_space(self.space, point.space)
        return self.min_x <= point.x < self.max_x and self.min_y <= point.y < self.max_y


def to_local(point: Point, surface) -> Point:
    """Convert a global point into the surface's local space."""
    frame = surface.frame
    _check_same_space(point.space, frame.space, CoordinateSpace.GLOBAL)
    return Point(point.x - frame.x, point.y - frame.y, CoordinateSpace.LOCAL)


def rect_to_local(rect: Rect, surface) -> Rect:
    """Convert a global rect into the surface's local space."""
    origin = to_local(rect.origin, surface)
    return Rect(origin.x, origin.y, rect.width, rect.height, CoordinateSpace.LOCAL)


def to_capture_pixels(local: Rect, surface_frame_height: float, pixel_scale: float) -> Rect:
    """Map a surface-local rect into the capture bitmap's pixel grid.

    This is the single place where the vertical origin flips: local space is
    bottom-left, the bitmap is top-left.
    """
    _check_same_space(local.space, CoordinateSpace.LOCAL)
    return Rect(
        x=local.x * pixel_scale,
        y=(surface_frame_height - local.y - local.height) * pixel_scale,
        width=local.width * pixel_scale,
        height=local.height * pixel_scale,
        space=CoordinateSpace.CAPTURE,
    )


def intersect_rect(a: Rect, b: Rect) -> Optional[Rect]:
    """Return the overlap of two rects, or None when it has no area."""
    space = _check_same_space(a.space, b.space)
    x1 = max(a.min_x, b.min_x)
    y1 = max(a.min_y, b.min_y)
    x2 = min(a.max_x, b.max_x)
    y2 = min(a.max_y, b.max_y)
    if x2 <= x1 or y2 <= y1:
        return None
    return Rect(x1, y1, x2 - x1, y2 - y1, space)


def union_point(rect: Rect, point: Point) -> Rect:
    """Grow `rect` just enough to include `point`."""
    space = _check_same_space(rect.space, point.space)
    x1 = min(rect.min_x, point.x)
    y1 = min(rect.min_y, point.y)
    x2 = max(rect.max_x, point.x)
    y2 = max(rect.max_y, point.y)
    return Rect(x1, y1, x2 - x1, y2 - y1, space)


def rect_from_points(a: Point, b: Point) -> Rect:
    """Normalized rectangle spanned by two corners, whatever the drag direction."""
    space = _check_same_space(a.space, b.space)
    return Rect(
        x=min(a.x, b.x),
        y=min(a.y, b.y),
        width=abs(a.x - b.x),
        height=abs(a.y - b.y),
        space=space,
    )
