from __future__ import annotations

"""Primitive polygon measurements and transforms.

Every function here is total: degenerate input (empty sets, rings with fewer
than three points, zero-length edges) yields zero values instead of errors.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from shapely.geometry import MultiPolygon, Polygon
from shapely.ops import unary_union

Point2D = tuple[float, float]
Ring = list[Point2D]
PolygonSet = list[Ring]


@dataclass(frozen=True)
class Bounds:
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def is_degenerate(self) -> bool:
        return self.width <= 0 or self.height <= 0

    @staticmethod
    def zero() -> "Bounds":
        return Bounds(0.0, 0.0, 0.0, 0.0)

    def as_dict(self) -> dict[str, float]:
        return {
            "left": self.left,
            "top": self.top,
            "right": self.right,
            "bottom": self.bottom,
            "width": self.width,
            "height": self.height,
        }


def bounds(polygons: Iterable[Sequence[Point2D]]) -> Bounds:
    xs: list[float] = []
    ys: list[float] = []
    for ring in polygons:
        for x, y in ring:
            xs.append(float(x))
            ys.append(float(y))
    if not xs:
        return Bounds.zero()
    return Bounds(min(xs), min(ys), max(xs), max(ys))


def ring_perimeter(ring: Sequence[Point2D]) -> float:
    # Includes the closing edge from the last point back to the first.
    count = len(ring)
    if count < 2:
        return 0.0
    total = 0.0
    for i in range(count):
        x1, y1 = ring[i]
        x2, y2 = ring[(i + 1) % count]
        total += math.hypot(x2 - x1, y2 - y1)
    return total


def perimeter(polygons: Iterable[Sequence[Point2D]]) -> float:
    return sum(ring_perimeter(ring) for ring in polygons)


def area(ring: Sequence[Point2D]) -> float:
    count = len(ring)
    if count < 3:
        return 0.0
    total = 0.0
    for i in range(count):
        x1, y1 = ring[i]
        x2, y2 = ring[(i + 1) % count]
        total += x1 * y2 - x2 * y1
    return total / 2.0


def is_clockwise(ring: Sequence[Point2D]) -> bool:
    return area(ring) < 0


def translate(polygons: Iterable[Sequence[Point2D]], dx: float, dy: float) -> PolygonSet:
    return [[(x + dx, y + dy) for x, y in ring] for ring in polygons]


def scale(polygons: Iterable[Sequence[Point2D]], factor: float, origin: Point2D = (0.0, 0.0)) -> PolygonSet:
    ox, oy = origin
    return [[(ox + (x - ox) * factor, oy + (y - oy) * factor) for x, y in ring] for ring in polygons]


def rotate(polygons: Iterable[Sequence[Point2D]], degrees: float, origin: Point2D = (0.0, 0.0)) -> PolygonSet:
    cos_a, sin_a = _cos_sin(degrees)
    ox, oy = origin
    rotated = []
    for ring in polygons:
        rotated.append(
            [
                (ox + (x - ox) * cos_a - (y - oy) * sin_a, oy + (x - ox) * sin_a + (y - oy) * cos_a)
                for x, y in ring
            ]
        )
    return rotated


def transform(polygons: Iterable[Sequence[Point2D]], dx: float, dy: float, rotation_degrees: float) -> PolygonSet:
    """Rotate about the origin, then translate; the placement transform."""
    return translate(rotate(polygons, rotation_degrees), dx, dy)


def to_shapely(polygons: Iterable[Sequence[Point2D]]):
    # Even-odd composition: a ring inside another ring becomes a hole.
    merged = None
    for ring in polygons:
        if len(ring) < 3:
            continue
        poly = Polygon(ring)
        if not poly.is_valid:
            poly = poly.buffer(0)
        if poly.is_empty:
            continue
        merged = poly if merged is None else merged.symmetric_difference(poly)
    if merged is None:
        return MultiPolygon()
    return unary_union([merged])


def _cos_sin(degrees: float) -> tuple[float, float]:
    # Quarter turns are exact so 90/180/270 placements stay on the pixel grid.
    quarter = degrees % 360.0
    exact = {0.0: (1.0, 0.0), 90.0: (0.0, 1.0), 180.0: (-1.0, 0.0), 270.0: (0.0, -1.0)}
    if quarter in exact:
        return exact[quarter]
    radians = math.radians(degrees)
    return math.cos(radians), math.sin(radians)
