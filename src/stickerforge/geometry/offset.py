from __future__ import annotations

"""Integer-robust polygon offsetting and boolean operations (Clipper).

Coordinates are multiplied by ``scale`` and rounded before they reach Clipper
and divided again on the way out, so every result is quantised to
``1 / scale`` units.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

import pyclipper

from .kernel import Bounds, Point2D, PolygonSet, Ring, area, bounds

logger = logging.getLogger(__name__)

DEFAULT_SCALE = 100
DEFAULT_ARC_TOLERANCE = 0.25
DEFAULT_CLEAN_DISTANCE = 1.415

IntPath = list[tuple[int, int]]


@dataclass(frozen=True)
class Margins:
    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0
    left: float = 0.0

    @staticmethod
    def uniform(value: float) -> "Margins":
        return Margins(value, value, value, value)


@dataclass(frozen=True)
class KeepOut:
    x: float
    y: float
    width: float
    height: float

    def ring(self) -> Ring:
        return _rect(self.x, self.y, self.x + self.width, self.y + self.height)


@dataclass(frozen=True)
class BinShape:
    polygons: PolygonSet
    width: float
    height: float
    keep_outs: tuple[KeepOut, ...] = field(default_factory=tuple)

    @property
    def area(self) -> float:
        # Holes carry the opposite sign, so the sum is the usable area.
        return abs(sum(area(ring) for ring in self.polygons))

    @property
    def bounds(self) -> Bounds:
        return bounds(self.polygons)

    @property
    def is_empty(self) -> bool:
        return not self.polygons


def to_clipper(polygons: Iterable[Sequence[Point2D]], scale: float = DEFAULT_SCALE) -> list[IntPath]:
    paths = []
    for ring in polygons:
        path = [(int(round(x * scale)), int(round(y * scale))) for x, y in ring]
        if len(path) >= 2 and path[0] == path[-1]:
            path = path[:-1]
        if len(set(path)) < 3:
            continue
        paths.append(path)
    return paths


def from_clipper(paths: Iterable[Sequence[Sequence[int]]], scale: float = DEFAULT_SCALE) -> PolygonSet:
    return [[(p[0] / scale, p[1] / scale) for p in path] for path in paths if len(path) >= 3]


def offset_polygons(
    polygons: Iterable[Sequence[Point2D]],
    distance: float,
    scale: float = DEFAULT_SCALE,
    arc_tolerance: float = DEFAULT_ARC_TOLERANCE,
) -> PolygonSet:
    """Grow (positive ``distance``) or shrink a polygon set with round joins.

    Rings are first merged with the non-zero rule so producers with
    inconsistent winding still offset every disjoint shape outward.
    """
    paths = _boolean(to_clipper(polygons, scale), [], pyclipper.CT_UNION)
    if not paths:
        return []
    offsetter = pyclipper.PyclipperOffset(2.0, arc_tolerance * scale)
    offsetter.AddPaths(paths, pyclipper.JT_ROUND, pyclipper.ET_CLOSEDPOLYGON)
    solution = offsetter.Execute(distance * scale)
    logger.debug("Offset %s rings by %s -> %s rings", len(paths), distance, len(solution))
    return from_clipper(solution, scale)


def clean_polygon(ring: Sequence[Point2D], distance: float = DEFAULT_CLEAN_DISTANCE, scale: float = DEFAULT_SCALE) -> Ring:
    # ``distance`` is in scaled (integer) units.
    paths = to_clipper([ring], scale)
    if not paths:
        return []
    cleaned = pyclipper.CleanPolygon(paths[0], distance)
    if len(cleaned) < 3:
        return []
    return from_clipper([cleaned], scale)[0]


def union_polygons(polygons: Iterable[Sequence[Point2D]], scale: float = DEFAULT_SCALE) -> PolygonSet:
    return from_clipper(_boolean(to_clipper(polygons, scale), [], pyclipper.CT_UNION), scale)


def difference_polygons(
    subject: Iterable[Sequence[Point2D]],
    clips: Iterable[Sequence[Point2D]],
    scale: float = DEFAULT_SCALE,
) -> PolygonSet:
    return from_clipper(
        _boolean(to_clipper(subject, scale), to_clipper(clips, scale), pyclipper.CT_DIFFERENCE),
        scale,
    )


def intersect_polygons(
    subject: Iterable[Sequence[Point2D]],
    clips: Iterable[Sequence[Point2D]],
    scale: float = DEFAULT_SCALE,
) -> PolygonSet:
    return from_clipper(
        _boolean(to_clipper(subject, scale), to_clipper(clips, scale), pyclipper.CT_INTERSECTION),
        scale,
    )


def outer_rings(polygons: Iterable[Sequence[Point2D]], scale: float = DEFAULT_SCALE) -> PolygonSet:
    """Merged outer boundaries of a polygon set, holes dropped, counter-clockwise."""
    merged = _boolean(to_clipper(polygons, scale), [], pyclipper.CT_UNION)
    return from_clipper([path for path in merged if pyclipper.Orientation(path)], scale)


def build_bin_shape(
    width: float,
    height: float,
    margins: Margins | None = None,
    keep_outs: Iterable[KeepOut] = (),
    scale: float = DEFAULT_SCALE,
) -> BinShape:
    """Printable area of a sheet: the sheet rectangle minus margins and keep-outs."""
    keep_outs = tuple(keep_outs)
    if width <= 0 or height <= 0:
        logger.warning("Sheet has no area: %sx%s", width, height)
        return BinShape(polygons=[], width=width, height=height, keep_outs=keep_outs)
    margins = margins or Margins()
    clips: PolygonSet = []
    if margins.top > 0:
        clips.append(_rect(0.0, 0.0, width, margins.top))
    if margins.bottom > 0:
        clips.append(_rect(0.0, height - margins.bottom, width, height))
    if margins.left > 0:
        clips.append(_rect(0.0, 0.0, margins.left, height))
    if margins.right > 0:
        clips.append(_rect(width - margins.right, 0.0, width, height))
    for keep_out in keep_outs:
        if keep_out.width <= 0 or keep_out.height <= 0:
            logger.debug("Ignoring empty keep-out %s", keep_out)
            continue
        clips.append(keep_out.ring())
    polygons = difference_polygons([_rect(0.0, 0.0, width, height)], clips, scale)
    logger.info(
        "Bin shape: sheet=%sx%s clips=%s pieces=%s",
        width,
        height,
        len(clips),
        sum(1 for ring in polygons if area(ring) > 0),
    )
    return BinShape(polygons=polygons, width=width, height=height, keep_outs=keep_outs)


def minkowski_sum(pattern: Sequence[Point2D], ring: Sequence[Point2D], scale: float = DEFAULT_SCALE) -> PolygonSet:
    """Filled Minkowski sum of two simple rings.

    Clipper only sweeps edges against edges; adding one translated copy of
    each operand fills the interior for simple (hole-free) rings.
    """
    pattern_paths = to_clipper([pattern], scale)
    ring_paths = to_clipper([ring], scale)
    if not pattern_paths or not ring_paths:
        return []
    pat = pattern_paths[0]
    path = ring_paths[0]
    pieces = [_positive(p) for p in pyclipper.MinkowskiSum(pat, path, True)]
    pieces.append(_positive(_shift(path, pat[0])))
    pieces.append(_positive(_shift(pat, path[0])))
    return from_clipper(_boolean(pieces, [], pyclipper.CT_UNION), scale)


def boundary_sweep(
    pattern: Sequence[Point2D],
    rings: Iterable[Sequence[Point2D]],
    scale: float = DEFAULT_SCALE,
) -> PolygonSet:
    """Union over every ring of (ring boundary) swept by the filled ``pattern``."""
    pattern_paths = to_clipper([pattern], scale)
    if not pattern_paths:
        return []
    pat = pattern_paths[0]
    pieces: list[IntPath] = []
    for path in to_clipper(rings, scale):
        # Clipper returns the sweep already merged: outer boundary plus the
        # hole it encloses. Orientation carries the hole, so keep it as is.
        pieces.extend([(int(x), int(y)) for x, y in p] for p in pyclipper.MinkowskiSum(pat, path, True))
        pieces.append(_positive(_shift(pat, path[0])))
    return from_clipper(_boolean(pieces, [], pyclipper.CT_UNION), scale)


def erode_polygons(
    polygons: Iterable[Sequence[Point2D]],
    distance: float,
    scale: float = DEFAULT_SCALE,
) -> PolygonSet:
    """Shrink an already merged polygon set (holes grow) with mitred corners."""
    paths = to_clipper(polygons, scale)
    if not paths:
        return []
    offsetter = pyclipper.PyclipperOffset(2.0, DEFAULT_ARC_TOLERANCE * scale)
    offsetter.AddPaths(paths, pyclipper.JT_MITER, pyclipper.ET_CLOSEDPOLYGON)
    return from_clipper(offsetter.Execute(-distance * scale), scale)


def _boolean(subject: list[IntPath], clips: list[IntPath], clip_type) -> list[IntPath]:
    clipper = pyclipper.Pyclipper()
    added = 0
    for path in subject:
        added += _add_path(clipper, path, pyclipper.PT_SUBJECT)
    if not added:
        return []
    for path in clips:
        _add_path(clipper, path, pyclipper.PT_CLIP)
    solution = clipper.Execute(clip_type, pyclipper.PFT_NONZERO, pyclipper.PFT_NONZERO)
    return [[(int(x), int(y)) for x, y in path] for path in solution]


def _add_path(clipper, path: IntPath, poly_type) -> int:
    try:
        clipper.AddPath(path, poly_type, True)
    except pyclipper.ClipperException:
        # Collinear or zero-area rings carry no region.
        logger.debug("Skipping degenerate ring with %s points", len(path))
        return 0
    return 1


def _positive(path) -> IntPath:
    path = [(int(x), int(y)) for x, y in path]
    if not pyclipper.Orientation(path):
        path.reverse()
    return path


def _shift(path: IntPath, offset: Sequence[int]) -> IntPath:
    ox, oy = offset
    return [(x + ox, y + oy) for x, y in path]


def _rect(left: float, top: float, right: float, bottom: float) -> Ring:
    return [(left, top), (right, top), (right, bottom), (left, bottom)]
