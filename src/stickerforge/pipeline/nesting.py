from __future__ import annotations

"""Greedy bottom-left nesting of cut designs on a sheet.

For every candidate and allowed rotation the set of feasible reference
positions is built with Minkowski sums (inner-fit region against the bin
and its keep-out holes, no-fit polygons against the parts already placed).
The blocked regions are shrunk by one Clipper unit so touching contacts keep
a sliver of area. Vertices of that region are snapped back onto the grid and
checked with shapely, lowest then left-most first. One deterministic pass
over the candidates; whatever does not fit is reported as unplaced.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from shapely.geometry.base import BaseGeometry

from ..geometry.kernel import Bounds, Point2D, PolygonSet, area, bounds, rotate, to_shapely, transform, translate
from ..geometry.offset import (
    DEFAULT_ARC_TOLERANCE,
    DEFAULT_SCALE,
    BinShape,
    boundary_sweep,
    difference_polygons,
    erode_polygons,
    intersect_polygons,
    minkowski_sum,
    offset_polygons,
    outer_rings,
    union_polygons,
)

logger = logging.getLogger(__name__)

MAX_VERIFIED_POSITIONS = 64
CONTACT_EPSILON = 1e-6


@dataclass(frozen=True)
class PlacementCandidate:
    design_id: str
    polygons: PolygonSet
    rotations: tuple[float, ...] = (0.0,)


@dataclass(frozen=True)
class Placement:
    design_id: str
    dx: float
    dy: float
    rotation_degrees: float

    def apply(self, polygons: Iterable[Sequence[Point2D]]) -> PolygonSet:
        return transform(polygons, self.dx, self.dy, self.rotation_degrees)


@dataclass(frozen=True)
class NestResult:
    placements: tuple[Placement, ...]
    unplaced: tuple[str, ...]
    utilization: float = 0.0

    @property
    def placed_ids(self) -> tuple[str, ...]:
        return tuple(p.design_id for p in self.placements)


@dataclass(frozen=True)
class _Option:
    dx: float
    dy: float
    rotation: float
    score: tuple[float, float]
    outline: PolygonSet


@dataclass(frozen=True)
class _Clearance:
    # Sheet geometry grown by ``slack``; ``slack`` also bounds overlap area
    # (no spacing) or the spacing shortfall between parts.
    bin_geom: BaseGeometry
    slack: float


def rotation_steps(count: int) -> tuple[float, ...]:
    if count < 1:
        return (0.0,)
    return tuple(360.0 * i / count for i in range(count))


def nest(
    candidates: Iterable[PlacementCandidate],
    bin_shape: BinShape,
    spacing: float = 0.0,
    scale: float = DEFAULT_SCALE,
) -> NestResult:
    candidates = list(candidates)
    # Stable sort: equal footprints keep their submission order.
    ordered = sorted(candidates, key=lambda c: -_footprint(c.polygons))
    bin_geom = to_shapely(bin_shape.polygons)
    tolerance = 2.0 / scale
    # Round joins are chords inside the true arc; the spacing check allows for it.
    arc_tolerance = min(DEFAULT_ARC_TOLERANCE, spacing / 4.0) if spacing > 0 else DEFAULT_ARC_TOLERANCE
    spacing_slack = arc_tolerance + tolerance
    checks = (
        _Clearance(bin_geom.buffer(CONTACT_EPSILON), CONTACT_EPSILON),
        _Clearance(bin_geom.buffer(tolerance), spacing_slack if spacing > 0 else tolerance),
    )

    placements: list[Placement] = []
    unplaced: list[str] = []
    placed_outlines: list[PolygonSet] = []
    obstacles: list[PolygonSet] = []
    placed_area = 0.0

    logger.info(
        "Nesting %s candidates on %sx%s sheet (spacing=%s)",
        len(ordered),
        bin_shape.width,
        bin_shape.height,
        spacing,
    )
    for index, candidate in enumerate(ordered, start=1):
        outline = outer_rings(candidate.polygons, scale)
        if bin_shape.is_empty or not outline or bounds(outline).is_degenerate:
            logger.warning("[%s/%s] %s has no placeable geometry", index, len(ordered), candidate.design_id)
            unplaced.append(candidate.design_id)
            continue

        best: _Option | None = None
        for rotation in candidate.rotations or (0.0,):
            option = _best_for_rotation(
                outline, rotation, bin_shape, obstacles, placed_outlines, spacing, scale, checks
            )
            if option is None:
                logger.debug("  %s rotation %s: no feasible position", candidate.design_id, rotation)
                continue
            logger.debug("  %s rotation %s: score=%s", candidate.design_id, rotation, option.score)
            if best is None or option.score < best.score:
                best = option

        if best is None:
            logger.info("[%s/%s] %s: unplaced", index, len(ordered), candidate.design_id)
            unplaced.append(candidate.design_id)
            continue

        placement = Placement(
            design_id=candidate.design_id,
            dx=best.dx,
            dy=best.dy,
            rotation_degrees=best.rotation,
        )
        placements.append(placement)
        placed_outlines.append(best.outline)
        if spacing > 0:
            obstacles.append(
                outer_rings(offset_polygons(best.outline, spacing, scale=scale, arc_tolerance=arc_tolerance), scale)
            )
        else:
            obstacles.append(best.outline)
        placed_area += to_shapely(best.outline).area
        logger.info(
            "[%s/%s] %s: dx=%.2f dy=%.2f rotation=%s",
            index,
            len(ordered),
            candidate.design_id,
            placement.dx,
            placement.dy,
            placement.rotation_degrees,
        )

    utilization = placed_area / bin_shape.area if bin_shape.area > 0 else 0.0
    logger.info("Nesting done: placed=%s unplaced=%s utilization=%.3f", len(placements), len(unplaced), utilization)
    return NestResult(placements=tuple(placements), unplaced=tuple(unplaced), utilization=utilization)


def _best_for_rotation(
    outline: PolygonSet,
    rotation: float,
    bin_shape: BinShape,
    obstacles: list[PolygonSet],
    placed_outlines: list[PolygonSet],
    spacing: float,
    scale: float,
    checks: tuple[_Clearance, ...],
) -> _Option | None:
    part = rotate(outline, rotation)
    feasible = _feasible_region(part, bin_shape, obstacles, scale)
    if not feasible:
        return None

    part_bounds = bounds(part)
    vertices = sorted(
        {(int(round(x * scale)), int(round(y * scale))) for ring in feasible for x, y in ring},
        key=lambda p: (p[1], p[0]),
    )
    placed_geoms = [to_shapely(other) for other in placed_outlines]
    for ux, uy in vertices[:MAX_VERIFIED_POSITIONS]:
        # The region was grown by one unit; the contact itself is a grid
        # neighbour of the vertex.
        nudged = [
            ((ux + i) / scale, (uy + j) / scale) for j in (-1, 0, 1) for i in (-1, 0, 1)
        ]
        moved = [translate(part, dx, dy) for dx, dy in nudged]
        for clearance in checks:
            for (dx, dy), candidate in zip(nudged, moved):
                if _fits(candidate, clearance, placed_geoms, spacing):
                    return _Option(
                        dx=dx,
                        dy=dy,
                        rotation=rotation,
                        score=(dy + part_bounds.top, dx + part_bounds.left),
                        outline=candidate,
                    )
    return None


def _feasible_region(part: PolygonSet, bin_shape: BinShape, obstacles: list[PolygonSet], scale: float) -> PolygonSet:
    # Each disjoint piece of the part is constrained separately; the sums
    # below are only exact for connected operands.
    holes = [ring for ring in bin_shape.polygons if area(ring) < 0]
    feasible: PolygonSet | None = None
    for piece in part:
        reflected = [(-x, -y) for x, y in piece]
        anchor_x, anchor_y = piece[0]
        blocked = boundary_sweep(reflected, bin_shape.polygons, scale)
        # A part may not swallow a keep-out whole either.
        for hole in holes:
            blocked.extend(minkowski_sum(reflected, hole, scale))
        for obstacle in obstacles:
            for ring in obstacle:
                blocked.extend(minkowski_sum(reflected, ring, scale))
        blocked = erode_polygons(union_polygons(blocked, scale), 1.0 / scale, scale)
        region = difference_polygons(translate(bin_shape.polygons, -anchor_x, -anchor_y), blocked, scale)
        feasible = region if feasible is None else intersect_polygons(feasible, region, scale)
        if not feasible:
            return []
    return feasible or []


def _fits(moved: PolygonSet, clearance: _Clearance, placed_geoms: list[BaseGeometry], spacing: float) -> bool:
    geom = to_shapely(moved)
    if not clearance.bin_geom.covers(geom):
        return False
    for other in placed_geoms:
        if spacing > 0:
            if geom.distance(other) < spacing - clearance.slack:
                return False
        elif geom.intersection(other).area > clearance.slack * max(geom.length, 1.0):
            return False
    return True


def _footprint(polygons: PolygonSet) -> float:
    box: Bounds = bounds(polygons)
    return max(box.width, 0.0) * max(box.height, 0.0)
