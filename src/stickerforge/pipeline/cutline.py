from __future__ import annotations

"""Design editing stages: vector/raster design -> cutline -> bounds.

Each stage takes an :class:`EditorState` and returns a new one. A stage that
fails raises before building anything, so the caller's previous state stays
the valid one.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, Sequence

from ..config import StickerConfig
from ..geometry.contour import NoForegroundPixelError, trace_contour
from ..geometry.kernel import Bounds, Point2D, PolygonSet, bounds, rotate, scale
from ..geometry.offset import clean_polygon, offset_polygons
from ..geometry.simplify import simplify_polygon

logger = logging.getLogger(__name__)

__all__ = [
    "EditorState",
    "NoForegroundPixelError",
    "UnusableOutlineError",
    "generate_cutline",
    "load_vector_design",
    "refresh",
    "resize_design",
    "rotate_design",
    "smart_cutline",
    "standard_resize",
]


class UnusableOutlineError(ValueError):
    """Tracing produced fewer than three usable vertices."""


@dataclass(frozen=True)
class EditorState:
    base_polygons: PolygonSet = field(default_factory=list)
    current_polygons: PolygonSet = field(default_factory=list)
    cutline: PolygonSet = field(default_factory=list)
    bounds: Bounds = field(default_factory=Bounds.zero)

    @property
    def is_empty(self) -> bool:
        return not self.current_polygons


def generate_cutline(polygons: Iterable[Sequence[Point2D]], offset: float, config: StickerConfig | None = None) -> PolygonSet:
    config = config or StickerConfig.from_dict({})
    return offset_polygons(polygons, offset, scale=config.clipper_scale, arc_tolerance=config.arc_tolerance)


def refresh(state: EditorState, config: StickerConfig) -> EditorState:
    if not state.current_polygons:
        return replace(state, cutline=[], bounds=Bounds.zero())
    cutline = generate_cutline(state.current_polygons, config.cutline_offset_px, config)
    cut_bounds = bounds(cutline)
    if cut_bounds.is_degenerate:
        logger.warning("Cutline bounds are degenerate: %s", cut_bounds)
    return replace(state, cutline=cutline, bounds=cut_bounds)


def load_vector_design(state: EditorState, polygons: Iterable[Sequence[Point2D]], config: StickerConfig) -> EditorState:
    shapes = [list(map(_as_point, ring)) for ring in polygons if len(ring) > 0]
    if not shapes:
        raise ValueError("No parsable shapes found in the design.")
    logger.info("Vector design loaded: %s shapes", len(shapes))
    return refresh(replace(state, base_polygons=shapes, current_polygons=shapes), config)


def smart_cutline(state: EditorState, image, config: StickerConfig) -> EditorState:
    contour = trace_contour(image)
    if len(contour) < 3:
        raise UnusableOutlineError("Could not find a distinct contour. Image may be empty or too complex.")
    points = [(float(x), float(y)) for x, y in contour.points]
    simplified = simplify_polygon(points, config.simplify_epsilon_px)
    cleaned = clean_polygon(simplified, config.clean_distance, config.clipper_scale)
    if len(cleaned) < 3:
        raise UnusableOutlineError("Could not detect a usable outline. Try an image with a transparent background.")
    logger.info(
        "Smart cutline: traced=%s simplified=%s cleaned=%s",
        len(points),
        len(simplified),
        len(cleaned),
    )
    return refresh(replace(state, base_polygons=[cleaned], current_polygons=[cleaned]), config)


def resize_design(state: EditorState, percentage: float, config: StickerConfig) -> EditorState:
    # Always from the base polygons so repeated resizes do not accumulate error.
    if not percentage or percentage <= 0 or not state.base_polygons:
        return state
    resized = scale(state.base_polygons, percentage / 100.0)
    return refresh(replace(state, current_polygons=resized), config)


def standard_resize(state: EditorState, target_inches: float, ppi: float, config: StickerConfig) -> EditorState:
    if not state.base_polygons or target_inches <= 0 or ppi <= 0:
        return state
    base = bounds(state.base_polygons)
    largest = max(base.width, base.height)
    if largest <= 0:
        return state
    percentage = (target_inches * ppi / largest) * 100.0
    logger.info("Standard resize to %s in at %s ppi: %.1f%%", target_inches, ppi, percentage)
    return resize_design(state, percentage, config)


def rotate_design(state: EditorState, degrees: float, config: StickerConfig) -> EditorState:
    if not state.current_polygons:
        return state
    current = bounds(state.current_polygons)
    center = (current.left + current.width / 2.0, current.top + current.height / 2.0)
    rotated = rotate(state.current_polygons, degrees, origin=center)
    return refresh(replace(state, current_polygons=rotated), config)


def _as_point(point) -> Point2D:
    if isinstance(point, dict):
        return float(point["x"]), float(point["y"])
    return float(point[0]), float(point[1])
