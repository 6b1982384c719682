"""Geometry primitives: kernel, contour tracing, simplification, offsetting."""

from .contour import Contour, NoForegroundPixelError, trace_contour
from .kernel import Bounds, area, bounds, perimeter
from .offset import BinShape, KeepOut, Margins, build_bin_shape, offset_polygons
from .simplify import simplify_polygon

__all__ = [
    "BinShape",
    "Bounds",
    "Contour",
    "KeepOut",
    "Margins",
    "NoForegroundPixelError",
    "area",
    "bounds",
    "build_bin_shape",
    "offset_polygons",
    "perimeter",
    "simplify_polygon",
    "trace_contour",
]
