from __future__ import annotations

"""Raster boundary tracing: pixel mask -> closed outer contour."""

import logging
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

ALPHA_THRESHOLD = 128
WHITE_THRESHOLD = 250

# Image coordinates, y grows downward.
_NEIGHBORS = (
    (1, 0),  # E
    (1, -1),  # NE
    (0, -1),  # N
    (-1, -1),  # NW
    (-1, 0),  # W
    (-1, 1),  # SW
    (0, 1),  # S
    (1, 1),  # SE
)
_INITIAL_DIRECTION = 6


class NoForegroundPixelError(ValueError):
    """The image has no pixel that is both opaque and non-white."""


@dataclass(frozen=True)
class Contour:
    points: list[tuple[int, int]]
    closed: bool

    def __len__(self) -> int:
        return len(self.points)


def foreground_mask(image) -> np.ndarray:
    pixels = np.asarray(image)
    if pixels.ndim == 2:
        return pixels <= WHITE_THRESHOLD
    if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
        raise ValueError("image must be HxW, HxWx3 or HxWx4")
    rgb = pixels[:, :, :3]
    white = np.all(rgb > WHITE_THRESHOLD, axis=2)
    if pixels.shape[2] == 4:
        transparent = pixels[:, :, 3] < ALPHA_THRESHOLD
        return ~(transparent | white)
    return ~white


def trace_contour(image) -> Contour:
    """Moore-neighbour trace of the first foreground region in row-major order.

    ``image`` is either a pixel array (see :func:`foreground_mask`) or an
    already computed boolean mask. Only the region connected to the first
    foreground pixel is followed; other blobs are ignored.
    """
    mask = np.asarray(image)
    if mask.dtype != bool:
        mask = foreground_mask(mask)
    height, width = mask.shape

    hits = np.flatnonzero(mask)
    if hits.size == 0:
        raise NoForegroundPixelError("No foreground pixel found in image.")
    start_y, start_x = divmod(int(hits[0]), width)

    def is_foreground(x: int, y: int) -> bool:
        if x < 0 or y < 0 or x >= width or y >= height:
            return False
        return bool(mask[y, x])

    points: list[tuple[int, int]] = []
    current = (start_x, start_y)
    last_direction = _INITIAL_DIRECTION
    max_steps = 8 * width * height
    closed = False

    while True:
        points.append(current)
        direction = (last_direction + 5) % 8
        found = None
        for _ in range(8):
            dx, dy = _NEIGHBORS[direction]
            candidate = (current[0] + dx, current[1] + dy)
            if is_foreground(*candidate):
                found = candidate
                last_direction = direction
                break
            direction = (direction + 1) % 8
        if found is None:
            # Isolated pixel or a dead end; the contour stays open.
            break
        current = found
        if current == (start_x, start_y):
            closed = True
            break
        if len(points) >= max_steps:
            logger.warning("Contour trace stopped after %s steps without closing", max_steps)
            break

    logger.info("Traced contour: start=(%s, %s) points=%s closed=%s", start_x, start_y, len(points), closed)
    return Contour(points=points, closed=closed)


def has_transparent_border(image, samples: int = 10) -> bool:
    """Sample each image edge and report whether every sample is background."""
    mask = np.asarray(image)
    if mask.dtype != bool:
        mask = foreground_mask(mask)
    height, width = mask.shape
    if width == 0 or height == 0:
        return True
    step_x = max(1, width // samples)
    step_y = max(1, height // samples)
    for x in range(0, width, step_x):
        if mask[0, x] or mask[height - 1, x]:
            return False
    for y in range(0, height, step_y):
        if mask[y, 0] or mask[y, width - 1]:
            return False
    return True
