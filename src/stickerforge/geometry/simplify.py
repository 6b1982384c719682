from __future__ import annotations

"""Ramer-Douglas-Peucker polyline simplification."""

import math
from typing import Sequence, TypeVar

P = TypeVar("P", bound=Sequence[float])


def perpendicular_distance(point: Sequence[float], start: Sequence[float], end: Sequence[float]) -> float:
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    if dx == 0 and dy == 0:
        return math.hypot(point[0] - start[0], point[1] - start[1])
    numerator = abs(dy * point[0] - dx * point[1] + end[0] * start[1] - end[1] * start[0])
    return numerator / math.hypot(dx, dy)


def simplify_polygon(points: Sequence[P], epsilon: float = 1.0) -> list[P]:
    """Reduce ``points`` to the vertices needed to stay within ``epsilon``.

    Equivalent to the textbook recursion (split at the farthest interior
    point while it is farther than ``epsilon``, otherwise keep only the
    anchor endpoints), evaluated with an explicit stack so traced contours
    with tens of thousands of pixels do not exhaust the recursion limit.
    """
    points = list(points)
    if len(points) < 3:
        return points

    keep = [False] * len(points)
    keep[0] = True
    keep[-1] = True
    stack = [(0, len(points) - 1)]
    while stack:
        first, last = stack.pop()
        index = first
        dmax = 0.0
        for i in range(first + 1, last):
            d = perpendicular_distance(points[i], points[first], points[last])
            if d > dmax:
                index = i
                dmax = d
        if dmax > epsilon and index > first:
            keep[index] = True
            stack.append((index, last))
            stack.append((first, index))
    return [point for point, kept in zip(points, keep) if kept]
