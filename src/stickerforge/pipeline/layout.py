from __future__ import annotations

"""Presentation additions a renderer draws on top of a nested sheet."""

from dataclasses import dataclass
from datetime import datetime, timezone

from ..geometry.offset import BinShape
from .nesting import NestResult

Segment = tuple[tuple[float, float], tuple[float, float]]


@dataclass(frozen=True)
class TextAnnotation:
    x: float
    y: float
    text: str
    font_size: float = 12.0


@dataclass(frozen=True)
class LayoutAnnotations:
    markers: tuple[Segment, ...]
    labels: tuple[TextAnnotation, ...]


def alignment_markers(width: float, height: float, size: float = 20.0) -> tuple[Segment, ...]:
    # One crosshair inset by ``size`` from each sheet corner.
    half = size / 2.0
    centers = (
        (size, size),
        (width - size, size),
        (size, height - size),
        (width - size, height - size),
    )
    segments: list[Segment] = []
    for cx, cy in centers:
        segments.append(((cx, cy - half), (cx, cy + half)))
        segments.append(((cx - half, cy), (cx + half, cy)))
    return tuple(segments)


def job_label(order_count: int, height: float, timestamp: datetime | None = None) -> TextAnnotation:
    timestamp = timestamp or datetime.now(timezone.utc)
    return TextAnnotation(
        x=10.0,
        y=height - 10.0,
        text=f"Print Job: {timestamp.isoformat()} - {order_count} orders",
    )


def annotate(
    result: NestResult,
    bin_shape: BinShape,
    markers: bool = True,
    job_marking: bool = True,
    marker_size: float = 20.0,
    order_count: int | None = None,
    timestamp: datetime | None = None,
) -> LayoutAnnotations:
    marker_segments = alignment_markers(bin_shape.width, bin_shape.height, marker_size) if markers else ()
    labels: tuple[TextAnnotation, ...] = ()
    if job_marking:
        count = len(result.placements) if order_count is None else order_count
        labels = (job_label(count, bin_shape.height, timestamp),)
    return LayoutAnnotations(markers=marker_segments, labels=labels)
