from __future__ import annotations

import itertools

import pytest
from shapely.geometry import Point, box

from stickerforge.geometry.kernel import to_shapely
from stickerforge.geometry.offset import KeepOut, build_bin_shape
from stickerforge.pipeline.nesting import Placement, PlacementCandidate, _feasible_region, nest, rotation_steps


def _square(size: float) -> list[tuple[float, float]]:
    return [(0.0, 0.0), (size, 0.0), (size, size), (0.0, size)]


def _rect(width: float, height: float) -> list[tuple[float, float]]:
    return [(0.0, 0.0), (width, 0.0), (width, height), (0.0, height)]


def _placed_shapes(result, candidates):
    by_id = {c.design_id: c for c in candidates}
    return [to_shapely(p.apply(by_id[p.design_id].polygons)) for p in result.placements]


def test_four_squares_fill_the_sheet_with_spacing() -> None:
    candidates = [PlacementCandidate(f"sq{i}", [_square(40)]) for i in range(4)]
    bin_shape = build_bin_shape(100, 100)

    result = nest(candidates, bin_shape, spacing=2)

    assert result.unplaced == ()
    assert result.placed_ids == ("sq0", "sq1", "sq2", "sq3")
    assert result.placements[0] == Placement("sq0", 0.0, 0.0, 0.0)
    assert result.utilization == pytest.approx(0.64)

    bin_geom = to_shapely(bin_shape.polygons).buffer(0.05)
    shapes = _placed_shapes(result, candidates)
    for shape in shapes:
        assert bin_geom.covers(shape)
    for a, b in itertools.combinations(shapes, 2):
        assert not a.intersects(b)
        assert a.distance(b) >= 2 - 0.3


def test_second_part_goes_beside_the_first() -> None:
    candidates = [PlacementCandidate("a", [_square(40)]), PlacementCandidate("b", [_square(40)])]
    result = nest(candidates, build_bin_shape(100, 100), spacing=2)
    second = result.placements[1]
    assert (second.dx, second.dy) == pytest.approx((42.0, 0.0), abs=0.02)


def test_rotation_is_used_when_needed() -> None:
    candidates = [PlacementCandidate("strip", [_rect(90, 20)], rotations=(0.0, 90.0))]
    result = nest(candidates, build_bin_shape(30, 100))

    assert result.unplaced == ()
    placement = result.placements[0]
    assert placement.rotation_degrees == 90.0
    assert (placement.dx, placement.dy) == pytest.approx((20.0, 0.0), abs=0.02)
    shape = to_shapely(placement.apply([_rect(90, 20)]))
    assert to_shapely(build_bin_shape(30, 100).polygons).buffer(0.05).covers(shape)


def test_earlier_rotation_wins_ties() -> None:
    candidates = [PlacementCandidate("sq", [_square(20)], rotations=(0.0, 90.0, 180.0, 270.0))]
    result = nest(candidates, build_bin_shape(100, 100))
    assert result.placements[0].rotation_degrees == 0.0


def test_keep_out_pushes_part_aside() -> None:
    bin_shape = build_bin_shape(100, 100, keep_outs=[KeepOut(0, 0, 50, 50)])
    result = nest([PlacementCandidate("sq", [_square(40)])], bin_shape)
    placement = result.placements[0]
    assert (placement.dx, placement.dy) == pytest.approx((50.0, 0.0), abs=0.02)


def test_oversized_part_is_unplaced() -> None:
    candidates = [
        PlacementCandidate("huge", [_rect(200, 10)]),
        PlacementCandidate("ok", [_square(10)]),
    ]
    result = nest(candidates, build_bin_shape(100, 100))
    assert result.unplaced == ("huge",)
    assert result.placed_ids == ("ok",)


def test_degenerate_candidate_and_empty_bin_are_unplaced() -> None:
    flat = PlacementCandidate("flat", [[(0.0, 0.0), (10.0, 0.0)]])
    assert nest([flat], build_bin_shape(100, 100)).unplaced == ("flat",)

    result = nest([PlacementCandidate("sq", [_square(10)])], build_bin_shape(0, 100))
    assert result.unplaced == ("sq",)
    assert result.utilization == 0.0


def test_largest_footprint_is_placed_first() -> None:
    candidates = [
        PlacementCandidate("small", [_square(10)]),
        PlacementCandidate("big", [_square(50)]),
        PlacementCandidate("small2", [_square(10)]),
    ]
    result = nest(candidates, build_bin_shape(100, 100), spacing=1)
    assert result.placed_ids == ("big", "small", "small2")


def test_nesting_is_deterministic() -> None:
    candidates = [
        PlacementCandidate("tri", [[(0.0, 0.0), (30.0, 0.0), (0.0, 30.0)]], rotations=rotation_steps(4)),
        PlacementCandidate("sq", [_square(25)]),
        PlacementCandidate("bar", [_rect(60, 10)], rotations=(0.0, 90.0)),
    ]
    bin_shape = build_bin_shape(100, 80)
    assert nest(candidates, bin_shape, spacing=1) == nest(candidates, bin_shape, spacing=1)


def test_irregular_parts_do_not_overlap() -> None:
    ell = [(0.0, 0.0), (30.0, 0.0), (30.0, 10.0), (10.0, 10.0), (10.0, 30.0), (0.0, 30.0)]
    candidates = [PlacementCandidate(f"ell{i}", [ell], rotations=rotation_steps(4)) for i in range(5)]
    bin_shape = build_bin_shape(80, 80)

    result = nest(candidates, bin_shape)

    assert len(result.placements) + len(result.unplaced) == 5
    assert 0 < result.utilization <= 1
    bin_geom = to_shapely(bin_shape.polygons).buffer(0.05)
    shapes = _placed_shapes(result, candidates)
    for shape in shapes:
        assert bin_geom.covers(shape)
    for a, b in itertools.combinations(shapes, 2):
        assert a.intersection(b).area < 0.01


def test_multi_ring_candidate_keeps_pieces_together() -> None:
    pair = [_square(10), [(20.0, 0.0), (30.0, 0.0), (30.0, 10.0), (20.0, 10.0)]]
    bin_shape = build_bin_shape(100, 100, keep_outs=[KeepOut(0, 0, 100, 20)])
    result = nest([PlacementCandidate("pair", pair)], bin_shape)
    shape = to_shapely(result.placements[0].apply(pair))
    assert to_shapely(bin_shape.polygons).buffer(0.05).covers(shape)
    assert result.placements[0].dy == pytest.approx(20.0, abs=0.02)


def test_rotation_steps() -> None:
    assert rotation_steps(4) == (0.0, 90.0, 180.0, 270.0)
    assert rotation_steps(1) == (0.0,)
    assert rotation_steps(0) == (0.0,)


def test_exact_tiling_without_spacing() -> None:
    candidates = [PlacementCandidate(f"q{i}", [_square(50)]) for i in range(4)]
    result = nest(candidates, build_bin_shape(100, 100))

    assert result.unplaced == ()
    positions = [(p.dx, p.dy) for p in result.placements]
    assert positions == pytest.approx([(0.0, 0.0), (50.0, 0.0), (0.0, 50.0), (50.0, 50.0)], abs=1e-9)
    assert result.utilization == pytest.approx(1.0)


def test_part_spanning_the_full_sheet_height() -> None:
    result = nest([PlacementCandidate("s", [_rect(20, 100)])], build_bin_shape(100, 100))
    assert result.unplaced == ()
    assert (result.placements[0].dx, result.placements[0].dy) == pytest.approx((0.0, 0.0), abs=1e-9)


def test_exact_fit_with_spacing() -> None:
    candidates = [PlacementCandidate(f"h{i}", [_rect(49, 100)]) for i in range(2)]
    result = nest(candidates, build_bin_shape(100, 100), spacing=2)
    assert result.unplaced == ()
    assert result.placements[1].dx == pytest.approx(51.0, abs=0.02)


def test_interior_keep_out_is_never_enclosed() -> None:
    bin_shape = build_bin_shape(100, 100, keep_outs=[KeepOut(10, 10, 5, 5)])
    region = to_shapely(_feasible_region([_square(40)], bin_shape, [], 100))
    # Every reference position from (0, 0) to (15, 15) would swallow the keep-out.
    assert not region.intersects(box(0.5, 0.5, 14.5, 14.5))
    assert region.intersects(Point(15, 0))

    result = nest([PlacementCandidate("sq", [_square(40)])], bin_shape)
    assert (result.placements[0].dx, result.placements[0].dy) == pytest.approx((15.0, 0.0), abs=1e-9)
