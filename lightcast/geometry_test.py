"""Tests for point/segment primitives and the intersection solver."""

from __future__ import annotations

import math

from lightcast.geometry import (
    RAY_LENGTH,
    distance_to,
    line_intersect,
    normalize_angle,
    ray,
    segment,
    segment_intersection,
)


class TestDistance:
    def test_three_four_five(self):
        assert distance_to((0.0, 0.0), (3.0, 4.0)) == 5.0

    def test_symmetric(self):
        a, b = (1.5, -2.0), (-7.25, 3.0)
        assert distance_to(a, b) == distance_to(b, a)

    def test_nan_propagates(self):
        assert math.isnan(distance_to((math.nan, 0.0), (1.0, 1.0)))


class TestNormalizeAngle:
    def test_in_range_unchanged(self):
        assert abs(normalize_angle(1.0) - 1.0) < 1e-12

    def test_wraps_above_pi(self):
        assert abs(normalize_angle(1.5 * math.pi) - (-0.5 * math.pi)) < 1e-12

    def test_minus_pi_maps_to_pi(self):
        assert normalize_angle(-math.pi) == math.pi

    def test_pi_stays_pi(self):
        assert normalize_angle(math.pi) == math.pi

    def test_full_turn_is_zero(self):
        assert abs(normalize_angle(2.0 * math.pi)) < 1e-12


class TestSegment:
    def test_direction_and_length(self):
        seg = segment((0.0, 0.0), (1.0, 1.0))
        assert seg.direction == math.atan2(1.0, 1.0)
        assert abs(seg.length - math.sqrt(2.0)) < 1e-12

    def test_zero_length_direction_is_zero(self):
        seg = segment((2.0, 3.0), (2.0, 3.0))
        assert seg.direction == 0.0
        assert seg.length == 0.0

    def test_direction_range(self):
        for p2 in [(-1.0, 0.0), (-1.0, -0.0), (0.0, -1.0), (1.0, 0.0)]:
            d = segment((0.0, 0.0), p2).direction
            assert -math.pi < d <= math.pi

    def test_negative_zero_heading_left_is_pi(self):
        assert segment((0.0, 0.0), (-1.0, -0.0)).direction == math.pi


class TestRay:
    def test_endpoint_at_ray_length(self):
        r = ray((0.0, 0.0), 0.0)
        assert r.end == (RAY_LENGTH, 0.0)
        assert r.start == (0.0, 0.0)

    def test_far_end_distance(self):
        r = ray((10.0, 20.0), 1.0)
        assert abs(distance_to(r.start, r.end) - RAY_LENGTH) < 1e-3

    def test_direction_is_normalized(self):
        r = ray((0.0, 0.0), 1.5 * math.pi)
        assert abs(r.direction - (-0.5 * math.pi)) < 1e-12

    def test_crosses_far_edge(self):
        r = ray((0.0, 0.0), 0.0)
        edge = segment((5.0, -5.0), (5.0, 5.0))
        hit = segment_intersection(r, edge)
        assert hit is not None
        assert abs(hit[0] - 5.0) < 1e-6
        assert abs(hit[1]) < 1e-9


class TestSegmentIntersection:
    def test_crossing(self):
        assert line_intersect(-1, 0, 1, 0, 0, -1, 0, 1) == (0.0, 0.0)

    def test_touching_endpoint_is_included(self):
        assert line_intersect(-1, 0, 0, 0, 0, 0, 0, 1) == (0.0, 0.0)

    def test_out_of_range(self):
        # Lines cross at (2, 0), beyond the end of the first segment
        assert line_intersect(0, 0, 1, 0, 2, -1, 2, 1) is None

    def test_parallel_returns_none(self):
        assert line_intersect(0, 0, 1, 0, 0, 1, 1, 1) is None

    def test_anti_parallel_returns_none(self):
        assert line_intersect(0, 0, 1, 0, 1, 1, 0, 1) is None

    def test_collinear_overlap_returns_none(self):
        assert line_intersect(0, 0, 2, 0, 1, 0, 3, 0) is None

    def test_zero_length_returns_none(self):
        assert line_intersect(1, 1, 1, 1, 0, 0, 2, 2) is None

    def test_parallel_offset_segments_never_hit(self):
        for offset in (0.001, 1.0, 250.0):
            a = segment((0.0, 0.0), (10.0, 0.0))
            b = segment((0.0, offset), (10.0, offset))
            assert segment_intersection(a, b) is None
            assert segment_intersection(b, a) is None

    def test_parallel_diagonal_never_hit(self):
        a = segment((0.0, 0.0), (10.0, 10.0))
        b = segment((0.0, 5.0), (10.0, 15.0))
        assert segment_intersection(a, b) is None

    def test_symmetric_exact(self):
        a = segment((0.0, 0.0), (4.0, 4.0))
        b = segment((0.0, 4.0), (4.0, 0.0))
        assert segment_intersection(a, b) == (2.0, 2.0)
        assert segment_intersection(b, a) == (2.0, 2.0)

    def test_symmetric_general(self):
        a = segment((0.0, 0.0), (10.0, 3.0))
        b = segment((2.0, -5.0), (3.0, 7.0))
        ab = segment_intersection(a, b)
        ba = segment_intersection(b, a)
        assert ab is not None and ba is not None
        assert abs(ab[0] - ba[0]) < 1e-9
        assert abs(ab[1] - ba[1]) < 1e-9

    def test_symmetric_miss(self):
        a = segment((0.0, 0.0), (1.0, 0.0))
        b = segment((5.0, -1.0), (5.0, 1.0))
        assert segment_intersection(a, b) is None
        assert segment_intersection(b, a) is None
