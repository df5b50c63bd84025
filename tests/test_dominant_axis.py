"""Tests for the length-weighted dominant axis."""
import math

import numpy as np
import pytest
from shapely import affinity
from shapely.geometry import box

from dominant_axis import angle_buckets, dominant_axis, perpendicular, segment_angle
from geometry_primitives import polygon_segments


def _segment_at(angle_deg, length, origin=(0.0, 0.0)):
    theta = math.radians(angle_deg)
    x0, y0 = origin
    return ((x0, y0), (x0 + length * math.cos(theta), y0 + length * math.sin(theta)))


class TestSegmentAngle:

    def test_reverse_direction_is_same_orientation(self):
        assert segment_angle(((0, 0), (10, 0))) == pytest.approx(0.0)
        assert segment_angle(((10, 0), (0, 0))) == pytest.approx(0.0)

    def test_range(self):
        assert segment_angle(((0, 0), (0, 5))) == pytest.approx(90.0)
        assert segment_angle(((0, 5), (0, 0))) == pytest.approx(90.0)
        assert 0.0 <= segment_angle(((0, 0), (-1, -1))) < 180.0


class TestAngleBuckets:

    def test_duplicate_angles_counted_once(self):
        buckets = angle_buckets([((0, 0), (10, 0)), ((0, 5), (10, 5))])
        assert list(buckets) == [0]
        assert buckets[0].total_length == pytest.approx(20.0)
        assert buckets[0].angles == [0.0]

    def test_zero_length_segments_skipped(self):
        assert angle_buckets([((1, 1), (1, 1))]) == {}


class TestDominantAxis:

    def test_rectangle_long_side(self, rect_40x30):
        axis = dominant_axis(polygon_segments(rect_40x30))
        assert axis == pytest.approx([1.0, 0.0])

    def test_rotated_rectangle(self):
        rotated = affinity.rotate(box(0, 0, 40, 10), 30, origin=(0, 0))
        axis = dominant_axis(polygon_segments(rotated))
        theta = math.radians(30)
        assert axis == pytest.approx([math.cos(theta), math.sin(theta)], abs=1e-6)

    def test_unit_length(self, l_shape):
        axis = dominant_axis(polygon_segments(l_shape))
        assert np.linalg.norm(axis) == pytest.approx(1.0)

    def test_tie_goes_to_first_bucket(self):
        horizontal = ((0, 0), (10, 0))
        vertical = ((0, 0), (0, 10))
        assert dominant_axis([horizontal, vertical]) == pytest.approx([1.0, 0.0])
        assert dominant_axis([vertical, horizontal]) == pytest.approx([0.0, 1.0], abs=1e-12)

    def test_order_does_not_matter_without_ties(self):
        segments = [_segment_at(0, 5), _segment_at(60, 12), _segment_at(120, 3)]
        forward = dominant_axis(segments)
        backward = dominant_axis(list(reversed(segments)))
        assert forward == pytest.approx(backward)

    def test_uses_mean_of_raw_angles(self):
        segments = [
            _segment_at(10.2, 1.0),
            _segment_at(9.8, 1.0),
            _segment_at(45.0, 1.5),
        ]
        axis = dominant_axis(segments)
        theta = math.radians(10.0)
        assert axis == pytest.approx([math.cos(theta), math.sin(theta)], abs=1e-9)

    def test_empty_falls_back_to_x(self):
        assert dominant_axis([]) == pytest.approx([1.0, 0.0])


class TestPerpendicular:

    def test_quarter_turn_clockwise(self):
        assert perpendicular(np.array([1.0, 0.0])) == pytest.approx([0.0, -1.0])
        assert perpendicular(np.array([0.0, 1.0])) == pytest.approx([1.0, 0.0])
