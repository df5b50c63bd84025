"""Tests for the erosion-based anchor search."""
import numpy as np
import pytest
from shapely import affinity
from shapely.geometry import Point, Polygon, box

from core_location import compute_anchor, erode


class TestErode:

    def test_shrinks_by_step(self, rect_40x30):
        shrunk = erode(rect_40x30, 1.0)
        assert shrunk.bounds == pytest.approx((1.0, 1.0, 39.0, 29.0))

    def test_vanishes(self):
        assert erode(box(0, 0, 1, 1), 1.0) is None

    def test_keeps_largest_piece(self):
        # two rooms joined by a 1-unit corridor split apart on erosion
        dumbbell = Polygon([
            (0, 0), (20, 0), (20, 9.5), (30, 9.5), (30, 0), (40, 0),
            (40, 10), (30, 10), (30, 10.5), (20, 10.5), (20, 30), (0, 30),
        ])
        shrunk = erode(dumbbell, 1.0)
        assert shrunk is not None
        assert shrunk.bounds[2] < 20.0


class TestComputeAnchor:

    def test_rectangle_anchor_is_center(self, rect_40x30):
        anchor = compute_anchor(rect_40x30)
        assert anchor.converged
        assert anchor.point == pytest.approx((20.0, 15.0))
        assert np.abs(anchor.axis) == pytest.approx([1.0, 0.0])
        assert 0 < anchor.iterations < 1000

    def test_anchor_inside_l_shape(self, l_shape):
        anchor = compute_anchor(l_shape)
        assert l_shape.contains(Point(anchor.point))
        assert l_shape.exterior.distance(Point(anchor.point)) > 5.0

    def test_anchor_inside_u_shape(self, u_shape):
        wide_u = affinity.scale(u_shape, 10, 10, origin=(0, 0))
        anchor = compute_anchor(wide_u)
        assert not wide_u.contains(wide_u.centroid)
        assert wide_u.contains(Point(anchor.point))

    def test_axis_is_unit(self, l_shape):
        anchor = compute_anchor(l_shape)
        assert np.linalg.norm(anchor.axis) == pytest.approx(1.0)

    def test_iteration_cap(self, rect_40x30):
        anchor = compute_anchor(rect_40x30, max_iterations=3)
        assert not anchor.converged
        assert anchor.iterations == 3
        assert anchor.point == pytest.approx((20.0, 15.0))

    def test_tiny_polygon(self):
        anchor = compute_anchor(box(0, 0, 0.5, 0.5))
        assert anchor.converged
        assert anchor.iterations == 0
        assert anchor.point == pytest.approx((0.25, 0.25))
