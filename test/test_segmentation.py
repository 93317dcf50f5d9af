"""
Unit tests for piecewise line segmentation.
"""

import numpy as np
import pytest

from scan_features.primitives import LineSegment2D, Point2D
from scan_features.segmentation import (
    apply_piecewise_regression,
    apply_piecewise_regression_split,
    fit_line_segments_ransac,
)
from scan_features.synthetic import line_points


class TestSplitSegmentation:
    """Tests for top-down split segmentation."""

    def test_l_shape_splits_at_corner(self, l_shape_points):
        segments = apply_piecewise_regression_split(l_shape_points, 0.1)

        assert segments == [
            LineSegment2D(Point2D(0.0, 0.0), Point2D(2.0, 0.0)),
            LineSegment2D(Point2D(2.0, 0.1), Point2D(2.0, 2.0)),
        ]

    def test_single_line(self, rng):
        points = line_points((0.0, 0.0), (3.0, 3.0), 30, noise_level=0.005, rng=rng)

        segments = apply_piecewise_regression_split(points, 0.1)

        assert len(segments) == 1
        assert segments[0].start.dist_to(Point2D(0.0, 0.0)) < 0.05
        assert segments[0].end.dist_to(Point2D(3.0, 3.0)) < 0.05

    def test_three_walls(self):
        points = np.vstack([
            line_points((0.0, 0.0), (2.0, 0.0), 21),
            line_points((2.0, 0.0), (2.0, 2.0), 21)[1:],
            line_points((2.0, 2.0), (0.0, 2.0), 21)[1:],
        ])

        segments = apply_piecewise_regression_split(points, 0.1)

        assert len(segments) == 3
        assert sum(s.length() for s in segments) == pytest.approx(5.8, abs=0.01)

    def test_single_point_ranges_are_dropped(self):
        # the first split is at (5, 3), which leaves (6, 0) alone in its own range
        points = [Point2D(0, 0), Point2D(1, 0), Point2D(2, 0), Point2D(3, 0),
                  Point2D(4, 0), Point2D(5, 3), Point2D(6, 0)]

        segments = apply_piecewise_regression_split(points, 0.1)

        assert segments == [LineSegment2D(Point2D(0, 0), Point2D(4, 0))]
        assert all(not s.is_degenerate() for s in segments)

    def test_too_few_points(self):
        assert apply_piecewise_regression_split([]) == []
        assert apply_piecewise_regression_split([Point2D(1, 1)]) == []

    def test_negative_threshold(self, l_shape_points):
        with pytest.raises(ValueError):
            apply_piecewise_regression_split(l_shape_points, -1.0)


class TestMergeSegmentation:
    """Tests for bottom-up merge segmentation."""

    def test_l_shape_merges_each_leg(self, l_shape_points):
        segments = apply_piecewise_regression(l_shape_points, 0.1)

        assert segments == [
            LineSegment2D(Point2D(0.0, 0.0), Point2D(1.9, 0.0)),
            LineSegment2D(Point2D(2.0, 0.0), Point2D(2.0, 2.0)),
        ]

    def test_single_line(self):
        points = line_points((0.0, 0.0), (4.0, 0.0), 41)

        segments = apply_piecewise_regression(points, 0.1)

        assert segments == [LineSegment2D(Point2D(0.0, 0.0), Point2D(4.0, 0.0))]

    def test_odd_count_keeps_every_point(self):
        points = [Point2D(0, 0), Point2D(1, 0), Point2D(2, 0)]

        segments = apply_piecewise_regression(points, 0.1)

        assert segments == [LineSegment2D(Point2D(0, 0), Point2D(2, 0))]

    def test_zero_threshold_keeps_pairs(self):
        points = [Point2D(0, 0), Point2D(1, 1), Point2D(2, 0), Point2D(3, 1)]

        segments = apply_piecewise_regression(points, 0.0)

        assert len(segments) == 2

    def test_too_few_points(self):
        assert apply_piecewise_regression([Point2D(1, 1)]) == []


class TestRansacSegmentation:
    """Tests for RANSAC-score split segmentation."""

    def test_l_shape(self, l_shape_points):
        segments = fit_line_segments_ransac(l_shape_points, score_threshold=0.9, delta=0.05,
                                            itr_limit=50, rng=np.random.default_rng(4))

        assert segments == [
            LineSegment2D(Point2D(0.0, 0.0), Point2D(2.0, 0.0)),
            LineSegment2D(Point2D(2.0, 0.1), Point2D(2.0, 2.0)),
        ]

    def test_single_line(self):
        points = line_points((0.0, 1.0), (5.0, 1.0), 20)

        segments = fit_line_segments_ransac(points, rng=np.random.default_rng(0))

        assert segments == [LineSegment2D(Point2D(0.0, 1.0), Point2D(5.0, 1.0))]

    def test_too_few_points(self):
        assert fit_line_segments_ransac([Point2D(1, 1)]) == []

    def test_stray_point_does_not_stop_splitting(self, l_shape_points):
        points = np.vstack([l_shape_points, [[10.0, 10.0], [0.0, 0.05]]])

        segments = fit_line_segments_ransac(points, score_threshold=0.9, delta=0.05,
                                            itr_limit=50, rng=np.random.default_rng(4))

        assert segments == [
            LineSegment2D(Point2D(0.0, 0.0), Point2D(2.0, 0.0)),
            LineSegment2D(Point2D(2.0, 0.1), Point2D(2.0, 2.0)),
        ]
