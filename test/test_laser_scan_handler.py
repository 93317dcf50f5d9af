"""
Unit tests for laser scan conversion and the synthetic scan generator.
"""

import numpy as np
import pytest

from scan_features.laser_scan_handler import LaserScan, LaserScanHandler
from scan_features.primitives import Point2D
from scan_features.synthetic import room_scan


class TestLaserScanHandler:
    """Tests for LaserScanHandler."""

    def test_laserscan_to_cartesian(self):
        scan = LaserScan(ranges=[1.0, 1.0, 1.0], angle_min=-np.pi / 2, angle_max=np.pi / 2)

        points, valid_indices = LaserScanHandler.laserscan_to_cartesian(scan)

        np.testing.assert_allclose(points, [[0.0, -1.0], [1.0, 0.0], [0.0, 1.0]], atol=1e-12)
        np.testing.assert_array_equal(valid_indices, [0, 1, 2])

    def test_invalid_ranges_are_dropped(self):
        scan = LaserScan(
            ranges=[1.0, float('inf'), 0.05, 20.0, float('nan'), 2.0],
            angle_min=0.0,
            angle_max=0.5,
            range_min=0.1,
            range_max=10.0,
        )

        points, valid_indices = LaserScanHandler.laserscan_to_cartesian(scan)

        np.testing.assert_array_equal(valid_indices, [0, 5])
        assert points.shape == (2, 2)
        assert np.hypot(*points[1]) == pytest.approx(2.0)

    def test_intensities(self):
        scan = LaserScan(ranges=[1.0, 0.0, 1.0], range_min=0.1, intensities=[10.0, 20.0, 30.0])
        _, valid_indices = LaserScanHandler.laserscan_to_cartesian(scan)

        np.testing.assert_array_equal(
            LaserScanHandler.get_intensities(scan, valid_indices), [10.0, 30.0])
        assert LaserScanHandler.get_intensities(LaserScan(ranges=[1.0]), np.array([0])) is None

    def test_cartesian_to_polar(self):
        ranges, angles = LaserScanHandler.cartesian_to_polar(np.array([[0.0, 2.0], [-1.0, 0.0]]))

        np.testing.assert_allclose(ranges, [2.0, 1.0])
        np.testing.assert_allclose(angles, [np.pi / 2, np.pi])

    def test_filter_by_range(self):
        points = np.array([[0.5, 0.0], [3.0, 4.0], [20.0, 0.0]])

        filtered, indices = LaserScanHandler.filter_by_range(points, 1.0, 10.0)

        np.testing.assert_array_equal(indices, [1])
        np.testing.assert_allclose(filtered, [[3.0, 4.0]])

    def test_filter_by_angle(self):
        points = np.array([[1.0, 0.0], [0.0, 1.0], [-1.0, 0.0], [0.0, -1.0]])

        filtered, indices = LaserScanHandler.filter_by_angle(points, 0.0, np.pi / 2)

        np.testing.assert_array_equal(indices, [0, 1])
        assert filtered.shape == (2, 2)

    def test_filter_by_angle_wraps_through_pi(self):
        points = np.array([[1.0, 0.0], [-1.0, 0.1], [-1.0, -0.1], [0.0, 1.0]])

        _, indices = LaserScanHandler.filter_by_angle(points, 3 * np.pi / 4, -3 * np.pi / 4)

        np.testing.assert_array_equal(indices, [1, 2])

    def test_point_cloud_keeps_sweep_order(self):
        scan = LaserScan(ranges=[1.0, 0.0, 2.0], angle_min=0.0, angle_max=np.pi, range_min=0.1)

        cloud = LaserScanHandler.laserscan_to_point_cloud(scan)

        assert cloud == [Point2D(1.0, 0.0), Point2D(-2.0, 0.0)]

    def test_mismatched_intensities(self):
        scan = LaserScan(ranges=[1.0, 1.0], intensities=[5.0])

        with pytest.raises(ValueError):
            LaserScanHandler.get_intensities(scan, np.array([0, 1]))


class TestRoomScan:
    """Tests for the synthetic room scan."""

    def test_readings_hit_the_walls(self):
        scan = room_scan(noise_level=0.0)

        points, valid_indices = LaserScanHandler.laserscan_to_cartesian(scan)

        assert len(valid_indices) == 360
        on_side = np.isclose(np.abs(points[:, 0]), 2.0)
        on_front = np.isclose(np.abs(points[:, 1]), 3.0)
        assert np.all(on_side | on_front)

    def test_outliers_are_invalid(self):
        scan = room_scan(outlier_ratio=0.1, rng=np.random.default_rng(0))

        _, valid_indices = LaserScanHandler.laserscan_to_cartesian(scan)

        assert len(valid_indices) == 324

    def test_same_generator_same_scan(self):
        a = room_scan(rng=np.random.default_rng(5))
        b = room_scan(rng=np.random.default_rng(5))

        assert a.ranges == b.ranges
