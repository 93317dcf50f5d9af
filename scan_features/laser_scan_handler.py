"""
Range/Bearing Scan Conversion.

A planar range sensor reports one distance per beam, with beams evenly
spread between `angle_min` and `angle_max`. Feature extraction works on
Cartesian points in the sensor frame, so readings are projected here and
invalid returns (non-finite or outside the range limits) are discarded.
Surviving points keep sweep order, which the ordered clustering relies on.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

import numpy as np

from .primitives import PointCloud2D, PointsLike, as_point_array, to_point_cloud


@dataclass
class LaserScan:
    """One sweep of a planar range sensor."""
    ranges: Sequence[float]
    angle_min: float = -np.pi
    angle_max: float = np.pi
    range_min: float = 0.0
    range_max: float = float('inf')
    intensities: Sequence[float] = field(default_factory=list)

    def beam_angles(self) -> np.ndarray:
        """Bearing of every reading, first to last."""
        return np.linspace(self.angle_min, self.angle_max, len(self.ranges))

    def valid_mask(self) -> np.ndarray:
        readings = np.asarray(self.ranges, dtype=float)
        with np.errstate(invalid='ignore'):
            in_limits = (readings >= self.range_min) & (readings <= self.range_max)
        return in_limits & np.isfinite(readings)


class LaserScanHandler:
    """Projection of scans into the sensor plane and point filters."""

    @staticmethod
    def laserscan_to_cartesian(scan: LaserScan) -> Tuple[np.ndarray, np.ndarray]:
        """
        Project the valid readings of a scan to (x, y) in the sensor frame.

        Args:
            scan: Sweep to convert

        Returns:
            Tuple of (points, valid_indices): an (N, 2) array in sweep order
            and the index of the reading each point came from
        """
        mask = scan.valid_mask()
        beam_ranges = np.asarray(scan.ranges, dtype=float)[mask]
        bearings = scan.beam_angles()[mask]

        points = np.column_stack([
            beam_ranges * np.cos(bearings),
            beam_ranges * np.sin(bearings),
        ])
        return points, np.flatnonzero(mask)

    @staticmethod
    def laserscan_to_point_cloud(scan: LaserScan) -> PointCloud2D:
        """Valid readings of a scan as Point2D, in sweep order."""
        points, _ = LaserScanHandler.laserscan_to_cartesian(scan)
        return to_point_cloud(points)

    @staticmethod
    def get_intensities(
        scan: LaserScan,
        valid_indices: np.ndarray
    ) -> Optional[np.ndarray]:
        """
        Intensities matching the points from laserscan_to_cartesian.

        Returns None for scans without intensity data.
        """
        if len(scan.intensities) == 0:
            return None
        if len(scan.intensities) != len(scan.ranges):
            raise ValueError(
                f'Scan has {len(scan.ranges)} ranges but {len(scan.intensities)} intensities')
        return np.asarray(scan.intensities, dtype=float)[valid_indices]

    @staticmethod
    def cartesian_to_polar(points: PointsLike) -> Tuple[np.ndarray, np.ndarray]:
        """Distance from and bearing around the sensor origin of each point."""
        pts = as_point_array(points)
        return np.hypot(pts[:, 0], pts[:, 1]), np.arctan2(pts[:, 1], pts[:, 0])

    @staticmethod
    def filter_by_range(
        points: PointsLike,
        min_range: float = 0.0,
        max_range: float = float('inf')
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Keep points whose distance from the origin is within [min_range, max_range].

        Returns:
            Tuple of (kept points, their indices in the input)
        """
        pts = as_point_array(points)
        distances, _ = LaserScanHandler.cartesian_to_polar(pts)
        keep = np.flatnonzero((distances >= min_range) & (distances <= max_range))
        return pts[keep], keep

    @staticmethod
    def filter_by_angle(
        points: PointsLike,
        min_angle: float = -np.pi,
        max_angle: float = np.pi
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Keep points whose bearing lies in [min_angle, max_angle].

        A window with min_angle > max_angle wraps through +-pi, e.g.
        (3 * pi / 4, -3 * pi / 4) keeps the points behind the sensor.

        Returns:
            Tuple of (kept points, their indices in the input)
        """
        pts = as_point_array(points)
        _, bearings = LaserScanHandler.cartesian_to_polar(pts)
        if min_angle <= max_angle:
            inside = (bearings >= min_angle) & (bearings <= max_angle)
        else:
            inside = (bearings >= min_angle) | (bearings <= max_angle)
        keep = np.flatnonzero(inside)
        return pts[keep], keep
