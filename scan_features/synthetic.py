"""
Synthetic Scan Data.

Generates noisy scans and point sets with known geometry, for tests and for
the command-line demo.
"""

from typing import Optional, Tuple

import numpy as np

from .laser_scan_handler import LaserScan


def room_scan(
    half_width: float = 2.0,
    half_length: float = 3.0,
    num_readings: int = 360,
    noise_level: float = 0.01,
    outlier_ratio: float = 0.0,
    range_min: float = 0.1,
    range_max: float = 10.0,
    rng: Optional[np.random.Generator] = None
) -> LaserScan:
    """
    Render a rectangular room around the sensor as a 360 degree scan.

    Walls lie at x = +-half_width and y = +-half_length. Outliers are
    readings replaced by values below range_min (invalid returns).

    Args:
        half_width: Distance from the sensor to the side walls
        half_length: Distance from the sensor to the front/back walls
        num_readings: Number of beams over [-pi, pi)
        noise_level: Standard deviation of Gaussian range noise
        outlier_ratio: Fraction of readings replaced by invalid values
        range_min: Minimum valid range
        range_max: Maximum valid range
        rng: Random generator for noise and outliers

    Returns:
        LaserScan with evenly spaced readings
    """
    rng = rng if rng is not None else np.random.default_rng(42)

    angle_max = np.pi - 2 * np.pi / num_readings
    angles = np.linspace(-np.pi, angle_max, num_readings)
    cos_a = np.cos(angles)
    sin_a = np.sin(angles)

    # Distance along each beam to the side and front/back walls
    with np.errstate(divide='ignore'):
        to_side = np.where(np.abs(cos_a) > 1e-9, half_width / np.abs(cos_a), np.inf)
        to_front = np.where(np.abs(sin_a) > 1e-9, half_length / np.abs(sin_a), np.inf)
    ranges = np.minimum(to_side, to_front)

    # Add noise
    ranges = ranges + rng.normal(0, noise_level, num_readings)

    # Clip to valid range
    ranges = np.clip(ranges, range_min, range_max)

    # Add some outliers (invalid readings)
    n_outliers = int(num_readings * outlier_ratio)
    if n_outliers > 0:
        outlier_indices = rng.choice(num_readings, n_outliers, replace=False)
        ranges[outlier_indices] = rng.uniform(0, range_min, n_outliers) * 0.5

    return LaserScan(
        ranges=ranges.tolist(),
        angle_min=-np.pi,
        angle_max=angle_max,
        range_min=range_min,
        range_max=range_max,
    )


def line_points(
    start: Tuple[float, float],
    end: Tuple[float, float],
    n_points: int = 50,
    noise_level: float = 0.0,
    rng: Optional[np.random.Generator] = None
) -> np.ndarray:
    """Evenly spaced points from start to end with Gaussian noise."""
    rng = rng if rng is not None else np.random.default_rng(42)
    t = np.linspace(0.0, 1.0, n_points)[:, None]
    points = np.asarray(start, dtype=float) + t * (np.asarray(end, dtype=float) - start)
    if noise_level > 0:
        points = points + rng.normal(0, noise_level, points.shape)
    return points


def circle_points(
    center: Tuple[float, float],
    radius: float,
    n_points: int = 50,
    start_angle: float = 0.0,
    end_angle: float = 2 * np.pi,
    noise_level: float = 0.0,
    rng: Optional[np.random.Generator] = None
) -> np.ndarray:
    """Points on a circular arc with Gaussian noise."""
    rng = rng if rng is not None else np.random.default_rng(42)
    angles = np.linspace(start_angle, end_angle, n_points, endpoint=False)
    points = np.column_stack([
        center[0] + radius * np.cos(angles),
        center[1] + radius * np.sin(angles),
    ])
    if noise_level > 0:
        points = points + rng.normal(0, noise_level, points.shape)
    return points
