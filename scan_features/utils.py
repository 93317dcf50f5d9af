"""
Utility functions for scan feature extraction.

Free geometric helpers shared by the fitting stages: angle arithmetic,
point-to-line projection and distances, and mean/closest point queries
written once for both Point2D and Point3D.
"""

import math
from typing import Sequence, TypeVar

import numpy as np

from .primitives import Point2D, Point3D

TPoint = TypeVar('TPoint', Point2D, Point3D)


def clip(value: float, max_limit: float, min_limit: float) -> float:
    """Clip value into [min_limit, max_limit]."""
    return max(min(value, max_limit), min_limit)


def calc_shortest_angle(angle1: float, angle2: float) -> float:
    """
    Signed shortest angular difference angle1 - angle2, wrapped to [-pi, pi].
    """
    diff = angle1 - angle2
    return math.atan2(math.sin(diff), math.cos(diff))


def calc_mean_point(
    points: Sequence[TPoint],
    start_index: int = 0,
    end_index: int = None
) -> TPoint:
    """
    Mean of points[start_index..end_index] (inclusive).

    Works for any point type supporting + and scalar /.
    """
    if end_index is None:
        end_index = len(points) - 1
    total = points[start_index]
    for i in range(start_index + 1, end_index + 1):
        total = total + points[i]
    return total / float(end_index - start_index + 1)


def calc_closest_point(points: Sequence[TPoint], point: TPoint) -> TPoint:
    """Return the member of points closest to point."""
    return min(points, key=point.squared_dist_to)


def calc_projected_point_on_segment(
    line_start: Point2D,
    line_end: Point2D,
    p: Point2D,
    is_segment: bool = True
) -> Point2D:
    """
    Orthogonal projection of p onto the line through line_start/line_end.

    Args:
        line_start: First point of the line
        line_end: Second point of the line
        p: Point to project
        is_segment: Clip the projection to the segment endpoints

    Returns:
        Projected point (line_start if the line is degenerate)
    """
    length_sq = line_start.squared_dist_to(line_end)
    if length_sq < 1e-10:
        return line_start
    line_vec = line_end - line_start
    t = (p - line_start).dot(line_vec) / length_sq
    if is_segment:
        t = clip(t, 1.0, 0.0)
    return line_start + line_vec * t


def calc_projected_point_on_major_axis(m: float, c: float, p: Point2D) -> Point2D:
    """
    Project p onto y = m*x + c along the line's major axis.

    For shallow lines (|m| < 1) x is kept, otherwise y is kept, so steep
    lines never divide by a near-zero slope.
    """
    if abs(m) < 1.0:
        return Point2D(p.x, m * p.x + c)
    return Point2D((p.y - c) / m, p.y)


def squared_dists_to_line(
    points: np.ndarray,
    line_start: np.ndarray,
    line_end: np.ndarray,
    is_segment: bool = False
) -> np.ndarray:
    """
    Vectorised squared distances from points to a line (or segment).

    Args:
        points: Array of shape (N, 2)
        line_start: First point of the line [x, y]
        line_end: Second point of the line [x, y]
        is_segment: Clip projections to the segment endpoints

    Returns:
        Array of shape (N,)
    """
    line_vec = line_end - line_start
    length_sq = float(np.dot(line_vec, line_vec))
    rel = points - line_start
    if length_sq < 1e-10:
        return np.sum(rel ** 2, axis=1)
    t = rel @ line_vec / length_sq
    if is_segment:
        t = np.clip(t, 0.0, 1.0)
    diff = rel - np.outer(t, line_vec)
    return np.sum(diff ** 2, axis=1)
