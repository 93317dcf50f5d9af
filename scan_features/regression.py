"""
Least-Squares Line Regression.

Deterministic line fit over an index range of a point sequence. The
regression error it returns is what the piecewise segmentation engines
minimise.
"""

from typing import Optional, Tuple

import numpy as np

from .primitives import LineSegment2D, Point2D, PointsLike, as_point_array
from .utils import squared_dists_to_line


def fit_line_regression(
    points: PointsLike,
    start_index: int = 0,
    end_index: Optional[int] = None,
    is_ordered: bool = True
) -> Tuple[LineSegment2D, float]:
    """
    Fit a line segment to points[start_index..end_index] (inclusive).

    The regression direction is chosen from the dominant axis of the range
    (y on x for wide ranges, x on y for tall ones) so vertical lines do not
    blow up the slope. The fitted line is clipped to the first/last points
    of the range when `is_ordered`, otherwise to the range's bounding box.

    Args:
        points: Points of shape (N, 2) or a sequence of Point2D
        start_index: First index of the range
        end_index: Last index of the range (defaults to the last point)
        is_ordered: Whether the points are ordered along the line

    Returns:
        Tuple of (segment, error) where error is the sum of squared
        distances of the range's points to the segment. Degenerate ranges
        return an empty segment and 0.
    """
    pts = as_point_array(points)
    n_points = len(pts)
    if end_index is None:
        end_index = n_points - 1

    if n_points < 2 or start_index < 0 or start_index >= n_points \
            or end_index >= n_points or end_index <= start_index:
        return LineSegment2D(), 0.0

    span = pts[start_index:end_index + 1]
    mean_pt = span.mean(axis=0)

    if is_ordered:
        start_pt = span[0]
        end_pt = span[-1]
    else:
        start_pt = span.min(axis=0)
        end_pt = span.max(axis=0)

    diff = end_pt - start_pt
    swap_axis = abs(diff[0]) < abs(diff[1])

    centered = span - mean_pt
    numerator = float(np.sum(centered[:, 0] * centered[:, 1]))
    if not swap_axis:
        denominator = float(np.sum(centered[:, 0] ** 2))
    else:
        denominator = float(np.sum(centered[:, 1] ** 2))
    denominator = max(denominator, 1e-8)

    if not swap_axis:
        m = numerator / denominator
        c = mean_pt[1] - m * mean_pt[0]
        segment = LineSegment2D(
            Point2D(float(start_pt[0]), float(m * start_pt[0] + c)),
            Point2D(float(end_pt[0]), float(m * end_pt[0] + c)),
        )
    else:
        n = numerator / denominator
        d = mean_pt[0] - n * mean_pt[1]
        segment = LineSegment2D(
            Point2D(float(n * start_pt[1] + d), float(start_pt[1])),
            Point2D(float(n * end_pt[1] + d), float(end_pt[1])),
        )

    error = float(np.sum(squared_dists_to_line(
        span, segment.start.as_array(), segment.end.as_array(), is_segment=True)))
    return segment, error
