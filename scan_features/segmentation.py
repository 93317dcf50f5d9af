"""
Piecewise Line Segmentation.

Partitions an ordered point sequence into sub-ranges that are each well
approximated by one line:
- apply_piecewise_regression: bottom-up, merges the adjacent pair of ranges
  with the lowest merged regression error
- apply_piecewise_regression_split: top-down, splits the range with the
  highest regression error at its farthest point
- fit_line_segments_ransac: top-down, splits the range with the lowest
  RANSAC score

Ranges are index spans over one immutable point array.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from .primitives import LineSegment2D, PointsLike, as_point_array
from .ransac_core import RANSACLine2D
from .regression import fit_line_regression
from .utils import squared_dists_to_line

logger = logging.getLogger(__name__)


@dataclass
class _Span:
    """Inclusive index range with its current fit."""
    start: int
    end: int
    segment: LineSegment2D = field(default_factory=LineSegment2D)
    value: float = 0.0  # regression error or RANSAC score

    def size(self) -> int:
        return self.end - self.start + 1


def _find_split_index(pts: np.ndarray, span: _Span) -> int:
    """
    Interior point of the span farthest from the chord joining its ends.

    Returns span.start when no interior point lies off the chord.
    """
    interior = pts[span.start + 1:span.end]
    if len(interior) == 0:
        return span.start
    dist_sq = squared_dists_to_line(interior, pts[span.start], pts[span.end], is_segment=True)
    best = int(np.argmax(dist_sq))
    if dist_sq[best] <= 0.0:
        return span.start
    return span.start + 1 + best


def _split(pts: np.ndarray, span: _Span) -> List[_Span]:
    split_index = _find_split_index(pts, span)
    logger.debug(f'Splitting [{span.start}, {span.end}] at {split_index}')
    return [_Span(span.start, split_index), _Span(split_index + 1, span.end)]


def apply_piecewise_regression(
    points: PointsLike,
    error_threshold: float = 0.1
) -> List[LineSegment2D]:
    """
    Segment ordered points by greedy bottom-up merging.

    Starts from pairs of adjacent points (the last range takes three points
    when the count is odd) and keeps merging the adjacent pair whose merged
    regression error is lowest, until that error exceeds `error_threshold`.

    Args:
        points: Ordered points, shape (N, 2) or sequence of Point2D
        error_threshold: Maximum regression error of a merged range

    Returns:
        One regression segment per final range
    """
    if error_threshold < 0:
        raise ValueError(f'error_threshold must be >= 0, got {error_threshold}')
    pts = as_point_array(points)
    n_points = len(pts)
    if n_points < 2:
        return []

    spans = []
    for i in range(n_points // 2):
        end = 2 * i + 1
        if 2 * i + 3 >= n_points:
            end = n_points - 1
        spans.append(_Span(2 * i, end))

    def merge_error(left: _Span, right: _Span) -> float:
        return fit_line_regression(pts, left.start, right.end, is_ordered=True)[1]

    # errors[i] is the error of merging spans[i] and spans[i + 1]
    errors = [merge_error(spans[i], spans[i + 1]) for i in range(len(spans) - 1)]

    while len(spans) > 1:
        i = int(np.argmin(errors))
        if errors[i] > error_threshold:
            break

        spans[i].end = spans[i + 1].end
        del spans[i + 1]

        if i > 0:
            errors[i - 1] = merge_error(spans[i - 1], spans[i])
        if i < len(spans) - 1:
            errors[i + 1] = merge_error(spans[i], spans[i + 1])
        del errors[i]

    logger.debug(f'Merge segmentation: {n_points} points -> {len(spans)} segments')
    return [fit_line_regression(pts, s.start, s.end, is_ordered=True)[0] for s in spans]


def apply_piecewise_regression_split(
    points: PointsLike,
    error_threshold: float = 0.1
) -> List[LineSegment2D]:
    """
    Segment ordered points by greedy top-down splitting.

    Starts from one range over all points. While the range with the highest
    regression error is at or above `error_threshold`, it is split at the
    interior point farthest from the chord through its first and last
    points. Splitting stops early when that range has fewer than 4 points.

    Args:
        points: Ordered points, shape (N, 2) or sequence of Point2D
        error_threshold: Regression error below which a range is accepted

    Returns:
        Regression segments of all ranges spanning more than one point
    """
    if error_threshold < 0:
        raise ValueError(f'error_threshold must be >= 0, got {error_threshold}')
    pts = as_point_array(points)
    n_points = len(pts)
    if n_points < 2:
        return []

    def refit(span: _Span) -> _Span:
        span.segment, span.value = fit_line_regression(pts, span.start, span.end, is_ordered=True)
        return span

    spans = [refit(_Span(0, n_points - 1))]
    if spans[0].value < error_threshold:
        return [spans[0].segment]

    while True:
        i = int(np.argmax([s.value for s in spans]))
        worst = spans[i]
        if worst.value < error_threshold:
            break
        if worst.end - worst.start < 3:
            break
        spans[i:i + 1] = [refit(s) for s in _split(pts, worst)]

    logger.debug(f'Split segmentation: {n_points} points -> {len(spans)} ranges')
    return [s.segment for s in spans if s.start != s.end]


def fit_line_segments_ransac(
    points: PointsLike,
    score_threshold: float = 0.9,
    delta: float = 0.2,
    itr_limit: int = 10,
    rng: Optional[np.random.Generator] = None
) -> List[LineSegment2D]:
    """
    Segment ordered points by top-down splitting on RANSAC scores.

    Like apply_piecewise_regression_split, but a range is accepted once the
    inlier ratio of its RANSAC segment exceeds `score_threshold`, and the
    range with the lowest score is split first. Ranges of fewer than 4
    points cannot be split and are never picked, so a single stray point
    split off the end of a range does not stop the others from splitting.

    Args:
        points: Ordered points, shape (N, 2) or sequence of Point2D
        score_threshold: Inlier ratio above which a range is accepted
        delta: RANSAC inlier distance
        itr_limit: RANSAC iterations per range
        rng: Random generator for sampling

    Returns:
        RANSAC segments of all ranges spanning more than one point
    """
    pts = as_point_array(points)
    n_points = len(pts)
    if n_points < 2:
        return []

    ransac = RANSACLine2D(max_iterations=itr_limit, distance_threshold=delta, rng=rng)

    def refit(span: _Span) -> _Span:
        result = ransac.fit(pts, span.start, span.end)
        if result is None:
            span.segment, span.value = LineSegment2D(), 0.0
        else:
            span.segment, span.value = result.segment, result.score
        return span

    spans = [refit(_Span(0, n_points - 1))]
    if spans[0].value > score_threshold:
        return [spans[0].segment]

    while True:
        splittable = [i for i, s in enumerate(spans)
                      if s.end - s.start >= 3 and s.value <= score_threshold]
        if not splittable:
            break
        i = min(splittable, key=lambda k: spans[k].value)
        spans[i:i + 1] = [refit(s) for s in _split(pts, spans[i])]

    logger.debug(f'RANSAC segmentation: {n_points} points -> {len(spans)} ranges')
    return [s.segment for s in spans if s.start != s.end]
