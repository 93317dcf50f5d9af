"""
Core RANSAC Algorithm Implementations.

This module provides RANSAC implementations for 2D scan features:
- RANSACLine2D: Fits a line to a range of points and bounds it to a segment
- RANSACCircle2D: Fits a circle to a range of points

Every estimator owns an explicit numpy Generator, so fits are reproducible
when seeded and estimators never share random state.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .primitives import Circle, LineSegment2D, Point2D, PointsLike, as_point_array
from .utils import calc_projected_point_on_major_axis

logger = logging.getLogger(__name__)


@dataclass
class RANSACResult:
    """Result of RANSAC fitting."""
    coefficients: np.ndarray  # Model coefficients
    inlier_indices: np.ndarray  # Indices of inlier points (into the input)
    outlier_indices: np.ndarray  # Indices of outlier points within the range
    score: float  # Ratio of inliers to points in the range
    num_iterations: int  # Number of iterations performed


@dataclass
class LineFitResult(RANSACResult):
    """Line fit: y = slope * x + intercept, bounded to `segment`."""
    slope: float
    intercept: float
    segment: LineSegment2D


@dataclass
class CircleFitResult(RANSACResult):
    """Circle fit."""
    circle: Circle


class RANSACBase(ABC):
    """Base class for RANSAC algorithms."""

    def __init__(
        self,
        max_iterations: int = 10,
        distance_threshold: float = 0.2,
        min_inliers_ratio: float = 0.0,
        early_stop_ratio: Optional[float] = None,
        refine: bool = False,
        random_seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None
    ):
        """
        Initialize RANSAC algorithm.

        Args:
            max_iterations: Number of random samples to score
            distance_threshold: Maximum distance for a point to be considered inlier
            min_inliers_ratio: Minimum ratio of inliers for valid model
            early_stop_ratio: Stop sampling once the inlier ratio exceeds this
            refine: Re-fit the best model to all of its inliers
            random_seed: Optional seed for reproducibility
            rng: Random generator to draw samples from (overrides random_seed)
        """
        if max_iterations < 1:
            raise ValueError(f'max_iterations must be >= 1, got {max_iterations}')
        if distance_threshold < 0:
            raise ValueError(f'distance_threshold must be >= 0, got {distance_threshold}')

        self.max_iterations = max_iterations
        self.distance_threshold = distance_threshold
        self.min_inliers_ratio = min_inliers_ratio
        self.early_stop_ratio = early_stop_ratio
        self.refine = refine
        self.rng = rng if rng is not None else np.random.default_rng(random_seed)

    @abstractmethod
    def _min_samples(self) -> int:
        """Return minimum number of samples needed to fit model."""
        pass

    @abstractmethod
    def _fit_model(self, points: np.ndarray) -> Optional[np.ndarray]:
        """Fit model to sample points. Returns None if fitting fails."""
        pass

    @abstractmethod
    def _compute_distances(self, points: np.ndarray, model: np.ndarray) -> np.ndarray:
        """Compute distances from points to model."""
        pass

    @abstractmethod
    def _make_result(
        self,
        span: np.ndarray,
        offset: int,
        model: np.ndarray,
        inliers: np.ndarray,
        num_iterations: int
    ) -> RANSACResult:
        """Package the winning model into a result."""
        pass

    def fit(
        self,
        points: PointsLike,
        start_index: int = 0,
        end_index: Optional[int] = None
    ) -> Optional[RANSACResult]:
        """
        Fit model to points[start_index..end_index] using RANSAC.

        Args:
            points: Array of shape (N, 2) or a sequence of Point2D
            start_index: First index of the range
            end_index: Last index of the range, inclusive (defaults to last point)

        Returns:
            Result if a model was found, None if the range is out of bounds,
            inverted, too small, or no valid sample could be drawn
        """
        pts = as_point_array(points)
        if end_index is None:
            end_index = len(pts) - 1
        if start_index < 0 or end_index >= len(pts):
            logger.debug(
                f'{type(self).__name__}: range [{start_index}, {end_index}] '
                f'outside of {len(pts)} points')
            return None

        span = pts[start_index:end_index + 1]
        n_points = len(span)
        if n_points < self._min_samples():
            logger.debug(f'{type(self).__name__}: {n_points} points is too few to fit')
            return None

        best_model = None
        best_inlier_count = 0
        best_inliers = None

        iteration = 0
        for iteration in range(self.max_iterations):
            # Randomly sample minimum required points
            sample_indices = self.rng.choice(n_points, self._min_samples(), replace=False)
            sample_points = span[sample_indices]

            # Fit model to samples
            model = self._fit_model(sample_points)
            if model is None:
                continue

            # Compute distances and find inliers
            distances = self._compute_distances(span, model)
            inliers = distances < self.distance_threshold
            inlier_count = int(np.sum(inliers))

            # Update best model if this one is better
            if inlier_count > best_inlier_count:
                best_model = model
                best_inlier_count = inlier_count
                best_inliers = inliers

                if self.early_stop_ratio is not None and \
                        inlier_count / n_points > self.early_stop_ratio:
                    break

        if best_model is None or best_inlier_count / n_points < self.min_inliers_ratio:
            logger.debug(f'{type(self).__name__}: no model found in {n_points} points')
            return None

        if self.refine:
            refined_model = self._fit_model(span[best_inliers])
            if refined_model is not None:
                best_model = refined_model
                best_inliers = self._compute_distances(span, best_model) < self.distance_threshold

        return self._make_result(span, start_index, best_model, best_inliers, iteration + 1)


class RANSACLine2D(RANSACBase):
    """
    RANSAC algorithm for fitting lines to 2D point sets.

    Line equation: ax + by + c = 0
    Coefficients are normalized such that (a, b) is a unit vector.
    """

    def _min_samples(self) -> int:
        return 2  # 2 points define a line

    def _fit_model(self, points: np.ndarray) -> Optional[np.ndarray]:
        """
        Fit line to 2 or more points.

        Args:
            points: Array of shape (N, 2)

        Returns:
            Line coefficients [a, b, c] or None if degenerate
        """
        if len(points) < 2:
            return None

        if len(points) == 2:
            # Compute line from 2 points
            p1, p2 = points[0], points[1]
            direction = p2 - p1
            norm = np.linalg.norm(direction)

            if norm < 1e-10:
                return None

            # Normal to the line direction
            normal = np.array([-direction[1], direction[0]]) / norm
            c = -np.dot(normal, p1)

            return np.array([normal[0], normal[1], c])
        else:
            # Use SVD for least squares fit
            centroid = np.mean(points, axis=0)
            centered = points - centroid

            _, _, vh = np.linalg.svd(centered)
            direction = vh[0]  # First row is principal direction
            normal = np.array([-direction[1], direction[0]])
            norm = np.linalg.norm(normal)

            if norm < 1e-10:
                return None

            normal = normal / norm
            c = -np.dot(normal, centroid)

            return np.array([normal[0], normal[1], c])

    def _compute_distances(self, points: np.ndarray, model: np.ndarray) -> np.ndarray:
        a, b, c = model
        return np.abs(a * points[:, 0] + b * points[:, 1] + c)

    @staticmethod
    def slope_intercept(model: np.ndarray) -> Tuple[float, float]:
        """
        Convert [a, b, c] to (m, c) of y = m*x + c.

        A vertical line gets its x-extent replaced by 1e-8, giving a very
        large but finite slope.
        """
        a, b, c = model
        dx, dy = -b, a
        if abs(dx) < 1e-8:
            dx = 1e-8
        m = dy / dx
        # Closest point of the line to the origin
        px, py = -c * a, -c * b
        return float(m), float(py - m * px)

    def _make_result(self, span, offset, model, inliers, num_iterations):
        m, c = self.slope_intercept(model)
        segment = self._bound_segment(span[inliers], m, c)
        n_points = len(span)
        inlier_count = int(np.sum(inliers))

        logger.debug(
            f'Line fitted: m={m:.3f}, c={c:.3f}, '
            f'inliers={inlier_count}/{n_points}'
        )

        return LineFitResult(
            coefficients=model,
            inlier_indices=np.where(inliers)[0] + offset,
            outlier_indices=np.where(~inliers)[0] + offset,
            score=inlier_count / n_points,
            num_iterations=num_iterations,
            slope=m,
            intercept=c,
            segment=segment,
        )

    @staticmethod
    def _bound_segment(inlier_points: np.ndarray, m: float, c: float) -> LineSegment2D:
        """
        Bound the line y = m*x + c by its extreme inliers.

        Inliers are projected onto the major axis (x for |m| < 1, else y) and
        the smallest/largest projections become start/end.
        """
        if len(inlier_points) == 0:
            return LineSegment2D()

        axis = 0 if abs(m) < 1.0 else 1
        lowest = inlier_points[np.argmin(inlier_points[:, axis])]
        highest = inlier_points[np.argmax(inlier_points[:, axis])]
        return LineSegment2D(
            calc_projected_point_on_major_axis(m, c, Point2D.from_array(lowest)),
            calc_projected_point_on_major_axis(m, c, Point2D.from_array(highest)),
        )


class RANSACCircle2D(RANSACBase):
    """
    RANSAC algorithm for fitting circles to 2D point sets.

    Coefficients: [cx, cy, r].
    """

    def _min_samples(self) -> int:
        return 3  # 3 non-collinear points define a circle

    def _fit_model(self, points: np.ndarray) -> Optional[np.ndarray]:
        """
        Fit circle to 3 or more points.

        Args:
            points: Array of shape (N, 2)

        Returns:
            Circle coefficients [cx, cy, r] or None if the points are collinear
        """
        if len(points) < 3:
            return None

        if len(points) == 3:
            circle = Circle.from_points(*(Point2D.from_array(p) for p in points))
            if circle is None:
                return None
            return np.array([circle.x, circle.y, circle.r])
        else:
            # Algebraic least squares: x^2 + y^2 = 2*cx*x + 2*cy*y + k
            A = np.column_stack([2 * points[:, 0], 2 * points[:, 1], np.ones(len(points))])
            b = points[:, 0] ** 2 + points[:, 1] ** 2
            solution, _, rank, _ = np.linalg.lstsq(A, b, rcond=None)
            if rank < 3:
                return None

            cx, cy, k = solution
            r_sq = k + cx ** 2 + cy ** 2
            if r_sq <= 0:
                return None

            return np.array([cx, cy, np.sqrt(r_sq)])

    def _compute_distances(self, points: np.ndarray, model: np.ndarray) -> np.ndarray:
        cx, cy, r = model
        return np.abs(np.hypot(points[:, 0] - cx, points[:, 1] - cy) - r)

    def _make_result(self, span, offset, model, inliers, num_iterations):
        circle = Circle(float(model[0]), float(model[1]), float(model[2]))
        n_points = len(span)
        inlier_count = int(np.sum(inliers))

        logger.debug(
            f'Circle fitted: center=({circle.x:.3f}, {circle.y:.3f}), '
            f'r={circle.r:.3f}, inliers={inlier_count}/{n_points}'
        )

        return CircleFitResult(
            coefficients=model,
            inlier_indices=np.where(inliers)[0] + offset,
            outlier_indices=np.where(~inliers)[0] + offset,
            score=inlier_count / n_points,
            num_iterations=num_iterations,
            circle=circle,
        )


def fit_line_ransac(
    points: PointsLike,
    start_index: int = 0,
    end_index: Optional[int] = None,
    delta: float = 0.2,
    itr_limit: int = 10,
    rng: Optional[np.random.Generator] = None
) -> Tuple[float, float, float]:
    """
    Fit y = m*x + c to a range of points.

    Returns:
        Tuple of (m, c, score); (0, 0, 0) when no line could be fitted
    """
    result = RANSACLine2D(max_iterations=itr_limit, distance_threshold=delta,
                          rng=rng).fit(points, start_index, end_index)
    if result is None:
        return 0.0, 0.0, 0.0
    return result.slope, result.intercept, result.score


def fit_line_segment_ransac(
    points: PointsLike,
    start_index: int = 0,
    end_index: Optional[int] = None,
    delta: float = 0.2,
    itr_limit: int = 10,
    rng: Optional[np.random.Generator] = None
) -> Tuple[LineSegment2D, float]:
    """
    Fit a bounded line segment to a range of points.

    Returns:
        Tuple of (segment, score); an empty segment and 0 when no line
        could be fitted
    """
    result = RANSACLine2D(max_iterations=itr_limit, distance_threshold=delta,
                          rng=rng).fit(points, start_index, end_index)
    if result is None:
        return LineSegment2D(), 0.0
    return result.segment, result.score


def fit_circle_ransac(
    points: PointsLike,
    start_index: int = 0,
    end_index: Optional[int] = None,
    delta: float = 0.2,
    itr_limit: int = 10,
    rng: Optional[np.random.Generator] = None
) -> Tuple[Circle, float]:
    """
    Fit a circle to a range of points.

    Returns:
        Tuple of (circle, score); Circle(0, 0, 0) and 0 when no circle
        could be fitted
    """
    result = RANSACCircle2D(max_iterations=itr_limit, distance_threshold=delta,
                            rng=rng).fit(points, start_index, end_index)
    if result is None:
        return Circle(), 0.0
    return result.circle, result.score
