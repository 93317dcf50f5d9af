"""
Feature Extraction Pipeline.

Composes clustering, segmentation, consolidation and circle fitting into a
single call on one frame of points.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from .clustering import cluster_ordered_points, cluster_points, order_points_by_angle
from .config import ExtractorConfig
from .consolidation import merge_close_lines, merge_close_lines_bf, merge_collinear_lines
from .primitives import Circle, LineSegment2D, PointCloud2D, PointsLike, to_point_cloud
from .ransac_core import RANSACCircle2D
from .segmentation import (
    apply_piecewise_regression,
    apply_piecewise_regression_split,
    fit_line_segments_ransac,
)

logger = logging.getLogger(__name__)


def fit_line_segments(
    points: PointsLike,
    regression_error_threshold: float = 0.1,
    distance_threshold: float = 0.2,
    angle_threshold: float = 0.2
) -> List[LineSegment2D]:
    """
    Extract line segments from ordered points.

    Splits the points with apply_piecewise_regression_split, then joins
    neighbouring segments with merge_close_lines.

    Args:
        points: Ordered points, shape (N, 2) or sequence of Point2D
        regression_error_threshold: Accepted regression error per segment
        distance_threshold: Maximum gap between merged segments
        angle_threshold: Maximum angle between merged segments (radians)

    Returns:
        List of line segments
    """
    lines = apply_piecewise_regression_split(points, regression_error_threshold)
    return merge_close_lines(lines, distance_threshold, angle_threshold)


@dataclass
class ExtractionResult:
    """Features extracted from one frame."""
    clusters: List[PointCloud2D] = field(default_factory=list)
    line_segments: List[LineSegment2D] = field(default_factory=list)
    circles: List[Circle] = field(default_factory=list)
    circle_scores: List[float] = field(default_factory=list)


class FeatureExtractor:
    """
    Configurable line/circle extraction for single frames.

    Stages: optional angular sort, clustering, per-cluster segmentation and
    consolidation, optional per-cluster circle fitting.
    """

    def __init__(
        self,
        config: Optional[ExtractorConfig] = None,
        rng: Optional[np.random.Generator] = None
    ):
        self.config = (config or ExtractorConfig()).validate()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.ransac.random_seed)

    def extract(self, points: PointsLike) -> ExtractionResult:
        """
        Extract features from one frame of points.

        Args:
            points: Points of shape (N, 2) or a sequence of Point2D

        Returns:
            ExtractionResult with clusters, segments and circles
        """
        cfg = self.config
        cloud = to_point_cloud(points)
        result = ExtractionResult()

        if len(cloud) < 2:
            logger.warning(f'Not enough points for feature extraction ({len(cloud)})')
            return result

        if cfg.clustering.sort_by_angle:
            cloud = order_points_by_angle(cloud)

        result.clusters = self._cluster(cloud)

        for cluster in result.clusters:
            result.line_segments.extend(self._segment(cluster))

            if cfg.circle.enabled:
                circle, score = self._fit_circle(cluster)
                if circle is not None:
                    result.circles.append(circle)
                    result.circle_scores.append(score)

        result.line_segments = self._merge(result.line_segments)

        logger.info(
            f'Extracted {len(result.line_segments)} segments and '
            f'{len(result.circles)} circles from {len(result.clusters)} clusters '
            f'({len(cloud)} points)'
        )
        return result

    def _cluster(self, cloud: PointCloud2D) -> List[PointCloud2D]:
        cfg = self.config.clustering
        if not cfg.enabled:
            return [cloud]
        if cfg.ordered:
            return cluster_ordered_points(cloud, cfg.distance_threshold, cfg.min_cluster_size)
        return cluster_points(cloud, cfg.distance_threshold, cfg.min_cluster_size)

    def _segment(self, cluster: PointCloud2D) -> List[LineSegment2D]:
        cfg = self.config
        strategy = cfg.segmentation.strategy
        if strategy == 'split':
            return apply_piecewise_regression_split(
                cluster, cfg.segmentation.regression_error_threshold)
        if strategy == 'merge':
            return apply_piecewise_regression(
                cluster, cfg.segmentation.regression_error_threshold)
        return fit_line_segments_ransac(
            cluster,
            score_threshold=cfg.ransac.score_threshold,
            delta=cfg.ransac.delta,
            itr_limit=cfg.ransac.itr_limit,
            rng=self.rng,
        )

    def _merge(self, segments: List[LineSegment2D]) -> List[LineSegment2D]:
        cfg = self.config.merge
        if cfg.strategy == 'adjacent':
            return merge_close_lines(segments, cfg.distance_threshold, cfg.angle_threshold)
        if cfg.strategy == 'brute_force':
            return merge_close_lines_bf(segments, cfg.distance_threshold, cfg.angle_threshold)
        if cfg.strategy == 'collinear':
            return merge_collinear_lines(
                segments, cfg.distance_threshold, cfg.angle_threshold, cfg.perp_dist_threshold)
        return segments

    def _fit_circle(self, cluster: PointCloud2D):
        cfg = self.config
        ransac = RANSACCircle2D(
            max_iterations=cfg.ransac.itr_limit,
            distance_threshold=cfg.ransac.delta,
            rng=self.rng,
        )
        fit = ransac.fit(cluster)
        if fit is None:
            return None, 0.0
        if fit.score < cfg.circle.min_circle_score or fit.circle.r > cfg.circle.max_radius:
            logger.debug(
                f'Rejected circle r={fit.circle.r:.3f} with score {fit.score:.2f}')
            return None, fit.score
        return fit.circle, fit.score
