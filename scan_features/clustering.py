"""
Point Clustering.

Groups 2D points into spatially coherent clusters before fitting.

Two approaches:
- cluster_points: flood-fill over a proximity graph (any point order)
- cluster_ordered_points: single pass over angularly sorted points
  (one scanner sweep), with 360 degree wraparound handling
"""

import logging
import math
from typing import List

import numpy as np

from .primitives import PointCloud2D, PointsLike, as_point_array, to_point_cloud

logger = logging.getLogger(__name__)


def _check_cluster_args(distance_threshold: float, min_cluster_size: int):
    if distance_threshold < 0:
        raise ValueError(f'distance_threshold must be >= 0, got {distance_threshold}')
    if min_cluster_size < 0:
        raise ValueError(f'min_cluster_size must be >= 0, got {min_cluster_size}')


def cluster_points(
    points: PointsLike,
    distance_threshold: float = 0.1,
    min_cluster_size: int = 3
) -> List[PointCloud2D]:
    """
    Cluster unordered points by connectivity.

    Two points are connected when their distance is below
    `distance_threshold`. The pool of unassigned points is flood-filled one
    cluster at a time, starting from the first remaining point.

    Args:
        points: Points of shape (N, 2) or a sequence of Point2D
        distance_threshold: Maximum distance between neighbouring points
        min_cluster_size: Clusters with fewer points are dropped

    Returns:
        List of clusters, each a list of Point2D in expansion order
    """
    _check_cluster_args(distance_threshold, min_cluster_size)
    pts = as_point_array(points)
    threshold_sq = distance_threshold * distance_threshold

    remaining = np.arange(len(pts))
    clusters = []
    while len(remaining) > 0:
        fringe = [remaining[0]]
        remaining = remaining[1:]
        members = []

        while fringe:
            idx = fringe.pop(0)
            members.append(idx)
            if len(remaining) == 0:
                continue
            dist_sq = np.sum((pts[remaining] - pts[idx]) ** 2, axis=1)
            close = dist_sq < threshold_sq
            fringe.extend(remaining[close].tolist())
            remaining = remaining[~close]

        if len(members) >= min_cluster_size:
            clusters.append(to_point_cloud(pts[members]))
        else:
            logger.debug(f'Dropping cluster of {len(members)} points')

    logger.debug(f'Found {len(clusters)} clusters in {len(pts)} points')
    return clusters


def cluster_ordered_points(
    points: PointsLike,
    distance_threshold: float = 0.1,
    min_cluster_size: int = 3
) -> List[PointCloud2D]:
    """
    Cluster angularly ordered points in a single pass.

    A new cluster starts whenever two consecutive points are farther apart
    than `distance_threshold`. If the last point of the final cluster is
    close to the first point of the first cluster (a full 360 degree scan),
    the final cluster is prepended to the first one.

    Args:
        points: Points sorted by angle, shape (N, 2) or sequence of Point2D
        distance_threshold: Maximum gap between consecutive points
        min_cluster_size: Clusters with fewer points are dropped

    Returns:
        List of clusters, each a list of Point2D in scan order
    """
    _check_cluster_args(distance_threshold, min_cluster_size)
    pts = as_point_array(points)
    if len(pts) == 0:
        return []

    threshold_sq = distance_threshold * distance_threshold
    gaps = np.sum(np.diff(pts, axis=0) ** 2, axis=1) >= threshold_sq
    breaks = np.where(gaps)[0] + 1

    clusters = []
    start = 0
    for end in list(breaks) + [len(pts)]:
        if end - start >= min_cluster_size:
            clusters.append(pts[start:end])
        else:
            logger.debug(f'Dropping cluster of {end - start} points')
        start = end

    if len(clusters) > 1:
        first, last = clusters[0], clusters[-1]
        if np.sum((first[0] - last[-1]) ** 2) < threshold_sq:
            clusters[0] = np.vstack([last, first])
            clusters.pop()

    logger.debug(f'Found {len(clusters)} ordered clusters in {len(pts)} points')
    return [to_point_cloud(c) for c in clusters]


def order_points_by_angle(points: PointsLike, angle_offset: float = 0.0) -> PointCloud2D:
    """
    Sort points by their bearing from the origin.

    Bearings below -pi + angle_offset are shifted by 2*pi, so the sweep
    starts at -pi + angle_offset instead of -pi.

    Args:
        points: Points of shape (N, 2) or a sequence of Point2D
        angle_offset: Offset of the sweep start from -pi (radians)

    Returns:
        Points sorted by angle
    """
    pts = as_point_array(points)
    angles = np.arctan2(pts[:, 1], pts[:, 0])
    threshold = -math.pi + angle_offset
    angles = np.where(angles < threshold, angles + 2 * math.pi, angles)
    order = np.argsort(angles, kind='stable')
    return to_point_cloud(pts[order])
