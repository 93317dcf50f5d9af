"""
Scan Features - line segment and circle extraction from 2D range data.

This package provides clustering, RANSAC fitting, piecewise line regression
and segment consolidation for point sets from planar range sensors.
"""

__version__ = '1.0.0'

from .primitives import Point2D, Point3D, LineSegment2D, Circle
from .clustering import cluster_points, cluster_ordered_points, order_points_by_angle
from .ransac_core import (
    RANSACLine2D,
    RANSACCircle2D,
    fit_line_ransac,
    fit_line_segment_ransac,
    fit_circle_ransac,
)
from .regression import fit_line_regression
from .segmentation import (
    apply_piecewise_regression,
    apply_piecewise_regression_split,
    fit_line_segments_ransac,
)
from .consolidation import merge_close_lines, merge_close_lines_bf, merge_collinear_lines
from .pipeline import fit_line_segments, FeatureExtractor, ExtractionResult
from .laser_scan_handler import LaserScan, LaserScanHandler

__all__ = [
    'Point2D',
    'Point3D',
    'LineSegment2D',
    'Circle',
    'cluster_points',
    'cluster_ordered_points',
    'order_points_by_angle',
    'RANSACLine2D',
    'RANSACCircle2D',
    'fit_line_ransac',
    'fit_line_segment_ransac',
    'fit_circle_ransac',
    'fit_line_regression',
    'apply_piecewise_regression',
    'apply_piecewise_regression_split',
    'fit_line_segments_ransac',
    'merge_close_lines',
    'merge_close_lines_bf',
    'merge_collinear_lines',
    'fit_line_segments',
    'FeatureExtractor',
    'ExtractionResult',
    'LaserScan',
    'LaserScanHandler',
]
