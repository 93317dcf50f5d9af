"""
Line Segment Consolidation.

Post-processing passes that merge segments produced by the fitters:
- merge_close_lines: adjacent segments in list order
- merge_close_lines_bf: any pair, at growing index separation
- merge_collinear_lines: any pair that also lies on a common line

Every pass returns a new list and leaves its input untouched.
"""

import logging
from typing import List, Sequence

from .primitives import LineSegment2D
from .utils import calc_projected_point_on_segment, calc_shortest_angle

logger = logging.getLogger(__name__)


def _is_aligned(a: LineSegment2D, b: LineSegment2D, angle_threshold: float) -> bool:
    return abs(calc_shortest_angle(a.angle(), b.angle())) < angle_threshold


def merge_close_lines(
    line_segments: Sequence[LineSegment2D],
    distance_threshold: float = 0.2,
    angle_threshold: float = 0.2
) -> List[LineSegment2D]:
    """
    Merge consecutive segments whose gap and angle difference are small.

    Segment i+1 is folded into segment i when the distance from i's end to
    i+1's start is below `distance_threshold` and their directions differ by
    less than `angle_threshold` radians. The merged segment keeps i's start
    and takes i+1's end, then is compared with the next segment.

    Args:
        line_segments: Segments in traversal order
        distance_threshold: Maximum end-to-start gap
        angle_threshold: Maximum absolute angle difference (radians)

    Returns:
        Merged segments
    """
    segments = list(line_segments)
    i = 0
    while i < len(segments) - 1:
        current, following = segments[i], segments[i + 1]
        if current.end.dist_to(following.start) < distance_threshold and \
                _is_aligned(current, following, angle_threshold):
            segments[i] = LineSegment2D(current.start, following.end)
            del segments[i + 1]
            continue
        i += 1

    if len(segments) != len(line_segments):
        logger.debug(f'Merged close lines: {len(line_segments)} -> {len(segments)}')
    return segments


def merge_close_lines_bf(
    line_segments: Sequence[LineSegment2D],
    distance_threshold: float = 0.2,
    angle_threshold: float = 0.2
) -> List[LineSegment2D]:
    """
    Merge aligned segments with small gaps regardless of list position.

    Pairs (i, i + k) are checked for k = 1, 2, ...; an aligned pair is merged
    if j's start is close to i's end (i is extended forward) or j's end is
    close to i's start (i is extended backward).
    """
    segments = list(line_segments)
    skip = 1
    while skip < len(segments):
        i = 0
        while i + skip < len(segments):
            current, other = segments[i], segments[i + skip]
            if _is_aligned(current, other, angle_threshold):
                if current.end.dist_to(other.start) < distance_threshold:
                    segments[i] = LineSegment2D(current.start, other.end)
                    del segments[i + skip]
                    continue
                if other.end.dist_to(current.start) < distance_threshold:
                    segments[i] = LineSegment2D(other.start, current.end)
                    del segments[i + skip]
                    continue
            i += 1
        skip += 1

    if len(segments) != len(line_segments):
        logger.debug(f'Merged close lines (brute force): {len(line_segments)} -> {len(segments)}')
    return segments


def merge_collinear_lines(
    line_segments: Sequence[LineSegment2D],
    distance_threshold: float = 0.2,
    angle_threshold: float = 0.2,
    perp_dist_threshold: float = 0.1
) -> List[LineSegment2D]:
    """
    Merge segments that are close, aligned and lie on a common line.

    For every ordered pair (i, j), j is folded into i when i's end is close
    to j's start, the directions agree, and both of j's endpoints are within
    `perp_dist_threshold` of i's supporting line. The scan restarts after
    every merge until no pair qualifies.

    Args:
        line_segments: Segments to consolidate
        distance_threshold: Maximum end-to-start gap
        angle_threshold: Maximum absolute angle difference (radians)
        perp_dist_threshold: Maximum perpendicular offset of j from i's line

    Returns:
        Merged segments
    """
    segments = list(line_segments)
    merged = True
    while merged and len(segments) > 1:
        merged = False
        for i, j in ((i, j) for i in range(len(segments))
                     for j in range(len(segments)) if i != j):
            a, b = segments[i], segments[j]
            if a.end.dist_to(b.start) >= distance_threshold:
                continue
            if not _is_aligned(a, b, angle_threshold):
                continue
            start_proj = calc_projected_point_on_segment(a.start, a.end, b.start, is_segment=False)
            end_proj = calc_projected_point_on_segment(a.start, a.end, b.end, is_segment=False)
            if start_proj.dist_to(b.start) >= perp_dist_threshold or \
                    end_proj.dist_to(b.end) >= perp_dist_threshold:
                continue

            segments[i] = LineSegment2D(a.start, b.end)
            del segments[j]
            merged = True
            break

    if len(segments) != len(line_segments):
        logger.debug(f'Merged collinear lines: {len(line_segments)} -> {len(segments)}')
    return segments
