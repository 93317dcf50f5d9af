"""
Geometric Primitives.

This module provides the value types used by every fitting stage:
- Point2D / Point3D: points and free vectors with arithmetic and distances
- LineSegment2D: finite segment with angle, slope, projection and intersection
- Circle: center + radius, constructible from three points
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

import numpy as np


POINT_EQUALITY_EPSILON = 1e-3


@dataclass(frozen=True, eq=False)
class Point2D:
    """2D point (or vector)."""
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def from_polar(cls, radius: float, angle: float) -> 'Point2D':
        """Create a point from a range/bearing pair."""
        return cls(radius * math.cos(angle), radius * math.sin(angle))

    @classmethod
    def from_array(cls, arr) -> 'Point2D':
        return cls(float(arr[0]), float(arr[1]))

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=float)

    def __add__(self, other: 'Point2D') -> 'Point2D':
        return Point2D(self.x + other.x, self.y + other.y)

    def __sub__(self, other: 'Point2D') -> 'Point2D':
        return Point2D(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> 'Point2D':
        return Point2D(self.x * scalar, self.y * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> 'Point2D':
        if abs(scalar) < 1e-9:
            scalar = 1e-9
        return self * (1.0 / scalar)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Point2D):
            return NotImplemented
        return self.dist_to(other) < POINT_EQUALITY_EPSILON

    def dot(self, other: 'Point2D') -> float:
        return self.x * other.x + self.y * other.y

    def cross(self, other: 'Point2D') -> float:
        """Scalar (z-component) cross product."""
        return self.x * other.y - self.y * other.x

    def magnitude(self) -> float:
        return math.hypot(self.x, self.y)

    def normalized(self) -> 'Point2D':
        mag = self.magnitude()
        if mag > 0:
            return Point2D(self.x / mag, self.y / mag)
        return self

    def squared_dist_to(self, other: 'Point2D') -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        return dx * dx + dy * dy

    def dist_to(self, other: 'Point2D') -> float:
        return math.sqrt(self.squared_dist_to(other))

    def angle(self) -> float:
        return math.atan2(self.y, self.x)

    def __repr__(self) -> str:
        return f'Point2D(x={self.x:.4f}, y={self.y:.4f})'


@dataclass(frozen=True, eq=False)
class Point3D:
    """3D point sharing the arithmetic/distance surface of Point2D."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)

    def __add__(self, other: 'Point3D') -> 'Point3D':
        return Point3D(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: 'Point3D') -> 'Point3D':
        return Point3D(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> 'Point3D':
        return Point3D(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> 'Point3D':
        if abs(scalar) < 1e-9:
            scalar = 1e-9
        return self * (1.0 / scalar)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Point3D):
            return NotImplemented
        return self.dist_to(other) < POINT_EQUALITY_EPSILON

    def squared_dist_to(self, other: 'Point3D') -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        dz = self.z - other.z
        return dx * dx + dy * dy + dz * dz

    def dist_to(self, other: 'Point3D') -> float:
        return math.sqrt(self.squared_dist_to(other))

    def magnitude(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)


@dataclass(frozen=True)
class LineSegment2D:
    """
    Finite line segment between two points.

    A segment may be degenerate (start == end), e.g. when a fit had too few
    points; such segments have zero length and an angle of 0.
    """
    start: Point2D = field(default_factory=Point2D)
    end: Point2D = field(default_factory=Point2D)

    def angle(self) -> float:
        diff = self.end - self.start
        return math.atan2(diff.y, diff.x)

    def length(self) -> float:
        return self.start.dist_to(self.end)

    def slope(self) -> float:
        diff = self.end - self.start
        dx = diff.x
        if abs(dx) < 1e-6:
            dx = 1e-6
        return diff.y / dx

    def intercept(self) -> float:
        """Constant term `c` of y = m*x + c."""
        return self.start.y - self.slope() * self.start.x

    def center(self) -> Point2D:
        return (self.start + self.end) * 0.5

    def unit_vector(self) -> Point2D:
        return (self.end - self.start) / self.length()

    def closest_point_to(self, point: Point2D) -> Point2D:
        """Closest point on the segment (clipped to its endpoints)."""
        length_sq = self.start.squared_dist_to(self.end)
        if length_sq < 1e-10:
            return self.start
        line_vec = self.end - self.start
        t = (point - self.start).dot(line_vec) / length_sq
        t = min(max(t, 0.0), 1.0)
        return self.start + line_vec * t

    def min_dist_to(self, point: Point2D) -> float:
        return point.dist_to(self.closest_point_to(point))

    def squared_min_dist_to(self, point: Point2D) -> float:
        return point.squared_dist_to(self.closest_point_to(point))

    def contains_point(self, point: Point2D, dist_threshold: float = 1e-3) -> bool:
        return self.min_dist_to(point) < dist_threshold

    def intersects(self, other: 'LineSegment2D') -> bool:
        return self.intersection_with(other) is not None

    def intersection_with(
        self,
        other: 'LineSegment2D',
        outside_allowed: bool = False
    ) -> Optional[Point2D]:
        """
        Compute the intersection point with another segment.

        For collinear overlapping segments the start of the overlap is
        returned. With `outside_allowed`, the supporting lines are
        intersected even if the crossing lies outside either segment.

        Args:
            other: Segment to intersect with
            outside_allowed: Intersect the infinite supporting lines

        Returns:
            Intersection point or None
        """
        vec1 = self.end - self.start
        vec2 = other.end - other.start
        vec3 = other.start - self.start
        vec1_cross_vec2 = vec1.cross(vec2)
        vec3_cross_vec1 = vec3.cross(vec1)
        vec3_cross_vec2 = vec3.cross(vec2)

        if abs(vec1_cross_vec2) < 1e-10:
            if abs(vec3_cross_vec1) > 1e-10:
                return None  # parallel, disjoint

            len1_sq = vec1.dot(vec1)
            if len1_sq < 1e-10:
                return self.start if other.contains_point(self.start) else None

            t0 = vec3.dot(vec1) / len1_sq
            t1 = t0 + vec2.dot(vec1) / len1_sq
            opposite = vec2.dot(vec1) < 0.0
            if (not opposite and (t0 > 1.0 or t1 < 0.0)) or \
               (opposite and (t1 > 1.0 or t0 < 0.0)):
                return None
            return self.start + vec1 * max(0.0, min(t0, t1))

        t = vec3_cross_vec2 / vec1_cross_vec2
        u = vec3_cross_vec1 / vec1_cross_vec2
        if not outside_allowed and (t < 0.0 or t > 1.0 or u < 0.0 or u > 1.0):
            return None
        return self.start + vec1 * t

    def is_degenerate(self) -> bool:
        return self.start == self.end

    def __repr__(self) -> str:
        return f'LineSegment2D(start={self.start!r}, end={self.end!r})'


@dataclass(frozen=True)
class Circle:
    """Circle given by center (x, y) and radius r."""
    x: float = 0.0
    y: float = 0.0
    r: float = 0.0

    @classmethod
    def from_points(
        cls,
        p1: Point2D,
        p2: Point2D,
        p3: Point2D,
        epsilon: float = 1e-9
    ) -> Optional['Circle']:
        """
        Circumscribed circle of three points.

        Returns:
            Circle, or None if the points are (nearly) collinear
        """
        ax, ay = p1.x, p1.y
        bx, by = p2.x, p2.y
        cx, cy = p3.x, p3.y
        d = 2.0 * (ax * (by - cy) + bx * (cy - ay) + cx * (ay - by))
        if abs(d) < epsilon:
            return None

        a_sq = ax * ax + ay * ay
        b_sq = bx * bx + by * by
        c_sq = cx * cx + cy * cy
        ux = (a_sq * (by - cy) + b_sq * (cy - ay) + c_sq * (ay - by)) / d
        uy = (a_sq * (cx - bx) + b_sq * (ax - cx) + c_sq * (bx - ax)) / d
        r = math.hypot(ax - ux, ay - uy)
        return cls(ux, uy, r)

    @property
    def center(self) -> Point2D:
        return Point2D(self.x, self.y)

    def dist_to(self, point: Point2D) -> float:
        """Distance from a point to the circle outline."""
        return abs(point.dist_to(self.center) - self.r)

    def is_valid(self) -> bool:
        return self.r > 0.0


PointCloud2D = List[Point2D]
PointsLike = Union[Sequence[Point2D], np.ndarray]


def as_point_array(points: PointsLike) -> np.ndarray:
    """
    Convert a point sequence into an (N, 2) float array.

    Args:
        points: Sequence of Point2D or array-like of shape (N, 2)

    Returns:
        Array of shape (N, 2)
    """
    if isinstance(points, np.ndarray):
        arr = points.astype(float, copy=False)
    elif len(points) > 0 and isinstance(points[0], Point2D):
        arr = np.array([(p.x, p.y) for p in points], dtype=float)
    else:
        arr = np.asarray(points, dtype=float)

    if arr.size == 0:
        return np.zeros((0, 2), dtype=float)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f'Expected points of shape (N, 2), got {arr.shape}')
    return arr


def to_point_cloud(points: PointsLike) -> PointCloud2D:
    """Convert an (N, 2) array (or point sequence) to a list of Point2D."""
    return [Point2D(float(x), float(y)) for x, y in as_point_array(points)]
