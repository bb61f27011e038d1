"""Clipping of line and area features against a rectangular lat/lon window."""

from abc import ABC, abstractmethod
from dataclasses import replace

import numpy as np
from shapely.errors import GEOSException
from shapely.geometry import Polygon
from shapely.validation import make_valid

from .app_config import DEFAULT_CLIP_TOLERANCE
from .feature_builder import AreaFeature, LineFeature


class IntersectionError(ArithmeticError):
    """Raised when a ring intersection cannot be computed reliably."""


def _open_ring(ring):
    """Drop the closing point of a ring, if present."""
    points = [(float(x), float(y)) for x, y in ring]
    if len(points) > 1 and points[0] == points[-1]:
        points.pop()
    return points


def _closed_ring(points):
    if not points:
        return None
    points = list(points)
    if points[0] != points[-1]:
        points.append(points[0])
    return points


def _signed_area(points):
    pts = np.asarray(points, dtype=float)
    x = pts[:, 0]
    y = pts[:, 1]
    return 0.5 * float(np.sum(x * np.roll(y, -1) - np.roll(x, -1) * y))


def _distinct_count(points, atol=1e-12):
    unique = []
    for pt in points:
        if not any(np.allclose(pt, existing, atol=atol, rtol=0.0) for existing in unique):
            unique.append(pt)
    return len(unique)


def ring_centroid(ring):
    """Vertex centroid of a ring, ignoring the closing point."""
    points = _open_ring(ring)
    if not points:
        return None
    mean = np.mean(np.asarray(points, dtype=float), axis=0)
    return (float(mean[0]), float(mean[1]))


class RingIntersector(ABC):
    """Capability interface for polygon intersection of two closed rings."""

    @abstractmethod
    def intersect(self, subject, clip):
        """
        Intersect two rings.

        Args:
            subject: Ring to clip, sequence of (x, y)
            clip: Clip ring, sequence of (x, y)

        Returns:
            list or None: Closed ring of the intersection, None if empty or
            degenerate (fewer than 3 distinct vertices)

        Raises:
            IntersectionError: on numerical failure
        """
        pass


class SutherlandHodgmanIntersector(RingIntersector):
    """
    Sutherland-Hodgman clipping of an arbitrary ring by a convex ring.

    Concave subjects may come back with zero-width bridging edges along the
    clip boundary; render layers triangulate those away.
    """

    def __init__(self, epsilon=1e-15):
        self.epsilon = epsilon

    @staticmethod
    def _cross(a, b, p):
        """Z of (b - a) x (p - a); >= 0 means p is left of a->b."""
        return (b[0] - a[0]) * (p[1] - a[1]) - (b[1] - a[1]) * (p[0] - a[0])

    def _edge_intersection(self, p1, p2, a, b):
        dx = p2[0] - p1[0]
        dy = p2[1] - p1[1]
        ex = b[0] - a[0]
        ey = b[1] - a[1]
        denom = dx * ey - dy * ex
        if abs(denom) < self.epsilon:
            raise IntersectionError("Segment parallel to clip edge")
        t = ((a[0] - p1[0]) * ey - (a[1] - p1[1]) * ex) / denom
        if not np.isfinite(t):
            raise IntersectionError("Non-finite intersection parameter")
        t = min(1.0, max(0.0, t))
        return (p1[0] + t * dx, p1[1] + t * dy)

    def intersect(self, subject, clip):
        output = _open_ring(subject)
        clip_points = _open_ring(clip)
        if len(output) < 3 or len(clip_points) < 3:
            return None
        if _signed_area(clip_points) < 0:
            clip_points.reverse()

        for i in range(len(clip_points)):
            a = clip_points[i]
            b = clip_points[(i + 1) % len(clip_points)]
            input_points = output
            output = []
            if not input_points:
                break

            prev = input_points[-1]
            prev_inside = self._cross(a, b, prev) >= 0
            for current in input_points:
                current_inside = self._cross(a, b, current) >= 0
                if current_inside:
                    if not prev_inside:
                        output.append(self._edge_intersection(prev, current, a, b))
                    output.append(current)
                elif prev_inside:
                    output.append(self._edge_intersection(prev, current, a, b))
                prev = current
                prev_inside = current_inside

        if _distinct_count(output) < 3:
            return None
        return _closed_ring(output)


class ShapelyIntersector(RingIntersector):
    """GEOS-backed intersection; handles concave and self-touching subjects."""

    def intersect(self, subject, clip):
        try:
            subject_polygon = Polygon(_open_ring(subject))
            clip_polygon = Polygon(_open_ring(clip))
            if not subject_polygon.is_valid:
                subject_polygon = make_valid(subject_polygon)
            result = subject_polygon.intersection(clip_polygon)
        except (GEOSException, ValueError) as exc:
            raise IntersectionError(str(exc)) from exc

        if result.is_empty:
            return None

        # Keep the largest polygonal part; an area feature has a single ring
        polygons = [geom for geom in getattr(result, 'geoms', [result]) if geom.geom_type == 'Polygon']
        if not polygons:
            return None
        largest = max(polygons, key=lambda geom: geom.area)
        coords = [(float(x), float(y)) for x, y in largest.exterior.coords]
        if _distinct_count(coords) < 3:
            return None
        return _closed_ring(coords)


RING_INTERSECTORS = {
    'sutherland_hodgman': SutherlandHodgmanIntersector,
    'shapely': ShapelyIntersector,
}


def get_ring_intersector(name=None):
    """Resolve an intersector by engine name (None = Sutherland-Hodgman)."""
    key = (name or 'sutherland_hodgman').strip().lower()
    if key not in RING_INTERSECTORS:
        raise ValueError(f"Unknown polygon engine: {name}")
    return RING_INTERSECTORS[key]()


class WindowClipper:
    """
    Rectangular window clipper for line and area features.

    Lines are split at the window boundary with recomputed crossing points;
    areas are intersected with the window ring.
    """

    def __init__(self, window, tolerance=DEFAULT_CLIP_TOLERANCE, intersector=None):
        """
        Initialize window clipper.

        Args:
            window: BoundingWindow to clip against
            tolerance: Slack (degrees) for boundary tests and de-duplication
            intersector: RingIntersector for areas (None = Sutherland-Hodgman)
        """
        self.window = window
        self.tolerance = tolerance
        self.intersector = intersector or SutherlandHodgmanIntersector()
        self.min_x = window.west
        self.max_x = window.east
        self.min_y = window.south
        self.max_y = window.north
        self.fallback_ids = []

    def is_inside(self, x, y):
        """Test if point(s) are inside the window (inclusive bounds)."""
        return (x >= self.min_x) & (x <= self.max_x) & \
               (y >= self.min_y) & (y <= self.max_y)

    def _line_box_intersection(self, p1, p2):
        """
        Find intersections of a segment with the window boundary.

        Edges are tested west, east, south, north. The perpendicular range test
        allows `tolerance` of slack and results are clamped onto the window.

        Returns:
            list: Unique intersection points, in edge test order
        """
        x1, y1 = p1
        x2, y2 = p2
        tol = self.tolerance

        intersections = []

        # West and east edges
        if x1 != x2:
            for edge_x in (self.min_x, self.max_x):
                t = (edge_x - x1) / (x2 - x1)
                if 0 <= t <= 1:
                    y = y1 + t * (y2 - y1)
                    if self.min_y - tol <= y <= self.max_y + tol:
                        intersections.append((edge_x, self._snap(y, self.min_y, self.max_y)))

        # South and north edges
        if y1 != y2:
            for edge_y in (self.min_y, self.max_y):
                t = (edge_y - y1) / (y2 - y1)
                if 0 <= t <= 1:
                    x = x1 + t * (x2 - x1)
                    if self.min_x - tol <= x <= self.max_x + tol:
                        intersections.append((self._snap(x, self.min_x, self.max_x), edge_y))

        # Remove duplicate intersections (corner cases)
        unique_intersections = []
        for pt in intersections:
            is_duplicate = False
            for existing_pt in unique_intersections:
                if np.allclose(pt, existing_pt, atol=tol, rtol=0.0):
                    is_duplicate = True
                    break
            if not is_duplicate:
                unique_intersections.append(pt)

        return unique_intersections

    def _boundary_crossing(self, p1, p2, anchor):
        """
        Single crossing point for a segment with one endpoint inside.

        Takes the first crossing in edge test order, skipping one that sits on
        `anchor` (the inside endpoint) when another crossing exists.
        """
        intersections = self._line_box_intersection(p1, p2)
        if not intersections:
            return None
        for pt in intersections:
            if not np.allclose(pt, anchor, atol=self.tolerance, rtol=0.0):
                return pt
        return intersections[0]

    def _snap(self, value, low, high):
        """Clamp into [low, high]; values within tolerance of a bound land on it."""
        value = min(high, max(low, float(value)))
        if value - low <= self.tolerance:
            return low
        if high - value <= self.tolerance:
            return high
        return value

    def _clamp(self, pt):
        x, y = pt
        return (self._snap(x, self.min_x, self.max_x), self._snap(y, self.min_y, self.max_y))

    def _same_point(self, a, b):
        return np.allclose(a, b, atol=self.tolerance, rtol=0.0)

    @staticmethod
    def _emit(segments, current_segment):
        if len(current_segment) >= 2 and _distinct_count(current_segment) >= 2:
            segments.append(list(current_segment))

    def clip_linestring(self, points):
        """
        Clip a linestring to the window, preserving continuity.

        Zero-length steps (repeated consecutive points) are dropped, so a line
        that is already inside the window comes back without its duplicates.

        Args:
            points: Sequence of (lon, lat)

        Returns:
            list: Continuous segments, each a list of (lon, lat) tuples
        """
        if len(points) < 2:
            return []

        points = [(float(x), float(y)) for x, y in points]
        segments = []
        current_segment = []

        for i in range(len(points) - 1):
            current = points[i]
            following = points[i + 1]
            if current == following:
                continue

            inside = bool(self.is_inside(*current))
            inside_next = bool(self.is_inside(*following))

            if inside and inside_next:
                if not current_segment:
                    current_segment.append(current)
                current_segment.append(following)

            elif inside:
                # Exiting the window
                if not current_segment:
                    current_segment.append(current)
                crossing = self._boundary_crossing(current, following, anchor=current)
                if crossing is not None and not self._same_point(crossing, current_segment[-1]):
                    current_segment.append(crossing)
                self._emit(segments, current_segment)
                current_segment = []

            elif inside_next:
                # Entering the window
                crossing = self._boundary_crossing(current, following, anchor=following)
                current_segment = []
                if crossing is not None and not self._same_point(crossing, following):
                    current_segment.append(crossing)
                current_segment.append(following)

            else:
                # Both ends outside; keep the chord if it passes through
                intersections = self._line_box_intersection(current, following)
                if len(intersections) == 2:
                    # Order the chord along the direction of travel
                    intersections.sort(
                        key=lambda pt: abs(pt[0] - current[0]) + abs(pt[1] - current[1])
                    )
                    self._emit(segments, intersections)

        self._emit(segments, current_segment)
        return segments

    def clip_polygon(self, ring):
        """
        Clip a closed ring to the window.

        Returns:
            tuple: (ring or None, approximate) where approximate is True when the
            original ring is kept unclipped by the inclusion fallback
        """
        if len(ring) == 0:
            return None, False

        points = np.asarray(ring, dtype=float)
        inside_mask = self.is_inside(points[:, 0], points[:, 1])

        if np.all(inside_mask):
            return [tuple(pt) for pt in ring], False

        try:
            clipped = self.intersector.intersect(ring, self.window.ring())
        except IntersectionError as exc:
            print(f"[WARN] Ring intersection failed, using inclusion test: {exc}")
            clipped = None

        if clipped is not None:
            return [self._clamp(pt) for pt in clipped], False

        centroid = ring_centroid(ring)
        if centroid is not None and self.is_inside(*centroid):
            return [tuple(pt) for pt in ring], True
        if np.any(inside_mask):
            return [tuple(pt) for pt in ring], True
        return None, False

    def clip(self, feature):
        """
        Clip a feature to the window.

        Returns:
            list: Zero or more features of the same kind, carrying the source
            properties
        """
        if isinstance(feature, LineFeature):
            return [
                replace(feature, points=tuple(segment))
                for segment in self.clip_linestring(feature.points)
            ]

        if isinstance(feature, AreaFeature):
            ring, approximate = self.clip_polygon(feature.ring)
            if ring is None:
                return []
            if approximate:
                self.fallback_ids.append(feature.source_id)
            return [replace(feature, ring=tuple(ring), approximate=approximate)]

        raise TypeError(f"Unsupported feature type: {type(feature).__name__}")
