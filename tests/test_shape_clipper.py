import unittest

from riverclip.utils.bounds import BoundingWindow
from riverclip.utils.feature_builder import AreaFeature, LineFeature
from riverclip.utils.shape_clipper import (
    IntersectionError,
    RingIntersector,
    ShapelyIntersector,
    SutherlandHodgmanIntersector,
    WindowClipper,
    get_ring_intersector,
)

WINDOW = BoundingWindow(north=1.0, south=0.0, east=1.0, west=0.0)
TOL = 1e-6


def _line(points, **kwargs):
    return LineFeature(points=tuple(points), source_id=1, way_type="river",
                       tags={"waterway": "river"}, width=20.0, source_ids=(1,), **kwargs)


def _area(ring):
    return AreaFeature(ring=tuple(ring), source_id=7, way_type="water", tags={"natural": "water"})


def _within(point, window=WINDOW, tol=TOL):
    lon, lat = point
    return (window.west - tol <= lon <= window.east + tol
            and window.south - tol <= lat <= window.north + tol)


class _FailingIntersector(RingIntersector):
    def intersect(self, subject, clip):
        raise IntersectionError("degenerate")


class ClipLinestringTests(unittest.TestCase):
    def setUp(self):
        self.clipper = WindowClipper(WINDOW)

    def test_fully_inside_line_is_unchanged(self):
        points = [(0.1, 0.1), (0.5, 0.2), (0.9, 0.8)]
        feature = _line(points)
        clipped = self.clipper.clip(feature)
        self.assertEqual(clipped, [feature])

    def test_single_exit_crossing_lands_on_edge(self):
        segments = self.clipper.clip_linestring([(0.5, 0.5), (1.5, 0.5)])
        self.assertEqual(len(segments), 1)
        self.assertEqual(segments[0][0], (0.5, 0.5))
        self.assertEqual(len(segments[0]), 2)
        self.assertAlmostEqual(segments[0][1][0], 1.0)
        self.assertAlmostEqual(segments[0][1][1], 0.5)

    def test_single_entry_crossing_lands_on_edge(self):
        segments = self.clipper.clip_linestring([(0.5, -1.0), (0.5, 0.5)])
        self.assertEqual(len(segments), 1)
        self.assertAlmostEqual(segments[0][0][0], 0.5)
        self.assertEqual(segments[0][0][1], 0.0)
        self.assertEqual(segments[0][1], (0.5, 0.5))

    def test_line_leaving_and_reentering_splits(self):
        points = [(0.2, 0.5), (0.5, 1.5), (0.8, 0.5)]
        segments = self.clipper.clip_linestring(points)
        self.assertEqual(len(segments), 2)
        self.assertEqual(segments[0][0], (0.2, 0.5))
        self.assertEqual(segments[0][-1][1], 1.0)
        self.assertEqual(segments[1][0][1], 1.0)
        self.assertEqual(segments[1][-1], (0.8, 0.5))

    def test_passing_chord_between_outside_points(self):
        segments = self.clipper.clip_linestring([(-1.0, 0.5), (2.0, 0.5)])
        self.assertEqual(len(segments), 1)
        self.assertEqual(segments[0], [(0.0, 0.5), (1.0, 0.5)])

    def test_outside_segment_that_misses_window_is_dropped(self):
        self.assertEqual(self.clipper.clip_linestring([(2.0, 2.0), (3.0, 2.5)]), [])

    def test_exit_from_corner_uses_far_edge(self):
        window = BoundingWindow(north=52.51, south=52.50, east=13.41, west=13.40)
        clipper = WindowClipper(window)
        segments = clipper.clip_linestring([(13.40, 52.50), (13.42, 52.52)])
        self.assertEqual(len(segments), 1)
        self.assertEqual(segments[0][0], (13.40, 52.50))
        self.assertAlmostEqual(segments[0][1][0], 13.41)
        self.assertAlmostEqual(segments[0][1][1], 52.51)

    def test_zero_length_segments_are_skipped(self):
        segments = self.clipper.clip_linestring([(0.2, 0.2), (0.2, 0.2), (0.4, 0.4)])
        self.assertEqual(segments, [[(0.2, 0.2), (0.4, 0.4)]])

    def test_output_points_are_contained(self):
        points = [(-0.5, -0.5), (0.3, 0.4), (1.7, 0.9), (0.6, 1.8), (0.1, 0.9), (-2.0, 3.0)]
        for segment in self.clipper.clip_linestring(points):
            self.assertGreaterEqual(len(segment), 2)
            for point in segment:
                self.assertTrue(_within(point), point)

    def test_clipped_lines_keep_source_properties(self):
        clipped = self.clipper.clip(_line([(0.5, 0.5), (1.5, 0.5)]))
        self.assertEqual(len(clipped), 1)
        self.assertEqual(clipped[0].source_id, 1)
        self.assertEqual(clipped[0].width, 20.0)
        self.assertEqual(clipped[0].tags, {"waterway": "river"})


class ClipPolygonTests(unittest.TestCase):
    def test_fully_inside_area_is_unchanged(self):
        ring = [(0.1, 0.1), (0.4, 0.1), (0.4, 0.4), (0.1, 0.4), (0.1, 0.1)]
        feature = _area(ring)
        for engine in ("sutherland_hodgman", "shapely"):
            clipper = WindowClipper(WINDOW, intersector=get_ring_intersector(engine))
            self.assertEqual(clipper.clip(feature), [feature])

    def test_partially_outside_area_is_cut_to_window(self):
        ring = [(0.5, 0.5), (1.5, 0.5), (1.5, 1.5), (0.5, 1.5), (0.5, 0.5)]
        for engine in ("sutherland_hodgman", "shapely"):
            clipper = WindowClipper(WINDOW, intersector=get_ring_intersector(engine))
            clipped = clipper.clip(_area(ring))
            self.assertEqual(len(clipped), 1)
            result = clipped[0]
            self.assertFalse(result.approximate)
            self.assertEqual(result.ring[0], result.ring[-1])
            self.assertEqual(len(set(result.ring)), 4)
            for point in result.ring:
                self.assertTrue(_within(point), point)
            self.assertIn((1.0, 1.0), result.ring)

    def test_area_fully_outside_is_dropped(self):
        ring = [(2.0, 2.0), (3.0, 2.0), (3.0, 3.0), (2.0, 3.0), (2.0, 2.0)]
        self.assertEqual(WindowClipper(WINDOW).clip(_area(ring)), [])

    def test_area_covering_window_becomes_window(self):
        ring = [(-1.0, -1.0), (2.0, -1.0), (2.0, 2.0), (-1.0, 2.0), (-1.0, -1.0)]
        clipped = WindowClipper(WINDOW).clip(_area(ring))
        self.assertEqual(len(clipped), 1)
        self.assertEqual(set(clipped[0].ring), {(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)})

    def test_failed_intersection_keeps_ring_with_vertex_inside(self):
        ring = [(0.5, 0.5), (1.5, 0.5), (1.5, 1.5), (0.5, 1.5), (0.5, 0.5)]
        clipper = WindowClipper(WINDOW, intersector=_FailingIntersector())
        clipped = clipper.clip(_area(ring))
        self.assertEqual(len(clipped), 1)
        self.assertTrue(clipped[0].approximate)
        self.assertEqual(clipped[0].ring, tuple(ring))
        self.assertEqual(clipper.fallback_ids, [7])

    def test_ring_touching_east_edge_is_kept_by_vertex_inclusion(self):
        # The intersection collapses to a single point on the east edge
        ring = [(1.0, 0.4), (2.0, 0.4), (2.0, 0.6), (1.0, 0.4)]
        clipper = WindowClipper(WINDOW)
        self.assertIsNone(SutherlandHodgmanIntersector().intersect(ring, WINDOW.ring()))
        clipped = clipper.clip(_area(ring))
        self.assertEqual(len(clipped), 1)
        self.assertTrue(clipped[0].approximate)
        self.assertEqual(clipped[0].ring, tuple(ring))
        self.assertEqual(clipper.fallback_ids, [7])

    def test_failed_intersection_drops_ring_far_away(self):
        ring = [(5.0, 5.0), (6.0, 5.0), (6.0, 6.0), (5.0, 5.0)]
        clipper = WindowClipper(WINDOW, intersector=_FailingIntersector())
        self.assertEqual(clipper.clip(_area(ring)), [])


class IntersectorTests(unittest.TestCase):
    def test_sutherland_hodgman_handles_clockwise_clip_ring(self):
        subject = [(0.5, 0.5), (1.5, 0.5), (1.5, 1.5), (0.5, 1.5)]
        clockwise = list(reversed(WINDOW.ring()))
        result = SutherlandHodgmanIntersector().intersect(subject, clockwise)
        self.assertIsNotNone(result)
        self.assertEqual(result[0], result[-1])
        self.assertEqual(len(set(result)), 4)

    def test_disjoint_rings_return_none(self):
        subject = [(2.0, 2.0), (3.0, 2.0), (3.0, 3.0), (2.0, 2.0)]
        self.assertIsNone(SutherlandHodgmanIntersector().intersect(subject, WINDOW.ring()))
        self.assertIsNone(ShapelyIntersector().intersect(subject, WINDOW.ring()))

    def test_unknown_engine_rejected(self):
        with self.assertRaises(ValueError):
            get_ring_intersector("weiler")


if __name__ == "__main__":
    unittest.main()
