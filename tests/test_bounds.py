import unittest

from riverclip.utils.bounds import (
    BoundingWindow,
    BoundsError,
    buffered_window,
    parse_bounds,
    validate_bounds,
    window_extent_km,
)
from riverclip.utils.osm_query import build_land_query, build_water_query, overpass_bbox


class BoundingWindowTests(unittest.TestCase):
    def test_from_mapping_accepts_numeric_strings(self):
        window = BoundingWindow.from_mapping({"north": "52.51", "south": 52.5, "east": 13.41, "west": "13.4"})
        self.assertEqual(window, BoundingWindow(north=52.51, south=52.5, east=13.41, west=13.4))

    def test_from_mapping_rejects_missing_and_garbage(self):
        for mapping in (
            {"north": 1, "south": 0, "east": 1},
            {"north": "x", "south": 0, "east": 1, "west": 0},
            {"north": float("nan"), "south": 0, "east": 1, "west": 0},
            None,
        ):
            with self.assertRaises(BoundsError):
                BoundingWindow.from_mapping(mapping)

    def test_center_and_ring(self):
        window = BoundingWindow(north=2.0, south=0.0, east=4.0, west=2.0)
        self.assertEqual(window.center, (3.0, 1.0))
        ring = window.ring()
        self.assertEqual(ring[0], ring[-1])
        self.assertEqual(len(ring), 5)


class ValidateBoundsTests(unittest.TestCase):
    def test_inverted_bounds_rejected(self):
        with self.assertRaises(BoundsError):
            validate_bounds(BoundingWindow(north=0.0, south=1.0, east=1.0, west=0.0))
        with self.assertRaises(BoundsError):
            validate_bounds(BoundingWindow(north=1.0, south=0.0, east=0.0, west=0.0))

    def test_out_of_range_rejected(self):
        with self.assertRaises(BoundsError):
            validate_bounds(BoundingWindow(north=91.0, south=90.5, east=1.0, west=0.0))

    def test_oversized_window_rejected(self):
        with self.assertRaises(BoundsError):
            parse_bounds({"north": 2.0, "south": 0.0, "east": 0.1, "west": 0.0})

    def test_small_window_accepted(self):
        window = parse_bounds({"north": 52.51, "south": 52.50, "east": 13.41, "west": 13.40})
        self.assertEqual(window.north, 52.51)

    def test_custom_limit(self):
        window = BoundingWindow(north=0.1, south=0.0, east=0.1, west=0.0)
        with self.assertRaises(BoundsError):
            validate_bounds(window, max_km=5.0)
        self.assertIs(validate_bounds(window, max_km=20.0), window)

    def test_extent_shrinks_longitude_with_latitude(self):
        lat_km, lon_km = window_extent_km(BoundingWindow(north=60.5, south=59.5, east=1.0, west=0.0))
        self.assertAlmostEqual(lat_km, 111.0)
        self.assertAlmostEqual(lon_km, 55.5, places=1)


class BufferedWindowTests(unittest.TestCase):
    def test_equator_buffer_is_symmetric(self):
        window = BoundingWindow(north=0.5, south=-0.5, east=1.0, west=0.0)
        fetch = buffered_window(window, 0.01)
        self.assertAlmostEqual(fetch.north, 0.51)
        self.assertAlmostEqual(fetch.south, -0.51)
        self.assertAlmostEqual(fetch.east, 1.01, places=6)
        self.assertAlmostEqual(fetch.west, -0.01, places=6)

    def test_longitude_buffer_grows_at_high_latitude(self):
        window = BoundingWindow(north=60.01, south=59.99, east=10.01, west=10.0)
        fetch = buffered_window(window, 0.01)
        self.assertAlmostEqual(fetch.east - window.east, 0.02, places=4)


class OverpassQueryTests(unittest.TestCase):
    def test_bbox_order_is_south_west_north_east(self):
        window = BoundingWindow(north=52.51, south=52.5, east=13.41, west=13.4)
        self.assertEqual(overpass_bbox(window), "52.5,13.4,52.51,13.41")

    def test_queries_recurse_to_nodes(self):
        window = BoundingWindow(north=52.51, south=52.5, east=13.41, west=13.4)
        water = build_water_query(window)
        land = build_land_query(window, timeout=60)
        self.assertIn('way["natural"="water"](52.5,13.4,52.51,13.41);', water)
        self.assertIn("brook", water)
        self.assertIn("[timeout:60]", land)
        for query in (water, land):
            self.assertIn("out body;", query)
            self.assertIn("out skel qt;", query)


if __name__ == "__main__":
    unittest.main()
