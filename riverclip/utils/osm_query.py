"""Overpass QL query builders for the element arrays the pipeline consumes."""

WATERWAY_PATTERN = "river|stream|canal|drain|ditch|riverbank|dam|weir|brook"
LAND_USE_EXCLUDE = "reservoir|basin|water"
NATURAL_EXCLUDE = "water|coastline|bay|glacier"


def overpass_bbox(window):
    """Overpass bbox filter: south,west,north,east."""
    return f"{window.south},{window.west},{window.north},{window.east}"


def build_water_query(window, timeout=25):
    """
    Query for waterway lines and water areas inside a window.

    `out body; >; out skel qt;` returns the ways followed by the nodes they
    reference, which is the shape process_river_data() expects.
    """
    bbox = overpass_bbox(window)
    return f"""
    [out:json][timeout:{timeout}];
    (
      way["waterway"~"{WATERWAY_PATTERN}"]({bbox});
      way["natural"="water"]({bbox});
      way["waterway"="dock"]({bbox});
      way["waterway"="basin"]({bbox});
    );
    out body;
    >;
    out skel qt;
    """


def build_land_query(window, timeout=25):
    """Query for land-cover areas, leaving out water-like landuse and natural values."""
    bbox = overpass_bbox(window)
    return f"""
    [out:json][timeout:{timeout}];
    (
      way["landuse"]["landuse"!~"{LAND_USE_EXCLUDE}"]({bbox});
      way["natural"]["natural"!~"{NATURAL_EXCLUDE}"]({bbox});
    );
    out body;
    >;
    out skel qt;
    """
