"""Classification of OSM ways into open paths and closed areas."""

from dataclasses import dataclass

from .osm_parser import resolve_way_points

LINE = "line"
AREA = "area"
SKIP = "skip"

# Rule names, in priority order
RULE_WATER_AREA = "water_area"
RULE_CLOSED_RING = "closed_ring"
RULE_WATERWAY_LINE = "waterway_line"
RULE_FALLBACK = "fallback"
RULE_INSUFFICIENT = "insufficient_geometry"

AREA_WATERWAYS = frozenset({"riverbank", "dock", "basin"})

# Default widths in meters by waterway subtype
WATERWAY_WIDTHS = {
    "river": 20.0,
    "canal": 15.0,
    "stream": 3.0,
    "brook": 2.0,
    "ditch": 1.0,
    "drain": 5.0,
}
LINE_WATERWAYS = frozenset(WATERWAY_WIDTHS)
DEFAULT_LINE_WIDTH = 5.0


@dataclass(frozen=True)
class ClassifiedWay:
    kind: str
    points: tuple
    way: object
    rule: str

    @property
    def needs_review(self):
        """True when only the catch-all area rule matched."""
        return self.rule == RULE_FALLBACK


def count_distinct(points):
    return len(set(points))


def match_rule(way, points):
    """
    Return the first matching classification rule for a way.

    Depends only on tags, node ids and resolved points, so the same input
    always lands on the same rule.
    """
    tags = way.tags
    if tags.get("natural") == "water" or tags.get("waterway") in AREA_WATERWAYS:
        return RULE_WATER_AREA
    if way.is_closed and count_distinct(points) >= 3:
        return RULE_CLOSED_RING
    if tags.get("waterway") in LINE_WATERWAYS:
        return RULE_WATERWAY_LINE
    return RULE_FALLBACK


def classify_way(way, node_map):
    """
    Decide whether a way is a line, an area, or unusable.

    Args:
        way: OSMWay to classify
        node_map: node id -> (lon, lat) lookup from resolve_nodes()

    Returns:
        ClassifiedWay: kind is LINE, AREA or SKIP; points are the resolved
        coordinates with missing nodes dropped
    """
    points = tuple(resolve_way_points(way, node_map))
    if len(points) < 2:
        return ClassifiedWay(SKIP, points, way, RULE_INSUFFICIENT)

    rule = match_rule(way, points)
    kind = LINE if rule == RULE_WATERWAY_LINE else AREA

    # An area needs three distinct corners; anything thinner stays a path
    if kind == AREA and count_distinct(points) < 3:
        kind = LINE

    return ClassifiedWay(kind, points, way, rule)
