"""Parsing of Overpass `out body` element arrays into node lookups and ways."""

import math
from dataclasses import dataclass, field


@dataclass(frozen=True)
class OSMWay:
    """An ordered polyline reference; tags drive classification."""
    id: object
    node_ids: tuple
    tags: dict = field(default_factory=dict)

    @property
    def is_closed(self):
        return len(self.node_ids) > 2 and self.node_ids[0] == self.node_ids[-1]


def extract_elements(data):
    """Accept either an Overpass JSON document or a bare element list."""
    if data is None:
        return []
    if isinstance(data, dict):
        return list(data.get('elements', []) or [])
    return list(data)


def resolve_nodes(elements):
    """
    Build the node id -> (lon, lat) lookup.

    Args:
        elements: Mixed node/way elements in any order

    Returns:
        dict: Every node element keyed by id, coordinates in (lon, lat) order
    """
    node_map = {}
    for element in elements:
        if not isinstance(element, dict) or element.get('type') != 'node':
            continue
        try:
            lon = float(element.get('lon'))
            lat = float(element.get('lat'))
        except (TypeError, ValueError):
            # Unusable coordinates; ways referencing it see a missing node
            continue
        if not (math.isfinite(lon) and math.isfinite(lat)):
            continue
        node_map[element.get('id')] = (lon, lat)
    return node_map


def iter_ways(elements):
    """
    Yield an OSMWay for each way element, in input order.

    Ways whose `nodes` is not a list or whose `tags` is not a mapping are
    skipped.
    """
    for element in elements:
        if not isinstance(element, dict) or element.get('type') != 'way':
            continue
        node_ids = element.get('nodes') or []
        tags = element.get('tags') or {}
        if not isinstance(node_ids, (list, tuple)) or not isinstance(tags, dict):
            print(f"[WARN] Skipping malformed way {element.get('id')}")
            continue
        yield OSMWay(
            id=element.get('id'),
            node_ids=tuple(node_ids),
            tags=dict(tags),
        )


def resolve_way_points(way, node_map):
    """Resolve a way's node ids, silently dropping ids absent from the lookup."""
    points = []
    for node_id in way.node_ids:
        point = node_map.get(node_id)
        if point is not None:
            points.append(point)
    return points
