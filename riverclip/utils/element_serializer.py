"""Conversion of processed features back to OSM-like elements and to GeoJSON."""

from .feature_builder import LineFeature
from .way_classifier import LINE, LINE_WATERWAYS

AREA_CLASS_KEYS = ('natural', 'waterway', 'landuse', 'building')


def _format_width(width):
    if width is None:
        return None
    return f"{width:g}"


def _line_tags(feature):
    tags = dict(feature.tags)
    if feature.way_type in LINE_WATERWAYS:
        tags['waterway'] = feature.way_type
    else:
        tags.setdefault('waterway', 'river')
    width = _format_width(feature.width)
    if width is not None:
        tags['width'] = width
    if feature.is_merged:
        tags['merged'] = 'yes'
        tags['union'] = 'yes'
    return tags


def _area_tags(feature):
    tags = dict(feature.tags)
    # Untyped rings are reported as water bodies
    if not any(key in tags for key in AREA_CLASS_KEYS):
        tags['natural'] = 'water'
    if feature.approximate:
        tags['clipped'] = 'approximate'
    return tags


def serialize_features(features):
    """
    Convert features into node and way elements.

    Node ids are `<kind>-node-<featureIndex>-<pointIndex>`, way ids
    `<kind>-way-<featureIndex>`. All ways come first, then their nodes.

    Args:
        features: LineFeatures and AreaFeatures in output order

    Returns:
        list: Overpass-shaped element dicts
    """
    way_elements = []
    node_elements = []

    for index, feature in enumerate(features):
        kind = feature.kind
        node_ids = []
        for point_index, (lon, lat) in enumerate(feature.points):
            node_id = f"{kind}-node-{index}-{point_index}"
            node_ids.append(node_id)
            node_elements.append({
                'type': 'node',
                'id': node_id,
                'lat': lat,
                'lon': lon,
            })

        way_elements.append({
            'type': 'way',
            'id': f"{kind}-way-{index}",
            'nodes': node_ids,
            'tags': _line_tags(feature) if kind == LINE else _area_tags(feature),
        })

    return way_elements + node_elements


def feature_to_geojson(feature, index=None):
    """Single GeoJSON Feature for a LineFeature or AreaFeature."""
    coordinates = [[lon, lat] for lon, lat in feature.points]
    properties = dict(feature.tags)
    properties['id'] = feature.source_id
    properties['way_type'] = feature.way_type

    if isinstance(feature, LineFeature):
        geometry = {'type': 'LineString', 'coordinates': coordinates}
        properties['width'] = feature.width
        properties['merged'] = feature.is_merged
        properties['source_ids'] = list(feature.source_ids)
    else:
        geometry = {'type': 'Polygon', 'coordinates': [coordinates]}
        properties['approximate'] = feature.approximate

    result = {
        'type': 'Feature',
        'geometry': geometry,
        'properties': properties,
    }
    if index is not None:
        result['id'] = index
    return result


def features_to_geojson(features):
    """GeoJSON FeatureCollection, coordinates in [lon, lat] order."""
    return {
        'type': 'FeatureCollection',
        'features': [feature_to_geojson(feature, index) for index, feature in enumerate(features)],
    }
