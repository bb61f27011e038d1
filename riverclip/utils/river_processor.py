"""
River and water-area processing pipeline.

Raw Overpass elements are resolved, classified, built into features, clipped
to the bounding window, merged where line ends meet, and serialized back to
OSM-shaped elements. The run is synchronous and never mutates its input.
"""

from dataclasses import dataclass

from .app_config import (
    DEFAULT_CLIP_TOLERANCE,
    DEFAULT_MERGE_TOLERANCE,
    DEFAULT_POLYGON_ENGINE,
    get_clip_tolerance,
    get_merge_tolerance,
    get_polygon_engine,
    parse_env_bool,
)
from .bounds import BoundingWindow
from .element_serializer import serialize_features
from .feature_builder import LineFeature, build_feature
from .osm_parser import extract_elements, iter_ways, resolve_nodes
from .segment_merger import SegmentMerger
from .shape_clipper import WindowClipper, get_ring_intersector
from .way_classifier import SKIP, classify_way


@dataclass(frozen=True)
class ProcessorOptions:
    """Explicit per-run settings for the pipeline."""
    merge_tolerance: float = DEFAULT_MERGE_TOLERANCE
    clip_tolerance: float = DEFAULT_CLIP_TOLERANCE
    polygon_engine: str = DEFAULT_POLYGON_ENGINE
    merge_lines: bool = True

    @classmethod
    def from_env(cls):
        return cls(
            merge_tolerance=get_merge_tolerance(),
            clip_tolerance=get_clip_tolerance(),
            polygon_engine=get_polygon_engine(),
        )

    def with_overrides(self, overrides):
        """
        Copy with values from a request options dict.

        Unknown keys are ignored; tolerances must be positive numbers.

        Raises:
            ValueError: on unusable override values
        """
        if not overrides:
            return self

        values = {
            'merge_tolerance': self.merge_tolerance,
            'clip_tolerance': self.clip_tolerance,
            'polygon_engine': self.polygon_engine,
            'merge_lines': self.merge_lines,
        }
        for key in ('merge_tolerance', 'clip_tolerance'):
            if overrides.get(key) is not None:
                value = float(overrides[key])
                if not value > 0:
                    raise ValueError(f"{key} must be positive")
                values[key] = value
        if overrides.get('polygon_engine'):
            engine = str(overrides['polygon_engine']).strip().lower()
            get_ring_intersector(engine)
            values['polygon_engine'] = engine
        if 'merge_lines' in overrides:
            values['merge_lines'] = parse_env_bool(overrides['merge_lines'], default=self.merge_lines)
        return ProcessorOptions(**values)


def build_features(elements):
    """
    Resolve and classify every way into features.

    Returns:
        tuple: (features, skipped_ids, review_ids)
    """
    node_map = resolve_nodes(elements)
    features = []
    skipped_ids = []
    review_ids = []

    for way in iter_ways(elements):
        classified = classify_way(way, node_map)
        if classified.kind == SKIP:
            skipped_ids.append(way.id)
            continue
        if classified.needs_review:
            review_ids.append(way.id)
        features.append(build_feature(classified))

    return features, skipped_ids, review_ids


def clip_features(features, clipper):
    """Clip features, splitting them into (lines, areas)."""
    lines = []
    areas = []
    for feature in features:
        for clipped in clipper.clip(feature):
            if isinstance(clipped, LineFeature):
                lines.append(clipped)
            else:
                areas.append(clipped)
    return lines, areas


def process_river_data(data, bounds, options=None):
    """
    Clip and merge OSM water features to a bounding window.

    Args:
        data: Overpass JSON document or bare element list
        bounds: BoundingWindow or {north, south, east, west} mapping, already
            validated by the caller
        options: ProcessorOptions (None = values from the environment)

    Returns:
        dict: {'elements': [...], 'features': [...], 'metadata': {...}}
    """
    options = options or ProcessorOptions.from_env()
    window = bounds if isinstance(bounds, BoundingWindow) else BoundingWindow.from_mapping(bounds)
    elements = extract_elements(data)

    features, skipped_ids, review_ids = build_features(elements)
    if review_ids:
        print(f"[WARN] {len(review_ids)} way(s) classified as area by fallback rule: {review_ids}")

    clipper = WindowClipper(
        window,
        tolerance=options.clip_tolerance,
        intersector=get_ring_intersector(options.polygon_engine),
    )
    lines, areas = clip_features(features, clipper)

    merger = SegmentMerger(tolerance=options.merge_tolerance)
    clipped_line_count = len(lines)
    if options.merge_lines:
        lines = merger.merge(lines)

    output_features = lines + areas
    return {
        'elements': serialize_features(output_features),
        'features': output_features,
        'metadata': {
            'bounds': window.to_dict(),
            'input_way_count': len(features) + len(skipped_ids),
            'skipped_way_ids': skipped_ids,
            'review_way_ids': review_ids,
            'clipped_line_count': clipped_line_count,
            'line_count': len(lines),
            'area_count': len(areas),
            'approximate_area_ids': list(clipper.fallback_ids),
            'merge_passes': merger.passes,
            'merge_count': merger.merge_count,
            'polygon_engine': options.polygon_engine,
        },
    }
