"""Line and area feature types, and their construction from classified ways."""

from dataclasses import dataclass, field

from .way_classifier import AREA, DEFAULT_LINE_WIDTH, LINE, SKIP, WATERWAY_WIDTHS


@dataclass(frozen=True)
class LineFeature:
    """
    Open path in (lon, lat) order.

    `source_ids` lists every way that contributed to the path; it holds more
    than one id only after merging.
    """
    points: tuple
    source_id: object
    way_type: str
    tags: dict = field(default_factory=dict)
    width: float = DEFAULT_LINE_WIDTH
    source_ids: tuple = ()

    kind = LINE

    @property
    def start(self):
        return self.points[0]

    @property
    def end(self):
        return self.points[-1]

    @property
    def is_merged(self):
        return len(self.source_ids) > 1


@dataclass(frozen=True)
class AreaFeature:
    """
    Closed ring in (lon, lat) order, first point repeated at the end.

    `approximate` marks a ring kept unclipped because the window intersection
    was empty or failed.
    """
    ring: tuple
    source_id: object
    way_type: str
    tags: dict = field(default_factory=dict)
    approximate: bool = False

    kind = AREA

    @property
    def points(self):
        return self.ring


def parse_width(tags):
    """
    Parse an explicit `width` tag.

    Returns:
        float or None: positive width in meters, None if absent or unusable
    """
    raw = tags.get('width')
    if raw is None:
        return None
    try:
        # Might be "12", "12m" or "12 m"
        value = float(str(raw).replace('m', '').strip())
    except (ValueError, AttributeError):
        return None
    if value != value or value <= 0:
        return None
    return value


def resolve_width(tags):
    """Explicit width, else the waterway subtype default, else the generic default."""
    explicit = parse_width(tags)
    if explicit is not None:
        return explicit
    return WATERWAY_WIDTHS.get(tags.get('waterway'), DEFAULT_LINE_WIDTH)


def derive_way_type(tags, kind):
    for key in ('waterway', 'natural', 'landuse'):
        if tags.get(key):
            return tags[key]
    if 'building' in tags:
        return 'building'
    return 'river' if kind == LINE else 'area'


def close_ring(points):
    points = list(points)
    if points and points[0] != points[-1]:
        points.append(points[0])
    return tuple(points)


def build_feature(classified):
    """
    Turn a classified way into a LineFeature or AreaFeature.

    Args:
        classified: ClassifiedWay from classify_way()

    Returns:
        LineFeature, AreaFeature, or None for skipped ways
    """
    if classified.kind == SKIP:
        return None

    way = classified.way
    tags = dict(way.tags)
    way_type = derive_way_type(tags, classified.kind)

    if classified.kind == LINE:
        return LineFeature(
            points=tuple(classified.points),
            source_id=way.id,
            way_type=way_type,
            tags=tags,
            width=resolve_width(tags),
            source_ids=(way.id,),
        )

    return AreaFeature(
        ring=close_ring(classified.points),
        source_id=way.id,
        way_type=way_type,
        tags=tags,
    )
