"""Bounding window type and the caller-side checks applied before processing."""

import math
from dataclasses import dataclass

from .app_config import get_bounds_buffer_degrees, get_max_bounds_km

KM_PER_DEGREE = 111.0
METERS_PER_DEGREE = 111320.0
BOUND_KEYS = ('north', 'south', 'east', 'west')


class BoundsError(ValueError):
    """Raised when a bounding window is malformed, inverted or too large."""


@dataclass(frozen=True)
class BoundingWindow:
    """Rectangular lat/lon window in decimal degrees."""

    north: float
    south: float
    east: float
    west: float

    @classmethod
    def from_mapping(cls, mapping):
        """
        Build a window from a `{north, south, east, west}` mapping.

        Values may be numbers or numeric strings (query parameters).

        Raises:
            BoundsError: if a key is missing or a value is not a finite number
        """
        if not isinstance(mapping, dict):
            raise BoundsError("Invalid bounds provided")

        values = {}
        for key in BOUND_KEYS:
            if key not in mapping or mapping[key] is None:
                raise BoundsError(f"Missing bound: {key}")
            raw = mapping[key]
            if isinstance(raw, bool):
                raise BoundsError(f"Invalid bounds parameters: {key}")
            try:
                value = float(raw)
            except (TypeError, ValueError):
                raise BoundsError(f"Invalid bounds parameters: {key}")
            if math.isnan(value) or math.isinf(value):
                raise BoundsError(f"Invalid bounds parameters: {key}")
            values[key] = value
        return cls(**values)

    @property
    def center(self):
        """Window center as (lon, lat)."""
        return ((self.east + self.west) / 2.0, (self.north + self.south) / 2.0)

    def to_dict(self):
        return {'north': self.north, 'south': self.south, 'east': self.east, 'west': self.west}

    def ring(self):
        """Closed counter-clockwise ring of the window corners, (lon, lat) order."""
        return [
            (self.west, self.south),
            (self.east, self.south),
            (self.east, self.north),
            (self.west, self.north),
            (self.west, self.south),
        ]


def window_extent_km(window):
    """
    Approximate window size in kilometres.

    Returns:
        tuple: (lat_km, lon_km); longitude shrinks with cos(center latitude)
    """
    center_lat = (window.north + window.south) / 2.0
    lat_km = abs(window.north - window.south) * KM_PER_DEGREE
    lon_km = abs(window.east - window.west) * KM_PER_DEGREE * math.cos(math.radians(center_lat))
    return lat_km, lon_km


def validate_bounds(window, max_km=None):
    """
    Reject windows the pipeline must never see.

    Args:
        window: BoundingWindow to check
        max_km: Largest allowed side in km (None = configured default)

    Returns:
        BoundingWindow: the same window, for chaining

    Raises:
        BoundsError: on inverted, out-of-range or oversized windows
    """
    if window.north <= window.south or window.east <= window.west:
        raise BoundsError("Invalid bounds order")

    if not (-90.0 <= window.south <= 90.0 and -90.0 <= window.north <= 90.0):
        raise BoundsError("Latitude out of valid range")
    if not (-180.0 <= window.west <= 180.0 and -180.0 <= window.east <= 180.0):
        raise BoundsError("Longitude out of valid range")

    limit = get_max_bounds_km() if max_km is None else max_km
    lat_km, lon_km = window_extent_km(window)
    if lat_km > limit or lon_km > limit:
        raise BoundsError(
            f"Selected area too large ({lat_km:.1f}km x {lon_km:.1f}km). "
            f"Please select an area smaller than {limit:g}km x {limit:g}km."
        )
    return window


def parse_bounds(mapping, max_km=None):
    """Parse and validate a bounds mapping in one step."""
    return validate_bounds(BoundingWindow.from_mapping(mapping), max_km=max_km)


def buffered_window(window, buffer_degrees=None):
    """
    Enlarge a window so features crossing its edges are fetched whole.

    The latitude buffer is applied as-is; the longitude buffer is scaled by the
    center latitude so both cover about the same ground distance.
    """
    buffer_lat = get_bounds_buffer_degrees() if buffer_degrees is None else buffer_degrees
    center_lat = (window.north + window.south) / 2.0
    meters_per_degree_lon = METERS_PER_DEGREE * math.cos(math.radians(center_lat))
    if meters_per_degree_lon <= 0:
        buffer_lon = buffer_lat
    else:
        buffer_lon = (METERS_PER_DEGREE * buffer_lat) / meters_per_degree_lon

    return BoundingWindow(
        north=min(90.0, window.north + buffer_lat),
        south=max(-90.0, window.south - buffer_lat),
        east=min(180.0, window.east + buffer_lon),
        west=max(-180.0, window.west - buffer_lon),
    )
