"""Application configuration helpers."""

import os


DEFAULT_MERGE_TOLERANCE = 5e-5
DEFAULT_CLIP_TOLERANCE = 1e-6
DEFAULT_POLYGON_ENGINE = "sutherland_hodgman"
POLYGON_ENGINES = {"sutherland_hodgman", "shapely"}
DEFAULT_MAX_BOUNDS_KM = 100.0
DEFAULT_BOUNDS_BUFFER_DEGREES = 0.01
DEFAULT_MAX_INPUT_ELEMENTS = 200000


def parse_env_bool(value, default=False):
    """Parse a boolean-like environment value with a fallback default."""
    if value is None:
        return default
    normalized = str(value).strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def get_cors_origins():
    """
    Return CORS origins from env, or localhost-only defaults.

    `RIVERCLIP_CORS_ORIGINS` supports a comma-separated list.
    """
    raw = os.getenv('RIVERCLIP_CORS_ORIGINS', '')
    if raw.strip():
        return [origin.strip() for origin in raw.split(',') if origin.strip()]
    return [r"^http://localhost(:\d+)?$", r"^http://127\.0\.0\.1(:\d+)?$"]


def parse_env_int(name, default):
    """Parse an integer environment value with fallback."""
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def parse_env_float(name, default):
    """Parse a float environment value with fallback; NaN counts as invalid."""
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return default
    if value != value:
        return default
    return value


def _positive_float(name, default):
    value = parse_env_float(name, default)
    return value if value > 0 else default


def get_merge_tolerance():
    """Endpoint distance (degrees, L1) under which two line ends are joined."""
    return _positive_float("RIVERCLIP_MERGE_TOLERANCE", DEFAULT_MERGE_TOLERANCE)


def get_clip_tolerance():
    return _positive_float("RIVERCLIP_CLIP_TOLERANCE", DEFAULT_CLIP_TOLERANCE)


def get_polygon_engine():
    engine = os.getenv("RIVERCLIP_POLYGON_ENGINE", DEFAULT_POLYGON_ENGINE).strip().lower()
    if engine in POLYGON_ENGINES:
        return engine
    return DEFAULT_POLYGON_ENGINE


def get_max_bounds_km():
    """Largest accepted window side, in kilometres."""
    return _positive_float("RIVERCLIP_MAX_BOUNDS_KM", DEFAULT_MAX_BOUNDS_KM)


def get_bounds_buffer_degrees():
    value = parse_env_float("RIVERCLIP_BOUNDS_BUFFER_DEGREES", DEFAULT_BOUNDS_BUFFER_DEGREES)
    return value if value >= 0 else DEFAULT_BOUNDS_BUFFER_DEGREES


def get_max_input_elements():
    """Element cap for one processing request (the merger is quadratic or worse)."""
    return max(1, parse_env_int("RIVERCLIP_MAX_INPUT_ELEMENTS", DEFAULT_MAX_INPUT_ELEMENTS))
