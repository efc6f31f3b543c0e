"""
geoenrich configuration.

Module-level constants shared by the normalization engine. A handful of
runtime knobs can be overridden through environment variables.
"""
import logging
import os

# Great-circle distance
EARTH_RADIUS_MILES = 3958.8

# Web Mercator (EPSG:3857) half-world extent in meters
WEB_MERCATOR_HALF_WORLD = 20037508.34

# WGS84 bounds, also used as the Mercator detection threshold
MAX_LAT = 90.0
MAX_LON = 180.0

# Proximity search radius (miles); requests are clamped to [0, MAX_RADIUS_MILES]
MAX_RADIUS_MILES = 25.0
DEFAULT_RADIUS_MILES = float(os.environ.get("GEOENRICH_DEFAULT_RADIUS_MILES", "5.0"))

# Emission precision for distances
DISTANCE_DECIMALS = 2

# Dedup key construction
DEDUP_NAME_MAX_CHARS = 50
DEDUP_CONTENT_MAX_CHARS = 100

# H3 resolution for the tabular hand-off (~175 m edge)
H3_RES = int(os.environ.get("GEOENRICH_H3_RES", "9"))

# Optional YAML file with extra field aliases (semantic field -> list of keys)
ALIASES_YAML = os.environ.get("GEOENRICH_ALIASES_YAML")

LOG_LEVEL = os.environ.get("GEOENRICH_LOG_LEVEL", "INFO")
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def setup_logging(level: str = LOG_LEVEL) -> None:
    """Configure root logging for scripts and notebooks that drive the engine."""
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO), format=LOG_FORMAT)
