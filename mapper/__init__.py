"""Leaflet map wrapper with rate-limited geocoding."""

from .errors import (
    GeocodingError,
    LocationError,
    MapConfigError,
    MapInitError,
    MapperError,
    MapStateError,
    MarkerError,
)
from .geocoder import Geocoder
from .mapper import Mapper
from .models import (
    AddressMarker,
    CoordinateMarker,
    GeocodeResult,
    IconSpec,
    LocationFix,
    MapConfiguration,
    MarkerBatchResult,
    MarkerOutcome,
    parse_marker_spec,
)

__all__ = [
    "Mapper",
    "MapConfiguration",
    "Geocoder",
    "GeocodeResult",
    "AddressMarker",
    "CoordinateMarker",
    "IconSpec",
    "LocationFix",
    "MarkerBatchResult",
    "MarkerOutcome",
    "parse_marker_spec",
    "MapperError",
    "MapInitError",
    "MapStateError",
    "MapConfigError",
    "MarkerError",
    "GeocodingError",
    "LocationError",
]
