"""
Exceptions raised by the mapper package.

Per-marker failures are reported as MarkerError and isolated by the batch
path; everything else propagates to the caller.
"""


class MapperError(Exception):
    """Base class for all mapper errors."""
    pass


class MapInitError(MapperError):
    """Raised when the map cannot be created (renderer missing, no container)."""
    pass


class MapStateError(MapperError):
    """Raised when an operation needs a drawn map and there is none."""
    pass


class MapConfigError(MapperError, ValueError):
    """Raised on malformed configuration or hydration documents."""
    pass


class MarkerError(MapperError):
    """Raised when a single marker entry cannot be placed."""

    def __init__(self, index, reason: str):
        self.index = index
        self.reason = reason
        if index is None:
            super().__init__(f"Marker: {reason}")
        else:
            super().__init__(f"Marker {index}: {reason}")


class GeocodingError(MapperError):
    """Raised when the geocoding endpoint fails or cannot be reached."""
    pass


class LocationError(MapperError):
    """Raised when the user's location cannot be determined."""
    pass
