"""
Data model: map configuration, marker specs, and result records.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Union

import config
from mapper.errors import MapConfigError, MarkerError
from mapper.utils.geo_utils import parse_coord, to_float

logger = logging.getLogger(__name__)


@dataclass
class IconSpec:
    """Custom marker image, passed through to folium.CustomIcon."""
    url: str
    anchor_x: float = 50
    anchor_y: float = 100
    width: float = 100
    height: float = 100

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "IconSpec":
        """
        Build from the {icon_url, icon_x, icon_y, icon_w, icon_h} form.

        Raises:
            ValueError: If icon_url is missing or a dimension is not numeric.
        """
        url = data.get("icon_url")
        if not isinstance(url, str) or not url.strip():
            raise ValueError("icon requires icon_url")

        dims = {}
        for key, attr, default in (
            ("icon_x", "anchor_x", 50),
            ("icon_y", "anchor_y", 100),
            ("icon_w", "width", 100),
            ("icon_h", "height", 100),
        ):
            raw = data.get(key, default)
            value = to_float(raw)
            if value is None:
                raise ValueError(f"icon {key} must be numeric, got {raw!r}")
            dims[attr] = value
        return cls(url=url.strip(), **dims)

    @property
    def size(self) -> tuple:
        return (self.width, self.height)

    @property
    def anchor(self) -> tuple:
        return (self.anchor_x, self.anchor_y)


@dataclass
class AddressMarker:
    """Marker placed at every location an address resolves to."""
    address: str


@dataclass
class CoordinateMarker:
    """Marker placed at literal coordinates."""
    lat: float
    long: float
    label: str = "Marker"
    popup: str = ""
    icon: Optional[IconSpec] = None


MarkerSpec = Union[AddressMarker, CoordinateMarker]


def parse_icon(raw: Any, index: Any) -> Optional[IconSpec]:
    """Parse an icon entry. Empty or missing icons mean the default marker."""
    if raw is None or raw == {}:
        return None
    if isinstance(raw, IconSpec):
        return raw
    if not isinstance(raw, Mapping):
        raise MarkerError(index, "invalid icon")
    try:
        return IconSpec.from_dict(raw)
    except ValueError as e:
        raise MarkerError(index, str(e)) from e


def parse_marker_spec(data: Any, index: Any = 0) -> MarkerSpec:
    """
    Turn a raw marker entry into a MarkerSpec.

    Accepts {address} or {lat, long|lon, label|alt, popup|popup_text, icon}.
    Already-parsed specs are returned unchanged.

    Raises:
        MarkerError: If the entry is malformed.
    """
    if isinstance(data, (AddressMarker, CoordinateMarker)):
        return data
    if not isinstance(data, Mapping):
        raise MarkerError(index, "invalid marker data")

    if "address" in data and data["address"] is not None:
        address = data["address"]
        if not isinstance(address, str) or not address.strip():
            raise MarkerError(index, "empty address")
        return AddressMarker(address=address.strip())

    lat = data.get("lat")
    lon = data.get("long", data.get("lon"))
    if lat is None or lon is None:
        raise MarkerError(index, "missing lat/long or address")

    coord = parse_coord(lat, lon)
    if coord is None:
        raise MarkerError(index, "invalid coords")

    label = data.get("label", data.get("alt", "Marker"))
    popup = data.get("popup", data.get("popup_text", ""))
    return CoordinateMarker(
        lat=coord[0],
        long=coord[1],
        label=str(label) if label is not None else "Marker",
        popup=str(popup) if popup is not None else "",
        icon=parse_icon(data.get("icon"), index),
    )


@dataclass
class MapConfiguration:
    """Options a Mapper is constructed with."""
    lat: float = config.DEFAULT_LAT
    long: float = config.DEFAULT_LONG
    zoom: float = config.DEFAULT_ZOOM
    address: Optional[str] = None
    markers: list = field(default_factory=list)
    container_id: str = config.DEFAULT_CONTAINER_ID
    create_container: bool = True
    locate_on_start: bool = False
    rate_limit_ms: float = config.MIN_GEOCODE_INTERVAL_MS
    geocode_limit: int = 1
    tile_url: str = config.TILE_URL
    tile_attribution: str = config.TILE_ATTRIBUTION

    def __post_init__(self):
        coord = parse_coord(self.lat, self.long)
        if coord is None:
            raise MapConfigError(f"Invalid view coordinates: ({self.lat!r}, {self.long!r})")
        self.lat, self.long = coord

        zoom = to_float(self.zoom)
        if zoom is None:
            raise MapConfigError(f"zoom must be numeric, got {self.zoom!r}")
        self.zoom = zoom

        rate_limit_ms = to_float(self.rate_limit_ms)
        if rate_limit_ms is None:
            raise MapConfigError(f"rate_limit_ms must be numeric, got {self.rate_limit_ms!r}")
        self.rate_limit_ms = rate_limit_ms

        geocode_limit = to_float(self.geocode_limit)
        if geocode_limit is None or geocode_limit != int(geocode_limit):
            raise MapConfigError(f"geocode_limit must be an integer, got {self.geocode_limit!r}")
        self.geocode_limit = int(geocode_limit)

        if self.rate_limit_ms < config.MIN_GEOCODE_INTERVAL_MS:
            logger.warning(
                f"rate_limit_ms={self.rate_limit_ms} is below the minimum, "
                f"using {config.MIN_GEOCODE_INTERVAL_MS}"
            )
            self.rate_limit_ms = config.MIN_GEOCODE_INTERVAL_MS
        if self.address is not None and not str(self.address).strip():
            self.address = None
        if not isinstance(self.markers, (list, tuple)):
            raise MapConfigError("markers must be a list")
        self.markers = list(self.markers)
        if self.geocode_limit < 1:
            raise MapConfigError("geocode_limit must be >= 1")

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]] = None) -> "MapConfiguration":
        """
        Build from the option names used by page scripts.

        Recognized keys: coord {lat, long}, zoom, marker_list, create_div,
        div_id, rate_limit_ms, locate_on_start, address. Unknown keys are
        ignored.
        """
        data = data or {}
        if not isinstance(data, Mapping):
            raise MapConfigError("configuration must be an object")

        coord = data.get("coord") or {}
        if not isinstance(coord, Mapping):
            raise MapConfigError("coord must be an object with lat/long")

        kwargs = {}
        for key, value in (("lat", coord.get("lat")), ("long", coord.get("long")), ("zoom", data.get("zoom"))):
            if value is None:
                continue
            number = to_float(value)
            if number is None:
                raise MapConfigError(f"{key} must be numeric, got {value!r}")
            kwargs[key] = number

        mapping = {
            "address": "address",
            "marker_list": "markers",
            "create_div": "create_container",
            "div_id": "container_id",
            "rate_limit_ms": "rate_limit_ms",
            "locate_on_start": "locate_on_start",
        }
        for src_key, attr in mapping.items():
            if src_key in data:
                kwargs[attr] = data[src_key]
        return cls(**kwargs)


@dataclass
class GeocodeResult:
    """One normalized geocoder record."""
    name: str
    lat: float
    lon: float


@dataclass
class LocationFix:
    """A geolocation fix; accuracy in meters."""
    lat: float
    lon: float
    accuracy: float = 0.0


@dataclass
class MarkerOutcome:
    """Result of processing one entry of a marker batch."""
    index: int
    markers: list = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class MarkerBatchResult:
    """Aggregate of a best-effort marker batch."""
    outcomes: List[MarkerOutcome] = field(default_factory=list)

    @property
    def added(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failed(self) -> List[MarkerOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def markers(self) -> list:
        return [m for o in self.outcomes for m in o.markers]
