"""
Map orchestrator.

Owns a MapConfiguration and the folium map built from it, and exposes the
imperative operations: draw, move, add markers, locate the user, hydrate
from JSON, render and tear down.

Marker batches are best-effort: every entry runs concurrently, each one
succeeds or fails on its own, and the batch reports the aggregate without
raising.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from typing import Any, Callable, Optional

from branca.element import Figure

from config import CONTAINER_STYLE, DEFAULT_ZOOM
from mapper.errors import (
    GeocodingError,
    LocationError,
    MapConfigError,
    MapInitError,
    MapStateError,
    MarkerError,
)
from mapper.geocoder import Geocoder
from mapper.models import (
    CoordinateMarker,
    IconSpec,
    LocationFix,
    MapConfiguration,
    MarkerBatchResult,
    MarkerOutcome,
    parse_marker_spec,
)
from mapper.utils.geo_utils import parse_coord, to_float

logger = logging.getLogger(__name__)

USER_LOCATION_LABEL = "User Location"


def require_folium():
    """Import the rendering library, failing with MapInitError if it is absent."""
    try:
        import folium
        import folium.plugins
    except ImportError as e:
        raise MapInitError("folium is not installed. Install folium before drawing a map.") from e
    return folium


class Mapper:
    """Leaflet map (via folium) with address and coordinate markers."""

    def __init__(
        self,
        config: Optional[MapConfiguration] = None,
        geocoder: Optional[Geocoder] = None,
        page: Optional[Figure] = None,
    ):
        """
        Args:
            config: Map options; defaults center on (0, 0) at zoom 13.
            geocoder: Address lookup; built from settings when omitted.
            page: Existing page to attach the map to. Required when
                config.create_container is False.
        """
        self.config = config or MapConfiguration()
        self._geocoder = geocoder
        self.page = page
        self._owns_page = False
        self.map = None
        self.markers: list = []

    @property
    def lat(self) -> float:
        return self.config.lat

    @property
    def long(self) -> float:
        return self.config.long

    @property
    def zoom(self) -> float:
        return self.config.zoom

    @property
    def geocoder(self) -> Geocoder:
        if self._geocoder is None:
            self._geocoder = Geocoder(rate_limit_ms=self.config.rate_limit_ms)
        return self._geocoder

    def _require_map(self):
        if self.map is None:
            raise MapStateError("Map has not been drawn. Call draw() first.")
        return self.map

    # --- Drawing ---

    async def draw(self, json_string: Optional[str] = None) -> MarkerBatchResult:
        """
        Build the map and place the configured markers.

        Args:
            json_string: Optional hydration document; when given, position and
                markers come from it instead of the configuration.

        Returns:
            Aggregate of the marker batch.
        """
        require_folium()

        if json_string is None:
            await self._resolve_initial_address()
            result = await self._draw_map(self.config.markers)
        else:
            result = await self.draw_from_json(json_string)

        if self.config.locate_on_start:
            await self.locate_user()
        return result

    async def _resolve_initial_address(self) -> None:
        address = self.config.address
        if not address:
            return

        locations = await self.geocoder.geocode(address, limit=1)
        if not locations:
            logger.warning(
                f"Initial address {address!r} not found, "
                f"using ({self.config.lat}, {self.config.long})"
            )
            return
        self.config.lat = locations[0].lat
        self.config.long = locations[0].lon
        logger.info(f"Centered on {locations[0].name} ({locations[0].lat:.5f}, {locations[0].lon:.5f})")

    def _prepare_page(self) -> tuple:
        """Return (page, map size kwargs) for the container the map lives in."""
        if self.config.create_container:
            if self.page is None:
                self.page = Figure()
                self._owns_page = True
            return self.page, dict(CONTAINER_STYLE)

        if self.page is None:
            raise MapInitError(
                f"Map container {self.config.container_id!r} not found: "
                "pass a page when create_container is False"
            )
        return self.page, {"position": "relative", "width": "100%", "height": "100%"}

    async def _draw_map(self, markers: list) -> MarkerBatchResult:
        folium = require_folium()

        if self.map is not None:
            logger.debug("Map already drawn, replacing it")
            self.destroy()

        page, size = self._prepare_page()

        fmap = folium.Map(
            location=[self.config.lat, self.config.long],
            zoom_start=self.config.zoom,
            tiles=None,
            **size,
        )
        folium.TileLayer(
            tiles=self.config.tile_url,
            attr=self.config.tile_attribution,
            name="tiles",
        ).add_to(fmap)
        page.add_child(fmap, name=self.config.container_id)
        self.map = fmap
        logger.info(
            f"Drew map {self.config.container_id!r} at "
            f"({self.config.lat}, {self.config.long}) zoom {self.config.zoom}"
        )

        if markers:
            return await self.add_marker_list(markers)
        return MarkerBatchResult()

    def move_to(self, lat: float, long: float, zoom: float = DEFAULT_ZOOM) -> None:
        """Re-center the view."""
        fmap = self._require_map()
        coord = parse_coord(lat, long)
        if coord is None:
            raise MapConfigError(f"Invalid view coordinates: ({lat!r}, {long!r})")
        zoom_value = to_float(zoom)
        if zoom_value is None:
            raise MapConfigError(f"Invalid zoom: {zoom!r}")

        self.config.lat, self.config.long = coord
        self.config.zoom = zoom_value
        fmap.location = [coord[0], coord[1]]
        fmap.options["zoom"] = zoom_value

    # --- Markers ---

    def _place_marker(self, lat: float, long: float, label: str, popup: str,
                      icon: Optional[IconSpec] = None):
        folium = require_folium()
        fmap = self._require_map()

        icon_element = None
        if icon is not None:
            icon_element = folium.CustomIcon(
                icon_image=icon.url,
                icon_size=icon.size,
                icon_anchor=icon.anchor,
            )

        marker = folium.Marker(
            location=[lat, long],
            tooltip=popup if popup != "" else None,
            icon=icon_element,
            alt=label,
        )
        marker.add_to(fmap)
        self.markers.append(marker)
        return marker

    async def add_marker(self, lat: Any, long: Any, label: str = "Marker", popup: str = "",
                         icon: Any = None):
        """
        Place a single marker.

        Args:
            lat: Latitude.
            long: Longitude.
            label: Alt text for the marker image.
            popup: Tooltip text; empty means no tooltip.
            icon: IconSpec or {icon_url, icon_x, icon_y, icon_w, icon_h}.

        Returns:
            The folium Marker.

        Raises:
            MarkerError: On invalid coordinates or icon.
        """
        self._require_map()
        spec = parse_marker_spec(
            {"lat": lat, "long": long, "label": label, "popup": popup, "icon": icon},
            index=None,
        )
        return self._place_marker(spec.lat, spec.long, spec.label, spec.popup, spec.icon)

    async def add_marker_list(self, marker_list: list) -> MarkerBatchResult:
        """
        Place every entry of marker_list, tolerating individual failures.

        Returns:
            MarkerBatchResult with one outcome per entry, in input order.

        Raises:
            MapConfigError: If marker_list is not a list.
            MapStateError: If the map has not been drawn.
        """
        if not isinstance(marker_list, (list, tuple)):
            raise MapConfigError("marker_list must be a list")
        self._require_map()

        settled = await asyncio.gather(
            *(self._process_marker(m, i) for i, m in enumerate(marker_list)),
            return_exceptions=True,
        )

        outcomes = []
        for i, item in enumerate(settled):
            if isinstance(item, BaseException):
                outcomes.append(MarkerOutcome(index=i, error=item))
            else:
                outcomes.append(MarkerOutcome(index=i, markers=item))
        result = MarkerBatchResult(outcomes=outcomes)

        failed = result.failed
        if failed:
            logger.warning(f"Markers: {result.added} added, {len(failed)} failed")
            for outcome in failed:
                logger.error(str(outcome.error))
        else:
            logger.info(f"Markers: {result.added} added")
        return result

    async def _process_marker(self, marker_data: Any, index: int) -> list:
        spec = parse_marker_spec(marker_data, index)

        if isinstance(spec, CoordinateMarker):
            return [self._place_marker(spec.lat, spec.long, spec.label, spec.popup, spec.icon)]

        try:
            locations = await self.geocoder.geocode(spec.address, limit=self.config.geocode_limit)
        except GeocodingError as e:
            raise MarkerError(index, f"geocoding failed: {e}") from e

        if not locations:
            raise MarkerError(index, "address not found")

        return [
            self._place_marker(loc.lat, loc.lon, spec.address, loc.name or "None")
            for loc in locations
        ]

    # --- Geolocation ---

    async def locate_user(self, icon: Any = None, on_error: Optional[Callable] = None,
                          locator: Optional[Callable] = None) -> Optional[Any]:
        """
        Show the user's position.

        Without a locator, a LocateControl is attached and the browser runs
        the geolocation when the page loads. With a locator (a callable, sync
        or async, returning a LocationFix), the fix is placed server-side.

        Args:
            icon: Marker icon for the user location.
            on_error: Called with the LocationError instead of raising it.
            locator: Source of the location fix.

        Returns:
            The user marker, the LocateControl, or None when on_error
            handled a failure.
        """
        folium = require_folium()
        fmap = self._require_map()

        if locator is None:
            control = folium.plugins.LocateControl(auto_start=True)
            control.add_to(fmap)
            logger.info("Attached browser geolocation control")
            return control

        try:
            fix = locator()
            if inspect.isawaitable(fix):
                fix = await fix
        except LocationError as e:
            self.handle_location_error(e, on_error)
            return None
        return await self.handle_location_found(fix, icon)

    async def handle_location_found(self, fix: LocationFix, icon: Any = None):
        """Place the user marker and an accuracy circle for a location fix."""
        folium = require_folium()
        fmap = self._require_map()

        marker = await self.add_marker(fix.lat, fix.lon, USER_LOCATION_LABEL, "", icon)
        folium.Circle(
            location=[fix.lat, fix.lon],
            radius=fix.accuracy / 2,
            weight=1,
            color="blue",
        ).add_to(fmap)
        logger.info(f"User located at ({fix.lat:.5f}, {fix.lon:.5f}) ±{fix.accuracy:.0f}m")
        return marker

    def handle_location_error(self, error: LocationError,
                              on_error: Optional[Callable] = None) -> None:
        """Report a geolocation failure to on_error, or raise it."""
        logger.error(f"Location error: {error}")
        if on_error is not None:
            on_error(error)
            return
        raise LocationError("Location access denied") from error

    # --- JSON hydration ---

    async def draw_from_json(self, json_string: str) -> MarkerBatchResult:
        """
        Draw from a {"position": {lat, long, zoom}, "markers": [...]} document.

        The document's markers replace the configured ones for this draw.

        Raises:
            MapConfigError: If the document is not valid JSON or does not
                match the schema. Nothing is drawn in that case.
        """
        try:
            map_conf = json.loads(json_string)
            position = map_conf["position"]
            lat = position["lat"]
            long = position["long"]
            zoom = position.get("zoom", self.config.zoom)
            markers = map_conf.get("markers", [])
            if markers is None:
                markers = []
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Invalid JSON provided: {e}")
            raise MapConfigError(f"Invalid map JSON: {e}") from e

        coord = parse_coord(lat, long)
        zoom_value = to_float(zoom)
        if coord is None or zoom_value is None:
            logger.warning(f"Invalid JSON position: {position!r}")
            raise MapConfigError(f"Invalid map JSON position: {position!r}")
        if not isinstance(markers, list):
            logger.warning("Invalid JSON markers: expected a list")
            raise MapConfigError("Invalid map JSON: markers must be a list")

        self.config.lat, self.config.long = coord
        self.config.zoom = zoom_value
        return await self._draw_map(markers)

    # --- Output / teardown ---

    def render(self) -> str:
        """Return the full HTML page containing the map."""
        self._require_map()
        return self.page.render()

    def save(self, path) -> None:
        """Write the rendered page to path."""
        self._require_map()
        self.page.save(str(path))
        logger.info(f"Saved map to {path}")

    def destroy(self) -> None:
        """Detach the map from its page and drop it. Safe to call repeatedly."""
        if self.map is not None:
            if self.page is not None:
                # branca has no public API for removing a child element
                self.page._children.pop(self.config.container_id, None)
            self.map = None
        self.markers = []
        if self._owns_page:
            self.page = None
            self._owns_page = False
